#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Plain records built from decoded world messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional


class ChatType(IntEnum):
    SYSTEM = 0x00
    SAY = 0x01
    PARTY = 0x02
    RAID = 0x03
    GUILD = 0x04
    OFFICER = 0x05
    YELL = 0x06
    WHISPER = 0x07
    WHISPER_INFORM = 0x08
    REPLY = 0x09
    EMOTE = 0x0A
    TEXT_EMOTE = 0x0B
    CHANNEL = 0x11


class Language(IntEnum):
    UNIVERSAL = 0
    ORCISH = 1
    COMMON = 7


ALLIANCE_RACES = {1, 3, 4, 7, 11}


class SocialFlag(IntEnum):
    FRIEND = 0x01
    IGNORED = 0x02
    MUTED = 0x04


FRIEND_STATUS_OFFLINE = 0


@dataclass
class Character:
    guid: int
    name: str
    level: int = 0
    race: int = 0
    cls: int = 0

    @property
    def language(self) -> int:
        return Language.COMMON if self.race in ALLIANCE_RACES else Language.ORCISH


@dataclass
class ChatMessage:
    type: int
    language: int
    guid: int
    text: str
    channel: Optional[str] = None
    sender: Optional[str] = None


@dataclass
class ChannelNotification:
    type: int
    name: str


@dataclass
class GuildMember:
    guid: int
    name: str
    online: bool
    rank: int
    level: int
    cls: int
    zone: int
    offline_days: Optional[float] = None
    note: str = ""
    officer_note: str = ""


@dataclass
class Guild:
    motd: str = ""
    info: str = ""
    members: dict[int, GuildMember] = field(default_factory=dict)

    def online(self) -> list[GuildMember]:
        return [m for m in self.members.values() if m.online]


@dataclass
class SocialInfo:
    guid: int
    flags: int
    note: str = ""
    status: Optional[int] = None
    area: Optional[int] = None
    level: Optional[int] = None
    cls: Optional[int] = None

    @property
    def is_friend(self) -> bool:
        return bool(self.flags & SocialFlag.FRIEND)
