#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Per-connection world state handed to every world handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from realmlink.world.models import Character, Guild, SocialInfo


class WorldState(Enum):
    CONNECTED = "connected"
    AUTHENTICATING = "authenticating"
    CHARACTER_SELECT = "character_select"
    LOGGING_IN = "logging_in"
    IN_WORLD = "in_world"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass
class WorldSession:
    username: str
    session_key: bytes
    build: int
    header_cipher: str = "hmac_xor"
    client_seed: int = 0
    server_seed: Optional[int] = None
    state: WorldState = WorldState.CONNECTED

    characters: list[Character] = field(default_factory=list)
    player: Optional[Character] = None
    names: dict[int, str] = field(default_factory=dict)
    guild: Optional[Guild] = None
    social: Optional[dict[int, SocialInfo]] = None
    motd: str = ""

    def find_character(self, name: str) -> Optional[Character]:
        for char in self.characters:
            if char.name.lower() == name.lower():
                return char
        return None
