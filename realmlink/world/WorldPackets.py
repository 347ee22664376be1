#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Builders for client world messages (header included, still plaintext)."""

from __future__ import annotations

from realmlink.codec.ByteBuffer import ByteBuffer, build_client_packet
from realmlink.world.WorldOpcodes import WorldClientOpcodes as CMSG
from realmlink.world.models import ChatType


def build_auth_session(account: str, build: int, client_seed: int, digest: bytes) -> bytes:
    if not account:
        raise ValueError("Account name missing")
    if len(digest) != 20:
        raise ValueError("Digest must be 20 bytes")

    payload = (
        ByteBuffer()
        .put_uint32(build)
        .put_uint32(0)  # unknown
        .put_cstring(account.upper())
        .put_uint32(client_seed)
        .put_raw(digest)
    )
    return build_client_packet(CMSG.CMSG_AUTH_SESSION, bytes(payload))


def build_char_enum() -> bytes:
    return build_client_packet(CMSG.CMSG_CHAR_ENUM)


def build_player_login(guid: int) -> bytes:
    return build_client_packet(CMSG.CMSG_PLAYER_LOGIN, bytes(ByteBuffer().put_uint64(guid)))


def build_logout_request() -> bytes:
    return build_client_packet(CMSG.CMSG_LOGOUT_REQUEST)


def build_name_query(guid: int) -> bytes:
    return build_client_packet(CMSG.CMSG_NAME_QUERY, bytes(ByteBuffer().put_uint64(guid)))


def build_contact_list(flags: int = 0x01) -> bytes:
    return build_client_packet(CMSG.CMSG_CONTACT_LIST, bytes(ByteBuffer().put_uint32(flags)))


def build_guild_roster() -> bytes:
    return build_client_packet(CMSG.CMSG_GUILD_ROSTER)


def build_message_chat(chat_type: int, language: int, text: str, target: str | None = None) -> bytes:
    """
    CMSG_MESSAGECHAT. Whispers name the receiving player in `target`,
    channel messages name the channel.
    """
    payload = ByteBuffer().put_uint32(chat_type).put_uint32(language)

    if chat_type in (ChatType.WHISPER, ChatType.CHANNEL):
        if not target:
            raise ValueError("Whisper and channel messages need a target")
        payload.put_cstring(target)

    payload.put_cstring(text)
    return build_client_packet(CMSG.CMSG_MESSAGECHAT, bytes(payload))


def build_join_channel(name: str, password: str = "") -> bytes:
    payload = (
        ByteBuffer()
        .put_uint32(0)  # channel id
        .put_uint8(0)
        .put_uint8(0)
        .put_cstring(name)
        .put_cstring(password)
    )
    return build_client_packet(CMSG.CMSG_JOIN_CHANNEL, bytes(payload))
