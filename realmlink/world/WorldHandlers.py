#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
World server message handlers.

All server messages begin with a 4 byte header:
    uint16 - packet size (big endian)
    uint16 - opcode (little endian)

Headers after SMSG_AUTH_CHALLENGE are encrypted; bodies never are. Every
numeric field in a body is little endian.

Each handler receives the WorldSession and the message body and returns a
HandlerResult (packets to send, events to emit) or None.
"""

from __future__ import annotations

from realmlink.codec.ByteBuffer import ByteBuffer
from realmlink.crypto.HeaderCrypt import create_header_crypt
from realmlink.crypto.SRP6Client import compute_world_auth_digest
from realmlink.dispatch.OpcodeDispatcher import HandlerResult, OpcodeDispatcher
from realmlink.events import EventBus as events
from realmlink.exceptions import AuthError, MalformedPacketError, UnexpectedMessageError
from realmlink.utils.Logger import Logger
from realmlink.world import WorldPackets as packets
from realmlink.world.WorldOpcodes import WorldAuthResponse, WorldServerOpcodes as SMSG, auth_response_message
from realmlink.world.WorldSession import WorldSession, WorldState
from realmlink.world.models import (
    FRIEND_STATUS_OFFLINE,
    ChannelNotification,
    Character,
    ChatMessage,
    ChatType,
    Guild,
    GuildMember,
    SocialFlag,
    SocialInfo,
)

WORLD_HANDLERS = OpcodeDispatcher("world")

# location, pet info and equipment that follow each character's level
CHAR_ENUM_TAIL_SIZE = 221
GUILD_RANK_SIZE = 56
SECONDS_PER_DAY = 86400

# guild events that change the roster
GUILD_ROSTER_EVENTS = {0, 1, 3, 4, 5, 7, 12, 13}


# ---- Session setup -----------------------------------------------------

@WORLD_HANDLERS.on(SMSG.SMSG_AUTH_CHALLENGE)
def handle_auth_challenge(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    if pk.remaining != 4:
        raise MalformedPacketError(f"SMSG_AUTH_CHALLENGE body is {pk.remaining} bytes, expected 4")
    if session.state is not WorldState.CONNECTED:
        raise UnexpectedMessageError(f"SMSG_AUTH_CHALLENGE received in state {session.state.value}")

    session.server_seed = pk.uint32()
    digest = compute_world_auth_digest(
        session.username, session.client_seed, session.server_seed, session.session_key
    )
    session.state = WorldState.AUTHENTICATING

    result = HandlerResult(cipher=create_header_crypt(session.header_cipher, session.session_key))
    return result.send(packets.build_auth_session(session.username, session.build, session.client_seed, digest))


@WORLD_HANDLERS.on(SMSG.SMSG_AUTH_RESPONSE)
def handle_auth_response(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    if session.state is not WorldState.AUTHENTICATING:
        raise UnexpectedMessageError(f"SMSG_AUTH_RESPONSE received in state {session.state.value}")

    code = pk.uint8()
    if code == WorldAuthResponse.AUTH_WAIT_QUEUE:
        position = pk.uint32() if pk.remaining >= 4 else 0
        return HandlerResult().emit(events.AUTH_QUEUED, position)

    if code != WorldAuthResponse.AUTH_OK:
        raise AuthError(auth_response_message(code), code)

    session.state = WorldState.CHARACTER_SELECT
    return HandlerResult().send(packets.build_char_enum())


@WORLD_HANDLERS.on(SMSG.SMSG_CHAR_ENUM)
def handle_char_enum(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    chars = []
    for _ in range(pk.uint8()):
        guid = pk.uint64()
        name = pk.cstring()
        race = pk.uint8()
        cls = pk.uint8()
        level = pk.skip(6).uint8()  # gender and appearance
        pk.skip(CHAR_ENUM_TAIL_SIZE)

        chars.append(Character(guid, name, level, race, cls))
        session.names[guid] = name

    session.characters = chars
    return HandlerResult().emit(events.CHARACTER_ENUM, chars)


@WORLD_HANDLERS.on(SMSG.SMSG_LOGIN_VERIFY_WORLD)
def handle_login_verify_world(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    session.state = WorldState.IN_WORLD
    session.guild = Guild()
    session.social = {}

    return (
        HandlerResult()
        .send(packets.build_guild_roster())
        .send(packets.build_contact_list())
        .emit(events.LOGIN_SUCCEEDED, session.player)
    )


@WORLD_HANDLERS.on(SMSG.SMSG_LOGOUT_COMPLETE)
def handle_logout_complete(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    session.player = None
    session.guild = None
    session.social = None
    session.state = WorldState.CHARACTER_SELECT

    return HandlerResult().send(packets.build_char_enum()).emit(events.LOGOUT_SUCCEEDED)


# ---- Chat --------------------------------------------------------------

@WORLD_HANDLERS.on(SMSG.SMSG_MESSAGECHAT)
def handle_message_chat(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    chat_type = pk.uint8()
    language = pk.uint32()
    guid = pk.uint64()
    pk.uint32()
    channel = pk.cstring() if chat_type == ChatType.CHANNEL else None
    pk.uint64()  # target guid
    pk.uint32()  # text length
    text = pk.cstring()
    pk.uint8()   # chat tag

    result = HandlerResult()
    sender = session.names.get(guid)
    if guid and sender is None:
        result.send(packets.build_name_query(guid))

    return result.emit(
        events.CHAT_MESSAGE_RECEIVED,
        ChatMessage(chat_type, language, guid, text, channel, sender),
    )


@WORLD_HANDLERS.on(SMSG.SMSG_NAME_QUERY_RESPONSE)
def handle_name_query_response(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    guid = pk.uint64()
    name = pk.cstring()
    pk.cstring()  # realm name, empty on the home realm
    race = pk.uint32()
    pk.uint32()   # gender
    cls = pk.uint32()

    session.names[guid] = name
    return HandlerResult().emit(events.NAME_RESOLVED, Character(guid, name, race=race, cls=cls))


@WORLD_HANDLERS.on(SMSG.SMSG_CHAT_PLAYER_NOT_FOUND)
def handle_chat_player_not_found(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    return HandlerResult().emit(events.PLAYER_NOT_FOUND, pk.cstring())


@WORLD_HANDLERS.on(SMSG.SMSG_CHANNEL_NOTIFY)
def handle_channel_notify(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    notification = ChannelNotification(pk.uint8(), pk.cstring())
    return HandlerResult().emit(events.CHANNEL_NOTIFICATION_RECEIVED, notification)


@WORLD_HANDLERS.on(SMSG.SMSG_NOTIFICATION)
def handle_notification(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    return HandlerResult().emit(events.SERVER_NOTIFICATION_RECEIVED, pk.cstring())


@WORLD_HANDLERS.on(SMSG.SMSG_MOTD)
def handle_motd(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    lines = [pk.cstring() for _ in range(pk.uint32())]
    session.motd = "\n".join(lines)
    return HandlerResult().emit(events.MOTD_RECEIVED, session.motd)


# ---- Guild -------------------------------------------------------------

@WORLD_HANDLERS.on(SMSG.SMSG_GUILD_ROSTER)
def handle_guild_roster(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    guild = session.guild if session.guild is not None else Guild()

    count = pk.uint32()
    guild.motd = pk.cstring()
    guild.info = pk.cstring()
    pk.skip(pk.uint32() * GUILD_RANK_SIZE)

    members = {}
    for _ in range(count):
        guid = pk.uint64()
        online = pk.uint8() != 0
        name = pk.cstring()
        rank = pk.uint32()
        level = pk.uint8()
        cls = pk.uint8()
        zone = pk.skip(1).uint32()
        offline_days = None if online else pk.float()
        note = pk.cstring()
        officer_note = pk.cstring()

        members[guid] = GuildMember(guid, name, online, rank, level, cls, zone, offline_days, note, officer_note)
        session.names[guid] = name

    guild.members = members
    session.guild = guild
    return HandlerResult().emit(events.GUILD_UPDATED, guild)


@WORLD_HANDLERS.on(SMSG.SMSG_GUILD_EVENT)
def handle_guild_event(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    event = pk.uint8()
    params = [pk.cstring() for _ in range(pk.uint8())]

    result = HandlerResult().emit(events.GUILD_EVENT, event, params)
    if event in GUILD_ROSTER_EVENTS:
        result.send(packets.build_guild_roster())
    return result


# ---- Social ------------------------------------------------------------

@WORLD_HANDLERS.on(SMSG.SMSG_CONTACT_LIST)
def handle_contact_list(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    if session.social is None:
        session.social = {}

    result = HandlerResult()
    pk.uint32()  # list flags
    for _ in range(pk.uint32()):
        guid = pk.uint64()
        flags = pk.uint32()
        note = pk.cstring()
        status = area = level = cls = None

        if flags & SocialFlag.FRIEND:
            status = pk.uint8()
            if status != FRIEND_STATUS_OFFLINE:
                area = pk.uint32()
                level = pk.uint32()
                cls = pk.uint32()

        if guid not in session.names:
            result.send(packets.build_name_query(guid))

        session.social[guid] = SocialInfo(guid, flags, note, status, area, level, cls)

    Logger.debug(f"[World] contact list holds {len(session.social)} entries")
    return result.emit(events.SOCIAL_UPDATED, session.social)


@WORLD_HANDLERS.on(SMSG.SMSG_FRIEND_STATUS)
def handle_friend_status(session: WorldSession, pk: ByteBuffer) -> HandlerResult:
    return HandlerResult().send(packets.build_contact_list())
