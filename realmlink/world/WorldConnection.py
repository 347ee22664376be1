#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
World server conversation.

    CONNECTED -> AUTHENTICATING -> CHARACTER_SELECT -> LOGGING_IN -> IN_WORLD
    IN_WORLD -> CHARACTER_SELECT (logout)
    (any state) -> FAILED | CLOSED

Like AuthConnection this class owns no socket: feed() and the commands return
the bytes to write. Outbound headers are encrypted by send() as packets are
produced, so every packet must be written in the order it is returned.

A command issued from an event listener while feed() runs is queued with the
handler replies and returned by feed(), in the order it was encrypted; the
listener must not write the value the command returns.
"""

from __future__ import annotations

import secrets
from typing import Optional

from realmlink.codec.ByteBuffer import CLIENT_HEADER_SIZE
from realmlink.crypto.HeaderCrypt import HeaderCrypt
from realmlink.dispatch.OpcodeDispatcher import HandlerResult
from realmlink.events import EventBus as events
from realmlink.events.EventBus import EventBus
from realmlink.exceptions import AuthError, RealmLinkError, StateError, VerificationError
from realmlink.utils.ConfigLoader import ConfigLoader
from realmlink.utils.Logger import Logger
from realmlink.utils.PacketDump import dump_packet
from realmlink.world import WorldPackets as packets
from realmlink.world.FrameReassembler import FrameReassembler
from realmlink.world.WorldHandlers import WORLD_HANDLERS
from realmlink.world.WorldOpcodes import opcode_name
from realmlink.world.WorldSession import WorldSession, WorldState
from realmlink.world.models import Character, ChatType


class WorldConnection:
    """Drives one world session from SMSG_AUTH_CHALLENGE to logout."""

    def __init__(
        self,
        username: str,
        session_key: bytes,
        events_bus: EventBus | None = None,
        config: dict | None = None,
        client_seed: int | None = None,
    ) -> None:
        cfg = config or ConfigLoader.get_config()
        world_cfg = cfg.get("world", {})

        if client_seed is None:
            client_seed = secrets.randbits(32)

        self.session = WorldSession(
            username=username.upper(),
            session_key=session_key,
            build=cfg["client"]["build"],
            header_cipher=world_cfg.get("header_cipher", "hmac_xor"),
            client_seed=client_seed,
        )
        self.events = events_bus or EventBus()
        self.reassembler = FrameReassembler(world_cfg.get("max_opcode", 0x0FFF))
        self.cipher: Optional[HeaderCrypt] = None
        # wire packets produced while feed() runs, in encryption order
        self._outbox: Optional[list[bytes]] = None

    @property
    def state(self) -> WorldState:
        return self.session.state

    @property
    def characters(self) -> list[Character]:
        return self.session.characters

    # ------------------------------------------------------------------
    # Transport callbacks
    # ------------------------------------------------------------------

    def connection_made(self) -> None:
        """The server talks first; nothing to send until SMSG_AUTH_CHALLENGE."""
        self.events.notify(events.WORLD_OPENED)

    def feed(self, data: bytes) -> list[bytes]:
        """Consume transport bytes; returns the (already encrypted) packets to send."""
        if self.state in (WorldState.CLOSED, WorldState.FAILED):
            Logger.warning(f"[World] {len(data)} bytes after {self.state.value}, ignored")
            return []

        self._outbox = []
        try:
            # handlers run between messages so a cipher installed by one
            # message applies to the next header in the same chunk
            for packet in self.reassembler.feed(data):
                dump_packet("RECV", opcode_name(packet.opcode), bytes(packet.data))
                self.events.notify(events.PACKET_RECEIVED, packet.opcode, bytes(packet.data))

                result = WORLD_HANDLERS.dispatch(self.session, packet.opcode, packet.body())
                self._apply(result)
        except RealmLinkError as e:
            self._fail(e)
            raise
        finally:
            out, self._outbox = self._outbox, None
        return out

    def connection_lost(self) -> None:
        if self.state is not WorldState.FAILED:
            self.session.state = WorldState.CLOSED
        self.cipher = None
        self.reassembler.cipher = None
        self.events.notify(events.WORLD_CLOSED)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def send(self, packet: bytes) -> bytes:
        """Returns the wire form of a plaintext client packet."""
        opcode = int.from_bytes(packet[2:6], "little")
        dump_packet("SEND", opcode_name(opcode, "C"), packet)
        self.events.notify(events.PACKET_SENT, opcode, packet)

        wire = bytes(packet)
        if self.cipher is not None:
            wire = self.cipher.encrypt_header(wire[:CLIENT_HEADER_SIZE]) + wire[CLIENT_HEADER_SIZE:]

        if self._outbox is not None:
            self._outbox.append(wire)
        return wire

    def login(self, name: str) -> Optional[bytes]:
        """CMSG_PLAYER_LOGIN for the named character, None if it is not on the account."""
        self._require(WorldState.CHARACTER_SELECT, "login")

        char = self.session.find_character(name)
        if char is None:
            Logger.warning(f"[World] no character named '{name}' on this account")
            self.events.notify(events.LOGIN_FAILED, name)
            return None

        self.session.player = char
        self.session.state = WorldState.LOGGING_IN
        return self.send(packets.build_player_login(char.guid))

    def logout(self) -> bytes:
        self._require(WorldState.IN_WORLD, "logout")
        return self.send(packets.build_logout_request())

    def say(self, text: str) -> bytes:
        return self._chat(ChatType.SAY, text)

    def yell(self, text: str) -> bytes:
        return self._chat(ChatType.YELL, text)

    def guild_chat(self, text: str) -> bytes:
        return self._chat(ChatType.GUILD, text)

    def whisper(self, target: str, text: str) -> bytes:
        return self._chat(ChatType.WHISPER, text, target)

    def channel_chat(self, channel: str, text: str) -> bytes:
        return self._chat(ChatType.CHANNEL, text, channel)

    def join_channel(self, name: str, password: str = "") -> bytes:
        self._require(WorldState.IN_WORLD, "join a channel")
        return self.send(packets.build_join_channel(name, password))

    def query_name(self, guid: int) -> bytes:
        self._require(WorldState.IN_WORLD, "query a name")
        return self.send(packets.build_name_query(guid))

    # ------------------------------------------------------------------
    def _chat(self, chat_type: int, text: str, target: str | None = None) -> bytes:
        self._require(WorldState.IN_WORLD, "chat")
        language = self.session.player.language
        return self.send(packets.build_message_chat(chat_type, language, text, target))

    def _require(self, state: WorldState, action: str) -> None:
        if self.state is not state:
            raise StateError(f"Cannot {action} in state {self.state.value}")

    def _apply(self, result: HandlerResult | None) -> None:
        if result is None:
            return

        for pkt in result.packets:
            self.send(pkt)
        if result.cipher is not None:
            self.cipher = result.cipher
            self.reassembler.cipher = result.cipher
            Logger.debug(f"[World] header cipher '{self.session.header_cipher}' active")

        for event, args in result.events:
            self.events.notify(event, *args)

    def _fail(self, error: RealmLinkError) -> None:
        self.session.state = WorldState.FAILED
        event = events.AUTH_ERROR if isinstance(error, (AuthError, VerificationError)) else events.CONNECTION_ERROR
        self.events.notify(event, error)
