#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Logon server conversation.

    IDLE -> CHALLENGE_SENT -> PROOF_SENT -> REALM_LIST_REQUESTED -> DONE
    (any state) -> FAILED

The connection never touches a socket. A driver calls connection_made()
and feed() and writes back whatever bytes they return.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from realmlink.auth.AuthOpcodes import AuthCmd, LogonResult, lookup, result_message
from realmlink.auth.AuthPackets import (
    build_logon_challenge,
    build_logon_proof,
    build_realm_list_request,
    parse_logon_challenge,
    parse_logon_proof,
    parse_realm_list_response,
    validate_username,
)
from realmlink.auth.Realm import Realm, select_realm
from realmlink.codec.ByteBuffer import ByteBuffer
from realmlink.crypto.SRP6Client import SRP6Client
from realmlink.dispatch.OpcodeDispatcher import HandlerResult, OpcodeDispatcher
from realmlink.events import EventBus as events
from realmlink.events.EventBus import EventBus
from realmlink.exceptions import (
    AuthError,
    BufferUnderflowError,
    RealmLinkError,
    StateError,
    UnexpectedMessageError,
    VerificationError,
)
from realmlink.utils.ConfigLoader import ConfigLoader
from realmlink.utils.Logger import Logger
from realmlink.utils.PacketDump import dump_packet


class AuthState(Enum):
    IDLE = "idle"
    CHALLENGE_SENT = "challenge_sent"
    PROOF_SENT = "proof_sent"
    REALM_LIST_REQUESTED = "realm_list_requested"
    DONE = "done"
    FAILED = "failed"


@dataclass
class AuthSession:
    """State handed to the logon handlers."""

    username: str
    password: str
    client: dict
    preferred_realm: Optional[str] = None
    default_port: int = 8085
    a_bytes: Optional[bytes] = None
    state: AuthState = AuthState.IDLE
    srp: Optional[SRP6Client] = None
    session_key: Optional[bytes] = None
    realms: list[Realm] = field(default_factory=list)
    realm: Optional[Realm] = None


@dataclass
class AuthOutcome:
    """Everything the world connection needs."""

    username: str
    session_key: bytes
    realm: Realm


AUTH_HANDLERS = OpcodeDispatcher("auth")


def _expect(session: AuthSession, state: AuthState, name: str) -> None:
    if session.state is not state:
        raise UnexpectedMessageError(f"{name} received in state {session.state.value}")


@AUTH_HANDLERS.on(AuthCmd.AUTH_LOGON_CHALLENGE)
def handle_logon_challenge(session: AuthSession, buf: ByteBuffer) -> HandlerResult:
    _expect(session, AuthState.CHALLENGE_SENT, "AUTH_LOGON_CHALLENGE_S")
    challenge = parse_logon_challenge(buf)

    if challenge.result != LogonResult.SUCCESS:
        raise AuthError(result_message(challenge.result), challenge.result)

    if challenge.security_flags:
        Logger.warning(f"[Auth] server requests security flags 0x{challenge.security_flags:02X}, not supported")

    srp = SRP6Client(session.username, session.password, a_bytes=session.a_bytes)
    A, M1 = srp.process_challenge(challenge.B, challenge.g, challenge.N, challenge.salt)

    session.srp = srp
    session.state = AuthState.PROOF_SENT
    return HandlerResult().send(build_logon_proof(A, M1))


@AUTH_HANDLERS.on(AuthCmd.AUTH_LOGON_PROOF)
def handle_logon_proof(session: AuthSession, buf: ByteBuffer) -> HandlerResult:
    _expect(session, AuthState.PROOF_SENT, "AUTH_LOGON_PROOF_S")
    proof = parse_logon_proof(buf)

    if proof.result != LogonResult.SUCCESS:
        raise AuthError(result_message(proof.result), proof.result)

    if not session.srp.verify_M2(proof.M2):
        raise VerificationError("Server proof M2 mismatch; session cannot be trusted")

    session.session_key = session.srp.K
    session.srp = None
    session.state = AuthState.REALM_LIST_REQUESTED

    return (
        HandlerResult()
        .emit(events.AUTH_SUCCEEDED, session.username)
        .send(build_realm_list_request())
    )


@AUTH_HANDLERS.on(AuthCmd.REALM_LIST)
def handle_realm_list(session: AuthSession, buf: ByteBuffer) -> HandlerResult:
    _expect(session, AuthState.REALM_LIST_REQUESTED, "REALM_LIST_S")
    session.realms = parse_realm_list_response(buf, session.default_port)

    realm = select_realm(session.realms, session.preferred_realm)
    if session.preferred_realm and realm.name.lower() != session.preferred_realm.lower():
        Logger.warning(f"[Auth] realm '{session.preferred_realm}' unavailable, using '{realm.name}'")

    session.realm = realm
    session.state = AuthState.DONE
    return HandlerResult().emit(events.REALM_SELECTED, realm)


class AuthConnection:
    """Drives one logon attempt from challenge to realm selection."""

    def __init__(
        self,
        username: str,
        password: str,
        events_bus: EventBus | None = None,
        config: dict | None = None,
        a_bytes: bytes | None = None,
    ) -> None:
        cfg = config or ConfigLoader.get_config()

        self.session = AuthSession(
            username=validate_username(username),
            password=password,
            client=cfg["client"],
            preferred_realm=cfg.get("realm", {}).get("preferred"),
            default_port=cfg.get("world", {}).get("default_port", 8085),
            a_bytes=a_bytes,
        )
        self.events = events_bus or EventBus()
        self._buffer = bytearray()

    @property
    def state(self) -> AuthState:
        return self.session.state

    @property
    def outcome(self) -> AuthOutcome:
        if self.state is not AuthState.DONE:
            raise StateError(f"Authentication not finished (state {self.state.value})")
        return AuthOutcome(self.session.username, self.session.session_key, self.session.realm)

    # ------------------------------------------------------------------
    def connection_made(self) -> bytes:
        """Returns AUTH_LOGON_CHALLENGE_C, the first bytes to send."""
        if self.state is not AuthState.IDLE:
            raise StateError("Logon challenge already sent")

        pkt = build_logon_challenge(self.session.username, self.session.client)
        self.session.state = AuthState.CHALLENGE_SENT
        self.events.notify(events.AUTH_OPENED)
        self._sent(AuthCmd.AUTH_LOGON_CHALLENGE, pkt)
        return pkt

    def feed(self, data: bytes) -> list[bytes]:
        """Consume transport bytes; returns the packets to send in order."""
        if self.state in (AuthState.DONE, AuthState.FAILED):
            Logger.warning(f"[Auth] {len(data)} bytes after {self.state.value}, ignored")
            return []

        self._buffer += data
        out: list[bytes] = []
        try:
            while self._buffer and self.state not in (AuthState.DONE, AuthState.FAILED):
                cmd = self._buffer[0]
                if cmd not in AUTH_HANDLERS:
                    Logger.warning(f"[Auth] unknown command 0x{cmd:02X}, dropping {len(self._buffer)} bytes")
                    self._buffer.clear()
                    break

                buf = ByteBuffer(self._buffer).skip(1)
                try:
                    result = AUTH_HANDLERS.dispatch(self.session, cmd, buf)
                except BufferUnderflowError:
                    break  # response incomplete, wait for more data

                message = bytes(self._buffer[:buf.pos])
                del self._buffer[:buf.pos]
                dump_packet("RECV", lookup("S2C", cmd), message)
                self.events.notify(events.PACKET_RECEIVED, cmd, message)
                out.extend(self._apply(result))
        except RealmLinkError as e:
            self._fail(e)
            raise
        return out

    def connection_lost(self) -> None:
        if self.state not in (AuthState.DONE, AuthState.FAILED):
            self.session.state = AuthState.FAILED
        self.events.notify(events.AUTH_CLOSED)

    # ------------------------------------------------------------------
    def _apply(self, result: HandlerResult | None) -> list[bytes]:
        if result is None:
            return []
        for pkt in result.packets:
            self._sent(pkt[0], pkt)
        for event, args in result.events:
            self.events.notify(event, *args)
        return list(result.packets)

    def _sent(self, cmd: int, pkt: bytes) -> None:
        dump_packet("SEND", lookup("C2S", cmd), pkt)
        self.events.notify(events.PACKET_SENT, cmd, pkt)

    def _fail(self, error: RealmLinkError) -> None:
        self.session.state = AuthState.FAILED
        self.session.srp = None
        event = events.AUTH_ERROR if isinstance(error, (AuthError, VerificationError)) else events.CONNECTION_ERROR
        self.events.notify(event, error)
