#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Logon server packet builders and response parsers.

Client requests:
    • AUTH_LOGON_CHALLENGE_C
    • AUTH_LOGON_PROOF_C
    • REALM_LIST_C

Parsers read from a ByteBuffer positioned just after the command byte and raise
BufferUnderflowError while the response is still incomplete.
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Optional

from realmlink.auth.AuthOpcodes import AuthCmd, LogonResult, SecurityFlags
from realmlink.auth.Realm import DEFAULT_WORLD_PORT, Realm, parse_realm_list
from realmlink.codec.ByteBuffer import ByteBuffer
from realmlink.exceptions import BufferUnderflowError, InvalidCredentialsError, MalformedPacketError

USERNAME_MAX = 32
PROTOCOL_VERSION = 8

# Slot reserved for a client integrity hash; servers of this revision ignore
# it, so a fixed value is sent.
CRC_HASH = 0x79776F6B72616953077962073E3C0762722E4748

LOGON_PROOF_SIZE = 75
REALM_LIST_REQUEST_SIZE = 5


def fourcc(value: str) -> bytes:
    """Four-character code as the client stores it: NUL padded, reversed."""
    raw = value.encode("ascii")
    if len(raw) > 4:
        raise ValueError(f"'{value}' does not fit in four bytes")
    return raw.rjust(4, b"\x00")[::-1]


def validate_username(username: Optional[str]) -> str:
    if not username:
        raise InvalidCredentialsError("User name missing")
    if len(username) > USERNAME_MAX:
        raise InvalidCredentialsError("User name too long")
    return username.upper()


# ---- Builders ------------------------------------------------------------

def build_logon_challenge(username: str, client: dict) -> bytes:
    """
    AUTH_LOGON_CHALLENGE_C.

    Args:
        username (str): Account name, 1..32 characters.
        client (dict): The `client` section of the configuration.
    """
    account = validate_username(username).encode("ascii")
    major, minor, patch = client["version"]

    payload = (
        ByteBuffer()
        .put_raw(fourcc("WoW"))
        .put_uint8(major)
        .put_uint8(minor)
        .put_uint8(patch)
        .put_uint16(client["build"])
        .put_raw(fourcc(client["platform"]))
        .put_raw(fourcc(client["os"]))
        .put_raw(fourcc(client["locale"]))
        .put_uint32(client["timezone"])
        .put_raw(socket.inet_aton(client["ip"]))
        .put_uint8(len(account))
        .put_raw(account)
    )

    pkt = (
        ByteBuffer()
        .put_uint8(AuthCmd.AUTH_LOGON_CHALLENGE)
        .put_uint8(PROTOCOL_VERSION)
        .put_uint16(len(payload))
        .put_raw(bytes(payload))
    )

    if len(pkt) != 34 + len(account):
        raise MalformedPacketError(f"AUTH_LOGON_CHALLENGE_C has length {len(pkt)}")
    return bytes(pkt)


def build_logon_proof(A: bytes, M1: bytes, crc_hash: int = CRC_HASH) -> bytes:
    """AUTH_LOGON_PROOF_C: A, M1, unused crc hash, no keys, no security flags."""
    pkt = (
        ByteBuffer()
        .put_uint8(AuthCmd.AUTH_LOGON_PROOF)
        .put_raw(A)
        .put_raw(M1)
        .put_bignum(crc_hash, 20)
        .put_uint8(0)  # number of keys
        .put_uint8(0)  # security flags
    )

    if len(pkt) != LOGON_PROOF_SIZE:
        raise MalformedPacketError(f"AUTH_LOGON_PROOF_C has length {len(pkt)}")
    return bytes(pkt)


def build_realm_list_request() -> bytes:
    return bytes(ByteBuffer().put_uint8(AuthCmd.REALM_LIST).put_uint32(0))


# ---- Parsers -------------------------------------------------------------

@dataclass
class LogonChallenge:
    result: int
    B: bytes = b""
    g: int = 0
    N: bytes = b""
    salt: bytes = b""
    crc_salt: bytes = b""
    security_flags: int = 0


@dataclass
class LogonProof:
    result: int
    M2: bytes = b""
    account_flags: int = 0
    survey_id: int = 0


def parse_logon_challenge(buf: ByteBuffer) -> LogonChallenge:
    buf.uint8()  # protocol
    result = buf.uint8()
    if result != LogonResult.SUCCESS:
        return LogonChallenge(result=result)

    B = buf.raw(32)
    g = buf.bignum(buf.uint8())
    N = buf.raw(buf.uint8())
    salt = buf.raw(32)
    crc_salt = buf.raw(16)
    security_flags = buf.uint8()

    if security_flags & SecurityFlags.PIN:
        buf.skip(4 + 16)   # grid seed, pin salt
    if security_flags & SecurityFlags.MATRIX:
        buf.skip(4 + 8)    # width, height, digits, challenges, seed
    if security_flags & SecurityFlags.TOKEN:
        buf.skip(1)

    return LogonChallenge(
        result=result,
        B=B,
        g=g,
        N=N,
        salt=salt,
        crc_salt=crc_salt,
        security_flags=security_flags,
    )


def parse_logon_proof(buf: ByteBuffer) -> LogonProof:
    result = buf.uint8()
    if result != LogonResult.SUCCESS:
        return LogonProof(result=result)

    M2 = buf.raw(20)
    account_flags = buf.uint32()
    survey_id = buf.uint32()
    buf.uint16()  # unknown flags
    return LogonProof(result=result, M2=M2, account_flags=account_flags, survey_id=survey_id)


def parse_realm_list_response(buf: ByteBuffer, default_port: int = DEFAULT_WORLD_PORT) -> list[Realm]:
    size = buf.uint16()
    body = ByteBuffer(buf.raw(size))
    try:
        return parse_realm_list(body, default_port)
    except BufferUnderflowError as e:
        # the sized body is complete, so running short means a bad record
        raise MalformedPacketError(f"Truncated realm list: {e}")
