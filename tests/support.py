#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Server-side counterparts used by the connection tests."""

from __future__ import annotations

import struct
from copy import deepcopy

from realmlink.codec.ByteBuffer import ByteBuffer
from realmlink.crypto.SRP6Client import G, K_MULTIPLIER, N, H, H_int, int_to_le, sha1_interleave
from realmlink.utils.ConfigLoader import DEFAULTS

# Fixed scenario; expected values were computed independently.
USERNAME = "TESTUSER"
PASSWORD = "testpass"
SALT = bytes(range(1, 33))
A_BYTES = b"\x11" * 32
B_BYTES = b"\x22" * 32

EXPECTED_A = bytes.fromhex("046c9d9fbe9394f63947f3603122a8b76ce6fc8d4c7e3b8fa4e3ecfdb74b3c75")
EXPECTED_B = bytes.fromhex("2e69565123478e0a7d496072c383639c428c0ea2b9d78f4d8835b2a21389dd5c")
EXPECTED_K = bytes.fromhex(
    "089cefab2d825e29d768fd8601d8f865865783b119c3a8d4d05c9d9635996b6bfda2c782f5851044"
)
EXPECTED_M1 = bytes.fromhex("8fc8015f6783a81fe135026fefc292c9c3fedd7e")
EXPECTED_M2 = bytes.fromhex("df67cd4e8497bd15142fec939dbeddb0ac5c7fbb")

# SHA1(USERNAME, 0, client seed 0xDEADBEEF, server seed 0x01020304, EXPECTED_K)
CLIENT_SEED = 0xDEADBEEF
SERVER_SEED = 0x01020304
EXPECTED_WORLD_DIGEST = bytes.fromhex("bef2d4cb7d1773d7915bd811cf9275ea6a5b959e")


def make_config(**world) -> dict:
    cfg = deepcopy(DEFAULTS)
    cfg["world"].update(world)
    return cfg


class RecordingBus:
    """EventBus stand-in remembering every notification."""

    def __init__(self) -> None:
        self.events: list[tuple[str, tuple]] = []

    def notify(self, event: str, *args) -> None:
        self.events.append((event, args))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def args_of(self, event: str) -> list[tuple]:
        return [args for name, args in self.events if name == event]


# ---- Logon server --------------------------------------------------------

def realm_record(name: str, address: str, flags: int = 0, population: float = 1.0,
                 characters: int = 0, realm_id: int = 1, build=None) -> bytes:
    buf = (
        ByteBuffer()
        .put_uint8(1)     # type
        .put_uint8(0)     # locked
        .put_uint8(flags)
        .put_cstring(name)
        .put_cstring(address)
        .put_float(population)
        .put_uint8(characters)
        .put_uint8(1)     # timezone
        .put_uint8(realm_id)
    )
    if build is not None:
        buf.put_uint8(build[0]).put_uint8(build[1]).put_uint8(build[2]).put_uint16(build[3])
    return bytes(buf)


def realm_list_response(records: list[bytes]) -> bytes:
    body = ByteBuffer().put_uint32(0).put_uint16(len(records))
    for record in records:
        body.put_raw(record)
    body.put_uint16(0x0010)  # trailer
    return bytes(ByteBuffer().put_uint8(0x10).put_uint16(len(body)).put_raw(bytes(body)))


class FakeLogonServer:
    """Server half of the SRP6 exchange for a single account."""

    def __init__(self, username: str = USERNAME, password: str = PASSWORD,
                 salt: bytes = SALT, b_bytes: bytes = B_BYTES) -> None:
        self.username = username.upper()
        self.salt = salt
        x = H_int(salt, H(f"{self.username}:{password.upper()}".encode("ascii")))
        self.v = pow(G, x, N)
        self.b = int.from_bytes(b_bytes, "little")
        self.B = (K_MULTIPLIER * self.v + pow(G, self.b, N)) % N
        self.K = None

    def challenge_response(self, result: int = 0) -> bytes:
        buf = ByteBuffer().put_uint8(0x00).put_uint8(0).put_uint8(result)
        if result != 0:
            return bytes(buf)
        return bytes(
            buf.put_raw(int_to_le(self.B))
            .put_uint8(1).put_uint8(G)
            .put_uint8(32).put_raw(int_to_le(N))
            .put_raw(self.salt)
            .put_raw(b"\x00" * 16)   # crc salt
            .put_uint8(0)            # security flags
        )

    def proof_response(self, client_proof: bytes, tamper: bool = False) -> bytes:
        A_wire = client_proof[1:33]
        M1 = client_proof[33:53]

        A = int.from_bytes(A_wire, "little")
        B_wire = int_to_le(self.B)
        u = H_int(A_wire, B_wire)
        S = pow(A * pow(self.v, u, N) % N, self.b, N)
        self.K = sha1_interleave(int_to_le(S))

        HN = H(int_to_le(N))
        Hg = H(bytes([G]))
        ng_xor = bytes(a ^ b for a, b in zip(HN, Hg))
        expected_M1 = H(ng_xor, H(self.username.encode("ascii")), self.salt, A_wire, B_wire, self.K)
        if M1 != expected_M1:
            return bytes([0x01, 0x04, 0x03, 0x00])

        M2 = H(A_wire, M1, self.K)
        if tamper:
            M2 = bytes([M2[0] ^ 0xFF]) + M2[1:]
        return bytes(
            ByteBuffer().put_uint8(0x01).put_uint8(0).put_raw(M2)
            .put_uint32(0x00800000).put_uint32(0).put_uint16(0)
        )


# ---- World server --------------------------------------------------------

def server_packet(opcode: int, body: bytes = b"", cipher=None) -> bytes:
    """Inbound world message as a server writes it."""
    header = struct.pack(">H", len(body) + 2) + struct.pack("<H", opcode)
    if cipher is not None:
        header = cipher.encrypt_header(header)
    return header + body


def read_client_packet(data: bytes, cipher=None) -> tuple[int, bytes, bytes]:
    """Split one outbound world message into (opcode, body, rest)."""
    header = data[:6]
    if cipher is not None:
        header = cipher.decrypt_header(header)
    size = struct.unpack(">H", header[:2])[0]
    opcode = struct.unpack("<I", header[2:6])[0]
    end = 2 + size
    return opcode, bytes(data[6:end]), bytes(data[end:])


def char_enum_body(*chars: tuple[int, str, int, int, int]) -> bytes:
    """chars: (guid, name, race, class, level)."""
    buf = ByteBuffer().put_uint8(len(chars))
    for guid, name, race, cls, level in chars:
        (buf.put_uint64(guid).put_cstring(name).put_uint8(race).put_uint8(cls)
            .put_raw(b"\x00" * 6).put_uint8(level).put_raw(b"\x00" * 221))
    return bytes(buf)


def message_chat_body(chat_type: int, guid: int, text: str, language: int = 0,
                      channel: str | None = None) -> bytes:
    buf = ByteBuffer().put_uint8(chat_type).put_uint32(language).put_uint64(guid).put_uint32(0)
    if channel is not None:
        buf.put_cstring(channel)
    encoded = text.encode("utf-8")
    return bytes(buf.put_uint64(guid).put_uint32(len(encoded) + 1).put_cstring(text).put_uint8(0))
