#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Sequential byte buffer used by every packet builder and handler.

All numeric fields are little-endian except the world header size, which
is big-endian. Strings are null-terminated ASCII/UTF-8.
"""

from __future__ import annotations

import struct

from realmlink.exceptions import BufferUnderflowError, MalformedPacketError


class ByteBuffer:
    """Little-endian reader/writer with a single read cursor."""

    def __init__(self, data: bytes | bytearray = b"") -> None:
        self.data = bytearray(data)
        self.pos = 0

    def __len__(self) -> int:
        return len(self.data)

    def __bytes__(self) -> bytes:
        return bytes(self.data)

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def reset(self) -> "ByteBuffer":
        self.pos = 0
        return self

    def skip(self, count: int) -> "ByteBuffer":
        self._take(count)
        return self

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def _take(self, count: int) -> bytes:
        if count < 0:
            raise MalformedPacketError(f"Negative read length {count}")
        if self.remaining < count:
            raise BufferUnderflowError(count, self.remaining)
        chunk = bytes(self.data[self.pos:self.pos + count])
        self.pos += count
        return chunk

    def _unpack(self, fmt: str):
        return struct.unpack(fmt, self._take(struct.calcsize(fmt)))[0]

    def uint8(self) -> int:
        return self._unpack("<B")

    def uint16(self) -> int:
        return self._unpack("<H")

    def uint16_be(self) -> int:
        return self._unpack(">H")

    def uint32(self) -> int:
        return self._unpack("<I")

    def uint64(self) -> int:
        return self._unpack("<Q")

    def float(self) -> float:
        return self._unpack("<f")

    def raw(self, count: int) -> bytes:
        return self._take(count)

    def bignum(self, count: int) -> int:
        """Fixed-width little-endian big number."""
        return int.from_bytes(self._take(count), "little")

    def cstring(self) -> str:
        end = self.data.find(b"\x00", self.pos)
        if end < 0:
            raise BufferUnderflowError(self.remaining + 1, self.remaining)
        text = bytes(self.data[self.pos:end]).decode("utf-8", errors="replace")
        self.pos = end + 1
        return text

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _pack(self, fmt: str, value) -> "ByteBuffer":
        try:
            self.data += struct.pack(fmt, value)
        except struct.error as e:
            raise ValueError(f"Cannot pack {value!r} as {fmt}: {e}")
        return self

    def put_uint8(self, value: int) -> "ByteBuffer":
        return self._pack("<B", value)

    def put_uint16(self, value: int) -> "ByteBuffer":
        return self._pack("<H", value)

    def put_uint16_be(self, value: int) -> "ByteBuffer":
        return self._pack(">H", value)

    def put_uint32(self, value: int) -> "ByteBuffer":
        return self._pack("<I", value)

    def put_uint64(self, value: int) -> "ByteBuffer":
        return self._pack("<Q", value)

    def put_float(self, value: float) -> "ByteBuffer":
        return self._pack("<f", value)

    def put_raw(self, value: bytes) -> "ByteBuffer":
        self.data += value
        return self

    def put_bignum(self, value: int, count: int) -> "ByteBuffer":
        self.data += value.to_bytes(count, "little")
        return self

    def put_cstring(self, value: str) -> "ByteBuffer":
        self.data += value.encode("utf-8") + b"\x00"
        return self


class WorldPacket(ByteBuffer):
    """
    Inbound world message: uint16 size (big-endian) + uint16 opcode + body.

    The size field counts the opcode and the body, so the whole message is
    size + 2 bytes long.
    """

    HEADER_SIZE = 4

    @property
    def size(self) -> int:
        return int.from_bytes(self.data[0:2], "big")

    @property
    def opcode(self) -> int:
        return int.from_bytes(self.data[2:4], "little")

    @property
    def length(self) -> int:
        return self.size + 2

    def underflow(self) -> int:
        """Bytes still missing before the message is complete."""
        return max(0, self.length - len(self.data))

    def overflow(self) -> bytes:
        """Bytes buffered past the end of this message."""
        return bytes(self.data[self.length:])

    def body(self) -> ByteBuffer:
        """Reader over the message body, header consumed."""
        return ByteBuffer(self.data[self.HEADER_SIZE:self.length])


CLIENT_HEADER_SIZE = 6


def build_client_packet(opcode: int, payload: bytes = b"") -> bytes:
    """Prefix payload with the outbound header: uint16 size (BE) + uint32 opcode."""
    return bytes(
        ByteBuffer()
        .put_uint16_be(len(payload) + 4)
        .put_uint32(opcode)
        .put_raw(payload)
    )
