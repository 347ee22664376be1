#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Incremental framing of the inbound world stream."""

from __future__ import annotations

from typing import Iterator, Optional

from realmlink.codec.ByteBuffer import WorldPacket
from realmlink.crypto.HeaderCrypt import HeaderCrypt
from realmlink.exceptions import CipherDesyncError, MalformedPacketError

HEADER_SIZE = WorldPacket.HEADER_SIZE
MIN_SIZE = 2  # size field always counts the opcode


class FrameReassembler:
    """
    Turns arbitrarily chunked transport bytes into complete WorldPackets.

    Bytes past the last complete message stay in the buffer untouched, in
    arrival order. Once `cipher` is set every header is decrypted in place
    exactly once: a header whose body is still in flight is remembered
    (decrypt-skip) and not decrypted again on the next feed.
    """

    def __init__(self, max_opcode: int = 0x0FFF) -> None:
        self.cipher: Optional[HeaderCrypt] = None
        self.max_opcode = max_opcode
        self._buffer = bytearray()
        self._decrypt_skip = False

    @property
    def pending(self) -> bytes:
        """Buffered bytes not yet part of a complete message."""
        return bytes(self._buffer)

    def feed(self, data: bytes) -> Iterator[WorldPacket]:
        """
        Append data and return a lazy iterator over complete messages.

        The iterator must be consumed one message at a time by the caller:
        handling a message may install the cipher, which then applies to the
        very next header already sitting in the buffer.
        """
        self._buffer += data
        return self._drain()

    def _drain(self) -> Iterator[WorldPacket]:
        while len(self._buffer) >= HEADER_SIZE:
            if self.cipher is not None and not self._decrypt_skip:
                self._buffer[:HEADER_SIZE] = self.cipher.decrypt_header(bytes(self._buffer[:HEADER_SIZE]))
            self._decrypt_skip = False

            packet = WorldPacket(self._buffer)
            self._check_header(packet)

            if packet.underflow() > 0:
                # header is already plaintext; do not decrypt it twice
                self._decrypt_skip = self.cipher is not None
                return

            self._buffer = bytearray(packet.overflow())
            yield WorldPacket(packet.data[:packet.length])

    def _check_header(self, packet: WorldPacket) -> None:
        if packet.size >= MIN_SIZE and packet.opcode <= self.max_opcode:
            return

        msg = f"Impossible world header size={packet.size} opcode=0x{packet.opcode:04X}"
        if self.cipher is not None:
            raise CipherDesyncError(msg)
        raise MalformedPacketError(msg)
