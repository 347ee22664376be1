#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""World header encryption.

Once the world connection has answered SMSG_AUTH_CHALLENGE, only packet
headers are encrypted (6 bytes outbound, 4 bytes inbound); bodies stay
plaintext. Each direction keeps its own running state which is never reset,
so every header must pass through exactly once and in order.
"""

from __future__ import annotations

import hashlib
import hmac

from Crypto.Cipher import ARC4


class HeaderCrypt:
    """Interface shared by the header cipher variants."""

    name = "none"

    def encrypt_header(self, header: bytes) -> bytes:
        raise NotImplementedError

    def decrypt_header(self, header: bytes) -> bytes:
        raise NotImplementedError


class HmacXorHeaderCrypt(HeaderCrypt):
    """Running XOR chain keyed by HMAC-SHA1(seed, K).

    Both directions share the 20-byte key but keep separate (i, j) counters.
    The same object works for either end of the connection: encrypt_header
    is undone by a peer's decrypt_header.
    """

    name = "hmac_xor"

    SEED_KEY = bytes([
        0x38, 0xA7, 0x83, 0x15, 0xF8, 0x92, 0x25, 0x30,
        0x71, 0x98, 0x67, 0xB1, 0x8C, 0x04, 0xE2, 0xAA
    ])

    def __init__(self, session_key: bytes) -> None:
        self._key = hmac.new(self.SEED_KEY, session_key, hashlib.sha1).digest()
        self._send_i = 0
        self._send_j = 0
        self._recv_i = 0
        self._recv_j = 0

    def encrypt_header(self, header: bytes) -> bytes:
        out = bytearray(header)
        for t, byte in enumerate(out):
            self._send_i %= len(self._key)
            x = ((byte ^ self._key[self._send_i]) + self._send_j) & 0xFF
            self._send_i += 1
            out[t] = self._send_j = x
        return bytes(out)

    def decrypt_header(self, header: bytes) -> bytes:
        out = bytearray(header)
        for t, byte in enumerate(out):
            self._recv_i %= len(self._key)
            x = ((byte - self._recv_j) & 0xFF) ^ self._key[self._recv_i]
            self._recv_i += 1
            self._recv_j = byte
            out[t] = x
        return bytes(out)


class Arc4HeaderCrypt(HeaderCrypt):
    """ARC4 stream helper for later protocol revisions.

    Direction-specific keys are derived via HMAC-SHA1 and the first 1024
    keystream bytes are dropped.
    """

    name = "arc4"

    ARC4_DROP_BYTES = 1024

    # server -> client stream
    SERVER_ENCRYPTION_KEY = bytes([
        0xCC, 0x98, 0xAE, 0x04, 0xE8, 0x97, 0xEA, 0xCA,
        0x12, 0xDD, 0xC0, 0x93, 0x42, 0x91, 0x53, 0x57
    ])

    # client -> server stream
    SERVER_DECRYPTION_KEY = bytes([
        0xC2, 0xB3, 0x72, 0x3C, 0xC6, 0xAE, 0xD9, 0xB5,
        0x34, 0x3C, 0x53, 0xEE, 0x2F, 0x43, 0x67, 0xCE
    ])

    def __init__(self, session_key: bytes, role: str = "client") -> None:
        """
        Args:
            session_key (bytes): 40-byte SRP6 session key K.
            role (str): "client" or "server"; picks which stream encrypts.
        """
        if role not in ("client", "server"):
            raise ValueError(f"Unknown ARC4 role: {role}")

        to_server = hmac.new(self.SERVER_DECRYPTION_KEY, session_key, hashlib.sha1).digest()
        to_client = hmac.new(self.SERVER_ENCRYPTION_KEY, session_key, hashlib.sha1).digest()

        send_key, recv_key = (to_server, to_client) if role == "client" else (to_client, to_server)
        self._encrypt = ARC4.new(key=send_key, drop=self.ARC4_DROP_BYTES)
        self._decrypt = ARC4.new(key=recv_key, drop=self.ARC4_DROP_BYTES)

    def encrypt_header(self, header: bytes) -> bytes:
        return self._encrypt.encrypt(bytes(header))

    def decrypt_header(self, header: bytes) -> bytes:
        return self._decrypt.decrypt(bytes(header))


HEADER_CIPHERS = {
    HmacXorHeaderCrypt.name: HmacXorHeaderCrypt,
    Arc4HeaderCrypt.name: Arc4HeaderCrypt,
}


def create_header_crypt(kind: str, session_key: bytes) -> HeaderCrypt:
    """Build the client-side header cipher named in configuration."""
    try:
        cls = HEADER_CIPHERS[kind]
    except KeyError:
        raise ValueError(f"Unknown header cipher '{kind}' (expected one of {sorted(HEADER_CIPHERS)})")
    return cls(bytes(session_key))
