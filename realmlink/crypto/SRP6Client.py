#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
SRP6Client – client-side SRP6 mathematics for the logon handshake.

Purpose
-------
Computes everything the client sends during AUTH_LOGON_CHALLENGE /
AUTH_LOGON_PROOF and the 40-byte session key K that seeds the world header
cipher.

Wire conventions
----------------
- Every SRP number travels as a 32-byte little-endian field.
- Hashes are SHA1 over the literal wire bytes, concatenated in a fixed order.
  The server compares M1 byte by byte, so the order below is load-bearing.
- Hash digests are turned into integers little-endian.

Unlike generic SRP6a, the multiplier is the constant k = 3 and the session
key is the even/odd SHA1 interleave of S, not H(S).
"""

import hashlib
import hmac
import os

from realmlink.exceptions import HandshakeError


N_HEX_BE = "894B645E89E1535BBDAD5B8B290650530801B18EBFBF5E8FAB3C82872A3E9BB7"
N = int(N_HEX_BE, 16)
G = 7
K_MULTIPLIER = 3

KEY_SIZE = 32
SESSION_KEY_SIZE = 40
DIGEST_SIZE = 20


def H(*values: bytes) -> bytes:
    """SHA-1 helper used across SRP computations."""
    h = hashlib.sha1()
    for v in values:
        h.update(v)
    return h.digest()


def H_int(*values: bytes) -> int:
    """SHA-1 digest interpreted as a little-endian integer."""
    return int.from_bytes(H(*values), "little")


def int_to_le(value: int, size: int = KEY_SIZE) -> bytes:
    return value.to_bytes(size, "little")


def sha1_interleave(S: bytes) -> bytes:
    """
    Derive the 40-byte session key from the 32-byte shared secret S.

    Even-indexed and odd-indexed bytes of S are hashed separately and the
    two digests are woven back together byte by byte.

    Args:
        S (bytes): 32-byte SRP shared secret, little-endian.

    Returns:
        bytes: 40-byte interleaved session key K.
    """
    if len(S) != KEY_SIZE:
        raise ValueError("S must be 32 bytes")

    h0 = hashlib.sha1(S[0::2]).digest()
    h1 = hashlib.sha1(S[1::2]).digest()

    out = bytearray(SESSION_KEY_SIZE)
    for i in range(DIGEST_SIZE):
        out[2 * i] = h0[i]
        out[2 * i + 1] = h1[i]
    return bytes(out)


def compute_world_auth_digest(
    account: str,
    client_seed: int,
    server_seed: int,
    session_key: bytes,
) -> bytes:
    """
    CMSG_AUTH_SESSION digest:

    SHA1(
        UPPER(account) +
        4x 0x00 +
        clientSeed (4 bytes LE) +
        serverSeed (4 bytes LE) +
        sessionKey (40 bytes)
    )
    """
    if len(session_key) != SESSION_KEY_SIZE:
        raise ValueError("session_key must be 40 bytes")

    return H(
        account.upper().encode("ascii"),
        b"\x00\x00\x00\x00",
        client_seed.to_bytes(4, "little"),
        server_seed.to_bytes(4, "little"),
        session_key,
    )


class SRP6Client:
    """
    Client side of one SRP6 authentication attempt.

    A fresh instance is created per attempt. The private exponent a and the
    shared secret S are dropped as soon as K, M1 and M2 are known; M2 is
    dropped once the server proof has been verified.
    """

    def __init__(self, username: str, password: str, a_bytes: bytes | None = None) -> None:
        """
        Args:
            username (str): Account name, uppercased before use.
            password (str): Account password, uppercased before use.
            a_bytes (bytes): Optional fixed 32-byte private value, for tests.
        """
        self.I_str = username.upper()
        self.P_str = password.upper()
        self.I = self.I_str.encode("ascii")

        if a_bytes is not None and len(a_bytes) != KEY_SIZE:
            raise ValueError("a must be 32 bytes")
        self._a = int.from_bytes(a_bytes if a_bytes is not None else os.urandom(KEY_SIZE), "little")

        self.A_wire: bytes | None = None
        self.B_wire: bytes | None = None
        self.salt: bytes | None = None

        self.K: bytes | None = None
        self.M1: bytes | None = None
        self.M2: bytes | None = None

    # ------------------------------------------------------------------
    def load_challenge(self, B_wire: bytes, g: int, N_wire: bytes, salt: bytes) -> None:
        """
        Accept the server challenge parameters.

        N and g are not negotiated: anything other than the compiled-in
        constants is treated as a hostile or broken server.
        """
        if int.from_bytes(N_wire, "little") != N:
            raise HandshakeError("Server sent an unexpected SRP6 modulus N")
        if g != G:
            raise HandshakeError(f"Server sent an unexpected SRP6 generator g={g}")
        if len(B_wire) != KEY_SIZE:
            raise HandshakeError("Server public value B must be 32 bytes")
        if int.from_bytes(B_wire, "little") % N == 0:
            raise HandshakeError("Server public value B is zero")

        self.B_wire = bytes(B_wire)
        self.salt = bytes(salt)

    # ------------------------------------------------------------------
    def compute_A(self) -> bytes:
        """
        Compute client public value A = g^a mod N.

        Returns:
            bytes: A encoded as 32-byte little-endian wire format.
        """
        A_int = pow(G, self._a, N)
        if A_int % N == 0:
            raise HandshakeError("Client public value A is zero")

        self.A_wire = int_to_le(A_int)
        return self.A_wire

    # ------------------------------------------------------------------
    def compute_shared_key(self) -> bytes:
        """
        Derive shared SRP secret S and session key K.

        Returns:
            bytes: Session key K (40 bytes).
        """
        if self.A_wire is None or self.B_wire is None or self._a is None:
            raise HandshakeError("SRP6Client: Missing A, B or a for computation")

        u = H_int(self.A_wire, self.B_wire)

        # x = SHA1(s || SHA1(I:P))
        up_hash = H(f"{self.I_str}:{self.P_str}".encode("ascii"))
        x = H_int(self.salt, up_hash)

        B_int = int.from_bytes(self.B_wire, "little")
        base = (B_int - K_MULTIPLIER * pow(G, x, N)) % N
        S = pow(base, self._a + u * x, N)

        self.K = sha1_interleave(int_to_le(S))
        self._a = None
        return self.K

    # ------------------------------------------------------------------
    def compute_M1(self) -> bytes:
        """
        Compute client proof M1 and cache the expected server proof M2.

        M1 = H( H(N) xor H(g), H(I), s, A, B, K )
        M2 = H( A, M1, K )
        """
        if self.K is None:
            raise HandshakeError("SRP6Client: session key not derived yet")

        HN = H(int_to_le(N))
        Hg = H(bytes([G]))
        NgXor = bytes(a ^ b for a, b in zip(HN, Hg))

        self.M1 = H(NgXor, H(self.I), self.salt, self.A_wire, self.B_wire, self.K)
        self.M2 = H(self.A_wire, self.M1, self.K)
        return self.M1

    # ------------------------------------------------------------------
    def process_challenge(self, B_wire: bytes, g: int, N_wire: bytes, salt: bytes) -> tuple[bytes, bytes]:
        """Run the whole client computation. Returns (A, M1) to send."""
        self.load_challenge(B_wire, g, N_wire, salt)
        self.compute_A()
        self.compute_shared_key()
        return self.A_wire, self.compute_M1()

    def verify_M2(self, server_M2: bytes) -> bool:
        """Compare the server proof with the cached M2; clears it on success."""
        if self.M2 is None:
            return False
        if not hmac.compare_digest(self.M2, bytes(server_M2)):
            return False
        self.M2 = None
        return True
