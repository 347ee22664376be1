#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exception hierarchy for the logon/world protocol engine.

Every error the engine raises derives from RealmLinkError, so a driver can
tear the connection down with a single except clause. ProtocolError and its
subclasses are always fatal; AuthError is fatal for the current attempt only.
Unregistered opcodes never raise.
"""


class RealmLinkError(Exception):
    """Base class for all engine errors."""


class ConfigError(RealmLinkError):
    """Configuration file missing, unreadable or malformed."""


class ProtocolError(RealmLinkError):
    """The peer violated the wire protocol. Never retried."""


class MalformedPacketError(ProtocolError):
    """A message has an impossible length or layout."""


class BufferUnderflowError(MalformedPacketError):
    """A read ran past the end of the buffer."""

    def __init__(self, wanted: int, available: int) -> None:
        super().__init__(f"Buffer underflow: wanted {wanted} bytes, {available} available")
        self.wanted = wanted
        self.available = available


class HandshakeError(ProtocolError):
    """SRP6 parameters rejected (unexpected N/g, degenerate public key)."""


class CipherDesyncError(ProtocolError):
    """A decrypted header is impossible; the header cipher lost sync."""


class UnexpectedMessageError(ProtocolError):
    """A message arrived in a state that does not accept it."""


class StateError(RealmLinkError):
    """An operation was requested in a state that does not allow it."""


class InvalidCredentialsError(RealmLinkError, ValueError):
    """Account name rejected before anything is sent."""


class AuthError(RealmLinkError):
    """The server rejected the authentication attempt.

    Args:
        message: Human readable reason.
        code: Raw result code sent by the server, if any.
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class VerificationError(RealmLinkError):
    """The server proof M2 did not match the locally computed value."""


class NoRealmAvailableError(RealmLinkError):
    """The realm list held no realm that can be joined."""

    def __init__(self, message: str = "No realm available") -> None:
        super().__init__(message)
