# realmlink/auth/AuthOpcodes.py

from enum import IntEnum


class AuthCmd(IntEnum):
    AUTH_LOGON_CHALLENGE = 0x00
    AUTH_LOGON_PROOF = 0x01
    AUTH_RECONNECT_CHALLENGE = 0x02
    AUTH_RECONNECT_PROOF = 0x03
    REALM_LIST = 0x10
    XFER_INITIATE = 0x30
    XFER_DATA = 0x31


# Client → Server
AUTH_CLIENT_OPCODES = {
    0x00: "AUTH_LOGON_CHALLENGE_C",
    0x01: "AUTH_LOGON_PROOF_C",
    0x10: "REALM_LIST_C",
}

# Server → Client
AUTH_SERVER_OPCODES = {
    0x00: "AUTH_LOGON_CHALLENGE_S",
    0x01: "AUTH_LOGON_PROOF_S",
    0x10: "REALM_LIST_S",
}


class LogonResult(IntEnum):
    SUCCESS = 0x00
    FAIL_BANNED = 0x03
    FAIL_UNKNOWN_ACCOUNT = 0x04
    FAIL_INCORRECT_PASSWORD = 0x05
    FAIL_ALREADY_ONLINE = 0x06
    FAIL_VERSION_INVALID = 0x09
    FAIL_VERSION_UPDATE = 0x0A
    FAIL_SUSPENDED = 0x0C
    FAIL_LOCKED_ENFORCED = 0x10


RESULT_STRING = {
    LogonResult.FAIL_BANNED: "This account has been closed and is no longer available for use",
    LogonResult.FAIL_UNKNOWN_ACCOUNT: "The information you have entered is not valid",
    LogonResult.FAIL_INCORRECT_PASSWORD: "The information you have entered is not valid",
    LogonResult.FAIL_ALREADY_ONLINE: "This account is already logged into the game",
    LogonResult.FAIL_VERSION_INVALID: "Unable to validate game version",
    LogonResult.FAIL_VERSION_UPDATE: "Unable to validate game version",
    LogonResult.FAIL_SUSPENDED: "This account has been temporarily suspended",
    LogonResult.FAIL_LOCKED_ENFORCED: "You have applied a lock to your account",
}


def result_message(code: int) -> str:
    """Human readable text for a logon result code."""
    return RESULT_STRING.get(code, f"Authentication failed (code 0x{code:02X})")


class RealmFlags(IntEnum):
    INVALID = 0x01
    OFFLINE = 0x02
    SPECIFYBUILD = 0x04
    NEW_PLAYERS = 0x20
    RECOMMENDED = 0x40
    FULL = 0x80


# Realms carrying any of these flags cannot be joined.
REALM_UNAVAILABLE_MASK = RealmFlags.INVALID | RealmFlags.OFFLINE | RealmFlags.FULL


class SecurityFlags(IntEnum):
    PIN = 0x01
    MATRIX = 0x02
    TOKEN = 0x04


def lookup(direction: str, opcode: int) -> str | None:
    """
    direction = "C2S" or "S2C"
    Returns the message name, or None for an unknown command.
    """
    if direction == "C2S":
        return AUTH_CLIENT_OPCODES.get(opcode)
    elif direction == "S2C":
        return AUTH_SERVER_OPCODES.get(opcode)
    return None
