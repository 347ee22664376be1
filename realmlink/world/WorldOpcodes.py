# realmlink/world/WorldOpcodes.py
#
# World server opcodes used by the client.
#
# Inbound header:  uint16 size (big endian) + uint16 opcode (little endian)
# Outbound header: uint16 size (big endian) + uint32 opcode (little endian)

from enum import IntEnum


class WorldClientOpcodes(IntEnum):
    CMSG_CHAR_ENUM = 0x0037
    CMSG_PLAYER_LOGIN = 0x003D
    CMSG_LOGOUT_REQUEST = 0x004B
    CMSG_NAME_QUERY = 0x0050
    CMSG_CONTACT_LIST = 0x0066
    CMSG_GUILD_ROSTER = 0x0089
    CMSG_MESSAGECHAT = 0x0095
    CMSG_JOIN_CHANNEL = 0x0097
    CMSG_AUTH_SESSION = 0x01ED


class WorldServerOpcodes(IntEnum):
    SMSG_CHAR_ENUM = 0x003B
    SMSG_LOGOUT_COMPLETE = 0x004D
    SMSG_NAME_QUERY_RESPONSE = 0x0051
    SMSG_CONTACT_LIST = 0x0067
    SMSG_FRIEND_STATUS = 0x0068
    SMSG_GUILD_ROSTER = 0x008A
    SMSG_GUILD_EVENT = 0x0092
    SMSG_MESSAGECHAT = 0x0096
    SMSG_CHANNEL_NOTIFY = 0x0099
    SMSG_NOTIFICATION = 0x01CB
    SMSG_AUTH_CHALLENGE = 0x01EC
    SMSG_AUTH_RESPONSE = 0x01EE
    SMSG_LOGIN_VERIFY_WORLD = 0x0236
    SMSG_CHAT_PLAYER_NOT_FOUND = 0x02A9
    SMSG_MOTD = 0x033D


WORLD_CLIENT_OPCODES = {op.value: op.name for op in WorldClientOpcodes}
WORLD_SERVER_OPCODES = {op.value: op.name for op in WorldServerOpcodes}


class WorldAuthResponse(IntEnum):
    AUTH_OK = 0x0C
    AUTH_FAILED = 0x0D
    AUTH_REJECT = 0x0E
    AUTH_BAD_SERVER_PROOF = 0x0F
    AUTH_UNAVAILABLE = 0x10
    AUTH_SYSTEM_ERROR = 0x11
    AUTH_VERSION_MISMATCH = 0x14
    AUTH_UNKNOWN_ACCOUNT = 0x15
    AUTH_INCORRECT_PASSWORD = 0x16
    AUTH_SESSION_EXPIRED = 0x17
    AUTH_SERVER_SHUTTING_DOWN = 0x18
    AUTH_ALREADY_LOGGING_IN = 0x19
    AUTH_WAIT_QUEUE = 0x1B
    AUTH_BANNED = 0x1C
    AUTH_ALREADY_ONLINE = 0x1D
    AUTH_SUSPENDED = 0x20


AUTH_RESPONSE_STRING = {
    WorldAuthResponse.AUTH_FAILED: "World server authentication failed",
    WorldAuthResponse.AUTH_REJECT: "World server rejected the session",
    WorldAuthResponse.AUTH_BAD_SERVER_PROOF: "Session digest rejected by the world server",
    WorldAuthResponse.AUTH_UNAVAILABLE: "World server unavailable",
    WorldAuthResponse.AUTH_SYSTEM_ERROR: "World server system error",
    WorldAuthResponse.AUTH_VERSION_MISMATCH: "Unable to validate game version",
    WorldAuthResponse.AUTH_UNKNOWN_ACCOUNT: "The information you have entered is not valid",
    WorldAuthResponse.AUTH_INCORRECT_PASSWORD: "The information you have entered is not valid",
    WorldAuthResponse.AUTH_SESSION_EXPIRED: "Session expired",
    WorldAuthResponse.AUTH_SERVER_SHUTTING_DOWN: "World server is shutting down",
    WorldAuthResponse.AUTH_ALREADY_LOGGING_IN: "This account is already logging in",
    WorldAuthResponse.AUTH_BANNED: "This account has been closed and is no longer available for use",
    WorldAuthResponse.AUTH_ALREADY_ONLINE: "This account is already logged into the game",
    WorldAuthResponse.AUTH_SUSPENDED: "This account has been temporarily suspended",
}


def auth_response_message(code: int) -> str:
    return AUTH_RESPONSE_STRING.get(code, f"World server authentication error (code 0x{code:02X})")


def opcode_name(opcode: int, direction: str = "S") -> str:
    """Opcode name for logs; direction 'S' for server opcodes, 'C' for client."""
    table = WORLD_SERVER_OPCODES if direction == "S" else WORLD_CLIENT_OPCODES
    return table.get(opcode, f"UNKNOWN_0x{opcode:04X}")
