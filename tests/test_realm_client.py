import struct
import unittest

from realmlink.clients.RealmClient import RealmClient
from realmlink.crypto.HeaderCrypt import HmacXorHeaderCrypt
from realmlink.exceptions import StateError
from realmlink.utils.CliArgs import build_parser
from realmlink.utils.PacketDump import bytes_to_hex_offsets
from realmlink.world.WorldConnection import WorldConnection
from realmlink.world.WorldOpcodes import WorldClientOpcodes as CMSG, WorldServerOpcodes as SMSG
from realmlink.world.WorldSession import WorldState

from support import (
    CLIENT_SEED,
    EXPECTED_K,
    SERVER_SEED,
    USERNAME,
    char_enum_body,
    make_config,
    read_client_packet,
    server_packet,
)


class StubWorld:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def __getattr__(self, name):
        def command(*args):
            if self.fail:
                raise StateError("not in world")
            self.calls.append((name, args))
            return name.encode()
        return command


class TestConsoleCommands(unittest.TestCase):

    def setUp(self) -> None:
        self.client = RealmClient("user", "pass", config=make_config(), interactive=False)
        self.client.world = StubWorld()

    def test_routing(self):
        cases = [
            ("hello there", ("say", ("hello there",))),
            ("/w Thrall lok'tar ogar", ("whisper", ("Thrall", "lok'tar ogar"))),
            ("/g raid tonight", ("guild_chat", ("raid tonight",))),
            ("/y charge", ("yell", ("charge",))),
            ("/join world", ("join_channel", ("world",))),
            ("/c world lfg", ("channel_chat", ("world", "lfg"))),
            ("/login Thrall", ("login", ("Thrall",))),
            ("/logout", ("logout", ())),
        ]
        for line, expected in cases:
            with self.subTest(line=line):
                self.client.world.calls.clear()
                self.assertEqual(self.client._command(line), expected[0].encode())
                self.assertEqual(self.client.world.calls, [expected])

    def test_usage_errors(self):
        self.assertIsNone(self.client._command("/w Thrall"))
        self.assertIsNone(self.client._command("/dance"))
        self.assertIsNone(self.client._command(""))
        self.assertEqual(self.client.world.calls, [])

    def test_state_errors_are_reported(self):
        self.client.world = StubWorld(fail=True)
        self.assertIsNone(self.client._command("hello"))

    def test_quit(self):
        self.client._running = True
        self.client._command("/quit")
        self.assertFalse(self.client._running)

class TestCharacterAutoLogin(unittest.TestCase):

    def setUp(self) -> None:
        self.client = RealmClient("testuser", "x", character="Thrall", config=make_config(), interactive=False)
        self.client.world = WorldConnection(USERNAME, EXPECTED_K, self.client.events, make_config(),
                                            client_seed=CLIENT_SEED)
        self.server = HmacXorHeaderCrypt(EXPECTED_K)

    def encrypted(self, opcode, body=b""):
        return server_packet(opcode, body, self.server)

    def test_login_is_written_in_cipher_order(self):
        world = self.client.world
        world.connection_made()
        wire = world.feed(server_packet(SMSG.SMSG_AUTH_CHALLENGE, struct.pack("<I", SERVER_SEED)))
        wire += world.feed(self.encrypted(SMSG.SMSG_AUTH_RESPONSE, bytes([0x0C]) + b"\x00" * 10))
        # the character list and a packet-producing message in one read
        wire += world.feed(self.encrypted(SMSG.SMSG_CHAR_ENUM, char_enum_body((0x10, "Thrall", 2, 7, 70)))
                           + self.encrypted(SMSG.SMSG_FRIEND_STATUS, b"\x02" + b"\x00" * 8))

        opcodes = []
        for i, pkt in enumerate(wire):
            opcode, body, rest = read_client_packet(pkt, self.server if i else None)
            self.assertEqual(rest, b"")
            opcodes.append(opcode)

        self.assertEqual(opcodes, [CMSG.CMSG_AUTH_SESSION, CMSG.CMSG_CHAR_ENUM,
                                   CMSG.CMSG_PLAYER_LOGIN, CMSG.CMSG_CONTACT_LIST])
        self.assertIs(world.state, WorldState.LOGGING_IN)

    def test_command_outside_feed_is_not_queued(self):
        world = self.client.world
        world.connection_made()
        world.feed(server_packet(SMSG.SMSG_AUTH_CHALLENGE, struct.pack("<I", SERVER_SEED)))
        world.feed(self.encrypted(SMSG.SMSG_AUTH_RESPONSE, bytes([0x0C]) + b"\x00" * 10))
        self.client.character = None
        self.client.interactive = True
        self.assertEqual(world.feed(self.encrypted(SMSG.SMSG_CHAR_ENUM, char_enum_body((0x10, "Thrall", 2, 7, 70)))),
                         [])

        self.assertIsNotNone(world.login("Thrall"))
        self.assertEqual(world.feed(b""), [])


class TestRun(unittest.TestCase):

    def test_overlong_username_fails_without_connecting(self):
        client = RealmClient("A" * 33, "pw", config=make_config(), interactive=False)
        client._connect = lambda host, port: self.fail("connected with a bad user name")
        self.assertFalse(client.run())


class TestCliArgs(unittest.TestCase):

    def test_parse(self):
        args = build_parser().parse_args(["-u", "user", "-r", "Azeroth", "-P", "3725", "-v"])
        self.assertEqual(args.username, "user")
        self.assertEqual(args.realm, "Azeroth")
        self.assertEqual(args.port, 3725)
        self.assertTrue(args.verbose)
        self.assertIsNone(args.password)


class TestPacketDump(unittest.TestCase):

    def test_hex_helpers(self):
        lines = bytes_to_hex_offsets(b"WoW\x00" * 5)
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("0000: 57 6F 57 00"))
        self.assertTrue(lines[1].startswith("0010: "))


if __name__ == "__main__":
    unittest.main()
