import struct
import unittest

from realmlink.codec.ByteBuffer import ByteBuffer
from realmlink.events import EventBus as events
from realmlink.exceptions import UnexpectedMessageError
from realmlink.world.WorldHandlers import WORLD_HANDLERS
from realmlink.world.WorldOpcodes import WorldClientOpcodes as CMSG, WorldServerOpcodes as SMSG
from realmlink.world.WorldSession import WorldSession, WorldState
from realmlink.world.models import ChatType, Guild

from support import EXPECTED_K, message_chat_body


def opcodes(result):
    return [struct.unpack("<I", pkt[2:6])[0] for pkt in result.packets]


class TestWorldHandlers(unittest.TestCase):
    """Body decoding for the in-world messages."""

    def setUp(self) -> None:
        self.session = WorldSession("TESTUSER", EXPECTED_K, 8606, state=WorldState.IN_WORLD)
        self.session.guild = Guild()
        self.session.social = {}

    def dispatch(self, opcode, body):
        return WORLD_HANDLERS.dispatch(self.session, opcode, ByteBuffer(body))

    def test_all_server_opcodes_registered(self):
        for opcode in SMSG:
            self.assertIn(opcode, WORLD_HANDLERS)

    def test_item_and_quest_responses_ignored(self):
        for opcode in (0x0058, 0x005D):
            with self.subTest(opcode=hex(opcode)):
                self.assertNotIn(opcode, WORLD_HANDLERS)
                self.assertIsNone(self.dispatch(opcode, b"\x01\x00\x00\x00"))

    def test_auth_challenge_state_checked(self):
        with self.assertRaises(UnexpectedMessageError):
            self.dispatch(SMSG.SMSG_AUTH_CHALLENGE, b"\x00" * 4)

    def test_name_query_response(self):
        body = (
            ByteBuffer().put_uint64(0x42).put_cstring("Sylvanas").put_cstring("")
            .put_uint32(5).put_uint32(1).put_uint32(4)
        )
        result = self.dispatch(SMSG.SMSG_NAME_QUERY_RESPONSE, bytes(body))

        self.assertEqual(self.session.names[0x42], "Sylvanas")
        [(event, (char,))] = result.events
        self.assertEqual(event, events.NAME_RESOLVED)
        self.assertEqual((char.race, char.cls), (5, 4))

    def test_known_sender_is_resolved(self):
        self.session.names[0x42] = "Sylvanas"
        result = self.dispatch(
            SMSG.SMSG_MESSAGECHAT,
            message_chat_body(ChatType.CHANNEL, 0x42, "anyone?", channel="General"),
        )

        self.assertEqual(result.packets, [])
        msg = result.events[0][1][0]
        self.assertEqual((msg.sender, msg.channel, msg.text), ("Sylvanas", "General", "anyone?"))

    def test_system_message_has_no_sender_query(self):
        result = self.dispatch(SMSG.SMSG_MESSAGECHAT, message_chat_body(ChatType.SYSTEM, 0, "restart"))
        self.assertEqual(result.packets, [])

    def test_motd(self):
        body = ByteBuffer().put_uint32(2).put_cstring("Welcome").put_cstring("Have fun")
        result = self.dispatch(SMSG.SMSG_MOTD, bytes(body))
        self.assertEqual(result.events, [(events.MOTD_RECEIVED, ("Welcome\nHave fun",))])
        self.assertEqual(self.session.motd, "Welcome\nHave fun")

    def test_simple_text_messages(self):
        cases = [
            (SMSG.SMSG_NOTIFICATION, events.SERVER_NOTIFICATION_RECEIVED),
            (SMSG.SMSG_CHAT_PLAYER_NOT_FOUND, events.PLAYER_NOT_FOUND),
        ]
        for opcode, event in cases:
            with self.subTest(opcode=opcode.name):
                result = self.dispatch(opcode, b"Arthas\x00")
                self.assertEqual(result.events, [(event, ("Arthas",))])

    def test_channel_notify(self):
        result = self.dispatch(SMSG.SMSG_CHANNEL_NOTIFY, b"\x02world\x00")
        notification = result.events[0][1][0]
        self.assertEqual((notification.type, notification.name), (2, "world"))

    def test_guild_roster(self):
        body = (
            ByteBuffer()
            .put_uint32(2)
            .put_cstring("Raid at eight")
            .put_cstring("Guild info")
            .put_uint32(1).put_raw(b"\x00" * 56)
            # online member
            .put_uint64(0x10).put_uint8(1).put_cstring("Thrall").put_uint32(0)
            .put_uint8(70).put_uint8(7).put_uint8(0).put_uint32(1637)
            .put_cstring("warchief").put_cstring("")
            # offline member
            .put_uint64(0x20).put_uint8(0).put_cstring("Rexxar").put_uint32(3)
            .put_uint8(68).put_uint8(3).put_uint8(0).put_uint32(0)
            .put_float(2.5).put_cstring("").put_cstring("alt")
        )
        result = self.dispatch(SMSG.SMSG_GUILD_ROSTER, bytes(body))

        guild = self.session.guild
        self.assertEqual(guild.motd, "Raid at eight")
        self.assertEqual(len(guild.members), 2)
        self.assertEqual([m.name for m in guild.online()], ["Thrall"])
        self.assertEqual(guild.members[0x10].zone, 1637)
        self.assertEqual(guild.members[0x20].offline_days, 2.5)
        self.assertEqual(guild.members[0x20].officer_note, "alt")
        self.assertEqual(self.session.names[0x20], "Rexxar")
        self.assertEqual(result.events[0][0], events.GUILD_UPDATED)

    def test_guild_event_refreshes_roster(self):
        result = self.dispatch(SMSG.SMSG_GUILD_EVENT, b"\x0c\x01Thrall\x00")
        self.assertEqual(result.events, [(events.GUILD_EVENT, (12, ["Thrall"]))])
        self.assertEqual(opcodes(result), [CMSG.CMSG_GUILD_ROSTER])

        result = self.dispatch(SMSG.SMSG_GUILD_EVENT, b"\x02\x01New motd\x00")
        self.assertEqual(result.packets, [])

    def test_contact_list(self):
        self.session.names[0x10] = "Thrall"
        body = (
            ByteBuffer()
            .put_uint32(7)
            .put_uint32(3)
            # online friend
            .put_uint64(0x10).put_uint32(0x01).put_cstring("")
            .put_uint8(1).put_uint32(1637).put_uint32(70).put_uint32(7)
            # offline friend
            .put_uint64(0x20).put_uint32(0x01).put_cstring("old pal").put_uint8(0)
            # ignored
            .put_uint64(0x30).put_uint32(0x02).put_cstring("")
        )
        result = self.dispatch(SMSG.SMSG_CONTACT_LIST, bytes(body))

        social = self.session.social
        self.assertEqual(len(social), 3)
        self.assertEqual((social[0x10].area, social[0x10].level), (1637, 70))
        self.assertIsNone(social[0x20].area)
        self.assertEqual(social[0x20].note, "old pal")
        self.assertFalse(social[0x30].is_friend)
        self.assertEqual(opcodes(result), [CMSG.CMSG_NAME_QUERY, CMSG.CMSG_NAME_QUERY])
        self.assertEqual(result.events[-1][0], events.SOCIAL_UPDATED)

    def test_friend_status_requests_list(self):
        result = self.dispatch(SMSG.SMSG_FRIEND_STATUS, b"\x02" + b"\x00" * 8)
        self.assertEqual(opcodes(result), [CMSG.CMSG_CONTACT_LIST])


if __name__ == "__main__":
    unittest.main()
