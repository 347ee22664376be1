import unittest

from realmlink.auth.AuthOpcodes import RealmFlags
from realmlink.auth.Realm import Realm, eligible_realms, parse_realm_list, select_realm, split_address
from realmlink.codec.ByteBuffer import ByteBuffer
from realmlink.exceptions import MalformedPacketError, NoRealmAvailableError

from support import realm_record


def body(*records):
    buf = ByteBuffer().put_uint32(0).put_uint16(len(records))
    for record in records:
        buf.put_raw(record)
    return ByteBuffer(bytes(buf))


class TestRealmParsing(unittest.TestCase):

    def test_parse_records(self):
        realms = parse_realm_list(body(
            realm_record("Azeroth", "10.0.0.1:8129", population=0.5, characters=3, realm_id=2),
            realm_record("Outland", "10.0.0.2"),
        ))

        self.assertEqual(len(realms), 2)
        first = realms[0]
        self.assertEqual(first.name, "Azeroth")
        self.assertEqual((first.host, first.port), ("10.0.0.1", 8129))
        self.assertEqual(first.population, 0.5)
        self.assertEqual(first.characters, 3)
        self.assertEqual(first.id, 2)
        self.assertEqual(realms[1].port, 8085)

    def test_specify_build_tail(self):
        realms = parse_realm_list(body(
            realm_record("Test", "h:1", flags=RealmFlags.SPECIFYBUILD, build=(2, 4, 3, 8606)),
            realm_record("Next", "h:2"),
        ))
        self.assertEqual(realms[0].build, (2, 4, 3, 8606))
        self.assertEqual(realms[1].name, "Next")

    def test_bad_port(self):
        with self.assertRaises(MalformedPacketError):
            split_address("host:port")

    def test_default_port(self):
        self.assertEqual(split_address("host", 9000), ("host", 9000))


class TestRealmSelection(unittest.TestCase):

    def setUp(self) -> None:
        self.realms = [
            Realm("Broken", "h", 1, flags=RealmFlags.INVALID),
            Realm("Down", "h", 2, flags=RealmFlags.OFFLINE),
            Realm("Crowded", "h", 3, flags=RealmFlags.FULL),
            Realm("Alpha", "h", 4, flags=RealmFlags.RECOMMENDED),
            Realm("Beta", "h", 5),
        ]

    def test_eligible_filters_and_keeps_order(self):
        self.assertEqual([r.name for r in eligible_realms(self.realms)], ["Alpha", "Beta"])

    def test_first_eligible(self):
        self.assertEqual(select_realm(self.realms).name, "Alpha")

    def test_preferred_case_insensitive(self):
        self.assertEqual(select_realm(self.realms, "beta").name, "Beta")

    def test_unavailable_preference_falls_back(self):
        self.assertEqual(select_realm(self.realms, "Down").name, "Alpha")

    def test_nothing_eligible(self):
        with self.assertRaises(NoRealmAvailableError) as ctx:
            select_realm(self.realms[:3])
        self.assertEqual(str(ctx.exception), "No realm available")

        with self.assertRaises(NoRealmAvailableError):
            select_realm([])


if __name__ == "__main__":
    unittest.main()
