#!/usr/bin/env python3
"""
Unit Tests for AISMessageHandler

Uses plain namespaces shaped like pyais message objects for the per-type
rules, and real pyais-encoded sentences for the end-to-end cases.
"""

import unittest
from types import SimpleNamespace

from pyais import decode, encode_dict

from track_fusion.ais_handler import AISMessageHandler, clean_text, valid_course
from track_fusion.track import TrackType
from track_fusion.track_table import TrackTable


def ais_message(msg_type, mmsi, **fields):
    return SimpleNamespace(msg_type=msg_type, mmsi=mmsi, **fields)


class TestAISHelpers(unittest.TestCase):
    """Test cases for the AIS field helpers"""

    def test_course_sentinels(self):
        self.assertTrue(valid_course(0.0))
        self.assertTrue(valid_course(359.9))
        self.assertFalse(valid_course(360.0))
        self.assertFalse(valid_course(511))
        self.assertFalse(valid_course(None))

    def test_clean_text(self):
        self.assertEqual(clean_text("EVER GIVEN@@@@"), "EVER GIVEN")
        self.assertIsNone(clean_text("@@@@  "))
        self.assertIsNone(clean_text(None))


class TestAISMessageHandler(unittest.TestCase):
    """Test cases for AISMessageHandler"""

    def setUp(self):
        self.table = TrackTable()
        self.handler = AISMessageHandler(self.table)

    def test_class_a_position_report(self):
        track = self.handler.handle(ais_message(1, 235000001, lat=50.1, lon=-4.2, course=123.4,
                                                heading=120, speed=12.5, status=0))

        self.assertIs(self.table.get("235000001"), track)
        self.assertEqual(track.track_type, TrackType.SHIP)
        self.assertEqual(track.position.latitude, 50.1)
        self.assertEqual(track.course, 123.4)
        self.assertEqual(track.heading, 120)
        self.assertEqual(track.speed, 12.5)
        self.assertEqual(track.nav_status, 0)
        self.assertIsNotNone(track.metadata_update_time)

    def test_unavailable_values_leave_fields_unchanged(self):
        self.handler.handle(ais_message(1, 235000001, lat=50.1, lon=-4.2, course=123.4,
                                        heading=120, speed=12.5, status=0))
        track = self.handler.handle(ais_message(1, 235000001, lat=91.0, lon=181.0, course=360.0,
                                                heading=511, speed=102.3, status=5))

        self.assertEqual(track.course, 123.4)
        self.assertEqual(track.heading, 120)
        self.assertEqual(track.speed, 12.5)
        self.assertEqual(len(track.position_history), 1)
        self.assertEqual(track.nav_status, 5)

    def test_course_511_is_ignored(self):
        track = self.handler.handle(ais_message(18, 235000002, lat=None, lon=None, course=511,
                                                heading=511, speed=3.0))
        self.assertIsNone(track.course)
        self.assertIsNone(track.heading)
        self.assertEqual(track.speed, 3.0)
        self.assertIsNone(track.position)

    def test_unavailable_course_and_heading_for_every_position_type(self):
        position_types = {1: True, 2: True, 3: True, 18: True, 19: True, 27: False}
        for msg_type, carries_heading in position_types.items():
            for course in (511, 360.0):
                with self.subTest(msg_type=msg_type, course=course):
                    mmsi = 235100000 + msg_type
                    self.handler.handle(ais_message(msg_type, mmsi, lat=50.0, lon=-4.0, course=45.0,
                                                    heading=44, speed=5.0, status=0))
                    track = self.handler.handle(ais_message(msg_type, mmsi, lat=50.0, lon=-4.0,
                                                            course=course, heading=511, speed=5.0,
                                                            status=0))

                    self.assertEqual(track.course, 45.0)
                    self.assertEqual(track.heading, 44 if carries_heading else None)

    def test_long_range_speed_unavailable(self):
        self.handler.handle(ais_message(1, 235000006, lat=49.0, lon=-5.0, course=10.0,
                                        heading=10, speed=8.0, status=0))
        track = self.handler.handle(ais_message(27, 235000006, lat=49.1, lon=-5.1, course=511,
                                                speed=63, status=0))

        self.assertEqual(track.speed, 8.0)
        self.assertEqual(track.course, 10.0)
        self.assertAlmostEqual(track.position.latitude, 49.1)

    def test_ship_and_voyage_data(self):
        track = self.handler.handle(ais_message(5, 235000001, shipname="QUEEN MARY 2@@@",
                                                callsign="GBQM2", ship_type=60, destination="SOUTHAMPTON"))
        self.assertEqual(track.name, "QUEEN MARY 2")
        self.assertEqual(track.callsign, "GBQM2")
        self.assertEqual(track.ship_type, 60)
        self.assertEqual(track.destination, "SOUTHAMPTON")

    def test_static_and_position_reports_merge_into_one_track(self):
        self.handler.handle(ais_message(5, 235000001, shipname="ARGO", callsign="ABCD",
                                        ship_type=70, destination=""))
        self.handler.handle(ais_message(3, 235000001, lat=50.0, lon=-1.0, course=90.0,
                                        heading=91, speed=10.0, status=0))

        self.assertEqual(len(self.table), 1)
        track = self.table.get("235000001")
        self.assertEqual(track.name, "ARGO")
        self.assertEqual(track.course, 90.0)
        self.assertIsNone(track.destination)

    def test_class_b_static_data_parts(self):
        self.handler.handle(ais_message(24, 235000003, shipname="DINGHY"))
        track = self.handler.handle(ais_message(24, 235000003, callsign="M1234", ship_type=37))

        self.assertEqual(track.name, "DINGHY")
        self.assertEqual(track.callsign, "M1234")
        self.assertEqual(track.ship_type, 37)

    def test_extended_class_b(self):
        track = self.handler.handle(ais_message(19, 235000004, shipname="SEA BREEZE", lat=50.5,
                                                lon=-1.5, course=45.0, heading=44, speed=6.1))
        self.assertEqual(track.name, "SEA BREEZE")
        self.assertEqual(track.heading, 44)
        self.assertAlmostEqual(track.position.longitude, -1.5)

    def test_long_range_broadcast_has_no_heading(self):
        track = self.handler.handle(ais_message(27, 235000005, lat=49.0, lon=-5.0, course=200,
                                                heading=100, speed=8, status=0))
        self.assertEqual(track.course, 200)
        self.assertIsNone(track.heading)
        self.assertEqual(track.speed, 8)

    def test_base_station_becomes_fixed_shore_station(self):
        track = self.handler.handle(ais_message(4, 2320001, lat=50.36, lon=-4.14))
        self.assertEqual(track.track_type, TrackType.AIS_SHORE_STATION)
        self.assertTrue(track.shore_station)
        self.assertTrue(track.fixed)

    def test_aid_to_navigation(self):
        track = self.handler.handle(ais_message(21, 992271001, name="BUOY ALPHA", lat=50.1, lon=-4.1))
        self.assertEqual(track.track_type, TrackType.AIS_ATON)
        self.assertTrue(track.fixed)
        self.assertEqual(track.name, "BUOY ALPHA")

    def test_unsupported_type_creates_track_but_changes_nothing(self):
        result = self.handler.handle(ais_message(8, 235000009, lat=1.0, lon=1.0))

        self.assertIsNone(result)
        track = self.table.get("235000009")
        self.assertIsNotNone(track)
        self.assertIsNone(track.position)
        self.assertIsNone(track.metadata_update_time)
        self.assertEqual(self.handler.stats['messages_ignored'], 1)


class TestAISMessageHandlerWithPyais(unittest.TestCase):
    """End-to-end cases through real pyais encoding and decoding"""

    def setUp(self):
        self.table = TrackTable()
        self.handler = AISMessageHandler(self.table)

    def test_aid_to_navigation_report(self):
        sentences = encode_dict({'type': 21, 'mmsi': 992271001, 'name': 'BUOY ALPHA',
                                 'lat': 50.1, 'lon': -4.1})
        track = self.handler.handle(decode(*sentences))

        self.assertEqual(track.id, "992271001")
        self.assertEqual(track.track_type, TrackType.AIS_ATON)
        self.assertTrue(track.fixed)
        self.assertEqual(track.name, "BUOY ALPHA")
        self.assertAlmostEqual(track.position.latitude, 50.1, places=4)
        self.assertAlmostEqual(track.position.longitude, -4.1, places=4)

    def test_position_report(self):
        sentences = encode_dict({'type': 1, 'mmsi': 235000001, 'lat': 50.2, 'lon': -4.3,
                                 'course': 123.4, 'heading': 120, 'speed': 12.5, 'status': 0})
        track = self.handler.handle(decode(*sentences))

        self.assertEqual(track.track_type, TrackType.SHIP)
        self.assertAlmostEqual(track.course, 123.4, places=1)
        self.assertEqual(track.heading, 120)
        self.assertAlmostEqual(track.speed, 12.5, places=1)
        self.assertAlmostEqual(track.position.latitude, 50.2, places=4)

    def test_long_range_report_without_speed_or_course(self):
        self.handler.handle(decode(*encode_dict({'type': 1, 'mmsi': 235000007, 'lat': 50.0, 'lon': -4.0,
                                                 'course': 90.0, 'heading': 91, 'speed': 8.0})))
        sentences = encode_dict({'type': 27, 'mmsi': 235000007, 'lat': 50.1, 'lon': -4.1,
                                 'speed': 63, 'course': 511})
        track = self.handler.handle(decode(*sentences))

        self.assertAlmostEqual(track.speed, 8.0, places=1)
        self.assertAlmostEqual(track.course, 90.0, places=1)
        self.assertEqual(track.heading, 91)

    def test_multi_sentence_static_report(self):
        sentences = encode_dict({'type': 5, 'mmsi': 235000001, 'shipname': 'QUEEN MARY 2',
                                 'callsign': 'GBQM2', 'ship_type': 60, 'destination': 'SOUTHAMPTON'})
        self.assertGreater(len(sentences), 1)

        track = self.handler.handle(decode(*sentences))

        self.assertEqual(track.name, "QUEEN MARY 2")
        self.assertEqual(track.callsign, "GBQM2")
        self.assertEqual(track.ship_type, 60)
        self.assertEqual(track.destination, "SOUTHAMPTON")


if __name__ == '__main__':
    unittest.main()
