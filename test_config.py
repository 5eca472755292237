#!/usr/bin/env python3
"""
Test script for the configuration and logging setup
"""

import json
import logging
import logging.handlers
import os
import shutil
import tempfile
import unittest

from track_fusion.config import (
    AirportConfig, ConfigManager, ConfigurationError, FusionConfig, LoggingConfig, SBSSourceConfig,
)
from track_fusion.logging_setup import setup_logging
from track_fusion.track import TrackType


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.temp_dir, "config.json")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write_config(self, config_dict):
        with open(self.config_path, 'w') as f:
            json.dump(config_dict, f)

    def test_missing_file_creates_defaults(self):
        config = ConfigManager(self.config_path).load_config()

        self.assertTrue(os.path.exists(self.config_path))
        self.assertTrue(config.ais.enabled)
        self.assertEqual(config.ais.udp_port, 10110)
        self.assertEqual([s.port for s in config.sbs_sources], [30003, 30106])
        self.assertTrue(config.sbs_sources[1].mlat)

        reloaded = ConfigManager(self.config_path).load_config()
        self.assertEqual(reloaded, config)

    def test_load_full_config(self):
        self.write_config({
            'ais': {'udp_port': 10111},
            'sbs_sources': [{'name': 'local', 'host': '192.168.1.10', 'port': 30003}],
            'dump1090_sources': [{'name': 'json', 'url': 'http://localhost:8080/data/aircraft.json'}],
            'airports': [{'name': 'Exeter', 'lat': 50.734, 'lon': -3.414, 'icao_code': 'EGTE'}],
            'base_stations': [{'name': 'Home', 'lat': 50.7, 'lon': -3.5}],
            'tracking': {'aircraft_drop_time_sec': 120},
            'logging': {'level': 'DEBUG', 'log_file': None},
        })

        config = ConfigManager(self.config_path).load_config()

        self.assertEqual(config.ais.udp_port, 10111)
        self.assertEqual(config.sbs_sources[0].host, '192.168.1.10')
        self.assertEqual(config.airports[0].icao_code, 'EGTE')
        self.assertEqual(config.tracking.drop_times()[TrackType.AIRCRAFT], 120)
        self.assertEqual(config.tracking.drop_times()[TrackType.SHIP], 1200)
        self.assertNotIn(TrackType.AIRPORT, config.tracking.drop_times())

    def test_unknown_key_is_rejected(self):
        self.write_config({'ais': {'udp_port': 10110, 'colour': 'blue'}})
        with self.assertRaises(ConfigurationError):
            ConfigManager(self.config_path).load_config()

    def test_invalid_json_is_rejected(self):
        with open(self.config_path, 'w') as f:
            f.write("{not json")
        with self.assertRaises(ConfigurationError):
            ConfigManager(self.config_path).load_config()

    def test_validation_collects_every_error(self):
        config = FusionConfig(
            sbs_sources=[SBSSourceConfig(name="a", port=70000), SBSSourceConfig(name="a")],
            airports=[AirportConfig(name="Nowhere", lat=95.0, lon=0.0)],
        )
        config.logging.level = "LOUD"

        with self.assertRaises(ConfigurationError) as ctx:
            ConfigManager.validate_config(config)

        message = str(ctx.exception)
        self.assertIn("Invalid port 70000", message)
        self.assertIn("Duplicate source names: a", message)
        self.assertIn("Nowhere", message)
        self.assertIn("LOUD", message)

    def test_get_config_loads_once(self):
        manager = ConfigManager(self.config_path)
        self.assertIs(manager.get_config(), manager.get_config())


class TestLoggingSetup(unittest.TestCase):
    """Test cases for setup_logging"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        root = logging.getLogger("track_fusion")
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)
        shutil.rmtree(self.temp_dir)

    def test_rotating_file_handler(self):
        log_file = os.path.join(self.temp_dir, "logs", "fusion.log")
        root = setup_logging(LoggingConfig(level="DEBUG", log_file=log_file, console=False))

        self.assertEqual(root.level, logging.DEBUG)
        self.assertEqual(len(root.handlers), 1)
        self.assertIsInstance(root.handlers[0], logging.handlers.RotatingFileHandler)

        logging.getLogger("track_fusion.test").info("hello")
        root.handlers[0].flush()
        with open(log_file) as f:
            self.assertIn("hello", f.read())

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(LoggingConfig(log_file=None))
        root = setup_logging(LoggingConfig(log_file=None))
        self.assertEqual(len(root.handlers), 1)


if __name__ == '__main__':
    unittest.main()
