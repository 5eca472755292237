"""
Configuration management for the track fusion service.

This module handles loading, validation and saving of the JSON configuration
file describing the feeds to ingest, the static tracks to create at startup,
and the tracking and logging settings.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .track import TrackType


@dataclass
class AISConfig:
    """AIS UDP receiver settings."""
    enabled: bool = True
    udp_port: int = 10110
    bind_host: str = ""


@dataclass
class SBSSourceConfig:
    """An SBS ("BaseStation") TCP feed."""
    name: str
    host: str = "localhost"
    port: int = 30003
    mlat: bool = False
    enabled: bool = True


@dataclass
class Dump1090JSONConfig:
    """A dump1090 aircraft.json endpoint to poll."""
    name: str
    url: str = "http://localhost:8080/data/aircraft.json"
    enabled: bool = True
    query_interval_sec: float = 5.0


@dataclass
class AirportConfig:
    """A static airport marker."""
    name: str
    lat: float
    lon: float
    icao_code: Optional[str] = None


@dataclass
class BaseStationConfig:
    """A static receiver site marker."""
    name: str
    lat: float
    lon: float


@dataclass
class TrackingConfig:
    """Track retention and expiry settings."""
    position_history_sec: int = 3600
    aircraft_drop_time_sec: int = 300
    ship_drop_time_sec: int = 1200
    aprs_drop_time_sec: int = 1200
    maintenance_interval_sec: int = 10

    def drop_times(self) -> Dict[TrackType, float]:
        """Drop time per live track type; fixed and configured tracks never drop."""
        return {
            TrackType.AIRCRAFT: self.aircraft_drop_time_sec,
            TrackType.SHIP: self.ship_drop_time_sec,
            TrackType.AIS_TRACK_GENERIC: self.ship_drop_time_sec,
            TrackType.APRS_TRACK: self.aprs_drop_time_sec,
        }


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_file: Optional[str] = "track_fusion.log"
    max_log_size_mb: int = 100
    backup_count: int = 5
    console: bool = True


@dataclass
class FusionConfig:
    """Complete service configuration."""
    ais: AISConfig = field(default_factory=AISConfig)
    sbs_sources: List[SBSSourceConfig] = field(default_factory=list)
    dump1090_sources: List[Dump1090JSONConfig] = field(default_factory=list)
    airports: List[AirportConfig] = field(default_factory=list)
    base_stations: List[BaseStationConfig] = field(default_factory=list)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigurationError(Exception):
    """Configuration-related error."""
    pass


def _valid_port(port: Any) -> bool:
    return isinstance(port, int) and 0 < port <= 65535


def _valid_position(lat: Any, lon: Any) -> bool:
    return (isinstance(lat, (int, float)) and isinstance(lon, (int, float))
            and -90 <= lat <= 90 and -180 <= lon <= 180)


class ConfigManager:
    """Manages configuration loading, validation and saving."""

    def __init__(self, config_path: Union[str, Path] = "config.json"):
        self.config_path = Path(config_path)
        self.logger = logging.getLogger(__name__)
        self._config: Optional[FusionConfig] = None

    def load_config(self) -> FusionConfig:
        """Load configuration from file, writing out defaults if it is missing."""
        if not self.config_path.exists():
            self.logger.warning(f"Config file {self.config_path} not found, creating default")
            self._config = self._create_default_config()
            self.save_config()
            return self._config

        try:
            with open(self.config_path, 'r') as f:
                raw_config = json.load(f)
            config = self.parse_config(raw_config)
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        self.validate_config(config)
        self._config = config
        return self._config

    def save_config(self) -> None:
        """Save current configuration to file."""
        if self._config is None:
            raise ConfigurationError("No configuration loaded")

        try:
            with open(self.config_path, 'w') as f:
                json.dump(asdict(self._config), f, indent=4)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}") from e

    def get_config(self) -> FusionConfig:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            return self.load_config()
        return self._config

    @staticmethod
    def parse_config(config_dict: Dict[str, Any]) -> FusionConfig:
        """Parse configuration dictionary into a FusionConfig object."""
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration root must be a JSON object")

        try:
            return FusionConfig(
                ais=AISConfig(**config_dict.get('ais', {})),
                sbs_sources=[SBSSourceConfig(**s) for s in config_dict.get('sbs_sources', [])],
                dump1090_sources=[Dump1090JSONConfig(**s) for s in config_dict.get('dump1090_sources', [])],
                airports=[AirportConfig(**a) for a in config_dict.get('airports', [])],
                base_stations=[BaseStationConfig(**b) for b in config_dict.get('base_stations', [])],
                tracking=TrackingConfig(**config_dict.get('tracking', {})),
                logging=LoggingConfig(**config_dict.get('logging', {})),
            )
        except TypeError as e:
            # Unknown or missing keys in one of the sections
            raise ConfigurationError(f"Invalid configuration section: {e}") from e

    @staticmethod
    def validate_config(config: FusionConfig) -> None:
        """Validate configuration for consistency and correctness."""
        errors = []

        if config.ais.enabled and not (config.ais.udp_port == 0 or _valid_port(config.ais.udp_port)):
            errors.append(f"Invalid AIS UDP port {config.ais.udp_port}")

        names = [s.name for s in config.sbs_sources] + [s.name for s in config.dump1090_sources]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            errors.append(f"Duplicate source names: {', '.join(duplicates)}")

        for source in config.sbs_sources:
            if source.enabled and not _valid_port(source.port):
                errors.append(f"Invalid port {source.port} for source {source.name}")

        for source in config.dump1090_sources:
            if source.enabled and not source.url.startswith(("http://", "https://")):
                errors.append(f"Invalid URL {source.url} for source {source.name}")
            if source.query_interval_sec <= 0:
                errors.append(f"Query interval must be positive for source {source.name}")

        for static in list(config.airports) + list(config.base_stations):
            if not _valid_position(static.lat, static.lon):
                errors.append(f"Invalid position ({static.lat}, {static.lon}) for {static.name}")

        tracking = config.tracking
        for name in ('position_history_sec', 'aircraft_drop_time_sec', 'ship_drop_time_sec',
                     'aprs_drop_time_sec', 'maintenance_interval_sec'):
            if getattr(tracking, name) <= 0:
                errors.append(f"Tracking setting {name} must be positive")

        if config.logging.level.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            errors.append(f"Unknown log level {config.logging.level}")

        if errors:
            raise ConfigurationError("Configuration validation failed: " + "; ".join(errors))

    @staticmethod
    def _create_default_config() -> FusionConfig:
        """Create default configuration: local AIS, local ADS-B and a remote MLAT feed."""
        return FusionConfig(
            sbs_sources=[
                SBSSourceConfig(name="dump1090_sbs", host="localhost", port=30003, mlat=False),
                SBSSourceConfig(name="mlat_sbs", host="localhost", port=30106, mlat=True),
            ],
        )
