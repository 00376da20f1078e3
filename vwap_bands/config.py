"""Indicator and session configuration, loaded from config/default.yaml."""

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default.yaml"

# Allowed range for band multipliers
DEVIATIONS_MIN = 0.1
DEVIATIONS_MAX = 10.0


@dataclass
class VWAPBandsConfig:
    """User-facing indicator parameters."""

    deviations1: float = 1.0
    deviations2: float = 2.0
    show_inner_band: bool = True
    show_outer_band: bool = True
    reset_on_new_session: bool = True
    use_typical_price: bool = True

    @classmethod
    def from_dict(cls, values: Optional[dict]) -> "VWAPBandsConfig":
        values = values or {}
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown vwap_bands option(s): {sorted(unknown)}")
        return cls(**values)

    def validate(self) -> None:
        """Check band multipliers are within [0.1, 10.0]."""
        for name in ("deviations1", "deviations2"):
            value = getattr(self, name)
            if not DEVIATIONS_MIN <= value <= DEVIATIONS_MAX:
                raise ValueError(
                    f"{name}={value} outside [{DEVIATIONS_MIN}, {DEVIATIONS_MAX}]"
                )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SessionConfig:
    """When a new session starts in replayed data."""

    start_hour: int = 0
    timezone: str = "UTC"

    @classmethod
    def from_dict(cls, values: Optional[dict]) -> "SessionConfig":
        values = values or {}
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown session option(s): {sorted(unknown)}")
        return cls(**values)

    def validate(self) -> None:
        if not 0 <= self.start_hour <= 23:
            raise ValueError(f"session start_hour={self.start_hour} outside [0, 23]")


def read_config(path=None) -> dict:
    """Parse the YAML config file. Defaults to config/default.yaml."""
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    with open(config_path) as f:
        config = yaml.safe_load(f) or {}
    logger.debug(f"Read config from {config_path}")
    return config


def parse_config(config: dict) -> Tuple[VWAPBandsConfig, SessionConfig]:
    """Build and validate indicator + session config from a parsed YAML dict."""
    bands = VWAPBandsConfig.from_dict(config.get("vwap_bands"))
    session = SessionConfig.from_dict(config.get("session"))
    bands.validate()
    session.validate()

    logger.debug(f"Config: {bands.to_dict()}, {asdict(session)}")
    return bands, session


def load_config(path=None) -> Tuple[VWAPBandsConfig, SessionConfig]:
    """Load and validate indicator + session config from a YAML file.

    Args:
        path: Config file path. Defaults to config/default.yaml.

    Returns:
        (VWAPBandsConfig, SessionConfig)
    """
    return parse_config(read_config(path))
