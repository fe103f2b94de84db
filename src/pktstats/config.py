"""
config.py - stats task configuration

Builds StatsTaskConfig objects from keyword arguments, dicts or YAML files.
Validation is done in __post_init__ and raises ConfigurationError.

Example YAML:
    stats:
      devices: [eth0]        # track rx and tx
      rx_devices: [eth1]     # rx only
      tx_devices: []         # tx only
      format: plain          # any registered format: plain, CSV, nil, ...
      file: stats.txt        # omit for standard out
      interval_ms: 100
"""
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .counter import DEFAULT_FORMAT
from .errors import ConfigurationError
from .formatters.registry import FormatterRegistry
from .sources.device_source import PsutilNetDevice

DEFAULT_INTERVAL_MS = 100

_KNOWN_KEYS = {"devices", "rx_devices", "tx_devices", "format", "file", "interval_ms"}


@dataclass
class StatsTaskConfig:
    """
    Settings for a StatsTask.

    Attributes:
        devices: Devices to track in both directions
        rx_devices: Devices to track rx only
        tx_devices: Devices to track tx only
        format: Output format name, must be registered
        file: Output path or stream, None for standard out
        interval_ms: Idle time between two sampling passes
    """
    devices: List[Any] = field(default_factory=list)
    rx_devices: List[Any] = field(default_factory=list)
    tx_devices: List[Any] = field(default_factory=list)
    format: str = DEFAULT_FORMAT
    file: Optional[Any] = None
    interval_ms: float = DEFAULT_INTERVAL_MS

    def __post_init__(self):
        for attr in ("devices", "rx_devices", "tx_devices"):
            value = getattr(self, attr)
            if value is None:
                value = []
            if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
                raise ConfigurationError(f"{attr} must be a list, got {value!r}")
            setattr(self, attr, list(value))

        if not isinstance(self.format, str):
            raise ConfigurationError(f"format must be a string, got {self.format!r}")
        FormatterRegistry.resolve(self.format)

        if isinstance(self.interval_ms, bool) or not isinstance(self.interval_ms, (int, float)):
            raise ConfigurationError(f"interval_ms must be a number, got {self.interval_ms!r}")
        if self.interval_ms <= 0:
            raise ConfigurationError(f"interval_ms must be positive, got {self.interval_ms}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatsTaskConfig":
        if not isinstance(data, dict):
            raise ConfigurationError(f"stats configuration must be a mapping, got {type(data).__name__}")
        unknown = set(data) - _KNOWN_KEYS
        if unknown:
            raise ConfigurationError(f"Unknown stats configuration keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    def resolve_devices(self) -> "StatsTaskConfig":
        """Return a copy with interface names replaced by PsutilNetDevice objects."""
        def resolve(devs):
            return [PsutilNetDevice(d) if isinstance(d, str) else d for d in devs]

        return replace(
            self,
            devices=resolve(self.devices),
            rx_devices=resolve(self.rx_devices),
            tx_devices=resolve(self.tx_devices),
        )


def load_config(yaml_path: str) -> StatsTaskConfig:
    """
    Load a StatsTaskConfig from a YAML file. The settings may sit under a
    top-level `stats:` key or at the top level.
    """
    path = Path(yaml_path)
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {yaml_path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {yaml_path}: {e}") from e

    if data is None:
        data = {}
    if isinstance(data, dict) and "stats" in data:
        data = data["stats"] or {}
    return StatsTaskConfig.from_dict(data)
