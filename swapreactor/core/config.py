"""
Reactor configuration.

YAML shape:

    reactor_address: "0x…"
    owner: "0x…"
    max_fee_bps: 5                 # protocol fee ceiling, default 5
    skim:                          # optional; omit to disable skim fees
      split_bps: 5000
      protocol_fee_recipient: "0x…"
    journal_path: fills.jsonl      # optional

SWAPREACTOR_CONFIG names the file load_config_from_env() reads.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from swapreactor.core.exceptions import ConfigError
from swapreactor.core.models import BPS, is_address
from swapreactor.fees.protocol import DEFAULT_MAX_FEE_BPS

CONFIG_ENV_VAR      = "SWAPREACTOR_CONFIG"
DEFAULT_CONFIG_FILE = "swapreactor.yaml"


def _require_address(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not is_address(value):
        raise ConfigError(f"'{key}' must be a 0x-prefixed 40-hex-char address", {"value": value})
    return value


def _require_bps(value: Any, key: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= BPS:
        raise ConfigError(f"'{key}' must be an int within 0..10000", {"value": value})
    return value


@dataclass(frozen=True)
class SkimConfig:
    split_bps:              int
    protocol_fee_recipient: str


@dataclass(frozen=True)
class ReactorConfig:
    reactor_address: str
    owner:           str
    max_fee_bps:     int = DEFAULT_MAX_FEE_BPS
    skim:            Optional[SkimConfig] = None
    journal_path:    Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReactorConfig":
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")

        skim = None
        skim_data = data.get("skim")
        if skim_data is not None:
            if not isinstance(skim_data, dict):
                raise ConfigError("'skim' must be a mapping")
            skim = SkimConfig(
                split_bps=_require_bps(skim_data.get("split_bps"), "skim.split_bps"),
                protocol_fee_recipient=_require_address(skim_data, "protocol_fee_recipient"),
            )

        return cls(
            reactor_address=_require_address(data, "reactor_address"),
            owner=_require_address(data, "owner"),
            max_fee_bps=_require_bps(data.get("max_fee_bps", DEFAULT_MAX_FEE_BPS), "max_fee_bps"),
            skim=skim,
            journal_path=data.get("journal_path"),
        )

    @classmethod
    def from_yaml(cls, config_file: Path) -> "ReactorConfig":
        """Load configuration from a YAML file."""
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigError("Config file not found", {"path": str(config_file)})
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_file}: {exc}") from exc
        return cls.from_dict(data)


def load_config_from_env() -> ReactorConfig:
    """Read the file named by SWAPREACTOR_CONFIG. Defaults to ./swapreactor.yaml."""
    return ReactorConfig.from_yaml(
        Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))
    )
