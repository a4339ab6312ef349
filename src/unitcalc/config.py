"""Settings for evaluation output and the unit catalog.

Loaded from:
1. Defaults (this file)
2. A YAML file, given explicitly or through the UNITCALC_CONFIG variable

Example file:
    precision: 6
    error_marker: "error"
    currency_rates:
      usd: 1.08
      gbp: 0.86
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .catalog import UNITS, UnitCatalog

CONFIG_ENV_VAR = "UNITCALC_CONFIG"


class ConfigError(Exception):
    pass


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    precision: int = Field(default=13, ge=0, le=17)  # decimal places in results
    error_marker: str = "ERR"
    empty_marker: str = ""
    currency_rates: dict[str, float] = {}  # units of currency per euro
    log_level: str = "WARNING"


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file, falling back to defaults."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return Settings()

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"{path}: {e}") from e


def apply_settings(settings: Settings, units: UnitCatalog = UNITS) -> None:
    """Push configured exchange rates into the unit catalog."""
    if settings.currency_rates:
        units.set_currency_rates(settings.currency_rates)
