"""
Skyport Climate Agent - Configuration

Runtime settings live at module level below; copy overrides into
config_local.py (gitignored) to change them. Credentials and targets come
from the per-install JSON document loaded by load_config().
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from exceptions import ConfigError
from timewindow import TimeWindow, parse_window

# =============================================================================
# CONFIG DOCUMENT
# =============================================================================
# JSON file holding the Awair/Daikin credentials, targets and control window
CONFIG_PATH = Path(os.getenv("CLIMATE_CONFIG", "config.json"))

# =============================================================================
# CONTROL SETTINGS
# =============================================================================
# Normal interval between control cycles (minutes). Also used as the
# setpoint hold duration so consecutive cycles keep the override alive.
CONTROL_INTERVAL_MINUTES = int(os.getenv("CONTROL_INTERVAL_MINUTES", "60"))

# Interval after a failed cycle (minutes)
RETRY_INTERVAL_MINUTES = int(os.getenv("RETRY_INTERVAL_MINUTES", "5"))

# Padding added to the window transition so we wake just inside the new state
TRANSITION_SKEW_SECONDS = 15

# Awair readings older than this are rejected
SENSOR_MAX_AGE_MINUTES = 15

# =============================================================================
# API SETTINGS
# =============================================================================
AWAIR_API_BASE = "https://developer-apis.awair.is/v1"
AWAIR_AVERAGE_PERIOD = "5-min-avg"
AWAIR_SAMPLE_LIMIT = 3

SKYPORT_API_BASE = "https://api.daikinskyport.com"

# Timeout for each HTTP request (seconds)
HTTP_TIMEOUT_SECONDS = 30

# =============================================================================
# TELEMETRY
# =============================================================================
# Relative paths resolve against the working directory
DATA_DIR = Path(os.getenv("CLIMATE_DATA_DIR", "data"))
TELEMETRY_LOG_PATH = DATA_DIR / "control.jsonl"

# =============================================================================
# TELEGRAM NOTIFICATIONS
# =============================================================================
# Alerts are sent only when both token and chat id are set
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
TELEGRAM_CHAT_ID = os.getenv("TELEGRAM_CHAT_ID", "")

# Alert once this many cycles in a row have failed
ALERT_AFTER_CONSECUTIVE_FAILURES = 3

# Don't spam if the upstream stays down (seconds)
ALERT_COOLDOWN_SECONDS = 3600


@dataclass(frozen=True)
class Config:
    """Validated contents of the config document plus CLI runtime flags."""
    awair_device_type: str
    awair_device_id: int
    awair_token: str
    daikin_email: str
    daikin_password: str
    target_temp_heat: float
    target_temp_cool: float
    control_start: str
    control_end: str
    dry_run: bool = False
    oneshot: bool = False

    @property
    def window(self) -> TimeWindow:
        return parse_window(self.control_start, self.control_end)


# document key -> (field name, accepted types)
_FIELDS = {
    "awair.deviceType": ("awair_device_type", (str,)),
    "awair.deviceId": ("awair_device_id", (int,)),
    "awair.token": ("awair_token", (str,)),
    "daikin.email": ("daikin_email", (str,)),
    "daikin.password": ("daikin_password", (str,)),
    "target_temp_heat": ("target_temp_heat", (int, float)),
    "target_temp_cool": ("target_temp_cool", (int, float)),
    "control_start": ("control_start", (str,)),
    "control_end": ("control_end", (str,)),
}


def parse_config(data: dict, dry_run: bool = False, oneshot: bool = False) -> Config:
    """
    Validate a decoded config document.

    Raises:
        ConfigError: on a missing or mistyped key, a bad time of day, or
            target_temp_heat above target_temp_cool
    """
    if not isinstance(data, dict):
        raise ConfigError("Config document must be a JSON object")

    values = {}
    for key, (name, types) in _FIELDS.items():
        if key not in data:
            raise ConfigError(f"Missing config key: {key}")
        value = data[key]
        # bool is an int subclass, never a valid value here
        if isinstance(value, bool) or not isinstance(value, types):
            raise ConfigError(f"Invalid value for {key}: {value!r}")
        values[name] = value

    values["target_temp_heat"] = float(values["target_temp_heat"])
    values["target_temp_cool"] = float(values["target_temp_cool"])
    if values["target_temp_heat"] > values["target_temp_cool"]:
        raise ConfigError(
            f"target_temp_heat ({values['target_temp_heat']}) must not exceed "
            f"target_temp_cool ({values['target_temp_cool']})"
        )

    try:
        parse_window(values["control_start"], values["control_end"])
    except ValueError as e:
        raise ConfigError(f"Invalid control window: {e}") from e

    return Config(dry_run=dry_run, oneshot=oneshot, **values)


def load_config(
    path: Union[str, Path] = None,
    dry_run: bool = False,
    oneshot: bool = False,
) -> Config:
    """Read and validate the config document at path."""
    path = Path(path or CONFIG_PATH)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to open {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e

    return parse_config(data, dry_run=dry_run, oneshot=oneshot)


# =============================================================================
# OVERRIDE WITH LOCAL CONFIG
# =============================================================================
try:
    from config_local import *
except ImportError:
    pass
