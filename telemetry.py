"""
Skyport Climate Agent - Control Telemetry

Appends one JSON record per control cycle to a line-oriented log file.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import config

logger = logging.getLogger(__name__)


@dataclass
class ControlOutcome:
    """Inputs and outputs of one control cycle."""
    target_temp_heat: float
    target_temp_cool: float
    ambient_temp: float
    indoor_temp: float
    outdoor_temp: Optional[float]
    heat_setpoint: float
    cool_setpoint: float
    new_heat_setpoint: float
    new_cool_setpoint: float
    execute_control: bool
    suppressed_reason: Optional[str] = None  # "away" or "dry_run"
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat(timespec="seconds")
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    def summary(self) -> str:
        """One human-readable line for the application log."""
        return (
            f"Target temp=({self.target_temp_heat}, {self.target_temp_cool}), "
            f"Awair temp={self.ambient_temp:.2f}, Daikin temp={self.indoor_temp}, "
            f"outdoor temp={self.outdoor_temp}, "
            f"Daikin sp=({self.heat_setpoint}, {self.cool_setpoint}), "
            f"new Daikin sp=({self.new_heat_setpoint:.2f}, {self.new_cool_setpoint:.2f}), "
            f"execute_control={self.execute_control}"
        )


class TelemetryLogger:
    """Writes ControlOutcome records as JSON lines."""

    def __init__(self, path: Path = None):
        self.path = Path(path or config.TELEMETRY_LOG_PATH)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def log_outcome(self, outcome: ControlOutcome):
        logger.info(outcome.summary())
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(outcome.to_json() + "\n")
