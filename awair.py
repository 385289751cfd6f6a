"""
Skyport Climate Agent - Awair Sensor Client

Reads recent temperature averages from the Awair developer API.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import requests

import config
from exceptions import ParseError, StaleDataError, TransportError, UpstreamError, response_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SensorReading:
    """Average temperature over the most recent Awair records."""
    temperature: float
    observed_at: datetime


def _record_temp(record: dict) -> float:
    for sensor in record["sensors"]:
        if str(sensor["comp"]).lower() == "temp":
            return float(sensor["value"])
    raise ParseError("temp not found in Awair record")


def average_temp(records: list) -> float:
    """Mean of the temp component across Awair air-data records."""
    if not records:
        raise ParseError("Awair returned no records")
    try:
        return sum(_record_temp(r) for r in records) / len(records)
    except (KeyError, TypeError, ValueError) as e:
        raise ParseError(f"Malformed Awair record: {e}") from e


def parse_timestamp(value: str) -> datetime:
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def parse_air_data(
    payload: dict,
    now: Optional[datetime] = None,
    max_age: Optional[timedelta] = None,
) -> SensorReading:
    """
    Build a SensorReading from an air-data response.

    Records are newest first; the newest timestamp decides staleness.

    Raises:
        ParseError: payload is not in the expected shape
        StaleDataError: the newest record is older than max_age
    """
    now = now or datetime.now(timezone.utc)
    max_age = max_age or timedelta(minutes=config.SENSOR_MAX_AGE_MINUTES)
    try:
        records = payload["data"]
        observed_at = parse_timestamp(records[0]["timestamp"]) if records else None
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ParseError(f"Malformed Awair response: {e}") from e

    temperature = average_temp(records)

    age = now - observed_at
    if age > max_age:
        raise StaleDataError(
            f"Awair data is stale: last observation at {observed_at.isoformat()} "
            f"({int(age.total_seconds() // 60)} minutes old)"
        )

    return SensorReading(temperature=temperature, observed_at=observed_at)


class AwairClient:
    """Fetches the averaged temperature of one Awair device."""

    def __init__(
        self,
        device_type: str,
        device_id: int,
        token: str,
        session: requests.Session = None,
        timeout: float = None,
    ):
        self.device_type = device_type
        self.device_id = device_id
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout or config.HTTP_TIMEOUT_SECONDS

    @property
    def url(self) -> str:
        return (
            f"{config.AWAIR_API_BASE}/users/self/devices/{self.device_type}/"
            f"{self.device_id}/air-data/{config.AWAIR_AVERAGE_PERIOD}"
        )

    def get_temperature(self) -> SensorReading:
        try:
            response = self.session.get(
                self.url,
                params={"limit": config.AWAIR_SAMPLE_LIMIT},
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Awair request failed: {e}") from e

        if response.status_code != 200:
            raise UpstreamError(response.status_code, response_message(response, "Awair request failed"))

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"Awair returned invalid JSON: {e}") from e

        reading = parse_air_data(payload)
        logger.debug(f"Awair temp {reading.temperature:.2f}°C at {reading.observed_at.isoformat()}")
        return reading
