"""Pytest configuration and fixtures for the climate agent tests."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest

import config


def make_response(status_code: int = 200, payload=None) -> Mock:
    """Create a requests.Response stand-in.

    Args:
        status_code: HTTP status code to report.
        payload: Decoded JSON body, or None for an empty body.

    Returns:
        A Mock with status_code, content and json() set up.

    """
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.content = b"" if payload is None else json.dumps(payload).encode()
    return response


def awair_record(timestamp: datetime, temp: float) -> dict:
    """Create one Awair air-data record in the API's shape."""
    return {
        "timestamp": timestamp.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
        "score": 95.0,
        "sensors": [
            {"comp": "pm25", "value": 3.7},
            {"comp": "humid", "value": 41.9},
            {"comp": "temp", "value": temp},
            {"comp": "co2", "value": 588.4},
        ],
    }


@pytest.fixture
def awair_payload() -> dict:
    """Fixture providing a captured 15-min-avg Awair response (newest first)."""
    sensors = [
        ("2022-01-02T06:30:00.000Z", 24.175666745503744),
        ("2022-01-02T06:15:00.000Z", 24.310227264057506),
        ("2022-01-02T06:00:00.000Z", 24.41155548095703),
        ("2022-01-02T05:45:00.000Z", 24.31588887108697),
    ]
    return {
        "data": [
            {
                "timestamp": ts,
                "score": 95.0,
                "sensors": [
                    {"comp": "pm25", "value": 3.7},
                    {"comp": "temp", "value": temp},
                    {"comp": "voc", "value": 344.8},
                ],
            }
            for ts, temp in sensors
        ],
    }


@pytest.fixture
def fresh_awair_payload() -> dict:
    """Fixture providing an Awair response whose newest record is 2 minutes old."""
    now = datetime.now(timezone.utc)
    return {
        "data": [
            awair_record(now - timedelta(minutes=2), 23.4),
            awair_record(now - timedelta(minutes=7), 23.5),
            awair_record(now - timedelta(minutes=12), 23.6),
        ],
    }


@pytest.fixture
def device_data_payload() -> dict:
    """Fixture providing a SkyPort /deviceData response."""
    return {
        "tempIndoor": 21.0,
        "tempOutdoor": 4.5,
        "hspHome": 21.5,
        "cspHome": 25.0,
        "geofencingAway": False,
        "mode": 3,
    }


@pytest.fixture
def config_document() -> dict:
    """Fixture providing a valid config document."""
    return {
        "awair.deviceType": "awair-element",
        "awair.deviceId": 0,
        "awair.token": "awair-token",
        "daikin.email": "daikin@example.com",
        "daikin.password": "secret",
        "target_temp_heat": 23.5,
        "target_temp_cool": 26.0,
        "control_start": "21:00",
        "control_end": "07:00",
    }


@pytest.fixture
def config_file(tmp_path: Path, config_document: dict) -> Path:
    """Fixture writing the valid config document to a temporary file."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config_document))
    return path


@pytest.fixture
def settings() -> config.Config:
    """Fixture providing a Config for an 08:00-13:00 window."""
    return config.Config(
        awair_device_type="awair-element",
        awair_device_id=0,
        awair_token="awair-token",
        daikin_email="daikin@example.com",
        daikin_password="secret",
        target_temp_heat=23.5,
        target_temp_cool=26.0,
        control_start="08:00",
        control_end="13:00",
    )


@pytest.fixture
def fixed_intervals(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin the control and retry intervals regardless of environment."""
    monkeypatch.setattr(config, "CONTROL_INTERVAL_MINUTES", 60)
    monkeypatch.setattr(config, "RETRY_INTERVAL_MINUTES", 5)
    monkeypatch.setattr(config, "TRANSITION_SKEW_SECONDS", 15)
