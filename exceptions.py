"""
Skyport Climate Agent - Exceptions

Error hierarchy shared by the sensor/thermostat clients and the control loop.
"""

from typing import Optional


class ClimateAgentError(Exception):
    """Base exception for the climate agent."""

    pass


class ConfigError(ClimateAgentError):
    """Configuration is invalid or unreadable."""

    pass


class TransportError(ClimateAgentError):
    """Network or connection failure talking to an upstream API."""

    pass


class UpstreamError(ClimateAgentError):
    """Upstream API answered with a non-success status."""

    def __init__(self, status: Optional[int], message: str):
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (HTTP {self.status})"


class AuthExpiredError(UpstreamError):
    """Access token was rejected (HTTP 401)."""

    pass


class StaleDataError(ClimateAgentError):
    """Sensor reading is too old to trust."""

    pass


class ParseError(ClimateAgentError):
    """Upstream response could not be parsed."""

    pass


def response_message(response, default: str) -> str:
    """The API's {"message": ...} error text, or default."""
    try:
        message = response.json().get("message")
    except (ValueError, AttributeError):
        message = None
    return message or default
