"""
Skyport Climate Agent - Daikin SkyPort Client

Handles login, token refresh, device discovery and setpoint updates
against the Daikin SkyPort cloud API. One client instance is the whole
thermostat session: tokens, selected device and the last synced state.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

import requests

import config
from exceptions import (
    AuthExpiredError,
    ParseError,
    TransportError,
    UpstreamError,
    response_message,
)

logger = logging.getLogger(__name__)

HTTP_UNAUTHORIZED = 401

T = TypeVar("T")


def retry_on_auth_expiry(operation: Callable[[], T], reauthenticate: Callable[[], None]) -> T:
    """
    Run operation; if its token was rejected, reauthenticate and run it once more.

    A second AuthExpiredError, or any other error, propagates.
    """
    try:
        return operation()
    except AuthExpiredError:
        logger.info("Access token expired, refreshing and retrying")
        reauthenticate()
        return operation()


@dataclass(frozen=True)
class DeviceEntry:
    id: str
    name: str


@dataclass
class DeviceData:
    """Snapshot of the thermostat state from /deviceData."""
    indoor_temp: float
    outdoor_temp: Optional[float]
    heat_setpoint: float
    cool_setpoint: float
    away: bool = False

    @classmethod
    def from_json(cls, data: dict) -> "DeviceData":
        try:
            outdoor = data.get("tempOutdoor")
            return cls(
                indoor_temp=float(data["tempIndoor"]),
                outdoor_temp=float(outdoor) if outdoor is not None else None,
                heat_setpoint=float(data["hspHome"]),
                cool_setpoint=float(data["cspHome"]),
                away=bool(data.get("geofencingAway", False)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ParseError(f"Malformed SkyPort device data: {e}") from e


class SkyPortClient:
    """Authenticated session with one Daikin SkyPort thermostat."""

    def __init__(
        self,
        email: str,
        password: str,
        session: requests.Session = None,
        timeout: float = None,
    ):
        self.email = email
        self.password = password
        self.session = session or requests.Session()
        self.timeout = timeout or config.HTTP_TIMEOUT_SECONDS

        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.device: Optional[DeviceEntry] = None
        self.device_data: Optional[DeviceData] = None

    def _request(self, method: str, path: str, body: dict = None, auth: bool = True) -> Any:
        """Send one request and return the decoded JSON body (None if empty)."""
        headers = {"Accept": "application/json"}
        if auth:
            headers["Authorization"] = f"Bearer {self.access_token}"

        url = f"{config.SKYPORT_API_BASE}{path}"
        try:
            response = self.session.request(
                method, url, json=body, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise TransportError(f"SkyPort {method} {path} failed: {e}") from e

        if response.status_code == HTTP_UNAUTHORIZED:
            raise AuthExpiredError(response.status_code, response_message(response, "Unauthorized"))
        if response.status_code >= 400:
            raise UpstreamError(response.status_code, response_message(response, f"SkyPort {method} {path} failed"))

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"SkyPort returned invalid JSON for {path}: {e}") from e

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    def login(self):
        """Log in with email/password and store both tokens."""
        result = self._request(
            "POST", "/users/auth/login",
            body={"email": self.email, "password": self.password},
            auth=False,
        )
        try:
            access_token = result["accessToken"]
            refresh_token = result.get("refreshToken")
        except (KeyError, TypeError, AttributeError) as e:
            raise ParseError(f"Malformed SkyPort login response: {e}") from e
        if not refresh_token:
            raise UpstreamError(None, "Refresh token was not returned")

        self.access_token = access_token
        self.refresh_token = refresh_token
        logger.info(f"Logged in to Daikin SkyPort as {self.email}")

    def refresh_access_token(self):
        result = self._request(
            "POST", "/users/auth/token",
            body={"email": self.email, "refreshToken": self.refresh_token},
            auth=False,
        )
        try:
            self.access_token = result["accessToken"]
        except (KeyError, TypeError) as e:
            raise ParseError(f"Malformed SkyPort token response: {e}") from e
        logger.debug("Refreshed SkyPort access token")

    def reauthenticate(self):
        """Refresh the access token, falling back to a password login."""
        try:
            self.refresh_access_token()
        except AuthExpiredError:
            logger.info("Refresh token rejected, logging in again")
            self.login()

    # -------------------------------------------------------------------------
    # Device
    # -------------------------------------------------------------------------

    def discover_device(self) -> DeviceEntry:
        """Select the first thermostat on the account."""
        result = self._request("GET", "/devices")
        try:
            devices = [DeviceEntry(id=d["id"], name=d["name"]) for d in result]
        except (KeyError, TypeError) as e:
            raise ParseError(f"Malformed SkyPort device list: {e}") from e
        if not devices:
            raise UpstreamError(404, "No device found")

        for device in devices:
            logger.info(f"Found device id={device.id}, name={device.name}")
        self.device = devices[0]
        logger.info(f'Using "{self.device.name}" as the Daikin device')
        return self.device

    def connect(self):
        """Log in, pick the device and take the first snapshot."""
        self.login()
        self.discover_device()
        self.sync()

    def _fetch_device_data(self):
        result = self._request("GET", f"/deviceData/{self.device.id}")
        self.device_data = DeviceData.from_json(result)

    def sync(self):
        """Refresh the cached device snapshot."""
        retry_on_auth_expiry(self._fetch_device_data, self.reauthenticate)
        logger.debug(
            f"SkyPort indoor {self.indoor_temp}°C, outdoor {self.outdoor_temp}°C, "
            f"sp=({self.heat_setpoint}, {self.cool_setpoint}), away={self.away}"
        )

    def set_setpoints(self, heat: float, cool: float, duration_minutes: int):
        """Override the schedule with new setpoints for duration_minutes."""
        logger.info(f"Setting setpoints: heat={heat:.2f}, cool={cool:.2f}")
        body = {
            "hspHome": heat,
            "cspHome": cool,
            "schedOverride": 1,
            "schedOverrideDuration": duration_minutes,
        }
        retry_on_auth_expiry(
            lambda: self._request("PUT", f"/deviceData/{self.device.id}", body=body),
            self.reauthenticate,
        )

    # -------------------------------------------------------------------------
    # Snapshot accessors
    # -------------------------------------------------------------------------

    def _snapshot(self) -> DeviceData:
        if self.device_data is None:
            raise RuntimeError("SkyPort device has not been synced")
        return self.device_data

    @property
    def indoor_temp(self) -> float:
        return self._snapshot().indoor_temp

    @property
    def outdoor_temp(self) -> Optional[float]:
        return self._snapshot().outdoor_temp

    @property
    def heat_setpoint(self) -> float:
        return self._snapshot().heat_setpoint

    @property
    def cool_setpoint(self) -> float:
        return self._snapshot().cool_setpoint

    @property
    def away(self) -> bool:
        return self._snapshot().away
