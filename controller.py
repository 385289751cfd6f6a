"""
Skyport Climate Agent - Control Loop

One control cycle syncs the thermostat, reads the Awair sensor, offsets
the setpoints and (unless suppressed) writes them back. The controller
runs cycles while inside the configured window and otherwise sleeps until
the next window transition.
"""

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import config
from adjuster import calc_new_setpoints
from awair import AwairClient
from exceptions import ClimateAgentError
from notifier import NotificationManager
from skyport import SkyPortClient
from telemetry import ControlOutcome, TelemetryLogger

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """What a control cycle did and when it wants to run again."""
    interval_minutes: int
    outcome: Optional[ControlOutcome] = None
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def _suppressed_reason(settings: config.Config, thermostat: SkyPortClient) -> Optional[str]:
    if thermostat.away:
        return "away"
    if settings.dry_run:
        return "dry_run"
    return None


def run_cycle(
    settings: config.Config,
    sensor: AwairClient,
    thermostat: SkyPortClient,
    telemetry: TelemetryLogger,
) -> CycleResult:
    """
    Run one adjustment attempt.

    Failures while syncing or reading are logged and produce the retry
    interval without a telemetry record. Otherwise exactly one record is
    written, whether or not the setpoints are actually sent.
    """
    try:
        thermostat.sync()
    except ClimateAgentError as e:
        logger.error(f"Daikin SkyPort sync failed: {e}")
        return CycleResult(config.RETRY_INTERVAL_MINUTES, error=e)

    try:
        reading = sensor.get_temperature()
    except ClimateAgentError as e:
        logger.error(f"Failed to read Awair temperature: {e}")
        return CycleResult(config.RETRY_INTERVAL_MINUTES, error=e)

    new_heat, new_cool = calc_new_setpoints(
        reading.temperature,
        thermostat.indoor_temp,
        settings.target_temp_heat,
        settings.target_temp_cool,
    )

    reason = _suppressed_reason(settings, thermostat)
    outcome = ControlOutcome(
        target_temp_heat=settings.target_temp_heat,
        target_temp_cool=settings.target_temp_cool,
        ambient_temp=reading.temperature,
        indoor_temp=thermostat.indoor_temp,
        outdoor_temp=thermostat.outdoor_temp,
        heat_setpoint=thermostat.heat_setpoint,
        cool_setpoint=thermostat.cool_setpoint,
        new_heat_setpoint=new_heat,
        new_cool_setpoint=new_cool,
        execute_control=reason is None,
        suppressed_reason=reason,
    )
    telemetry.log_outcome(outcome)

    if reason is not None:
        logger.info(f"Control suppressed ({reason}), setpoints left unchanged")
        return CycleResult(config.CONTROL_INTERVAL_MINUTES, outcome=outcome)

    try:
        thermostat.set_setpoints(new_heat, new_cool, config.CONTROL_INTERVAL_MINUTES)
    except ClimateAgentError as e:
        logger.error(f"Failed to set setpoints: {e}")
        return CycleResult(config.RETRY_INTERVAL_MINUTES, outcome=outcome, error=e)

    return CycleResult(config.CONTROL_INTERVAL_MINUTES, outcome=outcome)


class ClimateController:
    """
    Main application class: decides when to run control cycles and
    how long to sleep between them.
    """

    def __init__(
        self,
        settings: config.Config,
        sensor: AwairClient,
        thermostat: SkyPortClient,
        telemetry: TelemetryLogger,
        notifier: NotificationManager = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings
        self.sensor = sensor
        self.thermostat = thermostat
        self.telemetry = telemetry
        self.notifier = notifier
        self.clock = clock
        self.window = settings.window

        self._stop_event = threading.Event()
        self._in_window: Optional[bool] = None
        self._cycle_count = 0
        self._error_count = 0
        self._consecutive_errors = 0

    def _cycle(self) -> CycleResult:
        try:
            result = run_cycle(self.settings, self.sensor, self.thermostat, self.telemetry)
        except Exception as e:
            logger.exception(f"Unexpected error in control cycle: {e}")
            result = CycleResult(config.RETRY_INTERVAL_MINUTES, error=e)

        self._cycle_count += 1
        if not result.failed:
            self._consecutive_errors = 0
            return result

        self._error_count += 1
        self._consecutive_errors += 1
        if self.notifier and self._consecutive_errors == config.ALERT_AFTER_CONSECUTIVE_FAILURES:
            self.notifier.notify_error(
                f"{self._consecutive_errors} control cycles failed in a row: {result.error}"
            )
        return result

    def _now(self):
        return self.clock().time().replace(microsecond=0)

    def run_once(self) -> float:
        """Run one loop iteration and return how many seconds to sleep."""
        now = self._now()
        in_window = self.window.contains(now)

        if in_window != self._in_window:
            if in_window:
                logger.info("Inside control window, starting control")
            else:
                logger.info("Outside control window, idling until next transition")
            self._in_window = in_window

        if in_window:
            interval = self._cycle().interval_minutes * 60
            # the cycle may have taken a while; measure from its end
            now = self._now()
        else:
            interval = math.inf

        next_seconds = self.window.next_transition(now) + config.TRANSITION_SKEW_SECONDS
        sleep_seconds = min(next_seconds, interval)
        logger.info(
            f"{now} sleeping for {sleep_seconds} seconds "
            f"({next_seconds // 60} minutes until next transition)"
        )
        return sleep_seconds

    def run(self):
        """Main run loop."""
        logger.info("=" * 60)
        logger.info("Skyport Climate Agent Starting")
        logger.info("=" * 60)
        logger.info(f"Control window: {self.settings.control_start} - {self.settings.control_end}")
        logger.info(
            f"Targets: heat {self.settings.target_temp_heat}°C, "
            f"cool {self.settings.target_temp_cool}°C"
        )
        if self.settings.dry_run:
            logger.info("Dry run: setpoints will not be written")

        if self.notifier:
            self.notifier.notify_startup(f"{self.settings.control_start} - {self.settings.control_end}")

        try:
            while not self._stop_event.is_set():
                sleep_seconds = self.run_once()
                if self.settings.oneshot:
                    break
                self._stop_event.wait(sleep_seconds)
        finally:
            logger.info(
                f"Shutting down after {self._cycle_count} cycles ({self._error_count} failed)"
            )
            if self.notifier:
                self.notifier.notify_shutdown()

    def stop(self):
        """Signal the controller to stop."""
        self._stop_event.set()
