#!/usr/bin/env python3
"""
Skyport Climate Agent - Main Application

Keeps the Awair reading on target by offsetting the Daikin SkyPort
setpoints during a daily control window.

Usage:
    python main.py                      # Run the agent
    python main.py --config my.json     # Use another config document
    python main.py --config-test        # Validate the config and exit
    python main.py --dry-run --oneshot  # One cycle, no setpoint writes
"""

import argparse
import logging
import signal
import sys

import config
from awair import AwairClient
from controller import ClimateController
from exceptions import ClimateAgentError, ConfigError
from notifier import NotificationManager
from skyport import SkyPortClient
from telemetry import TelemetryLogger

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

# Reduce noise from libraries
logging.getLogger("urllib3").setLevel(logging.WARNING)


def check_configuration(path) -> bool:
    """Load and validate the config document without touching the network."""
    print("Testing Climate Agent Configuration")
    print("=" * 50)

    try:
        settings = config.load_config(path)
    except ConfigError as e:
        print(f"   ✗ {e}")
        return False

    window = settings.window
    print(f"   ✓ Config loaded from {path or config.CONFIG_PATH}")
    print(f"   ✓ Awair device: {settings.awair_device_type}/{settings.awair_device_id}")
    print(f"   ✓ Daikin account: {settings.daikin_email}")
    print(f"   ✓ Targets: heat {settings.target_temp_heat}°C, cool {settings.target_temp_cool}°C")
    print(f"   ✓ Control window: {settings.control_start} - {settings.control_end} ({type(window).__name__})")
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Skyport Climate Agent")
    parser.add_argument(
        "--config", default=str(config.CONFIG_PATH),
        help=f"Config document (default: {config.CONFIG_PATH})"
    )
    parser.add_argument("--config-test", action="store_true", help="Validate the config and exit")
    parser.add_argument("--dry-run", action="store_true", help="Compute setpoints but do not write them")
    parser.add_argument("--oneshot", action="store_true", help="Run a single iteration and exit")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.config_test:
        success = check_configuration(args.config)
        sys.exit(0 if success else 1)

    try:
        settings = config.load_config(args.config, dry_run=args.dry_run, oneshot=args.oneshot)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    try:
        telemetry = TelemetryLogger()
    except OSError as e:
        logger.error(f"Cannot create telemetry directory: {e}")
        sys.exit(1)

    sensor = AwairClient(settings.awair_device_type, settings.awair_device_id, settings.awair_token)
    thermostat = SkyPortClient(settings.daikin_email, settings.daikin_password)
    try:
        thermostat.connect()
    except ClimateAgentError as e:
        logger.error(f"Failed to connect to Daikin SkyPort: {e}")
        sys.exit(1)

    controller = ClimateController(
        settings,
        sensor,
        thermostat,
        telemetry,
        notifier=NotificationManager(),
    )

    # Handle signals
    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}, stopping...")
        controller.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    controller.run()


if __name__ == "__main__":
    main()
