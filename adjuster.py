"""
Skyport Climate Agent - Setpoint Calculation
"""

from typing import Tuple


def calc_new_setpoints(
    ambient_temp: float,
    device_temp: float,
    target_heat: float,
    target_cool: float,
) -> Tuple[float, float]:
    """
    Shift both targets by the Awair-vs-thermostat offset.

    The thermostat regulates on its own sensor, so offsetting its setpoints
    by (ambient - device) makes the Awair reading track the targets instead.

    Returns:
        (new_heat_setpoint, new_cool_setpoint)
    """
    diff = ambient_temp - device_temp
    return (target_heat - diff, target_cool - diff)
