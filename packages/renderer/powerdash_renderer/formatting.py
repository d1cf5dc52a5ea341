"""Human-readable formatting for raw metric values."""

from __future__ import annotations

import math

BYTE_UNITS = ("B", "KB", "MB", "GB")


def format_bytes(n: float) -> str:
    value = float(n)
    unit = 0
    while value >= 1024 and unit < len(BYTE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f} {BYTE_UNITS[unit]}"


def format_power(watts: float) -> str:
    # Negative readings are sensor noise; clamp instead of printing "-3 mW".
    watts = max(0.0, float(watts))
    if watts < 1:
        return f"{math.floor(watts * 1000 + 0.5)} mW"
    return f"{watts:.2f} W"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_frequency(mhz: float) -> str:
    return f"{mhz:.0f} MHz"


def format_carbon(grams_per_kwh: float) -> str:
    return f"{grams_per_kwh:.2f} gCO2/kWh"
