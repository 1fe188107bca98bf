"""
Default breathing timings per mode.

A user's first parameter row for a mode is seeded from this table. The mapping
is read-only and handed to the lifecycle service at construction time.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from app.enums import BreathingMode


@dataclass(frozen=True)
class ModeDefaults:
    inhale_seconds: float
    exhale_seconds: float
    pause_seconds: float
    total_duration_seconds: int


BREATHING_MODE_DEFAULTS: Mapping[BreathingMode, ModeDefaults] = MappingProxyType({
    BreathingMode.DAILY: ModeDefaults(4.0, 6.0, 0.0, 360),
    BreathingMode.RESET: ModeDefaults(4.0, 8.0, 2.0, 60),
    BreathingMode.SILENT: ModeDefaults(4.0, 6.0, 0.0, 360),
})
