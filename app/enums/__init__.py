"""
Shared enums for the application.
"""

from .breathing_enums import (
    BreathingMode,
    ComfortRating,
    DifficultyLevel,
    StoreBackend,
    AdaptationStrategyName
)

__all__ = [
    "BreathingMode",
    "ComfortRating",
    "DifficultyLevel",
    "StoreBackend",
    "AdaptationStrategyName"
]
