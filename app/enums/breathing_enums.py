"""
Breathing-related enums for the application.
"""

from enum import Enum


class BreathingMode(str, Enum):
    DAILY = "daily"
    RESET = "reset"
    SILENT = "silent"


class ComfortRating(str, Enum):
    LIGHTER = "lighter"
    NEUTRAL = "neutral"
    HEAVY = "heavy"


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class StoreBackend(str, Enum):
    DATABASE = "database"
    LOCAL = "local"


class AdaptationStrategyName(str, Enum):
    AUTO = "auto"
    WINDOWED = "windowed"
    SINGLE_RATING = "single_rating"
