"""
Models package for the application.
"""

from .breathing_parameters import BreathingParameters
from .breathing_session import BreathingSession
from .lung_capacity_metric import LungCapacityMetric
from .progress_analytics import UserProgressAnalytics

__all__ = [
    "BreathingParameters",
    "BreathingSession",
    "LungCapacityMetric",
    "UserProgressAnalytics",
]
