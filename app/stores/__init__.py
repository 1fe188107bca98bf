"""
Persistence backends for breathing data.
"""

from .base import (
    BreathingStore,
    ParameterRecord,
    SessionRecord,
    MetricInput,
    MetricRecord,
    AnalyticsRecord,
)
from .sql_store import SqlBreathingStore
from .local_store import LocalBreathingStore

__all__ = [
    "BreathingStore",
    "ParameterRecord",
    "SessionRecord",
    "MetricInput",
    "MetricRecord",
    "AnalyticsRecord",
    "SqlBreathingStore",
    "LocalBreathingStore",
]
