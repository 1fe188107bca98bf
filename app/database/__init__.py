"""
Database package for the application.
"""

from .base import Base
from .connection import AsyncSessionLocal, engine, get_db

__all__ = [
    "Base",
    "AsyncSessionLocal",
    "engine",
    "get_db",
]
