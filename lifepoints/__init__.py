"""Life Points: habit scoring and attempt lifecycle engine.

Habits earn or cost XP each day and each week; weekly settlement applies the
net change to a life total, and an attempt ends when lives reach zero.
"""

from .coordinator import OPTIONS_SCHEMA, LifePointsCoordinator
from .exceptions import (
    InvalidStateError,
    LifePointsError,
    NotFoundError,
    StorageError,
)
from .store import LifePointsStore

__version__ = "0.5.0"

__all__ = [
    "OPTIONS_SCHEMA",
    "InvalidStateError",
    "LifePointsCoordinator",
    "LifePointsError",
    "LifePointsStore",
    "NotFoundError",
    "StorageError",
]
