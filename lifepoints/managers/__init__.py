"""Manager modules for Life Points.

Managers orchestrate workflows and coordinate between engines.
They are stateful, event-aware, and own persistence.
"""

from .attempt_manager import AttemptManager
from .base_manager import BaseManager
from .habit_manager import HabitDayStatus, HabitManager
from .report_manager import ReportManager
from .settlement_manager import SettlementManager, SettlementResult

__all__ = [
    "AttemptManager",
    "BaseManager",
    "HabitDayStatus",
    "HabitManager",
    "ReportManager",
    "SettlementManager",
    "SettlementResult",
]
