"""Engine modules for Life Points.

Contains pure computation engines:
- scoring_engine: Daily and weekly XP deltas, habit activity windows
- attempt_engine: Life total transitions, catch-up planning, attempt status
"""

from .attempt_engine import AttemptEngine, LifeTransition
from .scoring_engine import ScoringEngine

__all__ = [
    "AttemptEngine",
    "LifeTransition",
    "ScoringEngine",
]
