# File: utils/__init__.py
"""Pure Python utilities for Life Points.

This module contains pure Python functions with no storage or manager
dependencies. All functions here can be unit tested without fixtures.

Submodules:
    - dt_utils: Date parsing, ISO week boundaries, calendar arithmetic
    - math_utils: Proportional XP, threshold penalties, progress percentage

Usage:
    from . import dt_utils
    from .math_utils import proportional_xp
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
