"""
Limits & fee engine: per-venue amount windows, validation and fee quotes.
"""

from ark_wallet_core.limits.engine import LimitsEngine
from ark_wallet_core.limits.models import FeeSchedule, LimitCheck, LimitWindow

__all__ = ["FeeSchedule", "LimitCheck", "LimitWindow", "LimitsEngine"]
