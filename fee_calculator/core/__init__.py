"""
Core fee calculator functionality.

Models live here; the calculator itself is imported from
fee_calculator.core.calculator so that constants can depend on models.
"""

from fee_calculator.core.models import FeeQuote, FeeSchedule

__all__ = [
    "FeeQuote",
    "FeeSchedule",
]
