"""
Fee Calculator.

Standalone package for processor fee stripping, currency conversion and
default fee amounts.

Example:
    >>> from decimal import Decimal
    >>> from fee_calculator import FeeCalculator, default_fee_amount
    >>>
    >>> calc = FeeCalculator()
    >>> calc.net_from_gross(Decimal("1000"), is_instant_rail=True)
    Decimal('982.00')
    >>> default_fee_amount("selection_process", "legacy", dependents=2)
    Decimal('700')
"""

from fee_calculator.constants import (
    CARD_FIXED_FEE,
    CARD_PERCENTAGE,
    DEFAULT_FEE_SCHEDULES,
    INSTANT_PERCENTAGE,
    MAX_DEPENDENTS,
    clamp_dependents,
    default_fee_amount,
    get_schedule,
)
from fee_calculator.core.calculator import (
    FeeCalculator,
    convert,
    net_from_gross,
    round_cents,
    to_decimal,
)
from fee_calculator.core.models import FeeQuote, FeeSchedule
from fee_calculator.utils import format_currency, format_percentage


__version__ = "1.0.0"
__all__ = [
    # Core
    "FeeCalculator",
    "net_from_gross",
    "convert",
    "round_cents",
    "to_decimal",
    # Models
    "FeeQuote",
    "FeeSchedule",
    # Constants
    "CARD_PERCENTAGE",
    "CARD_FIXED_FEE",
    "INSTANT_PERCENTAGE",
    "MAX_DEPENDENTS",
    "DEFAULT_FEE_SCHEDULES",
    "get_schedule",
    "clamp_dependents",
    "default_fee_amount",
    # Formatters
    "format_currency",
    "format_percentage",
]
