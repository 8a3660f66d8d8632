"""
Utility functions for fee calculator.
"""

from fee_calculator.utils.formatters import format_currency, format_percentage

__all__ = [
    "format_currency",
    "format_percentage",
]
