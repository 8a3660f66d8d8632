"""
Formatting utilities for amounts and percentages.

Used for dashboard labels and notification texts.
"""

from decimal import Decimal


def format_currency(
    amount: float | Decimal,
    currency: str = "$",
    decimals: int = 2,
    thousands_separator: str = ",",
    decimal_separator: str = "."
) -> str:
    """
    Format an amount as currency.

    Args:
        amount: Amount to format
        currency: Currency symbol or code (default "$")
        decimals: Digits after the decimal point
        thousands_separator: Thousands separator
        decimal_separator: Decimal separator

    Returns:
        Formatted string

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(1000, currency="BRL", decimals=0)
        '1,000 BRL'
    """
    formatted = f"{float(amount):,.{decimals}f}"
    if thousands_separator != ",":
        formatted = formatted.replace(",", "TEMP").replace(".", decimal_separator).replace("TEMP", thousands_separator)
    elif decimal_separator != ".":
        formatted = formatted.replace(".", decimal_separator)

    if currency.startswith("$") or currency.startswith("R$"):
        return f"{currency}{formatted}"
    return f"{formatted} {currency}"


def format_percentage(
    value: float | Decimal,
    decimals: int = 1,
    show_sign: bool = False
) -> str:
    """
    Format a value that is already a percentage.

    Example:
        >>> format_percentage(12.5)
        '12.5%'
        >>> format_percentage(50.0, decimals=0, show_sign=True)
        '+50%'
    """
    sign = ""
    if show_sign and float(value) > 0:
        sign = "+"
    return f"{sign}{float(value):.{decimals}f}%"
