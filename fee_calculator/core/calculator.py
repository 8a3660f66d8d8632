"""
Pure business logic for processor fee stripping and currency conversion.

This module contains standalone calculation logic without any
dependencies on database, ORM, or network code.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from fee_calculator.constants import (
    CARD_FIXED_FEE,
    CARD_PERCENTAGE,
    CENT,
    INSTANT_PERCENTAGE,
)
from fee_calculator.core.models import FeeQuote


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """
    Coerce a numeric value into Decimal.

    Floats go through str() so 0.1 stays 0.1. Missing or unparsable
    values become zero.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def round_cents(value: Decimal) -> Decimal:
    """
    Round to cents using half-up rounding, clamping negatives to zero.

    Example:
        >>> round_cents(Decimal("10.005"))
        Decimal('10.01')
        >>> round_cents(Decimal("-3"))
        Decimal('0.00')
    """
    rounded = to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    return max(rounded, Decimal("0.00"))


class FeeCalculator:
    """
    Processor fee model calculator.

    Card rail charges a percentage plus a fixed fee; the instant-transfer
    rail charges a flat percentage. All results are rounded to cents.
    """

    def __init__(
        self,
        card_percentage: Decimal = CARD_PERCENTAGE,
        card_fixed_fee: Decimal = CARD_FIXED_FEE,
        instant_percentage: Decimal = INSTANT_PERCENTAGE,
    ) -> None:
        self.card_percentage = card_percentage
        self.card_fixed_fee = card_fixed_fee
        self.instant_percentage = instant_percentage

    def net_from_gross(
        self,
        gross: Decimal,
        is_instant_rail: bool
    ) -> Decimal:
        """
        Strip processor fees from a gross reference-currency amount.

        Formula:
            instant: gross * (1 - 0.018)
            card:    max(0, gross * (1 - 0.039) - 0.30)

        Args:
            gross: Gross amount already in reference currency
            is_instant_rail: Whether the instant-transfer fee model applies

        Returns:
            Net amount rounded to cents

        Example:
            >>> calc = FeeCalculator()
            >>> calc.net_from_gross(Decimal("1000"), True)
            Decimal('982.00')
            >>> calc.net_from_gross(Decimal("1040.27"), False)
            Decimal('999.40')
        """
        gross = to_decimal(gross)
        if gross <= 0:
            return Decimal("0.00")

        if is_instant_rail:
            net = gross * (1 - self.instant_percentage)
        else:
            net = gross * (1 - self.card_percentage) - self.card_fixed_fee

        return round_cents(net)

    def gross_for_net(
        self,
        net: Decimal,
        is_instant_rail: bool
    ) -> Decimal:
        """
        Compute what to charge so that `net` is left after processor fees.

        Formula:
            instant: net / (1 - 0.018)
            card:    (net + 0.30) / (1 - 0.039)

        Example:
            >>> calc = FeeCalculator()
            >>> calc.gross_for_net(Decimal("1000"), False)
            Decimal('1040.89')
        """
        net = to_decimal(net)
        if net <= 0:
            return Decimal("0.00")

        if is_instant_rail:
            gross = net / (1 - self.instant_percentage)
        else:
            gross = (net + self.card_fixed_fee) / (1 - self.card_percentage)

        return round_cents(gross)

    def convert(
        self,
        amount: Decimal,
        exchange_rate: Decimal | None
    ) -> Decimal:
        """
        Convert an amount in original currency into reference currency.

        Formula: amount / exchange_rate

        A missing or non-positive rate returns the amount unconverted.

        Args:
            amount: Amount in original currency
            exchange_rate: Units of original currency per reference unit

        Returns:
            Converted amount rounded to cents, or the original amount

        Example:
            >>> calc = FeeCalculator()
            >>> calc.convert(Decimal("5600"), Decimal("5.6"))
            Decimal('1000.00')
            >>> calc.convert(Decimal("5600"), Decimal("0"))
            Decimal('5600')
        """
        amount = to_decimal(amount)
        rate = to_decimal(exchange_rate)

        if rate <= 0:
            return amount

        return round_cents(amount / rate)

    def quote(
        self,
        net: Decimal,
        is_instant_rail: bool
    ) -> FeeQuote:
        """
        Build a gross/net quote for a desired net amount.

        Args:
            net: Desired net amount
            is_instant_rail: Whether the instant-transfer fee model applies

        Returns:
            FeeQuote with the charge amount and the fee taken
        """
        gross = self.gross_for_net(net, is_instant_rail)
        actual_net = self.net_from_gross(gross, is_instant_rail)
        return FeeQuote(
            gross=gross,
            net=actual_net,
            processor_fee=round_cents(gross - actual_net),
            is_instant_rail=is_instant_rail,
        )


_default_calculator = FeeCalculator()


def net_from_gross(gross: Decimal, is_instant_rail: bool) -> Decimal:
    """Strip processor fees using the default fee model."""
    return _default_calculator.net_from_gross(gross, is_instant_rail)


def convert(amount: Decimal, exchange_rate: Decimal | None) -> Decimal:
    """Convert into reference currency using the default calculator."""
    return _default_calculator.convert(amount, exchange_rate)
