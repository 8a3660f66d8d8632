"""
Default constants for fee calculator.

Processor fee model and the default fee schedule per system variant.
"""

from decimal import Decimal

from fee_calculator.core.models import FeeSchedule


# Card rail: 3.9% + $0.30 (covers international cards)
CARD_PERCENTAGE = Decimal("0.039")
CARD_FIXED_FEE = Decimal("0.30")

# Instant-transfer rail: 1.19% processing + ~0.6% currency conversion
INSTANT_PERCENTAGE = Decimal("0.018")

CENT = Decimal("0.01")

MAX_DEPENDENTS = 5

DEFAULT_FEE_SCHEDULES: dict[str, FeeSchedule] = {
    "legacy": FeeSchedule(
        variant="legacy",
        selection_process=Decimal("400"),
        scholarship=Decimal("900"),
        i20_control=Decimal("900"),
        application=Decimal("100"),
        selection_dependent_surcharge=Decimal("150"),
        application_dependent_surcharge=Decimal("100"),
    ),
    "simplified": FeeSchedule(
        variant="simplified",
        selection_process=Decimal("350"),
        scholarship=Decimal("550"),
        i20_control=Decimal("900"),
        application=Decimal("100"),
        application_dependent_surcharge=Decimal("100"),
    ),
}


def get_schedule(variant: str | None) -> FeeSchedule:
    """
    Get default fee schedule for a system variant.

    Unknown or missing variants fall back to legacy, which is how users
    without a seller are billed.

    Args:
        variant: System variant name

    Returns:
        FeeSchedule for the variant
    """
    return DEFAULT_FEE_SCHEDULES.get(variant or "legacy", DEFAULT_FEE_SCHEDULES["legacy"])


def clamp_dependents(dependents: int | None) -> int:
    """Clamp dependents count into the supported 0-5 range."""
    if not dependents or dependents < 0:
        return 0
    return min(int(dependents), MAX_DEPENDENTS)


def default_fee_amount(category: str, variant: str | None, dependents: int | None = 0) -> Decimal:
    """
    Compute the default amount for a fee category.

    Args:
        category: Fee category (selection_process, application, scholarship, i20_control)
        variant: System variant (legacy, simplified)
        dependents: Number of dependents (0-5)

    Returns:
        Default amount in reference currency

    Raises:
        ValueError: If category is unknown

    Example:
        >>> default_fee_amount("selection_process", "legacy", 3)
        Decimal('850')
        >>> default_fee_amount("selection_process", "simplified", 3)
        Decimal('350')
    """
    schedule = get_schedule(variant)
    deps = clamp_dependents(dependents)

    if category == "selection_process":
        return schedule.selection_process + schedule.selection_dependent_surcharge * deps
    if category == "application":
        return schedule.application + schedule.application_dependent_surcharge * deps
    if category == "scholarship":
        return schedule.scholarship
    if category == "i20_control":
        return schedule.i20_control

    raise ValueError(f"Unknown fee category: {category}")
