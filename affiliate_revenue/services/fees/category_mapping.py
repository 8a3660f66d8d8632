"""
Fee category name translation.

Coupon usage rows use backend tokens with a `_fee` suffix while payments
and overrides use canonical category names. One table covers both
directions.
"""

from affiliate_revenue.models.enums import FeeCategory


# Canonical category -> backend fee_type token
CATEGORY_TO_BACKEND: dict[FeeCategory, str] = {
    FeeCategory.SELECTION_PROCESS: "selection_process",
    FeeCategory.APPLICATION: "application_fee",
    FeeCategory.SCHOLARSHIP: "scholarship_fee",
    FeeCategory.I20_CONTROL: "i20_control_fee",
}

# Backend token -> canonical category (canonical names accepted as-is)
BACKEND_TO_CATEGORY: dict[str, FeeCategory] = {
    **{token: category for category, token in CATEGORY_TO_BACKEND.items()},
    **{category.value: category for category in FeeCategory},
    "i-20_control_fee": FeeCategory.I20_CONTROL,  # Zelle checkout spelling
    "selection_process_fee": FeeCategory.SELECTION_PROCESS,
}


def to_backend_token(category: FeeCategory | str) -> str:
    """
    Translate a category into its backend fee_type token.

    Raises:
        ValueError: If category is unknown
    """
    return CATEGORY_TO_BACKEND[parse_category(category)]


def from_backend_token(token: str | None) -> FeeCategory | None:
    """
    Translate a backend fee_type token into a category.

    Returns:
        FeeCategory, or None for tokens outside the four categories
    """
    if not token:
        return None
    return BACKEND_TO_CATEGORY.get(token.strip().lower())


def parse_category(value: FeeCategory | str) -> FeeCategory:
    """
    Parse a category from canonical name or backend token.

    Raises:
        ValueError: If value is not a known category
    """
    if isinstance(value, FeeCategory):
        return value
    category = from_backend_token(value)
    if category is None:
        raise ValueError(f"Unknown fee category: {value!r}")
    return category
