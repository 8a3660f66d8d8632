"""
Payment intent metadata model.

Shape of the processor metadata endpoint response, normalized.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PaymentIntentMetadata(BaseModel):
    """
    Processor-side metadata for one charge.

    Attributes:
        original_currency: Lowercase ISO code the charge was made in
        is_instant_transfer_rail: Whether the instant-transfer fee model applies
        exchange_rate: Original currency units per reference unit
        net_reference_amount: Net amount in reference currency, when recorded
        rail_subtypes: Processor payment method types (e.g. card, pix)
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original_currency: str = Field(default="usd", alias="currency")
    is_instant_transfer_rail: bool = Field(default=False, alias="isPIX")
    exchange_rate: Decimal | None = None
    net_reference_amount: Decimal | None = Field(default=None, alias="base_amount")
    rail_subtypes: tuple[str, ...] = Field(default=(), alias="payment_method_types")

    @field_validator("original_currency", mode="before")
    @classmethod
    def normalize_currency(cls, v: str | None) -> str:
        return (v or "usd").lower()

    @field_validator("is_instant_transfer_rail", mode="before")
    @classmethod
    def coerce_flag(cls, v: bool | None) -> bool:
        return bool(v)

    @field_validator("rail_subtypes", mode="before")
    @classmethod
    def normalize_subtypes(cls, v: list[str] | None) -> tuple[str, ...]:
        return tuple(str(item).lower() for item in (v or ()))

    @property
    def uses_instant_rail(self) -> bool:
        """Instant fee model applies for the flag or a pix subtype."""
        return self.is_instant_transfer_rail or "pix" in self.rail_subtypes
