"""Pydantic models for fee calculator."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class FeeSchedule(BaseModel):
    """Default fee amounts for one system variant.

    Amounts are in the reference currency (USD). Dependents surcharges are
    applied per dependent on top of the base amount.
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
    )

    variant: str = Field(..., description="System variant (legacy, simplified)")
    selection_process: Decimal = Field(..., ge=0, description="Selection process base fee")
    scholarship: Decimal = Field(..., ge=0, description="Scholarship fee")
    i20_control: Decimal = Field(..., ge=0, description="I-20 control fee")
    application: Decimal = Field(..., ge=0, description="Application fee base")
    selection_dependent_surcharge: Decimal = Field(
        default=Decimal("0"), ge=0, description="Selection process surcharge per dependent"
    )
    application_dependent_surcharge: Decimal = Field(
        default=Decimal("0"), ge=0, description="Application fee surcharge per dependent"
    )


class FeeQuote(BaseModel):
    """Gross/net split for a single processor charge.

    gross is what the payer is charged, net is what the platform keeps
    after processor fees.
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
    )

    gross: Decimal = Field(..., ge=0, description="Amount charged to the payer")
    net: Decimal = Field(..., ge=0, description="Amount left after processor fees")
    processor_fee: Decimal = Field(..., ge=0, description="gross - net")
    is_instant_rail: bool = Field(..., description="Instant-transfer rail fee model used")
