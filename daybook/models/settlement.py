"""
Settlement Models

An income source (card acquirer, delivery platform, coupon issuer...)
does not pay on the day of the sale. Its settlement policy says when
the money reaches the bank and how much commission is kept.

DESIGN DECISION: IncomeSource is reference data owned elsewhere. We accept
whatever settlement_type string it carries; an unknown type is not a
validation error, it just settles on the entry date.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SettlementType(str, Enum):
    """Settlement policies understood by the scheduler."""
    SAME_DAY = "same_day"
    DAILY = "daily"            # entry date + delay days
    WEEKLY = "weekly"          # next given weekday
    MONTHLY = "monthly"        # given day of next month
    BIMONTHLY = "bimonthly"    # two settlement periods per month
    CUSTOM = "custom"          # coupons: given day of next month


class IncomeSource(BaseModel):
    """
    An income source with its settlement policy.

    Only the parameters required by settlement_type are meaningful;
    the rest are ignored. Missing parameters fall back to the
    scheduler defaults.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    business_id: Optional[str] = None

    settlement_type: Optional[str] = Field(
        default=SettlementType.DAILY.value,
        description="One of SettlementType; empty means daily"
    )
    settlement_delay_days: Optional[int] = None
    settlement_day_of_week: Optional[int] = Field(
        default=None,
        description="0=Sunday ... 6=Saturday"
    )
    settlement_day_of_month: Optional[int] = None
    bimonthly_first_cutoff: Optional[int] = None
    bimonthly_first_settlement: Optional[int] = None
    bimonthly_second_settlement: Optional[int] = None
    coupon_settlement_date: Optional[int] = None

    commission_rate: Decimal = Field(
        default=Decimal("0"),
        description="Fee percentage kept by the source"
    )

    @field_validator('commission_rate', mode='before')
    @classmethod
    def null_rate_is_zero(cls, v):
        return Decimal("0") if v is None or v == "" else v


class DailyIncomeEntry(BaseModel):
    """Raw income of one source on one business day."""

    entry_date: date
    income_source_id: str
    amount: Decimal


class SettledIncome(BaseModel):
    """
    Projection of a raw income amount onto its settlement date.

    Derived only, never persisted.
    net_amount = gross_amount - fee_amount
    """
    settlement_date: date
    income_source_id: str
    income_source_name: str
    original_entry_date: date
    gross_amount: Decimal
    fee_amount: Decimal
    net_amount: Decimal
