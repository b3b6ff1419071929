"""
Settlement Scheduler

Maps raw daily income onto the date the money reaches the bank, net of
the source's commission.

DESIGN DECISION: Pure functions only. No I/O, no clock, no mutation of
the inputs; identical inputs always give identical outputs. This is
what lets a projection be recomputed after any edit, online or offline.

Day-of-month arithmetic follows calendar rollover: asking for day 31 of
a 30-day month lands on the 1st of the month after, and day 0 is the
last day of the entry's own month.
"""

from collections.abc import Iterable
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from daybook.models.settlement import (
    DailyIncomeEntry,
    IncomeSource,
    SettledIncome,
    SettlementType,
)


CENT = Decimal("0.01")

DEFAULT_DELAY_DAYS = 1
DEFAULT_DAY_OF_WEEK = 0  # Sunday
DEFAULT_DAY_OF_MONTH = 1
DEFAULT_BIMONTHLY_CUTOFF = 14
DEFAULT_BIMONTHLY_FIRST = 2
DEFAULT_BIMONTHLY_SECOND = 8
DEFAULT_COUPON_DAY = 1


def _default(value, fallback: int) -> int:
    # 0 is a legitimate setting (e.g. no delay), only a missing value falls back
    return fallback if value is None else value


def _sunday_based_weekday(d: date) -> int:
    """0=Sunday ... 6=Saturday."""
    return (d.weekday() + 1) % 7


def _day_of_next_month(d: date, day: int) -> date:
    """`day` of the month after d's month, rolling over like a calendar."""
    if d.month == 12:
        first_of_next = date(d.year + 1, 1, 1)
    else:
        first_of_next = date(d.year, d.month + 1, 1)
    return first_of_next + timedelta(days=day - 1)


def schedule_settlement(entry_date: date, source: IncomeSource) -> date:
    """
    Settlement date for income of `source` earned on `entry_date`.

    An unrecognized settlement type settles on the entry date; this
    function never raises for a policy it does not know.
    """
    try:
        settlement_type = SettlementType(source.settlement_type or SettlementType.DAILY.value)
    except ValueError:
        return entry_date

    if settlement_type == SettlementType.SAME_DAY:
        return entry_date

    if settlement_type == SettlementType.DAILY:
        delay = _default(source.settlement_delay_days, DEFAULT_DELAY_DAYS)
        return entry_date + timedelta(days=delay)

    if settlement_type == SettlementType.WEEKLY:
        target = _default(source.settlement_day_of_week, DEFAULT_DAY_OF_WEEK)
        days_until = target - _sunday_based_weekday(entry_date)
        if days_until <= 0:
            days_until += 7
        return entry_date + timedelta(days=days_until)

    if settlement_type == SettlementType.MONTHLY:
        day = _default(source.settlement_day_of_month, DEFAULT_DAY_OF_MONTH)
        return _day_of_next_month(entry_date, day)

    if settlement_type == SettlementType.BIMONTHLY:
        cutoff = _default(source.bimonthly_first_cutoff, DEFAULT_BIMONTHLY_CUTOFF)
        if entry_date.day <= cutoff:
            day = _default(source.bimonthly_first_settlement, DEFAULT_BIMONTHLY_FIRST)
        else:
            day = _default(source.bimonthly_second_settlement, DEFAULT_BIMONTHLY_SECOND)
        return _day_of_next_month(entry_date, day)

    # SettlementType.CUSTOM (coupons)
    day = _default(source.coupon_settlement_date, DEFAULT_COUPON_DAY)
    return _day_of_next_month(entry_date, day)


def settle(entry: DailyIncomeEntry, source: IncomeSource) -> SettledIncome:
    """Project one income entry: settlement date, fee and net (2 dp, half-up)."""
    gross = Decimal(entry.amount)
    rate = Decimal(source.commission_rate or 0)
    fee = (gross * rate / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    net = (gross - fee).quantize(CENT, rounding=ROUND_HALF_UP)

    return SettledIncome(
        settlement_date=schedule_settlement(entry.entry_date, source),
        income_source_id=entry.income_source_id,
        income_source_name=source.name,
        original_entry_date=entry.entry_date,
        gross_amount=gross,
        fee_amount=fee,
        net_amount=net,
    )


def calculate_settled_income(
    entries: Iterable[DailyIncomeEntry],
    sources: Iterable[IncomeSource],
) -> dict[date, list[SettledIncome]]:
    """
    Bucket every entry by its settlement date.

    Entries whose income source is unknown are skipped (income not yet
    configured). Within a bucket, items keep the order of `entries`.
    """
    source_map = {source.id: source for source in sources}
    result: dict[date, list[SettledIncome]] = {}

    for entry in entries:
        source = source_map.get(entry.income_source_id)
        if source is None:
            continue
        settled = settle(entry, source)
        result.setdefault(settled.settlement_date, []).append(settled)

    return result
