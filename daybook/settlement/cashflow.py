"""
Cash-Flow Projection

Turns settled income and scheduled expense payments into a day-by-day
bank balance projection, grouped by month.

Manual overrides let the owner replace the projected net of one source
on one settlement date with what the bank actually showed; the fee is
then whatever the difference to the gross amount is.
"""

from collections.abc import Iterable, Mapping
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from daybook.models.entry import PendingEntry, parse_number
from daybook.models.settlement import DailyIncomeEntry, SettledIncome


class SettlementOverride(BaseModel):
    settlement_date: date
    income_source_id: str
    override_amount: Decimal


class ExpenseItem(BaseModel):
    """A scheduled outgoing payment (one split of a supplier payment)."""
    id: str
    supplier_name: str = "unknown"
    amount: Decimal
    payment_method: str = "other"
    due_date: date


class DayProjection(BaseModel):
    day: date
    income_items: list[SettledIncome] = Field(default_factory=list)
    expense_items: list[ExpenseItem] = Field(default_factory=list)
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    daily_diff: Decimal = Decimal("0")
    cumulative: Decimal = Decimal("0")


class MonthGroup(BaseModel):
    month: str  # YYYY-MM
    days: list[DayProjection]
    total_income: Decimal
    total_expenses: Decimal
    closing_balance: Decimal


def apply_overrides(
    settled: Mapping[date, list[SettledIncome]],
    overrides: Iterable[SettlementOverride],
) -> dict[date, list[SettledIncome]]:
    """Return a new mapping with overridden net/fee; the input is not modified."""
    override_map = {
        (o.settlement_date, o.income_source_id): o.override_amount for o in overrides
    }
    result: dict[date, list[SettledIncome]] = {}
    for settlement_date, items in settled.items():
        adjusted = []
        for item in items:
            amount = override_map.get((settlement_date, item.income_source_id))
            if amount is None:
                adjusted.append(item)
            else:
                adjusted.append(item.model_copy(update={
                    "net_amount": amount,
                    "fee_amount": item.gross_amount - amount,
                }))
        result[settlement_date] = adjusted
    return result


def project_cashflow(
    opening_balance: Decimal,
    start: date,
    end: date,
    settled: Mapping[date, list[SettledIncome]],
    expenses: Iterable[ExpenseItem],
    overrides: Iterable[SettlementOverride] = (),
) -> list[DayProjection]:
    """
    One DayProjection per calendar day from start to end inclusive.

    cumulative is the running balance starting from opening_balance.
    """
    settled = apply_overrides(settled, overrides)

    expenses_by_date: dict[date, list[ExpenseItem]] = {}
    for expense in expenses:
        expenses_by_date.setdefault(expense.due_date, []).append(expense)

    days = []
    cumulative = Decimal(opening_balance)
    current = start
    while current <= end:
        income_items = settled.get(current, [])
        expense_items = expenses_by_date.get(current, [])
        total_income = sum((i.net_amount for i in income_items), Decimal("0"))
        total_expenses = sum((e.amount for e in expense_items), Decimal("0"))
        daily_diff = total_income - total_expenses
        cumulative += daily_diff

        days.append(DayProjection(
            day=current,
            income_items=list(income_items),
            expense_items=list(expense_items),
            total_income=total_income,
            total_expenses=total_expenses,
            daily_diff=daily_diff,
            cumulative=cumulative,
        ))
        current += timedelta(days=1)

    return days


def group_by_month(days: Iterable[DayProjection]) -> list[MonthGroup]:
    """Group projected days into months, oldest first."""
    months: dict[str, list[DayProjection]] = {}
    for day in days:
        months.setdefault(day.day.strftime("%Y-%m"), []).append(day)

    groups = []
    for key in sorted(months):
        month_days = months[key]
        groups.append(MonthGroup(
            month=key,
            days=month_days,
            total_income=sum((d.total_income for d in month_days), Decimal("0")),
            total_expenses=sum((d.total_expenses for d in month_days), Decimal("0")),
            closing_balance=month_days[-1].cumulative,
        ))
    return groups


def income_entries_from_pending(entry: PendingEntry) -> list[DailyIncomeEntry]:
    """
    Income rows of a queued entry, so unsynced days can be projected.

    Sources without a positive amount carry no income and are left out.
    """
    entry_date: Optional[date] = entry.entry_date
    if entry_date is None:
        return []

    rows = []
    for source_id, income in entry.income_breakdown.items():
        amount = parse_number(income.amount)
        if amount > 0:
            rows.append(DailyIncomeEntry(
                entry_date=entry_date,
                income_source_id=source_id,
                amount=amount,
            ))
    return rows
