"""Settlement scheduling and cash-flow projection package."""

from daybook.settlement.cashflow import (
    DayProjection,
    ExpenseItem,
    MonthGroup,
    SettlementOverride,
    apply_overrides,
    group_by_month,
    income_entries_from_pending,
    project_cashflow,
)
from daybook.settlement.scheduler import (
    calculate_settled_income,
    schedule_settlement,
    settle,
)

__all__ = [
    "DayProjection",
    "ExpenseItem",
    "MonthGroup",
    "SettlementOverride",
    "apply_overrides",
    "calculate_settled_income",
    "group_by_month",
    "income_entries_from_pending",
    "project_cashflow",
    "schedule_settlement",
    "settle",
]
