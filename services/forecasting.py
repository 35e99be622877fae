"""
Short-horizon spend projection and dashboard KPIs.
"""
from datetime import date
from typing import List, Optional

import schemas
from services.analytics import aggregate_by_category, total_spend

DAYS_PER_MONTH = 30


def project_monthly_spend(total_spend_so_far: float, day_of_month: int) -> float:
    """
    Extrapolate the month's spend from the average daily spend so far.

    Args:
        total_spend_so_far: Spend from the start of the month until today
        day_of_month: Today's day of month; values below 1 are treated as 1

    Returns:
        Projected spend for a 30-day month
    """
    if total_spend_so_far == 0:
        return 0.0
    avg_daily = total_spend_so_far / max(1, day_of_month)
    return avg_daily * DAYS_PER_MONTH


def _health_trend(overall: int) -> str:
    if overall > 70:
        return "up"
    if overall < 50:
        return "down"
    return "stable"


def build_kpi_summary(
    transactions: List[schemas.Transaction],
    health: schemas.FinancialHealthScore,
    goals: List[schemas.FinancialGoal],
    today: Optional[date] = None,
) -> schemas.KpiSummary:
    """Headline figures for the dashboard cards."""
    today = today or date.today()
    spend = total_spend(transactions)
    projected = project_monthly_spend(spend, today.day)
    saved = sum(g.current for g in goals)

    return schemas.KpiSummary(
        total_spend=spend,
        projected_monthly=projected,
        spend_trend="up" if projected > spend else "down",
        category_count=len(aggregate_by_category(transactions)),
        transaction_count=len(transactions),
        health_score=health.overall,
        health_trend=_health_trend(health.overall),
        savings_rate=saved / spend if spend else 0.0,
    )
