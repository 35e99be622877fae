"""
Derived financial insights endpoints.

Everything here is computed from the transactions, budgets and goals sent in
the request; nothing is read from or written to storage.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import schemas
from services import analytics, categorizer, forecasting, health
from services.common import round_half_up, utc_now
from services.seed_data import (
    EXPENSE_PREDICTIONS,
    SPENDING_PATTERNS,
    default_budgets,
    default_goals,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/insights", tags=["Insights"])


@router.post("/dashboard", response_model=schemas.InsightsResponse)
def build_dashboard(request: schemas.InsightsRequest) -> schemas.InsightsResponse:
    """
    Compute the dashboard view.

    Filters apply to the listed transactions, totals, trend, anomalies and
    KPIs. The health score always uses every transaction. Omitted budgets or
    goals fall back to the defaults.
    """
    budgets = request.budgets if request.budgets is not None else default_budgets()
    goals = request.goals if request.goals is not None else default_goals()

    filtered = analytics.filter_transactions(
        request.transactions, request.month, request.category, request.search
    )
    flagged = analytics.flag_anomalies(filtered)
    health_score = health.compute_health_score(request.transactions, budgets, goals)

    logger.info(
        f"Dashboard for {len(flagged)} of {len(request.transactions)} transactions"
    )
    return schemas.InsightsResponse(
        generated_at=utc_now(),
        transactions=flagged,
        totals=analytics.aggregate_by_category(flagged),
        total_spend=analytics.total_spend(flagged),
        trend=analytics.build_trend_series(
            flagged, window_days=request.window_days, horizon_days=request.horizon_days
        ),
        anomalies=[t for t in flagged if t.anomaly],
        health=health_score,
        kpis=forecasting.build_kpi_summary(flagged, health_score, goals),
    )


@router.post("/optimize-budget", response_model=schemas.BudgetOptimizationResponse)
def optimize_budget(request: schemas.BudgetOptimizationRequest) -> schemas.BudgetOptimizationResponse:
    """Suggest a smart limit for one category and record it on the matching budget."""
    if request.category not in schemas.EXPENSE_CATEGORIES:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": f"Unknown category: {request.category}"},
        )

    spend = request.category_spend
    if spend is None:
        spend = health.spend_for_category(request.transactions, request.category)

    budgets, suggestion = health.optimize_budget(
        request.budgets, request.category, spend, buffer_ratio=request.buffer_ratio
    )
    smart_limit = round_half_up(spend * request.buffer_ratio)
    return schemas.BudgetOptimizationResponse(
        budgets=budgets, smart_limit=smart_limit, suggestion=suggestion
    )


@router.post("/categorize", response_model=schemas.CategorizeResponse)
def categorize(request: schemas.CategorizeRequest) -> schemas.CategorizeResponse:
    category, confidence = categorizer.categorize_expense(request.title, request.selected_category)
    return schemas.CategorizeResponse(category=category, confidence=confidence)


@router.get("/patterns", response_model=schemas.PatternsResponse)
def get_patterns() -> schemas.PatternsResponse:
    """Illustrative spending patterns and next-month predictions."""
    return schemas.PatternsResponse(patterns=SPENDING_PATTERNS, predictions=EXPENSE_PREDICTIONS)
