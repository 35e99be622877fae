"""
Financial health scoring and budget optimization.

The health score is a deliberately coarse heuristic: four equally weighted
sub-scores built from a spend/budget ratio, progress on the primary goal and
the mere presence of budgets and goals.
"""
from typing import Iterable, List, Tuple

import schemas
from services.analytics import total_spend
from services.common import format_inr, round_half_up

NEUTRAL_SPENDING_SCORE = 50
BUDGETING_PRESENT_SCORE = 80
BUDGETING_ABSENT_SCORE = 20
PLANNING_PRESENT_SCORE = 75
PLANNING_ABSENT_SCORE = 25
DEFAULT_BUFFER_RATIO = 1.10


def _clamp_score(value: float) -> int:
    return min(100, max(0, round_half_up(value)))


def compute_health_score(
    transactions: Iterable[schemas.Transaction],
    budgets: List[schemas.Budget],
    goals: List[schemas.FinancialGoal],
) -> schemas.FinancialHealthScore:
    """
    Score spending, saving, budgeting and planning on a 0-100 scale.

    Args:
        transactions: Transactions counted as spent
        budgets: Configured budgets; their limits form the total budget
        goals: Financial goals; the first one is the primary savings goal

    Returns:
        FinancialHealthScore whose overall value is the rounded mean of the sub-scores
    """
    total_spent = total_spend(transactions)
    total_budget = sum(b.limit for b in budgets)

    if total_budget > 0:
        spending = max(0.0, 100 - (total_spent / total_budget) * 100)
    else:
        spending = NEUTRAL_SPENDING_SCORE

    saving = 0.0
    if goals and goals[0].target:
        saving = min(100.0, goals[0].current / goals[0].target * 100)

    budgeting = BUDGETING_PRESENT_SCORE if budgets else BUDGETING_ABSENT_SCORE
    planning = PLANNING_PRESENT_SCORE if goals else PLANNING_ABSENT_SCORE

    sub_scores = [_clamp_score(s) for s in (spending, saving, budgeting, planning)]
    return schemas.FinancialHealthScore(
        overall=_clamp_score(sum(sub_scores) / len(sub_scores)),
        spending=sub_scores[0],
        saving=sub_scores[1],
        budgeting=sub_scores[2],
        planning=sub_scores[3],
    )


def spend_for_category(transactions: Iterable[schemas.Transaction], category: str) -> float:
    return sum(t.amount for t in transactions if t.category == category)


def optimize_budget(
    budgets: List[schemas.Budget],
    category: str,
    category_spend: float,
    buffer_ratio: float = DEFAULT_BUFFER_RATIO,
) -> Tuple[List[schemas.Budget], str]:
    """
    Suggest a smart limit for one category: its spend plus a buffer.

    The user's own ``limit`` is never changed; the suggestion goes into
    ``smart_limit`` on a copy of the matching budget.

    Returns:
        (updated budgets, human-readable suggestion)
    """
    smart_limit = round_half_up(category_spend * buffer_ratio)
    current_limit = next((b.limit for b in budgets if b.category == category), 0)

    updated = [
        b.model_copy(update={"smart_limit": smart_limit}) if b.category == category else b
        for b in budgets
    ]
    suggestion = (
        f"Smart Budget Optimization for {category}: "
        f"Based on your spending pattern, suggested limit is {format_inr(smart_limit)} "
        f"(current: {format_inr(current_limit)})"
    )
    return updated, suggestion


def set_budget_limit(budgets: List[schemas.Budget], category: str, limit: float) -> List[schemas.Budget]:
    """Set a category's explicit limit, adding a medium-priority budget if none exists."""
    if any(b.category == category for b in budgets):
        return [b.model_copy(update={"limit": limit}) if b.category == category else b for b in budgets]
    return budgets + [schemas.Budget(category=category, limit=limit, priority="medium")]


def build_savings_prompt(
    totals: List[schemas.CategoryTotal],
    health: schemas.FinancialHealthScore,
    anomalies: List[schemas.Transaction],
    transactions: Iterable[schemas.Transaction],
) -> str:
    """Prompt asking the assistant for savings advice grounded in the current figures."""
    if totals:
        description = ", ".join(f"{t.name}: {format_inr(t.value)}" for t in totals)
    else:
        description = "no expenses recorded"

    health_context = f"Financial Health Score: {health.overall}%. "
    anomaly_context = f"Detected {len(anomalies)} unusual expenses. " if anomalies else ""
    mood_context = ""
    if any(t.mood == schemas.MoodEnum.regret for t in transactions):
        mood_context = "Some expenses tagged with regret - consider emotional spending patterns. "

    return (
        f"{health_context}{anomaly_context}{mood_context}I spent: {description}. "
        "Provide 3 personalized suggestions to improve my financial health "
        "and a specific budget optimization plan."
    )
