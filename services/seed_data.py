"""
Seed data used when nothing has been loaded or persisted yet.
"""
from datetime import date, datetime, timedelta
from typing import List, Optional

import schemas
from services.common import generate_id, utc_now


def seed_expenses(now: Optional[datetime] = None) -> List[schemas.Transaction]:
    """Six sample expenses spread over the last ten days, used when the expense source fails."""
    now = now or utc_now()
    rows = [
        {"id": "1", "amount": 1200, "category": "Food", "days_ago": 0, "mood": "happy", "confidence": 95},
        {"id": "2", "amount": 450, "category": "Transport", "days_ago": 1, "mood": "neutral"},
        {"id": "3", "amount": 2800, "category": "Bills", "days_ago": 3, "mood": "stressed"},
        {"id": "4", "amount": 700, "category": "Entertainment", "days_ago": 5, "mood": "happy"},
        {"id": "5", "amount": 3500, "category": "Shopping", "days_ago": 7, "mood": "regret", "anomaly": True},
        {"id": "6", "amount": 650, "category": "Food", "days_ago": 10, "mood": "neutral"},
    ]
    expenses = []
    for row in rows:
        days_ago = row.pop("days_ago")
        expenses.append(schemas.Transaction(date=now - timedelta(days=days_ago), **row))
    return expenses


def seed_chats(system_prompt: str, now: Optional[datetime] = None) -> List[schemas.Chat]:
    """The two starter conversations shown on first launch."""
    now = now or utc_now()

    def _message(role: str, content: str) -> schemas.Message:
        return schemas.Message(id=generate_id(), role=role, content=content, ts=now)

    monthly = schemas.Chat(
        id=generate_id(),
        title="Monthly expenses analysis",
        created_at=now,
        messages=[
            _message("system", system_prompt),
            _message(
                "user",
                "I spent 12000 on Food, 4000 on Transport, 6000 on Shopping this month. "
                "Give a quick summary and 3 saving tips.",
            ),
            _message(
                "assistant",
                "Summary: You spent most on Food (₹12,000). Tips: 1) Cook at home more "
                "2) Set a weekly food budget 3) Use grocery lists and discounts. Consider 50/30/20.",
            ),
        ],
    )
    sip = schemas.Chat(
        id=generate_id(),
        title="SIP vs RD advice",
        created_at=now,
        messages=[
            _message("system", system_prompt),
            _message(
                "user",
                "Should I start a SIP with ₹3000 per month or put in recurring deposit? I'm risk-averse.",
            ),
            _message(
                "assistant",
                "If you're risk-averse, start with a short-term RD for guaranteed returns, but consider "
                "a small SIP allocation to equity funds for long-term growth.",
            ),
        ],
    )
    return [monthly, sip]


def default_budgets() -> List[schemas.Budget]:
    return [
        schemas.Budget(category="Food", limit=8000, priority="high"),
        schemas.Budget(category="Transport", limit=3000, priority="medium"),
        schemas.Budget(category="Shopping", limit=6000, priority="low"),
    ]


def default_goals() -> List[schemas.FinancialGoal]:
    return [
        schemas.FinancialGoal(
            id=generate_id(),
            title="Emergency Fund",
            target=100000,
            current=25000,
            deadline=date(2024, 12, 31),
            category="Savings",
            priority=1,
        )
    ]


SPENDING_PATTERNS = [
    schemas.SpendingPattern(
        pattern="Weekend Splurging",
        confidence=85,
        description="You tend to spend 40% more on weekends, especially on entertainment and dining.",
        suggestion="Consider setting a specific weekend budget to maintain consistent spending habits.",
    ),
    schemas.SpendingPattern(
        pattern="Stress-induced Shopping",
        confidence=72,
        description="Shopping expenses spike during stressful periods, particularly mid-month.",
        suggestion="Try alternative stress-relief activities like exercise or meditation instead of retail therapy.",
    ),
]

EXPENSE_PREDICTIONS = [
    schemas.ExpensePrediction(category="Food", predicted_amount=7500, confidence=88, pattern="seasonal increase"),
    schemas.ExpensePrediction(category="Transport", predicted_amount=2800, confidence=92, pattern="consistent monthly"),
    schemas.ExpensePrediction(category="Shopping", predicted_amount=4200, confidence=76, pattern="festival surge"),
]
