"""
Keyword-based category suggestion for quickly added expenses.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import schemas
from services.common import generate_id, utc_now

# Checked in order; the first category with a matching keyword wins
CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "Food": ["restaurant", "food", "lunch", "dinner", "cafe", "pizza", "burger"],
    "Transport": ["uber", "taxi", "bus", "train", "fuel", "petrol", "gas"],
    "Shopping": ["amazon", "flipkart", "mall", "store", "buy", "purchase"],
    "Entertainment": ["movie", "cinema", "game", "netflix", "spotify", "concert"],
    "Bills": ["electricity", "water", "rent", "internet", "phone", "utility"],
    "Health": ["doctor", "medicine", "pharmacy", "hospital", "gym", "fitness"],
}

SELECTED_CONFIDENCE = 100
INFERRED_CONFIDENCE = 85


def suggest_category(title: str, selected_category: str) -> str:
    """Return the first category whose keyword appears in the title, else the selected one."""
    lowered = title.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return category
    return selected_category


def categorize_expense(title: Optional[str], selected_category: str) -> Tuple[str, int]:
    """Pick a category and the confidence to record with it."""
    if title:
        return suggest_category(title, selected_category), INFERRED_CONFIDENCE
    return selected_category, SELECTED_CONFIDENCE


def build_quick_expense(
    amount: Optional[float],
    category: str,
    title: Optional[str] = None,
    mood: str = "neutral",
    now: Optional[datetime] = None,
) -> schemas.Transaction:
    """
    Build a new transaction from the quick-add form.

    Raises:
        ValueError: If the amount or category is missing, or the amount is negative
    """
    if amount is None or not category:
        raise ValueError("Amount and category are required")
    if amount < 0:
        raise ValueError("Amount must not be negative")

    resolved_category, confidence = categorize_expense(title, category)
    return schemas.Transaction(
        id=generate_id(),
        amount=amount,
        category=resolved_category,
        date=now or utc_now(),
        title=title or None,
        mood=mood,
        confidence=confidence,
    )
