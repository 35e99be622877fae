"""
Spending aggregation over a snapshot of transactions.

Every function here is pure: it reads the transactions it is given and returns
new values. Filters (month, category, search) are applied first and the other
functions run on the filtered list, so category averages and anomaly flags
always describe the set the caller is looking at.
"""
from __future__ import annotations

import random
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

import schemas
from services.common import round_half_up

ANOMALY_MULTIPLIER = 2
JITTER_LOW = 0.8
JITTER_HIGH = 1.2


def _local_date(moment: datetime) -> date:
    """Calendar date of a timestamp in the local timezone."""
    if moment.tzinfo is not None:
        return moment.astimezone().date()
    return moment.date()


def _amount_text(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else str(amount)


def total_spend(transactions: Iterable[schemas.Transaction]) -> float:
    return sum(t.amount for t in transactions)


def filter_transactions(
    transactions: Iterable[schemas.Transaction],
    month: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> List[schemas.Transaction]:
    """Apply the dashboard filters and sort newest first."""
    needle = search.lower() if search else ""
    filtered = []
    for t in transactions:
        if category and category != "All" and t.category != category:
            continue
        if month and not t.date.strftime("%Y-%m").startswith(month):
            continue
        if needle and not (
            needle in t.category.lower()
            or needle in _amount_text(t.amount)
            or (t.title is not None and needle in t.title.lower())
        ):
            continue
        filtered.append(t)
    return sorted(filtered, key=lambda t: t.date, reverse=True)


def aggregate_by_category(transactions: Iterable[schemas.Transaction]) -> List[schemas.CategoryTotal]:
    """Total spend per category."""
    totals: Dict[str, float] = defaultdict(float)
    for t in transactions:
        totals[t.category] += t.amount
    return [schemas.CategoryTotal(name=name, value=value) for name, value in totals.items()]


def category_averages(transactions: Iterable[schemas.Transaction]) -> Dict[str, float]:
    """Mean amount per category."""
    sums: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    for t in transactions:
        sums[t.category] += t.amount
        counts[t.category] += 1
    return {name: sums[name] / counts[name] for name in sums}


def _is_anomalous(transaction: schemas.Transaction, averages: Dict[str, float]) -> bool:
    return transaction.amount > averages.get(transaction.category, 0) * ANOMALY_MULTIPLIER


def detect_anomalies(
    transactions: List[schemas.Transaction],
    averages: Optional[Dict[str, float]] = None,
) -> List[schemas.Transaction]:
    """
    Return the transactions whose amount is more than twice their category mean.

    Args:
        transactions: The filtered transaction set
        averages: Per-category means; computed from ``transactions`` when omitted

    Returns:
        Anomalous transactions, in input order
    """
    if averages is None:
        averages = category_averages(transactions)
    return [t for t in transactions if _is_anomalous(t, averages)]


def flag_anomalies(transactions: List[schemas.Transaction]) -> List[schemas.Transaction]:
    """Copies of the transactions with the ``anomaly`` flag recomputed."""
    averages = category_averages(transactions)
    return [t.model_copy(update={"anomaly": _is_anomalous(t, averages)}) for t in transactions]


def build_trend_series(
    transactions: Iterable[schemas.Transaction],
    window_days: int = 12,
    horizon_days: int = 5,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> List[schemas.TrendPoint]:
    """
    Daily spend for the trailing window followed by jittered predicted days.

    Predicted values are the window mean scaled by a random factor in
    [0.8, 1.2]. This is a placeholder projection, not a statistical model;
    pass a seeded ``rng`` for reproducible output.
    """
    today = today or date.today()
    source = rng or random
    per_day: Dict[date, float] = defaultdict(float)
    for t in transactions:
        per_day[_local_date(t.date)] += t.amount

    points = []
    for offset in range(window_days - 1, -1, -1):
        day = today - timedelta(days=offset)
        points.append(schemas.TrendPoint(date=day.strftime("%m-%d"), spend=per_day.get(day, 0.0)))

    window_mean = sum(p.spend for p in points) / len(points) if points else 0.0
    for offset in range(1, horizon_days + 1):
        day = today + timedelta(days=offset)
        jitter = source.uniform(JITTER_LOW, JITTER_HIGH)
        points.append(
            schemas.TrendPoint(
                date=day.strftime("%m-%d"),
                spend=round_half_up(window_mean * jitter),
                predicted=True,
            )
        )
    return points
