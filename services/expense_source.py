"""
Expense Source
Loads expenses from the finance API and normalizes loosely shaped records
"""
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
import httpx
from pydantic import ValidationError
import schemas
from services.common import utc_now
from services.seed_data import seed_expenses
import logging

logger = logging.getLogger(__name__)

MOODS = {m.value for m in schemas.MoodEnum}


def _coerce_amount(value: Any) -> float:
    """Numeric amount of a record; missing or non-numeric amounts count as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def _coerce_confidence(value: Any) -> int:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and 0 <= value <= 100:
        return int(value)
    return 100


def _normalize_record(record: Dict[str, Any], index: int, now: datetime) -> Optional[schemas.Transaction]:
    amount = _coerce_amount(record.get("amount"))
    if amount < 0:
        logger.warning(f"Dropping expense record {index}: negative amount {amount}")
        return None

    categories = schemas.EXPENSE_CATEGORIES
    category = record.get("category")
    category = category.strip() if isinstance(category, str) else ""
    mood = record.get("mood")
    try:
        return schemas.Transaction(
            id=record["id"] if record.get("id") is not None else index,
            amount=amount,
            category=category or categories[index % len(categories)],
            date=record.get("date") or now,
            title=record.get("title"),
            tags=record.get("tags") if isinstance(record.get("tags"), list) else None,
            mood=mood if isinstance(mood, str) and mood in MOODS else schemas.MoodEnum.neutral,
            confidence=_coerce_confidence(record.get("confidence")),
            predicted=bool(record.get("predicted", False)),
            anomaly=bool(record.get("anomaly", False)),
        )
    except ValidationError as e:
        logger.warning(f"Dropping expense record {index}: {e}")
        return None


def normalize_expense_records(data: Any, now: Optional[datetime] = None) -> List[schemas.Transaction]:
    """
    Normalize an expense payload into transactions.

    Accepts either a bare list of records or an object with an ``expenses``
    list; anything else yields no transactions. Missing fields are defaulted:
    id by position, amount 0, category round-robin over the known categories,
    date now, mood neutral and confidence 100.

    Args:
        data: Decoded JSON payload
        now: Timestamp used for records without a date

    Returns:
        Valid transactions, in payload order
    """
    if isinstance(data, dict):
        records = data.get("expenses")
    else:
        records = data
    if not isinstance(records, list):
        return []

    moment = now or utc_now()
    transactions = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning(f"Dropping expense record {index}: not an object")
            continue
        transaction = _normalize_record(record, index, moment)
        if transaction:
            transactions.append(transaction)
    return transactions


class ExpenseSourceClient:
    """Reads and writes expenses through the finance API's /expenses endpoint."""

    def __init__(self, http_client: httpx.AsyncClient, expenses_path: str = "/expenses"):
        self.http_client = http_client
        self.expenses_path = expenses_path

    async def load_expenses(self) -> List[schemas.Transaction]:
        """
        Fetch and normalize expenses.

        Returns:
            The normalized expenses, or the built-in sample expenses when the
            source is unreachable or returns an error
        """
        try:
            response = await self.http_client.get(self.expenses_path)
            response.raise_for_status()
            return normalize_expense_records(response.json())
        except (httpx.HTTPError, ValueError, TypeError) as e:
            logger.warning(f"Failed to load expenses, using sample data: {e}")
            return seed_expenses()

    async def add_expense(self, transaction: schemas.Transaction) -> bool:
        """Persist a new expense. Failures are logged; the caller keeps its local copy."""
        try:
            response = await self.http_client.post(
                self.expenses_path, json=transaction.model_dump(mode="json")
            )
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Failed to save expense {transaction.id}: {e}")
            return False

    async def delete_expense(self, expense_id: Union[str, int]) -> bool:
        """Delete an expense remotely. Failures are logged; the caller keeps its local removal."""
        try:
            response = await self.http_client.request(
                "DELETE", self.expenses_path, json={"id": expense_id}
            )
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Failed to delete expense {expense_id}: {e}")
            return False
