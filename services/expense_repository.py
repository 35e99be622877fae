"""
Expense Repository
Database-backed store behind the /expenses endpoint
"""
from datetime import timezone
from typing import List, Union
from sqlalchemy.orm import sessionmaker
import models
import schemas
import logging

logger = logging.getLogger(__name__)


class ExpenseRepository:
    """Owns the expenses served by the API, oldest first."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def list_expenses(self) -> List[models.Expense]:
        with self.session_factory() as db:
            return db.query(models.Expense).order_by(models.Expense.expense_id).all()

    def add_expense(self, expense: schemas.ExpenseCreate) -> models.Expense:
        """
        Store a new expense.

        Args:
            expense: Validated expense payload

        Returns:
            The stored expense with its assigned ID
        """
        spent_at = expense.date
        if spent_at is not None and spent_at.tzinfo is not None:
            spent_at = spent_at.astimezone(timezone.utc).replace(tzinfo=None)

        db_expense = models.Expense(
            title=expense.title,
            amount=expense.amount,
            category=expense.category,
            mood=expense.mood.value if expense.mood else None,
            confidence=expense.confidence,
        )
        if spent_at is not None:
            db_expense.date_spent = spent_at

        with self.session_factory() as db:
            db.add(db_expense)
            db.commit()
            db.refresh(db_expense)
            db.expunge(db_expense)

        logger.info(f"Stored expense {db_expense.expense_id}")
        return db_expense

    def delete_expense(self, expense_id: Union[int, str]) -> bool:
        """
        Delete an expense by ID.

        Returns:
            True if an expense was deleted, False if the ID is unknown
        """
        try:
            key = int(expense_id)
        except (TypeError, ValueError):
            return False

        with self.session_factory() as db:
            deleted = db.query(models.Expense).filter(models.Expense.expense_id == key).delete()
            db.commit()
        return deleted > 0

    def reset(self) -> None:
        """Remove every expense. Used to isolate tests."""
        with self.session_factory() as db:
            db.query(models.Expense).delete()
            db.commit()
