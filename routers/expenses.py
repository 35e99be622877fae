# ============ IMPORTS ============
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from typing import List
import models
import schemas
from services.expense_repository import ExpenseRepository
import logging

logger = logging.getLogger(__name__)

# ============ ROUTER SETUP ============
# Prefix is added in main.py
router = APIRouter()

INVALID_EXPENSE = "Invalid expense format"
INVALID_DELETE = "Invalid delete request"

# ============ HELPER FUNCTIONS ============

def get_expense_repository(request: Request) -> ExpenseRepository:
    """Dependency returning the application's expense repository."""
    return request.app.state.expense_repository


def create_expense_response(expense: models.Expense) -> schemas.ExpenseResponse:
    return schemas.ExpenseResponse(
        id=expense.expense_id,
        title=expense.title,
        amount=expense.amount,
        category=expense.category,
        date=expense.date_spent,
        mood=expense.mood,
        confidence=expense.confidence,
    )


def error_response(message: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

# ============ ENDPOINTS ============

@router.get("", response_model=List[schemas.ExpenseResponse])
def list_expenses(repository: ExpenseRepository = Depends(get_expense_repository)):
    """List all stored expenses."""
    return [create_expense_response(e) for e in repository.list_expenses()]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=schemas.ExpenseResponse)
async def create_expense(
    request: Request,
    repository: ExpenseRepository = Depends(get_expense_repository),
):
    """
    Store a new expense.

    Invalid bodies get a 400 with an ``error`` field rather than FastAPI's
    422 validation payload, matching what the client expects.
    """
    try:
        payload = schemas.ExpenseCreate.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.warning(f"Rejected expense: {e}")
        return error_response(INVALID_EXPENSE)

    expense = repository.add_expense(payload)
    return create_expense_response(expense)


@router.delete("")
async def delete_expense(
    request: Request,
    repository: ExpenseRepository = Depends(get_expense_repository),
):
    """Delete an expense given ``{"id": ...}``. Unknown IDs still succeed."""
    try:
        payload = schemas.ExpenseDelete.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.warning(f"Rejected delete request: {e}")
        return error_response(INVALID_DELETE)

    deleted = repository.delete_expense(payload.id)
    return {"success": True, "deleted": deleted}
