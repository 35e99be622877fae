from sqlalchemy import Column, Integer, String, Float, DateTime, Text, CheckConstraint
from sqlalchemy.sql import func
from database import Base


class Expense(Base):
    __tablename__ = "expense"

    expense_id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=True)
    amount = Column(Float, nullable=False, default=0.0)
    category = Column(String, nullable=True)  # Normalized by the client when missing
    mood = Column(String, nullable=True)  # happy, neutral, stressed, regret
    confidence = Column(Integer, nullable=True)
    date_spent = Column(DateTime, nullable=False, server_default=func.now())
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("amount >= 0", name="check_expense_amount_non_negative"),
    )


class SessionStorageItem(Base):
    __tablename__ = "session_storage"

    storage_key = Column(String, primary_key=True)  # e.g. "pa_chats_v1"
    value = Column(Text, nullable=False)  # Opaque JSON blob
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
