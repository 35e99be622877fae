import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import schemas
from database import Base
from main import app
from routers.expenses import get_expense_repository
from services.chat_session_store import ChatSessionStore
from services.expense_repository import ExpenseRepository
from services.session_storage import SessionStorage
from services.settings_store import AssistantSettingsStore


def memory_session_factory(create_tables=True):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    if create_tables:
        Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_transaction(id, amount, category="Food", date=None, title=None, mood="neutral"):
    return schemas.Transaction(
        id=id,
        amount=amount,
        category=category,
        date=date or datetime(2024, 6, 10, 12, 0),
        title=title,
        mood=mood,
    )


@pytest.fixture
def storage():
    return SessionStorage.from_url("sqlite://")


@pytest.fixture
def broken_storage():
    # No tables: every read and write fails at the database layer
    return SessionStorage(memory_session_factory(create_tables=False))


@pytest.fixture
def settings_store(storage):
    store = AssistantSettingsStore(storage)
    store.load()
    return store


@pytest.fixture
def chat_store(storage, settings_store):
    store = ChatSessionStore(storage, settings_store)
    store.load()
    return store


@pytest.fixture
def expense_repository():
    return ExpenseRepository(memory_session_factory())


@pytest.fixture
def client(expense_repository):
    app.dependency_overrides[get_expense_repository] = lambda: expense_repository
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
