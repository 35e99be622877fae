from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
import os
from dotenv import load_dotenv
load_dotenv()

# Database configuration
# Defaults to a local SQLite file so the assistant runs without a server
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./finance_assistant.db")


def build_engine(url: str):
    """Create an engine, applying the SQLite threading flag when needed."""
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_size=12,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=1000
    )


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

