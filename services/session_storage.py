"""
Session Storage Service
Durable key/value storage for the assistant's persisted state
"""
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
import models
from database import Base, build_engine
import logging

logger = logging.getLogger(__name__)


class SessionStorage:
    """Stores opaque string values (JSON blobs) under fixed, versioned keys."""

    def __init__(self, session_factory: sessionmaker):
        """
        Initialize session storage.

        Args:
            session_factory: Factory producing database sessions bound to the storage database
        """
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, url: str) -> "SessionStorage":
        """Create storage on its own database, creating the table if needed."""
        engine = build_engine(url)
        Base.metadata.create_all(bind=engine, tables=[models.SessionStorageItem.__table__])
        return cls(sessionmaker(autocommit=False, autoflush=False, bind=engine))

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when missing or unreadable."""
        try:
            with self.session_factory() as db:
                item = db.query(models.SessionStorageItem).filter(
                    models.SessionStorageItem.storage_key == key
                ).first()
                return item.value if item else None
        except SQLAlchemyError as e:
            logger.warning(f"Failed to read storage key {key}: {e}")
            return None

    def set_item(self, key: str, value: str) -> bool:
        """
        Write a value. Failures are logged and swallowed; state held in
        memory by the caller stays valid but will not survive a reload.

        Returns:
            True if the value was written
        """
        try:
            with self.session_factory() as db:
                item = db.query(models.SessionStorageItem).filter(
                    models.SessionStorageItem.storage_key == key
                ).first()
                if item:
                    item.value = value
                else:
                    db.add(models.SessionStorageItem(storage_key=key, value=value))
                db.commit()
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Failed to write storage key {key}: {e}")
            return False

    def remove_item(self, key: str) -> bool:
        try:
            with self.session_factory() as db:
                db.query(models.SessionStorageItem).filter(
                    models.SessionStorageItem.storage_key == key
                ).delete()
                db.commit()
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Failed to remove storage key {key}: {e}")
            return False
