# database/database_manager.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Any, Dict, Iterable, List, Optional
import logging

from .base import KeyValueStore
from .config import DatabaseConfig
from .models import Base, StateEntry

logger = logging.getLogger(__name__)


class DatabaseManager(KeyValueStore):
    """Key-value persistence for the tracker state, one row per key"""

    def __init__(self, database_url: Optional[str] = None, environment: str = "development"):
        self.database_url = database_url or DatabaseConfig.get_database_url(environment)
        self.engine = create_engine(self.database_url, **DatabaseConfig.get_engine_kwargs(self.database_url))
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def get_session(self) -> Session:
        return self.SessionLocal()

    def get(self, key: str, default: Any = None) -> Any:
        """Read a single key"""
        with self.get_session() as db_session:
            entry = db_session.get(StateEntry, key)
            return entry.value if entry is not None else default

    def get_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Read several keys at once; keys that were never written are absent from the result"""
        keys = list(keys)
        if not keys:
            return {}
        with self.get_session() as db_session:
            entries = db_session.query(StateEntry).filter(StateEntry.key.in_(keys)).all()
            return {entry.key: entry.value for entry in entries}

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, values: Dict[str, Any]) -> None:
        """Insert or update keys in a single commit"""
        if not values:
            return
        with self.get_session() as db_session:
            try:
                for key, value in values.items():
                    entry = db_session.get(StateEntry, key)
                    if entry is None:
                        db_session.add(StateEntry(key=key, value=value))
                    else:
                        entry.value = value
                db_session.commit()
            except Exception as e:
                db_session.rollback()
                logger.error(f"Error saving state keys {list(values)}: {e}")
                raise

    def delete(self, key: str) -> bool:
        with self.get_session() as db_session:
            try:
                entry = db_session.get(StateEntry, key)
                if entry is None:
                    return False
                db_session.delete(entry)
                db_session.commit()
                return True
            except Exception as e:
                db_session.rollback()
                logger.error(f"Error deleting state key {key}: {e}")
                raise

    def keys(self) -> List[str]:
        with self.get_session() as db_session:
            return [row.key for row in db_session.query(StateEntry.key).all()]
