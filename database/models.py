# database/models.py
from datetime import datetime

from sqlalchemy import Column, DateTime, JSON, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class StateEntry(Base):
    """One persisted state key (workspaces, rules, tab metadata, ...) and its JSON value"""
    __tablename__ = 'state_entries'

    key = Column(String(128), primary_key=True)
    value = Column(JSON)

    # Update timestamp
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
