"""Database package for tab-tracking state persistence."""

from .base import KeyValueStore
from .config import DatabaseConfig
from .database_manager import DatabaseManager
from .models import Base, StateEntry

__all__ = ['KeyValueStore', 'DatabaseConfig', 'DatabaseManager', 'Base', 'StateEntry']
