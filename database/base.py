# database/base.py
"""Abstract key-value storage the core persists its state into."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List


class KeyValueStore(ABC):
    """Get/set by key. Values must be JSON-serialisable."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def get_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Return the stored values for `keys`; missing keys are left out."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def set_many(self, values: Dict[str, Any]) -> None:
        """Write several keys in one commit."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        pass
