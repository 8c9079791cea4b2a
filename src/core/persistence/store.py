from abc import ABC, abstractmethod
from typing import Dict, Optional


class Store(ABC):
    """
    Key -> string persistence surface.
    The only I/O boundary of the ledger. No atomicity is assumed across keys.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Return the stored value, or None if the key is absent.
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass


class InMemoryStore(Store):
    """
    Simple in-memory implementation for testing and development.
    Not suitable for persistence across process restarts.
    """
    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
