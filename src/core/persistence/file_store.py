import json
import logging
import os
import tempfile
from typing import Dict, Optional

from src.core.persistence.store import Store

logger = logging.getLogger(__name__)


class FileStore(Store):
    """
    File-backed key/value store.
    All keys live in a single JSON object; every write replaces the file atomically.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        dir_name = os.path.dirname(file_path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.file_path):
            return {}

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Unreadable store file {self.file_path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Store file {self.file_path} does not hold a JSON object")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, items: Dict[str, str]) -> None:
        dir_name = os.path.dirname(self.file_path) or "."
        with tempfile.NamedTemporaryFile('w', dir=dir_name, delete=False, encoding='utf-8') as tmp_file:
            json.dump(items, tmp_file, indent=2, sort_keys=True)
            tmp_name = tmp_file.name

        os.replace(tmp_name, self.file_path)

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._write_all(items)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if key not in items:
            return
        del items[key]
        self._write_all(items)
