import json
import logging
import os
from typing import Any, Dict, Optional


class LocalStorage:
    """String key/value store kept in a JSON file, or in memory when no path is given.

    Mirrors the browser storage the storefront relies on: values are strings and
    callers do their own JSON encoding.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._data: Dict[str, str] = {}

        if path and os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    self._data = {str(key): str(value) for key, value in loaded.items()}
            except (OSError, ValueError) as e:
                logging.error(f"STORAGE >>> Unable to read {path}, starting empty -> {e}")

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def clear(self) -> None:
        self._data = {}
        self._flush()

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            logging.error(f"STORAGE >>> Corrupt value under '{key}' -> {e}")
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value))

    def _flush(self) -> None:
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f)
