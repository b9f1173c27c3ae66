# snow_storage.py — tiny JSON-file preference store
#
# Keys are namespaced "<prefix>:<key>" so several widgets can share one file.
# Nothing here raises: an unreadable/unwritable file just means preferences
# are not remembered (get() falls back to the default, writes return False).

from __future__ import annotations
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Union

logger = logging.getLogger("festive_snow.storage")

DEFAULT_PREFIX = "festive-snow"
DEFAULT_PATH = "./conf/preferences.json"


class SimpleStorage:
    def __init__(self, prefix: str = DEFAULT_PREFIX, path: Union[str, Path] = DEFAULT_PATH):
        self.prefix = prefix
        self.path = Path(path)
        self._lock = threading.Lock()

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _save(self, data: Dict[str, Any]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        """Stored value for `key`, or `default` when the key is missing or the file unreadable."""
        try:
            with self._lock:
                data = self._load()
        except Exception as e:
            logger.debug("[Storage] get(%s) failed: %s", key, e)
            return default
        name = self._key(key)
        return data[name] if name in data else default

    def set(self, key: str, value: Any) -> bool:
        try:
            json.dumps(value)
            with self._lock:
                data = self._load()
                data[self._key(key)] = value
                self._save(data)
            return True
        except Exception as e:
            logger.warning("[Storage] set(%s) failed: %s", key, e)
            return False

    def remove(self, key: str) -> bool:
        try:
            with self._lock:
                data = self._load()
                if data.pop(self._key(key), None) is not None:
                    self._save(data)
            return True
        except Exception as e:
            logger.warning("[Storage] remove(%s) failed: %s", key, e)
            return False

    def is_available(self) -> bool:
        probe = "__test__"
        try:
            with self._lock:
                data = self._load()
                data[probe] = probe
                self._save(data)
                data.pop(probe, None)
                self._save(data)
            return True
        except Exception as e:
            logger.debug("[Storage] %s unavailable: %s", self.path, e)
            return False
