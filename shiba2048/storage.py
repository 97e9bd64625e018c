"""
Key/value persistence for the handful of scalars the game keeps between runs:
``bestScore``, ``darkMode`` and ``soundMuted``.

Every store speaks strings. Failures are logged and reported through the
return value; nothing here raises on I/O trouble.
"""

import json
import logging
import os

logger = logging.getLogger(__name__)


def _to_string(value) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value)


class KeyValueStore:
    """Interface shared by all stores."""

    def get(self, key, default=None):
        raise NotImplementedError

    def set(self, key, value) -> bool:
        raise NotImplementedError

    def remove(self, key) -> bool:
        raise NotImplementedError

    def clear(self) -> bool:
        raise NotImplementedError

    def keys(self):
        raise NotImplementedError

    def _check_set(self, key, value) -> bool:
        if not key:
            logger.error("set failed: key is required")
            return False
        if value is None:
            logger.error("set failed: value is None for key %r", key)
            return False
        return True


class MemoryStore(KeyValueStore):
    """Process-local store, used in tests and when no file is configured."""

    def __init__(self, initial=None):
        self._data = {}
        for key, value in (initial or {}).items():
            self._data[key] = _to_string(value)

    def get(self, key, default=None):
        if not key:
            logger.error("get failed: key is required")
            return default
        value = self._data.get(key)
        if value is None or value == "":
            return default
        return value

    def set(self, key, value) -> bool:
        if not self._check_set(key, value):
            return False
        self._data[key] = _to_string(value)
        return True

    def remove(self, key) -> bool:
        if not key:
            return False
        self._data.pop(key, None)
        return True

    def clear(self) -> bool:
        self._data.clear()
        return True

    def keys(self):
        return list(self._data)


class JsonFileStore(KeyValueStore):
    """
    One JSON object on disk. The file (and its directory) is created on the
    first write; a missing or corrupt file reads as empty.
    """

    def __init__(self, path):
        self.path = os.path.expanduser(str(path))

    def _load(self):
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Failed to read %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Ignoring %s: expected a JSON object", self.path)
            return {}
        return data

    def _dump(self, data) -> bool:
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
        except OSError as e:
            logger.error("Failed to write %s: %s", self.path, e)
            logger.warning("Data not persisted, but the game will continue")
            return False
        return True

    def get(self, key, default=None):
        if not key:
            logger.error("get failed: key is required")
            return default
        value = self._load().get(key)
        if value is None or value == "":
            return default
        return _to_string(value)

    def set(self, key, value) -> bool:
        if not self._check_set(key, value):
            return False
        data = self._load()
        data[key] = _to_string(value)
        if not self._dump(data):
            return False
        logger.debug("set %s = %s", key, data[key][:50])
        return True

    def remove(self, key) -> bool:
        if not key:
            return False
        data = self._load()
        if key not in data:
            return True
        del data[key]
        return self._dump(data)

    def clear(self) -> bool:
        return self._dump({})

    def keys(self):
        return list(self._load())
