"""Anonymous user id, generated once and persisted per profile."""

from __future__ import annotations

import json
import logging
import secrets
import string
import time
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)

USER_ID_KEY = "soron_user_id"

_BASE36 = string.digits + string.ascii_lowercase


class IdentityStore(ABC):
    """Abstract string key-value storage that outlives the process."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...


class MemoryIdentityStore(IdentityStore):
    """Process-lifetime store, for tests and ephemeral clients."""

    def __init__(self, values: dict[str, str] | None = None):
        self._values = dict(values or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class FileIdentityStore(IdentityStore):
    """JSON file store.

    Args:
        path: File holding the key-value mapping. Parent directories are
            created on first write.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable identity file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data))


def new_anonymous_id() -> str:
    """``anon_<epoch ms>_<9 base36 chars>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"anon_{int(time.time() * 1000)}_{suffix}"


def get_or_create_user_id(store: IdentityStore) -> str:
    stored = store.get(USER_ID_KEY)
    if stored:
        return stored
    user_id = new_anonymous_id()
    try:
        store.set(USER_ID_KEY, user_id)
    except OSError as e:
        logger.warning(f"Could not persist anonymous user id: {e}")
    return user_id
