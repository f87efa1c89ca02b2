"""Durable storage for the signed-in session.

The record has exactly two entries, ``token`` and ``user``. They are written
together and removed together; a record missing either one is no session.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from .logging_utils import get_logger

logger = get_logger("storage")

TOKEN_KEY = "token"
USER_KEY = "user"


class SessionStorage(ABC):
    """Key/value store holding the bearer token and identity record"""

    @abstractmethod
    def read(self) -> Dict[str, Any]:
        """Return whatever entries are present (possibly none)"""

    @abstractmethod
    def write(self, token: str, user: Dict[str, Any]) -> None:
        """Replace both entries"""

    @abstractmethod
    def clear(self) -> None:
        """Remove both entries; a no-op when already empty"""


class MemorySessionStorage(SessionStorage):
    """Process-local storage, used by tests and one-shot scripts"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._entries: Dict[str, Any] = dict(initial or {})

    def read(self) -> Dict[str, Any]:
        return dict(self._entries)

    def write(self, token: str, user: Dict[str, Any]) -> None:
        # user is stored serialized, like the browser's localStorage
        self._entries = {TOKEN_KEY: token, USER_KEY: json.dumps(user)}

    def clear(self) -> None:
        self._entries = {}


class FileSessionStorage(SessionStorage):
    """JSON file on disk, replaced atomically on every write"""

    def __init__(self, path: str):
        self.path = Path(path).expanduser()

    def read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return {}

        return data if isinstance(data, dict) else {}

    def write(self, token: str, user: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {TOKEN_KEY: token, USER_KEY: json.dumps(user)}

        with tempfile.NamedTemporaryFile(mode="w", dir=self.path.parent, delete=False,
                                         encoding="utf-8") as tf:
            json.dump(data, tf, indent=2)
            temp_path = Path(tf.name)

        try:
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self.path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Could not remove session file %s: %s", self.path, e)
