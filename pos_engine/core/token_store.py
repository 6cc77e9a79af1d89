"""Storage for the bearer credential used by the request client."""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

from pos_engine.core.config import settings

logger = logging.getLogger(__name__)


class TokenStore(ABC):
    """Abstract credential store."""

    @abstractmethod
    def get_token(self) -> str | None:
        """Return the stored token, or None when signed out."""
        pass  # pragma: no cover

    @abstractmethod
    def set_token(self, token: str) -> None:
        pass  # pragma: no cover

    @abstractmethod
    def clear_token(self) -> None:
        """Forget the stored token, forcing the user to sign in again."""
        pass  # pragma: no cover


class InMemoryTokenStore(TokenStore):
    def __init__(self, token: str | None = None):
        self._token = token

    def get_token(self) -> str | None:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token

    def clear_token(self) -> None:
        self._token = None


class FileTokenStore(TokenStore):
    """Token persisted as a small JSON document readable only by the owner."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.token_file)

    def get_token(self) -> str | None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable token file %s: %s", self.path, exc)
            return None
        token = data.get("token") if isinstance(data, dict) else None
        return str(token) if token else None

    def set_token(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump({"token": token}, fh)

    def clear_token(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
