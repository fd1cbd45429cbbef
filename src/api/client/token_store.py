"""Client-side storage for the current token pair.

The store is the single source of truth for credentials: every component
of the SDK reads the pair from it and writes refreshed pairs back to it.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class StoredTokens:
    """The pair a client currently holds, plus the user it belongs to."""

    access_token: str
    refresh_token: str
    user: dict[str, Any] | None = None

    def with_pair(self, access_token: str, refresh_token: str) -> StoredTokens:
        return StoredTokens(
            access_token=access_token, refresh_token=refresh_token, user=self.user
        )


@runtime_checkable
class TokenStore(Protocol):
    """Persistence for the current token pair."""

    def load(self) -> StoredTokens | None:
        """Return the stored pair, or None when logged out."""
        ...

    def save(self, tokens: StoredTokens) -> None:
        """Replace the stored pair."""
        ...

    def clear(self) -> None:
        """Forget the stored pair."""
        ...


class InMemoryTokenStore:
    """Keeps the pair for the lifetime of the process."""

    def __init__(self, tokens: StoredTokens | None = None):
        self._tokens = tokens

    def load(self) -> StoredTokens | None:
        return self._tokens

    def save(self, tokens: StoredTokens) -> None:
        self._tokens = tokens

    def clear(self) -> None:
        self._tokens = None


class JsonFileTokenStore:
    """Keeps the pair in a JSON file readable only by the current user.

    Writes go to a temporary file that is then renamed over the target, so
    a crash never leaves a half-written pair behind.
    """

    def __init__(self, path: Path | str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> StoredTokens | None:
        try:
            data = json.loads(self._path.read_text())
        except (OSError, json.JSONDecodeError):
            return None
        try:
            return StoredTokens(
                access_token=data["access_token"],
                refresh_token=data["refresh_token"],
                user=data.get("user"),
            )
        except (KeyError, TypeError):
            return None

    def save(self, tokens: StoredTokens) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(asdict(tokens), f)
        os.replace(tmp, self._path)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
