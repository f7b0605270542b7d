"""core/contracts/session.py
========================

Session-scoped key/value store used for backup/resume snapshots.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class ISessionStore(ABC):
    """Minimal string key/value store (browser session storage, Redis, SQLite ...)."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete *key*; missing keys are ignored."""
