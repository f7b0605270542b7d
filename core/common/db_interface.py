"""
core/common/db_interface.py
===========================

Shared helpers for SQLite-backed adapters (event log, session store).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
import sqlite3

MEMORY = ":memory:"


def create_sqlite_connection(
    db_path: Path | str,
    *,
    check_same_thread: bool = False,
    foreign_keys: bool = True,
) -> sqlite3.Connection:
    """Create a sqlite3 connection with row access by column name.

    The parent directory of a file database is created on demand.
    """
    target = str(db_path)
    if target != MEMORY:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(target, check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    if foreign_keys:
        conn.execute("PRAGMA foreign_keys = ON")
    return conn


class DatabaseAccess(ABC):
    """Interface for adapters that depend on a database."""

    @property
    @abstractmethod
    def db_path(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def connect(self) -> sqlite3.Connection:
        raise NotImplementedError


class SQLiteRepository(DatabaseAccess):
    """Keeps one shared connection; subclasses create their schema in ``_ensure_schema``."""

    def __init__(self, db_path: Path | str, *, check_same_thread: bool = False) -> None:
        self._db_path = str(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._check_same_thread = check_same_thread
        self._ensure_schema()

    @property
    def db_path(self) -> str:
        return self._db_path

    def connect(self) -> sqlite3.Connection:
        # a ':memory:' database only lives as long as its connection, so it is always shared
        if self._conn is None:
            self._conn = create_sqlite_connection(
                self._db_path,
                check_same_thread=self._check_same_thread,
            )
        return self._conn

    def _ensure_schema(self) -> None:
        """Create tables if needed. Default: nothing."""

    def close(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            finally:
                self._conn = None
