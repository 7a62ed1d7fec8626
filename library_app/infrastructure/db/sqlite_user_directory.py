"""
SQLite implementation of the UserRepository port.

Users live in the same database file as the books, in their own table.
"""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional
from uuid import UUID

from library_app.domain.entities import User
from library_app.domain.errors import DuplicateUserError
from library_app.domain.ports import UserRepository
from library_app.infrastructure.db.sqlite_connection import (
    DEFAULT_TIMEOUT_SECONDS,
    open_connection,
    store_errors,
)


class SqliteUserDirectory(UserRepository):
    """Users table with a unique constraint on email."""

    def __init__(self, db_path: Path, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._db_path = db_path
        self._timeout = timeout
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self):
        return open_connection(self._db_path, self._timeout)

    def _init_schema(self) -> None:
        """Create the users table if it doesn't exist."""
        with store_errors("initialising the users schema"), self._connect() as conn:
            conn.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE,
                created_at TEXT NOT NULL
            )
        """)

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=UUID(row["id"]),
            name=row["name"],
            email=row["email"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def find_by_id(self, user_id: UUID) -> Optional[User]:
        with store_errors("loading user"), self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE id = ?",
                (str(user_id),)
            ).fetchone()

            if row is None:
                return None

            return self._row_to_user(row)

    def find_by_email(self, email: str) -> Optional[User]:
        with store_errors("loading user"), self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?",
                (email,)
            ).fetchone()

            if row is None:
                return None

            return self._row_to_user(row)

    def add(self, user: User) -> None:
        """Register a user. Raises DuplicateUserError if the email is taken."""
        try:
            with store_errors("saving user"), self._connect() as conn:
                conn.execute(
                    "INSERT INTO users (id, name, email, created_at) VALUES (?, ?, ?, ?)",
                    (str(user.id), user.name, user.email, user.created_at.isoformat(timespec="microseconds")),
                )

        except sqlite3.IntegrityError as e:
            raise DuplicateUserError(f"User with email '{user.email}' already exists") from e
