"""
SQLite implementation of the BookRecordStore port.

This adapter persists Book entities to a SQLite database and implements the
atomic conditional update the borrow workflow relies on. The claim is a
single ``UPDATE ... WHERE id = ? AND <predicate>`` statement: SQLite takes
the database write lock for the statement, so two racing claims of the same
book cannot both match.

The availability invariant is also enforced by a CHECK constraint on the
table, and (title, author) is unique.
"""

import logging
import sqlite3
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from library_app.domain.entities import Book
from library_app.domain.errors import DuplicateBookError
from library_app.domain.ports import BookRecordStore
from library_app.domain.value_objects import BookPredicate, BorrowState
from library_app.infrastructure.db.sqlite_connection import (
    DEFAULT_TIMEOUT_SECONDS,
    open_connection,
    store_errors,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "author", "genre", "published_year")


class SqliteBookRecordStore(BookRecordStore):
    """
    Books table backed by a SQLite file.

    Every public method opens its own connection (see open_connection), so a
    single instance can serve concurrent requests from FastAPI's thread pool.
    The database runs in WAL mode so readers do not block the claiming writer.
    """

    def __init__(self, db_path: Path, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        """
        Initialize the store with a database path.

        Args:
            db_path: SQLite file, created along with its parent directory
            timeout: Seconds a statement waits for the write lock
        """
        self._db_path = db_path
        self._timeout = timeout
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self):
        return open_connection(self._db_path, self._timeout)

    def _init_schema(self) -> None:
        """Create the books table if it doesn't exist."""
        with store_errors("initialising the books schema"), self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("""
            CREATE TABLE IF NOT EXISTS books (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                author TEXT NOT NULL,
                genre TEXT,
                published_year INTEGER NOT NULL,
                is_available INTEGER NOT NULL DEFAULT 1,
                borrowed_by TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE(title, author),
                CHECK (
                    (is_available = 1 AND borrowed_by IS NULL)
                    OR (is_available = 0 AND borrowed_by IS NOT NULL)
                )
            )
        """)

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_books_borrowed_by ON books(borrowed_by)"
            )
        logger.info("Books schema ready at %s", self._db_path)

    def _book_to_row(self, book: Book) -> dict:
        """Convert a Book entity to a database row dict."""
        return {
            "id": str(book.id),
            "title": book.title,
            "author": book.author,
            "genre": book.genre,
            "published_year": book.published_year,
            "is_available": int(book.is_available),
            "borrowed_by": str(book.borrowed_by) if book.borrowed_by else None,
            "created_at": book.created_at.isoformat(timespec="microseconds"),
            "updated_at": book.updated_at.isoformat(timespec="microseconds"),
        }

    def _row_to_book(self, row: sqlite3.Row) -> Book:
        """Convert a database row to a Book entity."""
        return Book(
            id=UUID(row["id"]),
            title=row["title"],
            author=row["author"],
            genre=row["genre"],
            published_year=row["published_year"],
            is_available=bool(row["is_available"]),
            borrowed_by=UUID(row["borrowed_by"]) if row["borrowed_by"] else None,
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _predicate_to_sql(predicate: BookPredicate) -> Tuple[str, List[Any]]:
        """Render a predicate as a WHERE fragment plus its parameters."""
        clauses: List[str] = []
        params: List[Any] = []

        if predicate.is_available is not None:
            clauses.append("is_available = ?")
            params.append(int(predicate.is_available))

        if predicate.borrowed_by is not None:
            clauses.append("borrowed_by = ?")
            params.append(str(predicate.borrowed_by))

        if predicate.unborrowed:
            clauses.append("borrowed_by IS NULL")

        if not clauses:
            return "1 = 1", params

        return " AND ".join(clauses), params

    @staticmethod
    def _now() -> str:
        return datetime.now(UTC).isoformat(timespec="microseconds")

    def conditional_update(
        self,
        book_id: UUID,
        predicate: BookPredicate,
        new_state: BorrowState,
    ) -> Optional[Book]:
        """Atomically write new_state if the book matches predicate."""
        where, params = self._predicate_to_sql(predicate)
        borrowed_by = str(new_state.borrowed_by) if new_state.borrowed_by else None

        with store_errors("updating borrow state"), self._connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE books
                SET is_available = ?, borrowed_by = ?, updated_at = ?
                WHERE id = ? AND {where}
                """,
                [int(new_state.is_available), borrowed_by, self._now(), str(book_id), *params],
            )

            if cursor.rowcount == 0:
                return None

            # Same transaction: the write lock is still held, so this reads
            # exactly the row we just wrote.
            row = conn.execute(
                "SELECT * FROM books WHERE id = ?",
                (str(book_id),)
            ).fetchone()

            return self._row_to_book(row)

    def count_where(self, predicate: BookPredicate) -> int:
        """Count books matching the predicate."""
        where, params = self._predicate_to_sql(predicate)

        with store_errors("counting books"), self._connect() as conn:
            result = conn.execute(
                f"SELECT COUNT(*) as cnt FROM books WHERE {where}",
                params,
            ).fetchone()
            return result["cnt"]

    def find_where(self, predicate: BookPredicate) -> List[Book]:
        """List books matching the predicate, oldest first."""
        where, params = self._predicate_to_sql(predicate)

        with store_errors("querying books"), self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM books WHERE {where} ORDER BY created_at ASC, id ASC",
                params,
            ).fetchall()
            return [self._row_to_book(row) for row in rows]

    def add(self, book: Book) -> None:
        """Insert a new book."""
        row = self._book_to_row(book)

        try:
            with store_errors("saving book"), self._connect() as conn:
                conn.execute("""
                    INSERT INTO books
                    (id, title, author, genre, published_year, is_available,
                     borrowed_by, created_at, updated_at)
                    VALUES
                    (:id, :title, :author, :genre, :published_year, :is_available,
                     :borrowed_by, :created_at, :updated_at)
                """, row)

        except sqlite3.IntegrityError as e:
            raise DuplicateBookError(
                f"Book '{book.title}' by {book.author} violates catalog constraints: {e}"
            ) from e

    def get_by_id(self, book_id: UUID) -> Optional[Book]:
        """Retrieve a book by its UUID."""
        with store_errors("loading book"), self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM books WHERE id = ?",
                (str(book_id),)
            ).fetchone()

            if row is None:
                return None

            return self._row_to_book(row)

    def find_by_title_and_author(self, title: str, author: str) -> Optional[Book]:
        """Retrieve a book by its (title, author) pair."""
        with store_errors("loading book"), self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM books WHERE title = ? AND author = ?",
                (title, author)
            ).fetchone()

            if row is None:
                return None

            return self._row_to_book(row)

    def get_all(self, limit: Optional[int] = None) -> List[Book]:
        """Retrieve all books, newest first."""
        with store_errors("listing books"), self._connect() as conn:
            if limit is not None:
                rows = conn.execute(
                    "SELECT * FROM books ORDER BY created_at DESC, id DESC LIMIT ?",
                    (limit,)
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM books ORDER BY created_at DESC, id DESC"
                ).fetchall()

            return [self._row_to_book(row) for row in rows]

    def update_details(self, book_id: UUID, changes: Dict[str, Any]) -> Optional[Book]:
        """Update descriptive fields of a book."""
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be edited directly: {sorted(unknown)}")

        if not changes:
            return self.get_by_id(book_id)

        assignments = ", ".join(f"{name} = :{name}" for name in changes)
        params = dict(changes, id=str(book_id), updated_at=self._now())

        try:
            with store_errors("updating book"), self._connect() as conn:
                cursor = conn.execute(
                    f"UPDATE books SET {assignments}, updated_at = :updated_at WHERE id = :id",
                    params,
                )

                if cursor.rowcount == 0:
                    return None

                row = conn.execute(
                    "SELECT * FROM books WHERE id = ?",
                    (str(book_id),)
                ).fetchone()
                return self._row_to_book(row)

        except sqlite3.IntegrityError as e:
            raise DuplicateBookError(f"Book update violates catalog constraints: {e}") from e

    def delete(self, book_id: UUID) -> Optional[Book]:
        """Delete a book. Returns the removed record, or None if not found."""
        with store_errors("deleting book"), self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM books WHERE id = ?",
                (str(book_id),)
            ).fetchone()

            if row is None:
                return None

            conn.execute(
                "DELETE FROM books WHERE id = ?",
                (str(book_id),)
            )
            return self._row_to_book(row)
