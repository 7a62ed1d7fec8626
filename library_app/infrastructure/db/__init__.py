"""
SQLite adapters for books and users.
"""

from .sqlite_book_record_store import SqliteBookRecordStore
from .sqlite_user_directory import SqliteUserDirectory

__all__ = ["SqliteBookRecordStore", "SqliteUserDirectory"]
