"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of repositories and services
for use with FastAPI's Depends() system.

Note: We use module-level singletons instead of @lru_cache with Depends()
parameters, which is an antipattern that can cause unexpected behavior.
"""

import os
from pathlib import Path
from typing import Callable, Optional

from library_app.domain.identifiers import UuidIdentifierFormat
from library_app.domain.ports import BookRecordStore, IdentifierFormat, UserRepository
from library_app.domain.services import BorrowCoordinator, CatalogService, DEFAULT_BORROW_QUOTA
from library_app.infrastructure.db import SqliteBookRecordStore, SqliteUserDirectory

# Configuration from environment
DB_PATH = Path(os.getenv("DB_PATH", "data/library.db"))
BORROW_QUOTA = int(os.getenv("BORROW_QUOTA", str(DEFAULT_BORROW_QUOTA)))
SQLITE_TIMEOUT = float(os.getenv("SQLITE_TIMEOUT", "10"))

# Module-level singletons (initialized lazily)
_book_store: Optional[BookRecordStore] = None
_user_repository: Optional[UserRepository] = None
_identifier_format: Optional[IdentifierFormat] = None
_borrow_coordinator: Optional[BorrowCoordinator] = None
_catalog_service: Optional[CatalogService] = None


def get_book_store() -> BookRecordStore:
    """Provide a singleton instance of the book record store."""
    global _book_store
    if _book_store is None:
        _book_store = SqliteBookRecordStore(DB_PATH, timeout=SQLITE_TIMEOUT)
    return _book_store


def get_user_repository() -> UserRepository:
    """Provide a singleton instance of the user directory."""
    global _user_repository
    if _user_repository is None:
        _user_repository = SqliteUserDirectory(DB_PATH, timeout=SQLITE_TIMEOUT)
    return _user_repository


def get_identifier_format() -> IdentifierFormat:
    global _identifier_format
    if _identifier_format is None:
        _identifier_format = UuidIdentifierFormat()
    return _identifier_format


def get_borrow_coordinator() -> BorrowCoordinator:
    """Provide the BorrowCoordinator with all dependencies wired."""
    global _borrow_coordinator
    if _borrow_coordinator is None:
        _borrow_coordinator = BorrowCoordinator(
            book_store=get_book_store(),
            user_directory=get_user_repository(),
            identifier_format=get_identifier_format(),
            borrow_quota=BORROW_QUOTA,
        )
    return _borrow_coordinator


def get_catalog_service() -> CatalogService:
    """Provide the CatalogService with its store wired."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService(get_book_store())
    return _catalog_service


def get_catalog_service_provider() -> Callable[[], CatalogService]:
    """
    Provide the CatalogService getter without calling it.

    Building the service opens the store. The health check builds it itself
    so a broken store is reported as degraded instead of failing the request.
    """
    return get_catalog_service


def reset_dependencies() -> None:
    """
    Reset all singletons. Useful for testing.

    This allows tests to inject mock dependencies by resetting
    the module state between test cases.
    """
    global _book_store, _user_repository, _identifier_format
    global _borrow_coordinator, _catalog_service

    _book_store = None
    _user_repository = None
    _identifier_format = None
    _borrow_coordinator = None
    _catalog_service = None
