"""
Domain layer - Core business logic and entities.

This layer contains the business entities, value objects, and defines
the ports (interfaces) that the infrastructure layer must implement.

It has NO dependencies on external frameworks, databases, or APIs.
"""

from .entities import Book, User
from .value_objects import (
    BookDetailsUpdate,
    BookPredicate,
    BorrowErrorKind,
    BorrowOutcome,
    BorrowRequest,
    BorrowState,
    NewBook,
    ReturnRequest,
)

__all__ = [
    # Entities
    "Book",
    "User",
    # Value Objects
    "BookDetailsUpdate",
    "BookPredicate",
    "BorrowErrorKind",
    "BorrowOutcome",
    "BorrowRequest",
    "BorrowState",
    "NewBook",
    "ReturnRequest",
]
