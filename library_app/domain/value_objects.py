"""
Value objects for the domain layer.

Value objects are immutable objects that represent descriptive aspects
of the domain with no conceptual identity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import UUID

from .entities import Book, User


@dataclass(frozen=True)
class BorrowRequest:
    """
    Input of the borrow operation.

    Identifiers are kept raw: syntactic validation is part of the borrow
    protocol and happens before any collaborator is consulted.
    """

    book_id: str
    """Raw identifier of the book to claim"""

    user_id: str
    """Raw identifier of the borrowing user"""


@dataclass(frozen=True)
class ReturnRequest:
    """Input of the return operation."""

    book_id: str
    """Raw identifier of the book being returned"""


@dataclass(frozen=True)
class BorrowState:
    """
    The borrow-related fields of a book, written as one unit.

    Every borrow/return transition writes a BorrowState, so a store can never
    be asked to persist an available book with a borrower or a borrowed book
    without one.
    """

    is_available: bool
    borrowed_by: Optional[UUID] = None

    def __post_init__(self) -> None:
        if self.is_available and self.borrowed_by is not None:
            raise ValueError("An available book cannot have a borrower")
        if not self.is_available and self.borrowed_by is None:
            raise ValueError("A borrowed book must reference its borrower")

    @classmethod
    def available(cls) -> "BorrowState":
        return cls(is_available=True, borrowed_by=None)

    @classmethod
    def borrowed_by_user(cls, user_id: UUID) -> "BorrowState":
        return cls(is_available=False, borrowed_by=user_id)


@dataclass(frozen=True)
class BookPredicate:
    """
    A match condition over the borrow fields of a book.

    All conditions are ANDed. ``None`` means "no restriction" for
    ``is_available`` and ``borrowed_by``; ``unborrowed=True`` requires
    ``borrowed_by`` to be null.
    """

    is_available: Optional[bool] = None
    """Required availability flag, if any"""

    borrowed_by: Optional[UUID] = None
    """Required borrower, if any"""

    unborrowed: bool = False
    """Require that no user holds the book"""

    def __post_init__(self) -> None:
        if self.unborrowed and self.borrowed_by is not None:
            raise ValueError("Predicate cannot require both a borrower and no borrower")

    def matches(self, book: Book) -> bool:
        """Evaluate the predicate against an in-memory book."""
        if self.is_available is not None and book.is_available != self.is_available:
            return False
        if self.borrowed_by is not None and book.borrowed_by != self.borrowed_by:
            return False
        if self.unborrowed and book.borrowed_by is not None:
            return False
        return True

    @classmethod
    def claimable(cls) -> "BookPredicate":
        """Books that can be borrowed right now."""
        return cls(is_available=True, unborrowed=True)

    @classmethod
    def on_loan(cls) -> "BookPredicate":
        """Books currently marked as borrowed."""
        return cls(is_available=False)

    @classmethod
    def held_by(cls, user_id: UUID) -> "BookPredicate":
        return cls(borrowed_by=user_id)


@dataclass(frozen=True)
class NewBook:
    """Descriptive data for a book being added to the catalog."""

    title: str
    author: str
    published_year: int
    genre: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("Book title cannot be empty")
        if not self.author or not self.author.strip():
            raise ValueError("Book author cannot be empty")


@dataclass(frozen=True)
class BookDetailsUpdate:
    """
    Partial edit of a book's descriptive fields.

    Fields left as None are not changed. Borrow state only changes through
    borrow and return, so it has no field here.
    """

    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[str] = None
    published_year: Optional[int] = None

    def __post_init__(self) -> None:
        if self.title is not None and not self.title.strip():
            raise ValueError("Book title cannot be empty")
        if self.author is not None and not self.author.strip():
            raise ValueError("Book author cannot be empty")

    def is_empty(self) -> bool:
        """Check if no field is being changed."""
        return all(
            getattr(self, field_name) is None
            for field_name in ["title", "author", "genre", "published_year"]
        )

    def as_changes(self) -> dict:
        """Return only the fields that are set."""
        return {
            field_name: getattr(self, field_name)
            for field_name in ["title", "author", "genre", "published_year"]
            if getattr(self, field_name) is not None
        }


class BorrowErrorKind(str, Enum):
    """Classified reasons a borrow or return can be rejected."""

    INVALID_IDENTIFIER = "invalid_identifier"
    USER_NOT_FOUND = "user_not_found"
    QUOTA_EXCEEDED = "quota_exceeded"
    BOOK_UNAVAILABLE = "book_unavailable"
    NOT_CURRENTLY_BORROWED = "not_currently_borrowed"


@dataclass(frozen=True)
class BorrowOutcome:
    """
    Result of a borrow or return operation.

    Either a success carrying the updated book (and, for borrows, the
    borrower) or a failure carrying exactly one BorrowErrorKind. Both carry a
    human-readable message.
    """

    message: str
    """Confirmation or rejection message"""

    book: Optional[Book] = None
    """Updated book on success"""

    borrower: Optional[User] = None
    """User now holding the book (successful borrows only)"""

    error: Optional[BorrowErrorKind] = None
    """Failure classification, None on success"""

    def __post_init__(self) -> None:
        if self.error is None and self.book is None:
            raise ValueError("A successful outcome must carry the updated book")
        if self.error is not None and self.book is not None:
            raise ValueError("A failed outcome cannot carry a book")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(
        cls,
        book: Book,
        message: str,
        borrower: Optional[User] = None,
    ) -> "BorrowOutcome":
        return cls(message=message, book=book, borrower=borrower)

    @classmethod
    def failure(cls, error: BorrowErrorKind, message: str) -> "BorrowOutcome":
        return cls(message=message, error=error)
