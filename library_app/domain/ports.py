"""
Port interfaces (protocols) for the domain layer.

Ports define the contracts between the domain and infrastructure layers.
They are implemented by adapters in the infrastructure layer, allowing
the domain to remain independent of technical details.

Following Hexagonal Architecture principles, the domain layer depends only
on these abstract protocols, never on concrete implementations.
"""

from typing import Protocol, List, Optional, Dict, Any
from uuid import UUID

from .entities import Book, User
from .value_objects import BookPredicate, BorrowState


class BookRecordStore(Protocol):
    """
    Port for persisting books and arbitrating concurrent borrow state changes.

    The store is the only owner of the shared Book records. Its
    conditional_update() is what makes borrowing safe under concurrency:
    the predicate check and the write must be one atomic operation at the
    record level. Callers hold no locks of their own.

    Implementations should translate persistence failures into
    StoreUnavailableError and constraint violations into ValueError.
    """

    def conditional_update(
        self,
        book_id: UUID,
        predicate: BookPredicate,
        new_state: BorrowState,
    ) -> Optional[Book]:
        """
        Atomically apply new_state to the book if it currently matches predicate.

        Among any number of concurrent calls whose predicates are mutually
        exclusive with their new states (e.g. several claims of the same
        available book), at most one may succeed.

        Args:
            book_id: ID of the book to update
            predicate: Condition the stored record must satisfy at write time
            new_state: Borrow fields to write on match

        Returns:
            The updated Book if exactly one record matched, None if the book
            does not exist or did not match

        Raises:
            StoreUnavailableError: If the store cannot complete the operation
        """
        ...

    def count_where(self, predicate: BookPredicate) -> int:
        """
        Count books matching the predicate.

        Raises:
            StoreUnavailableError: If the store cannot complete the query
        """
        ...

    def find_where(self, predicate: BookPredicate) -> List[Book]:
        """
        List books matching the predicate, oldest first.

        Raises:
            StoreUnavailableError: If the store cannot complete the query
        """
        ...

    def add(self, book: Book) -> None:
        """
        Insert a new book.

        Raises:
            DuplicateBookError: If a book with the same title and author exists
            StoreUnavailableError: If a database error occurs
        """
        ...

    def get_by_id(self, book_id: UUID) -> Optional[Book]:
        """
        Retrieve a book by its UUID.

        Returns:
            The Book entity if found, None otherwise
        """
        ...

    def find_by_title_and_author(self, title: str, author: str) -> Optional[Book]:
        """Retrieve a book by its (title, author) pair."""
        ...

    def get_all(self, limit: Optional[int] = None) -> List[Book]:
        """
        Retrieve all books, newest first.

        Args:
            limit: Optional maximum number of books to return
        """
        ...

    def update_details(self, book_id: UUID, changes: Dict[str, Any]) -> Optional[Book]:
        """
        Update descriptive fields (title, author, genre, published_year).

        Borrow fields are rejected; they only change via conditional_update().

        Returns:
            The updated Book, or None if not found

        Raises:
            ValueError: If changes name a field that is not editable
            DuplicateBookError: If the edit collides with another (title, author)
        """
        ...

    def delete(self, book_id: UUID) -> Optional[Book]:
        """
        Delete a book.

        Returns:
            The deleted Book, or None if not found
        """
        ...


class UserDirectory(Protocol):
    """
    Port for looking up library users.

    The borrow workflow only ever reads users.
    """

    def find_by_id(self, user_id: UUID) -> Optional[User]:
        """
        Retrieve a user by ID.

        Returns:
            The User if found, None otherwise

        Raises:
            StoreUnavailableError: If the directory cannot be reached
        """
        ...


class UserRepository(UserDirectory, Protocol):
    """UserDirectory with registration, used by the user routes."""

    def add(self, user: User) -> None:
        """
        Register a user.

        Raises:
            DuplicateUserError: If the email is already registered
        """
        ...

    def find_by_email(self, email: str) -> Optional[User]:
        ...


class IdentifierFormat(Protocol):
    """
    Port for syntactic identifier validation.

    Used to reject malformed IDs before any store or directory access.
    """

    def is_valid(self, raw: str) -> bool:
        """Check whether raw is a well-formed identifier."""
        ...

    def parse(self, raw: str) -> UUID:
        """
        Parse a raw identifier.

        Raises:
            ValueError: If raw is not a well-formed identifier
        """
        ...
