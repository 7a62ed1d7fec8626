"""
Domain entities for the library catalog.

Entities are objects with a unique identity that runs through time and
different representations. They are the core building blocks of the domain.
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Optional
from uuid import UUID

from .identifiers import new_identifier


@dataclass
class Book:
    """
    Represents a book in the catalog together with its borrow state.

    A book is either available (``is_available=True``, ``borrowed_by=None``)
    or borrowed by exactly one user (``is_available=False``,
    ``borrowed_by=<user id>``). No other combination is constructible.
    """

    id: UUID
    """Unique identifier for this book in our system"""

    title: str
    """Book title"""

    author: str
    """Author name"""

    published_year: int
    """Year of publication"""

    genre: Optional[str] = None
    """Optional genre label (e.g., 'Fantasy', 'History')"""

    is_available: bool = True
    """Whether the book can currently be borrowed"""

    borrowed_by: Optional[UUID] = None
    """ID of the user currently holding the book, None when available"""

    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    """When this book was added to the catalog"""

    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    """When this book was last modified"""

    def __post_init__(self) -> None:
        """Validate book data and the availability invariant."""
        if not self.title or not self.title.strip():
            raise ValueError("Book title cannot be empty")

        if not self.author or not self.author.strip():
            raise ValueError("Book author cannot be empty")

        if self.is_available and self.borrowed_by is not None:
            raise ValueError("An available book cannot have a borrower")

        if not self.is_available and self.borrowed_by is None:
            raise ValueError("A borrowed book must reference its borrower")

    def __eq__(self, other: object) -> bool:
        """Two books are equal if they have the same ID."""
        if not isinstance(other, Book):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @staticmethod
    def create_new(
        title: str,
        author: str,
        published_year: int,
        genre: Optional[str] = None,
    ) -> "Book":
        """
        Factory method to create a new, available book with a generated ID.

        Args:
            title: Book title
            author: Author name
            published_year: Year of publication
            genre: Optional genre label

        Returns:
            A new Book instance with a time-ordered UUID
        """
        return Book(
            id=new_identifier(),
            title=title,
            author=author,
            published_year=published_year,
            genre=genre,
        )


@dataclass
class User:
    """
    A library member who can borrow books.

    Users are read-only from the borrow workflow's point of view; the number
    of books a user holds is derived from the catalog, not stored here.
    """

    id: UUID
    """Unique identifier for this user"""

    name: str
    """Display name"""

    email: str
    """Contact email, unique across users"""

    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    """When this user was registered"""

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("User name cannot be empty")

        if not self.email or "@" not in self.email:
            raise ValueError(f"Invalid email address: '{self.email}'")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @staticmethod
    def create_new(name: str, email: str) -> "User":
        """Factory method to create a new user with a generated ID."""
        return User(id=new_identifier(), name=name, email=email)
