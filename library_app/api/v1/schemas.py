"""
Request and response models for the v1 HTTP API.
"""

from pydantic import BaseModel, Field, AwareDatetime
from uuid import UUID


# request bodies

class BookCreate(BaseModel):
    """
    Request body for POST /books.
    """
    title: str = Field(min_length=1, description="Book title")
    author: str = Field(min_length=1, description="Author name")
    genre: str | None = Field(default=None, description="Optional genre")
    published_year: int = Field(description="Year of publication")


class BookUpdate(BaseModel):
    """
    Request body for PUT /books/{book_id}.

    Only descriptive fields can be edited; borrow state changes through the
    borrow and return endpoints.
    """
    title: str | None = Field(default=None, min_length=1)
    author: str | None = Field(default=None, min_length=1)
    genre: str | None = None
    published_year: int | None = None


class UserCreate(BaseModel):
    """
    Request body for POST /users.
    """
    name: str = Field(min_length=1, description="Display name")
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$", description="Contact email")


# response bodies

class User(BaseModel):
    """
    API representation of a User entity.
    """
    id: UUID
    name: str
    email: str
    created_at: AwareDatetime


class Borrower(BaseModel):
    """Borrower details embedded in a borrow confirmation."""
    id: UUID
    name: str
    email: str


class Book(BaseModel):
    """
    API representation of a Book entity.

    Maps from the domain Book entity for API responses.
    """

    id: UUID = Field(description="Unique identifier for this book in our system")
    title: str = Field(description="Book title")
    author: str = Field(description="Author name")
    genre: str | None = Field(default=None, description="Genre label")
    published_year: int = Field(description="Year of publication")
    is_available: bool = Field(default=True, description="Whether the book can be borrowed")
    borrowed_by: UUID | None = Field(
        default=None,
        description="ID of the user currently holding the book"
    )
    borrower: Borrower | None = Field(
        default=None,
        description="Borrower details, filled on borrow confirmations"
    )
    created_at: AwareDatetime = Field(description="When this book was added to the catalog")
    updated_at: AwareDatetime = Field(description="When this book was last updated")


class BookActionResponse(BaseModel):
    """
    Envelope for borrow, return and delete confirmations.
    """
    message: str = Field(description="Human-readable confirmation")
    data: Book = Field(description="The affected book")


class ErrorDetail(BaseModel):
    """
    Body of the HTTPException detail for rejected borrow/return requests.
    """
    error: str = Field(description="Machine-readable error kind")
    message: str = Field(description="Human-readable explanation")
