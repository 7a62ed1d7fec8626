"""
Converters between domain entities/value objects and API schemas.

This module centralizes all conversion logic between the domain layer
and the API layer, maintaining clean separation of concerns.
"""

from dataclasses import asdict
from typing import Optional

from library_app.domain import entities as domain
from library_app.domain import value_objects as domain_vo
from library_app.api.v1 import schemas as api


def domain_book_to_api(
    book: domain.Book,
    borrower: Optional[domain.User] = None,
) -> api.Book:
    """
    Convert a domain Book entity to an API Book model.

    Args:
        book: Domain Book entity
        borrower: Optional user to embed as the book's borrower

    Returns:
        API Book model
    """
    book_dict = asdict(book)
    if borrower is not None:
        book_dict["borrower"] = api.Borrower(
            id=borrower.id,
            name=borrower.name,
            email=borrower.email,
        )
    return api.Book(**book_dict)


def domain_user_to_api(user: domain.User) -> api.User:
    return api.User(**asdict(user))


def domain_outcome_to_api(outcome: domain_vo.BorrowOutcome) -> api.BookActionResponse:
    """
    Convert a successful BorrowOutcome to the response envelope.

    Raises:
        ValueError: If the outcome is a failure
    """
    if not outcome.ok:
        raise ValueError("Only successful outcomes have a response body")

    return api.BookActionResponse(
        message=outcome.message,
        data=domain_book_to_api(outcome.book, borrower=outcome.borrower),
    )


def domain_outcome_to_error(outcome: domain_vo.BorrowOutcome) -> dict:
    """Render a failed BorrowOutcome as an HTTPException detail."""
    return api.ErrorDetail(error=outcome.error.value, message=outcome.message).model_dump()


def api_create_to_domain(request: api.BookCreate) -> domain_vo.NewBook:
    return domain_vo.NewBook(
        title=request.title,
        author=request.author,
        published_year=request.published_year,
        genre=request.genre,
    )


def api_update_to_domain(request: api.BookUpdate) -> domain_vo.BookDetailsUpdate:
    return domain_vo.BookDetailsUpdate(
        title=request.title,
        author=request.author,
        genre=request.genre,
        published_year=request.published_year,
    )
