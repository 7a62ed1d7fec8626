"""
API endpoints for the book catalog and the borrow/return workflow.

This module defines the FastAPI routes for books. It handles HTTP concerns
and delegates to domain services.
"""

import logging

from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query, status

from library_app.domain.errors import DuplicateBookError
from library_app.domain.ports import IdentifierFormat
from library_app.domain.services import BorrowCoordinator, CatalogService
from library_app.domain.value_objects import (
    BorrowErrorKind,
    BorrowOutcome,
    BorrowRequest,
    ReturnRequest,
)
from library_app.api.v1 import schemas as api
from library_app.api.v1.converters import (
    api_create_to_domain,
    api_update_to_domain,
    domain_book_to_api,
    domain_outcome_to_api,
    domain_outcome_to_error,
)
from library_app.api.v1.dependencies import (
    get_borrow_coordinator,
    get_catalog_service,
    get_catalog_service_provider,
    get_identifier_format,
)
from library_app.api.v1.http_errors import not_found, parse_path_id, store_unavailable

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_STATUS = {
    BorrowErrorKind.INVALID_IDENTIFIER: status.HTTP_400_BAD_REQUEST,
    BorrowErrorKind.USER_NOT_FOUND: status.HTTP_400_BAD_REQUEST,
    BorrowErrorKind.QUOTA_EXCEEDED: status.HTTP_409_CONFLICT,
    BorrowErrorKind.BOOK_UNAVAILABLE: status.HTTP_409_CONFLICT,
    BorrowErrorKind.NOT_CURRENTLY_BORROWED: status.HTTP_409_CONFLICT,
}


def outcome_to_response(outcome: BorrowOutcome) -> api.BookActionResponse:
    """Return the success envelope or raise the mapped HTTP error."""
    if not outcome.ok:
        raise HTTPException(
            status_code=ERROR_STATUS[outcome.error],
            detail=domain_outcome_to_error(outcome),
        )
    return domain_outcome_to_api(outcome)


@router.get("/books", response_model=list[api.Book])
def list_books(
    limit: int | None = Query(default=None, ge=1),
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[api.Book]:
    """List all books, newest first."""
    try:
        return [domain_book_to_api(book) for book in catalog.list_books(limit=limit)]
    except RuntimeError as e:
        raise store_unavailable(e)


@router.post("/books", response_model=api.Book, status_code=status.HTTP_201_CREATED)
def create_book(
    request: api.BookCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> api.Book:
    """
    Add a book to the catalog.

    Raises:
        409: A book with the same title and author already exists
    """
    try:
        book = catalog.add_book(api_create_to_domain(request))
        return domain_book_to_api(book)
    except DuplicateBookError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RuntimeError as e:
        raise store_unavailable(e)


@router.get("/books/{book_id}", response_model=api.Book)
def get_book(
    book_id: str,
    catalog: CatalogService = Depends(get_catalog_service),
    identifier_format: IdentifierFormat = Depends(get_identifier_format),
) -> api.Book:
    """
    Get a book by its unique identifier.

    Raises:
        400: Malformed identifier
        404: Book not found
    """
    parsed_id = parse_path_id(book_id, identifier_format, "book")
    try:
        book = catalog.get_book(parsed_id)
    except RuntimeError as e:
        raise store_unavailable(e)

    if book is None:
        raise not_found("book", book_id)

    return domain_book_to_api(book)


@router.put("/books/{book_id}", response_model=api.Book)
def update_book(
    book_id: str,
    request: api.BookUpdate,
    catalog: CatalogService = Depends(get_catalog_service),
    identifier_format: IdentifierFormat = Depends(get_identifier_format),
) -> api.Book:
    """
    Edit the descriptive fields of a book.

    Raises:
        400: Malformed identifier or invalid fields
        404: Book not found
        409: The edit collides with another book's title and author
    """
    parsed_id = parse_path_id(book_id, identifier_format, "book")
    try:
        book = catalog.update_book(parsed_id, api_update_to_domain(request))
    except DuplicateBookError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RuntimeError as e:
        raise store_unavailable(e)

    if book is None:
        raise not_found("book", book_id)

    return domain_book_to_api(book)


@router.delete("/books/{book_id}", response_model=api.BookActionResponse)
def delete_book(
    book_id: str,
    catalog: CatalogService = Depends(get_catalog_service),
    identifier_format: IdentifierFormat = Depends(get_identifier_format),
) -> api.BookActionResponse:
    """
    Remove a book from the catalog.

    Raises:
        400: Malformed identifier
        404: Book not found
    """
    parsed_id = parse_path_id(book_id, identifier_format, "book")
    try:
        deleted = catalog.delete_book(parsed_id)
    except RuntimeError as e:
        raise store_unavailable(e)

    if deleted is None:
        raise not_found("book", book_id)

    return api.BookActionResponse(
        message="Book deleted successfully",
        data=domain_book_to_api(deleted),
    )


@router.post("/books/{book_id}/borrow/{user_id}", response_model=api.BookActionResponse)
def borrow_book(
    book_id: str,
    user_id: str,
    coordinator: BorrowCoordinator = Depends(get_borrow_coordinator),
) -> api.BookActionResponse:
    """
    Borrow a book on behalf of a user.

    Raises:
        400: Malformed identifier or unknown user
        409: Borrow quota reached, or the book is borrowed / does not exist
        503: Store unavailable
    """
    try:
        outcome = coordinator.borrow(BorrowRequest(book_id=book_id, user_id=user_id))
    except RuntimeError as e:
        raise store_unavailable(e)

    return outcome_to_response(outcome)


@router.post("/books/{book_id}/return", response_model=api.BookActionResponse)
def return_book(
    book_id: str,
    coordinator: BorrowCoordinator = Depends(get_borrow_coordinator),
) -> api.BookActionResponse:
    """
    Return a borrowed book.

    Raises:
        400: Malformed identifier
        409: The book is not currently borrowed or does not exist
        503: Store unavailable
    """
    try:
        outcome = coordinator.return_book(ReturnRequest(book_id=book_id))
    except RuntimeError as e:
        raise store_unavailable(e)

    return outcome_to_response(outcome)


@router.get("/health")
def health_check(
    catalog_provider: Callable[[], CatalogService] = Depends(get_catalog_service_provider),
) -> dict:
    """
    Report whether the catalog store is reachable.

    Returns the number of books in the catalog and how many are on loan.
    """
    try:
        stats = catalog_provider().get_stats()
    except RuntimeError as e:
        logger.warning("Health check failed: %s", e)
        return {"status": "degraded", "store": False, "reason": str(e)}

    return {"status": "ok", "store": True, **stats}
