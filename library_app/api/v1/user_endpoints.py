"""
API endpoints for library users.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from library_app.domain.entities import User
from library_app.domain.errors import DuplicateUserError
from library_app.domain.ports import IdentifierFormat, UserRepository
from library_app.domain.services import CatalogService
from library_app.api.v1 import schemas as api
from library_app.api.v1.converters import domain_book_to_api, domain_user_to_api
from library_app.api.v1.dependencies import (
    get_catalog_service,
    get_identifier_format,
    get_user_repository,
)
from library_app.api.v1.http_errors import not_found, parse_path_id, store_unavailable

router = APIRouter()


@router.post("/users", response_model=api.User, status_code=status.HTTP_201_CREATED)
def create_user(
    request: api.UserCreate,
    users: UserRepository = Depends(get_user_repository),
) -> api.User:
    """
    Register a library user.

    Raises:
        409: The email is already registered
    """
    try:
        if users.find_by_email(request.email) is not None:
            raise DuplicateUserError(f"User with email '{request.email}' already exists")
        user = User.create_new(name=request.name, email=request.email)
        users.add(user)
    except DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RuntimeError as e:
        raise store_unavailable(e)

    return domain_user_to_api(user)


@router.get("/users/{user_id}", response_model=api.User)
def get_user(
    user_id: str,
    users: UserRepository = Depends(get_user_repository),
    identifier_format: IdentifierFormat = Depends(get_identifier_format),
) -> api.User:
    parsed_id = parse_path_id(user_id, identifier_format, "user")
    try:
        user = users.find_by_id(parsed_id)
    except RuntimeError as e:
        raise store_unavailable(e)

    if user is None:
        raise not_found("user", user_id)

    return domain_user_to_api(user)


@router.get("/users/{user_id}/books", response_model=list[api.Book])
def list_borrowed_books(
    user_id: str,
    users: UserRepository = Depends(get_user_repository),
    catalog: CatalogService = Depends(get_catalog_service),
    identifier_format: IdentifierFormat = Depends(get_identifier_format),
) -> list[api.Book]:
    """
    List the books a user currently holds.

    Raises:
        400: Malformed identifier
        404: User not found
    """
    parsed_id = parse_path_id(user_id, identifier_format, "user")
    try:
        user = users.find_by_id(parsed_id)
        if user is None:
            raise not_found("user", user_id)
        books = catalog.books_held_by(parsed_id)
    except RuntimeError as e:
        raise store_unavailable(e)

    return [domain_book_to_api(book) for book in books]
