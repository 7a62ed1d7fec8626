"""
Helpers translating domain failures into HTTPException.
"""

import logging
from uuid import UUID

from fastapi import HTTPException, status

from library_app.domain.ports import IdentifierFormat

logger = logging.getLogger(__name__)


def parse_path_id(raw: str, identifier_format: IdentifierFormat, label: str) -> UUID:
    """Parse a path identifier or fail the request with 400."""
    if not identifier_format.is_valid(raw):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} id '{raw}'",
        )
    return identifier_format.parse(raw)


def not_found(label: str, raw: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{label.capitalize()} with id '{raw}' not found",
    )


def store_unavailable(e: RuntimeError) -> HTTPException:
    """Map an infrastructure fault to 503."""
    logger.error("Store unavailable: %s", e)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(e),
    )
