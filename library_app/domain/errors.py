"""
Exceptions raised across the port boundary.

Borrow and return rejections are not exceptions (see BorrowOutcome). These
cover catalog constraint violations and infrastructure faults, following the
ValueError / RuntimeError split the repositories use.
"""


class DuplicateBookError(ValueError):
    """A book with the same title and author is already in the catalog."""


class DuplicateUserError(ValueError):
    """A user with the same email is already registered."""


class StoreUnavailableError(RuntimeError):
    """The underlying persistence layer failed to serve the request."""
