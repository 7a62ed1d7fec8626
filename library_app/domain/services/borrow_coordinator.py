"""
Domain service for the borrow/return workflow.

=============================================================================
NOTES: Claim protocol
=============================================================================

A book moves between two states:

    Available                 is_available=True,  borrowed_by=None
    Borrowed(user)            is_available=False, borrowed_by=user

    Available --borrow(user)--> Borrowed(user)
    Borrowed(user) --return--> Available

Both transitions are a single BookRecordStore.conditional_update() whose
predicate is the source state. When several requests race for the same
book, the store lets exactly one predicate match; the others see "no match"
and are reported as BOOK_UNAVAILABLE / NOT_CURRENTLY_BORROWED. This service
holds no locks and keeps no state between calls.

The per-user quota is a count query followed by the claim, i.e. two store
operations. Concurrent borrows by the same user can therefore overshoot the
quota by one. Book exclusivity is unaffected.

=============================================================================
"""

import logging

from library_app.domain.ports import BookRecordStore, UserDirectory, IdentifierFormat
from library_app.domain.value_objects import (
    BookPredicate,
    BorrowErrorKind,
    BorrowOutcome,
    BorrowRequest,
    BorrowState,
    ReturnRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_BORROW_QUOTA = 2
"""A user may borrow while holding no more than this many books."""


class BorrowCoordinator:
    """
    Owns the borrow/return protocol.

    Validates identifiers, enforces the borrow quota, performs the atomic
    claim and release through the record store, and reports a BorrowOutcome.

    Domain rejections are returned, never raised. Infrastructure faults
    (StoreUnavailableError from a port) propagate to the caller unchanged.

    Usage:
        coordinator = BorrowCoordinator(
            book_store=sqlite_books,
            user_directory=sqlite_users,
            identifier_format=UuidIdentifierFormat(),
        )
        outcome = coordinator.borrow(BorrowRequest(book_id, user_id))
    """

    def __init__(
        self,
        book_store: BookRecordStore,
        user_directory: UserDirectory,
        identifier_format: IdentifierFormat,
        borrow_quota: int = DEFAULT_BORROW_QUOTA,
    ) -> None:
        """
        Initialize the coordinator with its collaborators.

        Args:
            book_store: Store arbitrating concurrent updates to book records
            user_directory: Read-only user lookup
            identifier_format: Syntactic validator for raw IDs
            borrow_quota: A borrow is rejected once the user already holds
                more than this many books
        """
        if borrow_quota < 0:
            raise ValueError(f"borrow_quota cannot be negative, got {borrow_quota}")

        self._book_store = book_store
        self._user_directory = user_directory
        self._identifier_format = identifier_format
        self._borrow_quota = borrow_quota

    def borrow(self, request: BorrowRequest) -> BorrowOutcome:
        """
        Claim a book for a user.

        Steps:
        1. Validate both identifiers (no I/O on failure)
        2. Ensure the user exists
        3. Enforce the quota (advisory, see module notes)
        4. Atomically claim the book if it is available and unborrowed

        Args:
            request: Raw book and user identifiers

        Returns:
            Success with the updated book and borrower, or a failure of kind
            INVALID_IDENTIFIER, USER_NOT_FOUND, QUOTA_EXCEEDED or
            BOOK_UNAVAILABLE

        Raises:
            StoreUnavailableError: If a collaborator cannot be reached
        """
        if not (
            self._identifier_format.is_valid(request.book_id)
            and self._identifier_format.is_valid(request.user_id)
        ):
            logger.info(
                "Rejected borrow with malformed ids book_id=%r user_id=%r",
                request.book_id,
                request.user_id,
            )
            return BorrowOutcome.failure(
                BorrowErrorKind.INVALID_IDENTIFIER,
                "Invalid bookId or userId",
            )

        book_id = self._identifier_format.parse(request.book_id)
        user_id = self._identifier_format.parse(request.user_id)

        user = self._user_directory.find_by_id(user_id)
        if user is None:
            logger.info("Rejected borrow of book %s: user %s not found", book_id, user_id)
            return BorrowOutcome.failure(BorrowErrorKind.USER_NOT_FOUND, "User not found")

        borrow_count = self._book_store.count_where(BookPredicate.held_by(user_id))
        # Strictly greater: with a quota of 2 a user may hold 3 books, and the
        # rejection message still names the quota (2), not the count held.
        if borrow_count > self._borrow_quota:
            logger.info(
                "Rejected borrow of book %s: user %s already holds %d books",
                book_id,
                user_id,
                borrow_count,
            )
            return BorrowOutcome.failure(
                BorrowErrorKind.QUOTA_EXCEEDED,
                f"User has reached max borrow limit ({self._borrow_quota} books)",
            )

        updated = self._book_store.conditional_update(
            book_id,
            BookPredicate.claimable(),
            BorrowState.borrowed_by_user(user_id),
        )
        if updated is None:
            logger.info("Book %s could not be claimed by user %s", book_id, user_id)
            return BorrowOutcome.failure(
                BorrowErrorKind.BOOK_UNAVAILABLE,
                "Book is already borrowed or does not exist",
            )

        logger.info("Book %s borrowed by user %s", book_id, user_id)
        return BorrowOutcome.success(
            updated,
            f"Book borrowed by {user.name}",
            borrower=user,
        )

    def return_book(self, request: ReturnRequest) -> BorrowOutcome:
        """
        Release a borrowed book back to the catalog.

        Args:
            request: Raw book identifier

        Returns:
            Success with the updated (available) book, or a failure of kind
            INVALID_IDENTIFIER or NOT_CURRENTLY_BORROWED

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        if not self._identifier_format.is_valid(request.book_id):
            logger.info("Rejected return with malformed book_id=%r", request.book_id)
            return BorrowOutcome.failure(
                BorrowErrorKind.INVALID_IDENTIFIER,
                "Invalid bookId",
            )

        book_id = self._identifier_format.parse(request.book_id)

        updated = self._book_store.conditional_update(
            book_id,
            BookPredicate.on_loan(),
            BorrowState.available(),
        )
        if updated is None:
            logger.info("Book %s is not currently borrowed", book_id)
            return BorrowOutcome.failure(
                BorrowErrorKind.NOT_CURRENTLY_BORROWED,
                "Book is not currently borrowed or does not exist",
            )

        logger.info("Book %s returned", book_id)
        return BorrowOutcome.success(updated, "Book returned")
