"""
Tests for BorrowCoordinator.

Uses in-memory fakes for the record store and user directory with spy
counters, so the tests can assert both outcomes and which collaborators
were (or were not) consulted.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, replace
from datetime import datetime, UTC
from typing import Dict, List, Optional
from uuid import UUID

import pytest

from library_app.domain.entities import Book, User
from library_app.domain.errors import StoreUnavailableError
from library_app.domain.identifiers import UuidIdentifierFormat, new_identifier
from library_app.domain.services import BorrowCoordinator
from library_app.domain.value_objects import (
    BookPredicate,
    BorrowErrorKind,
    BorrowRequest,
    BorrowState,
    ReturnRequest,
)


# =============================================================================
# Fake implementations for testing
# =============================================================================


class FakeBookRecordStore:
    """
    In-memory record store with spy capabilities.

    conditional_update() checks and writes under a lock, standing in for the
    record-level atomicity a real store provides.
    """

    def __init__(self, initial_books: Optional[List[Book]] = None):
        self._books: Dict[UUID, Book] = {}
        self._lock = threading.Lock()
        for book in initial_books or []:
            self._books[book.id] = book

        # Spy tracking
        self.conditional_update_calls: List[tuple] = []
        self.count_where_calls: List[BookPredicate] = []

    @property
    def total_calls(self) -> int:
        return len(self.conditional_update_calls) + len(self.count_where_calls)

    def conditional_update(
        self,
        book_id: UUID,
        predicate: BookPredicate,
        new_state: BorrowState,
    ) -> Optional[Book]:
        self.conditional_update_calls.append((book_id, predicate, new_state))
        with self._lock:
            book = self._books.get(book_id)
            if book is None or not predicate.matches(book):
                return None
            updated = replace(
                book,
                is_available=new_state.is_available,
                borrowed_by=new_state.borrowed_by,
                updated_at=datetime.now(UTC),
            )
            self._books[book_id] = updated
            return updated

    def count_where(self, predicate: BookPredicate) -> int:
        self.count_where_calls.append(predicate)
        return sum(1 for book in self._books.values() if predicate.matches(book))

    def find_where(self, predicate: BookPredicate) -> List[Book]:
        return [book for book in self._books.values() if predicate.matches(book)]

    def get_by_id(self, book_id: UUID) -> Optional[Book]:
        return self._books.get(book_id)


class FakeUserDirectory:
    """Fake user directory with spy capabilities."""

    def __init__(self, users: Optional[List[User]] = None):
        self._users = {user.id: user for user in users or []}
        self.find_by_id_calls: List[UUID] = []

    def find_by_id(self, user_id: UUID) -> Optional[User]:
        self.find_by_id_calls.append(user_id)
        return self._users.get(user_id)


class FailingBookRecordStore(FakeBookRecordStore):
    """Record store whose every query fails like an unreachable database."""

    def count_where(self, predicate: BookPredicate) -> int:
        raise StoreUnavailableError("database is locked")

    def conditional_update(self, book_id, predicate, new_state):
        raise StoreUnavailableError("database is locked")


# =============================================================================
# Fixtures
# =============================================================================


def make_book(title: str = "The Hobbit", **kwargs) -> Book:
    defaults = dict(author="J.R.R. Tolkien", published_year=1937, genre="Fantasy")
    defaults.update(kwargs)
    return Book(id=new_identifier(), title=title, **defaults)


@pytest.fixture
def user() -> User:
    return User.create_new(name="Ada Lovelace", email="ada@example.org")


@pytest.fixture
def book() -> Book:
    return make_book()


@pytest.fixture
def store(book) -> FakeBookRecordStore:
    return FakeBookRecordStore([book])


@pytest.fixture
def directory(user) -> FakeUserDirectory:
    return FakeUserDirectory([user])


@pytest.fixture
def coordinator(store, directory) -> BorrowCoordinator:
    return BorrowCoordinator(
        book_store=store,
        user_directory=directory,
        identifier_format=UuidIdentifierFormat(),
    )


def borrow(coordinator: BorrowCoordinator, book_id, user_id):
    return coordinator.borrow(BorrowRequest(book_id=str(book_id), user_id=str(user_id)))


# =============================================================================
# Borrow
# =============================================================================


class TestBorrow:
    """Tests for BorrowCoordinator.borrow()."""

    def test_borrow_available_book_succeeds(self, coordinator, store, book, user):
        """An available book is claimed by an existing user with no loans."""
        outcome = borrow(coordinator, book.id, user.id)

        assert outcome.ok
        assert outcome.error is None
        assert outcome.book.is_available is False
        assert outcome.book.borrowed_by == user.id
        assert outcome.borrower == user
        assert outcome.message == "Book borrowed by Ada Lovelace"

        stored = store.get_by_id(book.id)
        assert stored.is_available is False
        assert stored.borrowed_by == user.id

    def test_claim_uses_available_and_unborrowed_predicate(self, coordinator, store, book, user):
        borrow(coordinator, book.id, user.id)

        book_id, predicate, new_state = store.conditional_update_calls[0]
        assert book_id == book.id
        assert predicate == BookPredicate(is_available=True, unborrowed=True)
        assert new_state == BorrowState(is_available=False, borrowed_by=user.id)

    def test_repeated_borrow_is_unavailable(self, coordinator, book, user):
        """Borrowing a book the same user already holds is rejected."""
        borrow(coordinator, book.id, user.id)

        outcome = borrow(coordinator, book.id, user.id)

        assert not outcome.ok
        assert outcome.error == BorrowErrorKind.BOOK_UNAVAILABLE
        assert outcome.book is None

    def test_book_borrowed_by_someone_else_is_unavailable(self, store, book, user):
        other = User.create_new(name="Alan Turing", email="alan@example.org")
        coordinator = BorrowCoordinator(
            store, FakeUserDirectory([user, other]), UuidIdentifierFormat()
        )
        borrow(coordinator, book.id, other.id)

        outcome = borrow(coordinator, book.id, user.id)

        assert outcome.error == BorrowErrorKind.BOOK_UNAVAILABLE
        assert store.get_by_id(book.id).borrowed_by == other.id

    def test_missing_book_is_unavailable(self, coordinator, user):
        outcome = borrow(coordinator, new_identifier(), user.id)

        assert outcome.error == BorrowErrorKind.BOOK_UNAVAILABLE
        assert outcome.message == "Book is already borrowed or does not exist"

    def test_unknown_user_is_rejected_before_any_store_access(self, coordinator, store, book):
        outcome = borrow(coordinator, book.id, new_identifier())

        assert outcome.error == BorrowErrorKind.USER_NOT_FOUND
        assert store.total_calls == 0
        assert store.get_by_id(book.id).is_available is True

    @pytest.mark.parametrize(
        "raw_book_id",
        ["not-an-id", "123", "", "{00000000-0000-0000-0000-000000000000}"],
    )
    def test_invalid_book_id_performs_no_io(self, coordinator, store, directory, user, raw_book_id):
        """Malformed identifiers are rejected without touching any collaborator."""
        outcome = coordinator.borrow(BorrowRequest(book_id=raw_book_id, user_id=str(user.id)))

        assert outcome.error == BorrowErrorKind.INVALID_IDENTIFIER
        assert store.total_calls == 0
        assert directory.find_by_id_calls == []

    def test_invalid_user_id_performs_no_io(self, coordinator, store, directory, book):
        outcome = coordinator.borrow(BorrowRequest(book_id=str(book.id), user_id="nope"))

        assert outcome.error == BorrowErrorKind.INVALID_IDENTIFIER
        assert outcome.message == "Invalid bookId or userId"
        assert store.total_calls == 0
        assert directory.find_by_id_calls == []

    def test_store_failure_propagates(self, directory, book, user):
        coordinator = BorrowCoordinator(
            FailingBookRecordStore([book]), directory, UuidIdentifierFormat()
        )

        with pytest.raises(StoreUnavailableError):
            borrow(coordinator, book.id, user.id)


class TestBorrowQuota:
    """The quota check is literally `held > borrow_quota` with a default quota of 2."""

    def _store_with_loans(self, user: User, held: int, extra: Book) -> FakeBookRecordStore:
        loans = [
            make_book(title=f"Loan {i}", is_available=False, borrowed_by=user.id)
            for i in range(held)
        ]
        return FakeBookRecordStore(loans + [extra])

    def test_user_with_two_books_can_borrow_a_third(self, user, book):
        store = self._store_with_loans(user, 2, book)
        coordinator = BorrowCoordinator(store, FakeUserDirectory([user]), UuidIdentifierFormat())

        outcome = borrow(coordinator, book.id, user.id)

        assert outcome.ok
        assert store.count_where(BookPredicate.held_by(user.id)) == 3

    def test_user_with_three_books_cannot_borrow_a_fourth(self, user, book):
        store = self._store_with_loans(user, 3, book)
        coordinator = BorrowCoordinator(store, FakeUserDirectory([user]), UuidIdentifierFormat())

        outcome = borrow(coordinator, book.id, user.id)

        assert outcome.error == BorrowErrorKind.QUOTA_EXCEEDED
        assert store.conditional_update_calls == []
        assert store.get_by_id(book.id).is_available is True

    def test_rejection_names_the_quota_not_the_count_held(self, user, book):
        store = self._store_with_loans(user, 3, book)
        coordinator = BorrowCoordinator(store, FakeUserDirectory([user]), UuidIdentifierFormat())

        outcome = borrow(coordinator, book.id, user.id)

        # Three books held, default quota of 2: the message reports the quota.
        assert outcome.message == "User has reached max borrow limit (2 books)"

    def test_quota_counts_only_the_users_own_loans(self, user, book):
        other = User.create_new(name="Alan Turing", email="alan@example.org")
        store = self._store_with_loans(other, 5, book)
        coordinator = BorrowCoordinator(store, FakeUserDirectory([user]), UuidIdentifierFormat())

        assert borrow(coordinator, book.id, user.id).ok
        assert store.count_where_calls == [BookPredicate.held_by(user.id)]

    def test_custom_quota(self, user, book):
        store = self._store_with_loans(user, 1, book)
        coordinator = BorrowCoordinator(
            store, FakeUserDirectory([user]), UuidIdentifierFormat(), borrow_quota=0
        )

        outcome = borrow(coordinator, book.id, user.id)

        assert outcome.error == BorrowErrorKind.QUOTA_EXCEEDED
        assert "(0 books)" in outcome.message

    def test_negative_quota_is_rejected(self, store, directory):
        with pytest.raises(ValueError, match="borrow_quota"):
            BorrowCoordinator(store, directory, UuidIdentifierFormat(), borrow_quota=-1)


# =============================================================================
# Return
# =============================================================================


class TestReturn:
    """Tests for BorrowCoordinator.return_book()."""

    def test_return_borrowed_book_succeeds(self, coordinator, store, book, user):
        borrow(coordinator, book.id, user.id)

        outcome = coordinator.return_book(ReturnRequest(book_id=str(book.id)))

        assert outcome.ok
        assert outcome.message == "Book returned"
        assert outcome.borrower is None
        assert outcome.book.is_available is True
        assert outcome.book.borrowed_by is None
        assert store.get_by_id(book.id).is_available is True

    def test_return_available_book_is_not_currently_borrowed(self, coordinator, store, book):
        outcome = coordinator.return_book(ReturnRequest(book_id=str(book.id)))

        assert outcome.error == BorrowErrorKind.NOT_CURRENTLY_BORROWED
        assert asdict(store.get_by_id(book.id)) == asdict(book)

    def test_second_return_is_rejected(self, coordinator, book, user):
        borrow(coordinator, book.id, user.id)
        assert coordinator.return_book(ReturnRequest(book_id=str(book.id))).ok

        outcome = coordinator.return_book(ReturnRequest(book_id=str(book.id)))

        assert outcome.error == BorrowErrorKind.NOT_CURRENTLY_BORROWED

    def test_return_missing_book(self, coordinator):
        outcome = coordinator.return_book(ReturnRequest(book_id=str(new_identifier())))

        assert outcome.error == BorrowErrorKind.NOT_CURRENTLY_BORROWED

    def test_invalid_book_id_performs_no_io(self, coordinator, store):
        outcome = coordinator.return_book(ReturnRequest(book_id="698a1c8c5b604a9110187da0"))

        assert outcome.error == BorrowErrorKind.INVALID_IDENTIFIER
        assert store.total_calls == 0

    def test_release_uses_on_loan_predicate(self, coordinator, store, book, user):
        borrow(coordinator, book.id, user.id)

        coordinator.return_book(ReturnRequest(book_id=str(book.id)))

        _, predicate, new_state = store.conditional_update_calls[-1]
        assert predicate == BookPredicate(is_available=False)
        assert new_state == BorrowState.available()

    def test_borrow_then_return_restores_fields(self, coordinator, store, book, user):
        """Round trip leaves every field except timestamps as it was."""
        borrow(coordinator, book.id, user.id)
        coordinator.return_book(ReturnRequest(book_id=str(book.id)))

        restored = store.get_by_id(book.id)
        for field_name in ["id", "title", "author", "genre", "published_year",
                           "is_available", "borrowed_by", "created_at"]:
            assert getattr(restored, field_name) == getattr(book, field_name)

    def test_returned_book_can_be_borrowed_by_another_user(self, store, book, user):
        other = User.create_new(name="Alan Turing", email="alan@example.org")
        coordinator = BorrowCoordinator(
            store, FakeUserDirectory([user, other]), UuidIdentifierFormat()
        )
        borrow(coordinator, book.id, user.id)
        coordinator.return_book(ReturnRequest(book_id=str(book.id)))

        outcome = borrow(coordinator, book.id, other.id)

        assert outcome.ok
        assert outcome.book.borrowed_by == other.id


# =============================================================================
# Concurrency
# =============================================================================


class TestConcurrentBorrow:
    """Racing borrows are arbitrated by the store alone."""

    def test_exactly_one_of_many_racing_borrowers_wins(self, book):
        users = [
            User.create_new(name=f"Reader {i}", email=f"reader{i}@example.org")
            for i in range(16)
        ]
        store = FakeBookRecordStore([book])
        coordinator = BorrowCoordinator(store, FakeUserDirectory(users), UuidIdentifierFormat())
        barrier = threading.Barrier(len(users))

        def attempt(user: User):
            barrier.wait()
            return borrow(coordinator, book.id, user.id)

        with ThreadPoolExecutor(max_workers=len(users)) as pool:
            outcomes = list(pool.map(attempt, users))

        winners = [o for o in outcomes if o.ok]
        losers = [o for o in outcomes if not o.ok]

        assert len(winners) == 1
        assert len(losers) == len(users) - 1
        assert all(o.error == BorrowErrorKind.BOOK_UNAVAILABLE for o in losers)

        final = store.get_by_id(book.id)
        assert final.is_available is False
        assert final.borrowed_by == winners[0].borrower.id
        assert final.borrowed_by in {u.id for u in users}
