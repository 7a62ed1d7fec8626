"""
Domain service for catalog maintenance (add, list, edit, remove books).
"""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from library_app.domain.entities import Book
from library_app.domain.errors import DuplicateBookError
from library_app.domain.ports import BookRecordStore
from library_app.domain.value_objects import BookDetailsUpdate, BookPredicate, NewBook

logger = logging.getLogger(__name__)


class CatalogService:
    """
    CRUD use cases over the book catalog.

    Borrow state is never written here; new books start available and
    edits are limited to descriptive fields.
    """

    def __init__(self, book_store: BookRecordStore) -> None:
        self._book_store = book_store

    def list_books(self, limit: Optional[int] = None) -> List[Book]:
        """Return catalog books, newest first."""
        return self._book_store.get_all(limit=limit)

    def get_book(self, book_id: UUID) -> Optional[Book]:
        return self._book_store.get_by_id(book_id)

    def add_book(self, new_book: NewBook) -> Book:
        """
        Add a book to the catalog.

        Args:
            new_book: Descriptive data of the book

        Returns:
            The created Book, available for borrowing

        Raises:
            DuplicateBookError: If a book with the same title and author exists
        """
        existing = self._book_store.find_by_title_and_author(new_book.title, new_book.author)
        if existing is not None:
            raise DuplicateBookError(
                f"Book '{new_book.title}' by {new_book.author} already exists"
            )

        book = Book.create_new(
            title=new_book.title,
            author=new_book.author,
            published_year=new_book.published_year,
            genre=new_book.genre,
        )
        self._book_store.add(book)
        logger.info("Added book %s ('%s')", book.id, book.title)
        return book

    def update_book(self, book_id: UUID, update: BookDetailsUpdate) -> Optional[Book]:
        """
        Edit the descriptive fields of a book.

        Returns:
            The updated Book, or None if it does not exist
        """
        if update.is_empty():
            return self._book_store.get_by_id(book_id)
        return self._book_store.update_details(book_id, update.as_changes())

    def delete_book(self, book_id: UUID) -> Optional[Book]:
        """
        Remove a book from the catalog.

        Returns:
            The removed Book, or None if it did not exist
        """
        deleted = self._book_store.delete(book_id)
        if deleted is not None:
            logger.info("Deleted book %s", book_id)
        return deleted

    def books_held_by(self, user_id: UUID) -> List[Book]:
        """List the books a user currently holds."""
        return self._book_store.find_where(BookPredicate.held_by(user_id))

    def get_stats(self) -> Dict[str, int]:
        """Count catalog books and the subset currently on loan."""
        return {
            "books": self._book_store.count_where(BookPredicate()),
            "on_loan": self._book_store.count_where(BookPredicate.on_loan()),
        }
