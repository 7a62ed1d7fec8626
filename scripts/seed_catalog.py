#!/usr/bin/env python3
"""
Catalog Seeding Script.

Fills a local database with a handful of users and books so the borrow
endpoints can be tried out by hand. Existing records are left in place.

Usage:
    python -m scripts.seed_catalog --db-path data/library.db
"""

import argparse
import logging
import sys
from pathlib import Path

from library_app.domain.entities import User
from library_app.domain.errors import DuplicateBookError, DuplicateUserError, StoreUnavailableError
from library_app.domain.services import CatalogService
from library_app.domain.value_objects import NewBook
from library_app.infrastructure.db import SqliteBookRecordStore, SqliteUserDirectory

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("data/library.db")

SAMPLE_USERS = [
    ("Ada Lovelace", "ada@example.org"),
    ("Alan Turing", "alan@example.org"),
    ("Grace Hopper", "grace@example.org"),
]

SAMPLE_BOOKS = [
    NewBook(title="The Hobbit", author="J.R.R. Tolkien", published_year=1937, genre="Fantasy"),
    NewBook(title="Dune", author="Frank Herbert", published_year=1965, genre="Science Fiction"),
    NewBook(title="Neuromancer", author="William Gibson", published_year=1984, genre="Science Fiction"),
    NewBook(title="The Name of the Rose", author="Umberto Eco", published_year=1980, genre="Mystery"),
    NewBook(title="Middlemarch", author="George Eliot", published_year=1871),
]


def main(db_path: Path) -> int:
    """
    Seed the catalog.

    Args:
        db_path: SQLite database to fill

    Returns:
        Number of records created
    """
    logger.info(f"Seeding catalog at {db_path}")

    try:
        users = SqliteUserDirectory(db_path)
        catalog = CatalogService(SqliteBookRecordStore(db_path))
    except StoreUnavailableError as e:
        logger.error(f"Cannot open database: {e}")
        sys.exit(1)

    created = 0

    for name, email in SAMPLE_USERS:
        user = User.create_new(name=name, email=email)
        try:
            users.add(user)
            logger.info(f"Created user {user.id} ({email})")
            created += 1
        except DuplicateUserError:
            logger.info(f"User {email} already exists, skipping")

    for new_book in SAMPLE_BOOKS:
        try:
            book = catalog.add_book(new_book)
            logger.info(f"Created book {book.id} ('{book.title}')")
            created += 1
        except DuplicateBookError:
            logger.info(f"Book '{new_book.title}' already exists, skipping")

    logger.info(f"Seeding complete: {created} records created")
    return created


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the library catalog with sample data")
    parser.add_argument(
        "--db-path", "-d",
        type=Path,
        default=DEFAULT_DB_PATH,
        help=f"SQLite database path (default: {DEFAULT_DB_PATH})"
    )

    args = parser.parse_args()
    main(args.db_path)
