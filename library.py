import itertools
import logging
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Any, Dict, Iterable, List, Optional

from book import Book, BookUpdate
from utils.validators import TextValidator

logger = logging.getLogger(__name__)

LOAN_PERIOD = timedelta(days=7)
RECOMMENDATION_LIMIT = 3


class ValidationError(ValueError):
    pass


class NotFoundError(LookupError):
    pass


def sample_books() -> List[Book]:
    """Seed records the service starts with."""
    return [
        Book("1", "The Great Gatsby", "F. Scott Fitzgerald", "Fiction"),
        Book("2", "1984", "George Orwell", "Dystopian"),
        Book("3", "To Kill a Mockingbird", "Harper Lee", "Classic"),
    ]


class Library:
    """Manages the in-memory book collection and its lending state.

    Every operation holds a single lock for its whole read-modify-write, so the
    collection can be shared between request threads.
    """

    def __init__(self, books: Optional[Iterable[Book]] = None) -> None:
        self._lock = RLock()
        self._ids = itertools.count(1)
        self.books: List[Book] = []
        for book in books or []:
            if self.find_book(book.id):
                raise ValueError(f"Book with ID {book.id} already exists.")
            self.books.append(book)

    def locked(self) -> RLock:
        """The catalog lock, for callers that need several operations to see one consistent state."""
        return self._lock

    # ------------------------- Core operations ------------------------- #
    def list_books(self) -> List[Book]:
        with self._lock:
            return list(self.books)

    def find_book(self, book_id: str) -> Optional[Book]:
        with self._lock:
            for book in self.books:
                if book.id == book_id:
                    return book
            return None

    def add_book(self, title: Optional[str], author: Optional[str], genre: Optional[str]) -> Book:
        """Create a book from its required fields and append it to the catalog."""
        missing = TextValidator.missing_fields({"title": title, "author": author, "genre": genre})
        if missing:
            logger.warning(f"Rejected new book, missing fields: {missing}")
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        with self._lock:
            book = Book(self._next_id(), title, author, genre)
            self.books.append(book)
        logger.info(f"Book added: id={book.id}, title={book.title!r}")
        return book

    def update_book(self, book_id: str, changes: BookUpdate) -> Book:
        """Apply the supplied fields onto an existing book in place."""
        with self._lock:
            book = self.find_book(book_id)
            if not book:
                raise NotFoundError(f"Book with ID {book_id} not found")

            values = changes.changes()
            empty = TextValidator.missing_fields(values)
            if empty:
                raise ValidationError(f"Fields cannot be empty: {', '.join(empty)}")

            for name, value in values.items():
                setattr(book, name, TextValidator.normalize(value))
        logger.info(f"Book updated: id={book_id}, fields={sorted(values)}")
        return book

    def remove_book(self, book_id: str) -> bool:
        with self._lock:
            book = self.find_book(book_id)
            if not book:
                return False
            self.books.remove(book)
        logger.info(f"Book removed: id={book_id}")
        return True

    # ------------------------- Lending ------------------------- #
    def borrow_book(self, book_id: str, borrower_id: str) -> Optional[Book]:
        """Lend a book for LOAN_PERIOD. Returns None if the book is unknown or already out."""
        if not TextValidator.is_non_empty(borrower_id):
            raise ValidationError("borrowerId is required")

        with self._lock:
            book = self.find_book(book_id)
            if not book or book.is_borrowed:
                logger.warning(f"Borrow refused: id={book_id} is not available")
                return None

            book.is_borrowed = True
            book.borrower_id = borrower_id
            book.due_date = datetime.now(timezone.utc) + LOAN_PERIOD
        logger.info(f"Book borrowed: id={book_id}, borrower={borrower_id}")
        return book

    def return_book(self, book_id: str) -> Optional[Book]:
        """Mark a book as returned. Returns None if the book is unknown or not borrowed."""
        with self._lock:
            book = self.find_book(book_id)
            if not book or not book.is_borrowed:
                logger.warning(f"Return refused: id={book_id} is not borrowed")
                return None

            book.is_borrowed = False
            book.borrower_id = None
            book.due_date = None
        logger.info(f"Book returned: id={book_id}")
        return book

    def get_recommendations(self) -> List[Book]:
        """First RECOMMENDATION_LIMIT available books in catalog order."""
        with self._lock:
            available = [book for book in self.books if book.is_available]
            return available[:RECOMMENDATION_LIMIT]

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            borrowed = sum(1 for book in self.books if book.is_borrowed)
            return {
                "total_books": len(self.books),
                "borrowed_books": borrowed,
                "available_books": len(self.books) - borrowed,
            }

    # ------------------------- Utilities ------------------------- #
    def _next_id(self) -> str:
        # Skips ids already taken by seeded or caller-supplied books.
        while True:
            candidate = str(next(self._ids))
            if not self.find_book(candidate):
                return candidate
