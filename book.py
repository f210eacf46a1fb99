from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as ISO-8601 UTC with millisecond precision, e.g. 2026-10-25T09:30:00.000Z."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Book:
    """Represents a single catalog entry that can be lent out."""

    def __init__(self, book_id: str, title: str, author: str, genre: str, is_borrowed: bool = False,
                 borrower_id: str | None = None, due_date: datetime | None = None) -> None:
        self.id = book_id
        self.title = title.strip()
        self.author = author.strip()
        self.genre = genre.strip()
        self.is_borrowed = is_borrowed
        self.borrower_id = borrower_id
        self.due_date = due_date

    @property
    def is_available(self) -> bool:
        return not self.is_borrowed

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} ({self.genre}, ID: {self.id})"

    def to_dict(self) -> dict:
        """Serialize to the wire shape; borrower fields are omitted while the book is available."""
        data = {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "genre": self.genre,
            "isBorrowed": self.is_borrowed,
        }
        if self.borrower_id is not None:
            data["borrowerId"] = self.borrower_id
        if self.due_date is not None:
            data["dueDate"] = format_timestamp(self.due_date)
        return data


@dataclass
class BookUpdate:
    """The mutable subset of a Book. Fields left as None are not touched."""

    title: str | None = None
    author: str | None = None
    genre: str | None = None

    def changes(self) -> dict:
        return {name: value for name, value in vars(self).items() if value is not None}
