from __future__ import annotations


class Book:
    """Represents a single entry in the reading list."""

    def __init__(self, title: str, author: str, rating: int, cover_identifier: str | None = None,
                 notes: str | None = None, id: int | None = None, cover_url: str | None = None) -> None:
        self.id = id
        self.title = title.strip()
        self.author = author.strip()
        self.rating = rating
        self.cover_identifier = _blank_to_none(cover_identifier)
        self.notes = _blank_to_none(notes)
        # Resolved at read time, never persisted
        self.cover_url = cover_url

    def __str__(self) -> str:
        return f"{self.title} by {self.author} ({self.rating}/5)"

    def __repr__(self) -> str:
        return f"Book(id={self.id!r}, title={self.title!r}, rating={self.rating!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "rating": self.rating,
            "cover_identifier": self.cover_identifier,
            "notes": self.notes,
        }

    def with_cover(self, cover_url: str) -> "Book":
        return Book(
            title=self.title,
            author=self.author,
            rating=self.rating,
            cover_identifier=self.cover_identifier,
            notes=self.notes,
            id=self.id,
            cover_url=cover_url,
        )

    @staticmethod
    def from_dict(data) -> "Book":
        # Accepts plain dicts from the JSON store and sqlite3.Row mappings
        data = dict(data)
        return Book(
            title=data["title"],
            author=data["author"],
            rating=data["rating"],
            cover_identifier=data.get("cover_identifier"),
            notes=data.get("notes"),
            id=data.get("id"),
        )


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
