"""
In-memory data store for the catalogue API.

``BookStore`` owns the authoritative list of books together with an
index that maps each book's normalized title to the very same
``Book`` object, so an edit made through the index is visible in the
list and vice versa. The store is built once at startup (see
``bookshelf.main.create_app``) and handed to the dispatcher; nothing
in this module keeps books in a global.

Every public method runs under a single re-entrant lock. Updates do a
lookup, a conflict check and a rekey, and readers must never see a
book that sits half-way through that sequence.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from .errors import Conflict, InvalidField, MissingField, NotFound
from .schemas import Book


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "author", "genres", "year")
TEXT_FIELDS = ("author", "country", "language", "link")

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_DIGITS = re.compile(r"\d+", re.ASCII)


def normalize_title(title: Optional[str]) -> str:
    """Return the lookup key for a title.

    Lower-cased, trimmed and stripped of everything but ``a-z`` and
    ``0-9``. ``"The Hobbit!"`` and ``"the hobbit"`` share a key; that
    loose match is intended.
    """
    if not title:
        return ""
    return _NON_ALNUM.sub("", title.lower().strip())


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_count(value: Any) -> Optional[int]:
    """Parse a non-negative integer from JSON or form input.

    Returns ``None`` when the value is not a whole, non-negative number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value >= 0 else None
    if isinstance(value, str) and _DIGITS.fullmatch(value.strip()):
        return int(value.strip())
    return None


def _parse_genres(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(g, str) for g in value):
        return list(value)
    raise InvalidField("Field 'genres' must be a string or a list of strings.")


def _parse_text(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidField(f"Field '{name}' must be a string.")
    return value


@dataclass
class UpdateResult:
    """Outcome of ``BookStore.update``.

    ``changed`` is False when the request carried no recognized field;
    the book is then returned untouched.
    """

    book: Book
    changed: bool


class BookStore:
    """Ordered list of books plus a normalized-title index."""

    def __init__(self, raw_books: Union[Iterable[Any], Mapping[str, Any], None] = None) -> None:
        self._lock = threading.RLock()
        self.books: List[Book] = []
        self.index: Dict[str, Book] = {}
        if raw_books is not None:
            self.initialize(raw_books)

    # ------------------------------------------------------------------
    # Loading

    def initialize(self, raw_books: Union[Iterable[Any], Mapping[str, Any]]) -> None:
        """Replace the whole dataset.

        Parameters
        ----------
        raw_books : iterable or mapping
            Either a sequence of book records or an object holding them
            under a ``"books"`` key (the shape of the bundled data file).

        Records are taken as they are. When two records share a
        normalized title both stay in the list and the later one wins
        the index slot.
        """
        if isinstance(raw_books, Mapping):
            raw_books = raw_books.get("books") or []

        books: List[Book] = []
        for position, entry in enumerate(raw_books):
            if isinstance(entry, Book):
                books.append(entry)
                continue
            if isinstance(entry, Mapping):
                # null fields fall back to the model defaults
                entry = {k: v for k, v in entry.items() if v is not None}
            try:
                books.append(Book.model_validate(entry))
            except ValidationError as exc:
                logger.warning("Skipping book record #%d: %s", position, exc)

        with self._lock:
            self.books = books
            self.index = {normalize_title(b.title): b for b in books}
        logger.info("Loaded %d books (%d distinct titles)", len(books), len(self.index))

    def load_file(self, path: Path) -> None:
        """Initialize from a JSON file, falling back to an empty catalogue."""
        try:
            with Path(path).open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Could not load books from %s: %s", path, exc)
            raw = []
        if not isinstance(raw, (list, dict)):
            logger.error("Unexpected data in %s: %s", path, type(raw).__name__)
            raw = []
        self.initialize(raw)

    # ------------------------------------------------------------------
    # Reads

    def snapshot(self) -> List[Book]:
        """Copy of the book list, in insertion order."""
        with self._lock:
            return list(self.books)

    def __len__(self) -> int:
        with self._lock:
            return len(self.books)

    def find(self, key: str) -> Optional[Book]:
        """Look a book up by an already normalized key."""
        with self._lock:
            return self.index.get(key)

    def find_by_title(self, title: str) -> Optional[Book]:
        return self.find(normalize_title(title))

    def get(self, title: str) -> Book:
        book = self.find_by_title(title)
        if book is None:
            raise NotFound(f'Book titled "{title}" not found.')
        return book

    # ------------------------------------------------------------------
    # Writes

    def insert(self, fields: Mapping[str, Any]) -> Book:
        """Validate ``fields`` and add a new book.

        Raises
        ------
        MissingField
            When any of title, author, genres or year is absent.
        InvalidField
            When year (or pages) is not a non-negative integer, or a
            text field is not a string.
        Conflict
            When a book with the same normalized title exists.
        """
        if any(_is_absent(fields.get(name)) for name in REQUIRED_FIELDS):
            raise MissingField(f"Missing required field: {', '.join(REQUIRED_FIELDS)}")

        title = _parse_text("title", fields["title"])
        year = _parse_count(fields["year"])
        if year is None:
            raise InvalidField("Field 'year' must be a non-negative integer.")
        pages = 0
        if not _is_absent(fields.get("pages")):
            pages = _parse_count(fields["pages"])
            if pages is None:
                raise InvalidField("Field 'pages' must be a non-negative integer.")

        values: Dict[str, Any] = {
            "title": title,
            "year": year,
            "pages": pages,
            "genres": _parse_genres(fields["genres"]),
        }
        for name in TEXT_FIELDS:
            if not _is_absent(fields.get(name)):
                values[name] = _parse_text(name, fields[name])
        book = Book(**values)
        key = normalize_title(title)

        with self._lock:
            if key in self.index:
                raise Conflict(f'Book titled "{title}" already exists.')
            self.books.append(book)
            self.index[key] = book
        logger.info("Added book %r", title)
        return book

    def update(self, current_title: str, fields: Mapping[str, Any]) -> UpdateResult:
        """Apply a partial update to the book found under ``current_title``.

        Only recognized fields that are present are applied. Every check
        runs before the first assignment, so a failed update leaves the
        book and the index exactly as they were.
        """
        changes: Dict[str, Any] = {}
        for name in TEXT_FIELDS:
            if not _is_absent(fields.get(name)):
                changes[name] = _parse_text(name, fields[name])
        for name in ("year", "pages"):
            if not _is_absent(fields.get(name)):
                parsed = _parse_count(fields[name])
                if parsed is not None:
                    changes[name] = parsed
        if not _is_absent(fields.get("genres")):
            changes["genres"] = _parse_genres(fields["genres"])
        new_title = None
        if not _is_absent(fields.get("title")):
            new_title = _parse_text("title", fields["title"])

        with self._lock:
            old_key = normalize_title(current_title)
            book = self.index.get(old_key)
            if book is None:
                raise NotFound(f'Book titled "{current_title}" not found for update.')

            new_key = None
            if new_title is not None and new_title != book.title:
                new_key = normalize_title(new_title)
                occupant = self.index.get(new_key)
                if occupant is not None and occupant is not book:
                    raise Conflict(f'Book titled "{new_title}" already exists.')

            if not changes and new_key is None:
                return UpdateResult(book=book, changed=False)

            for name, value in changes.items():
                setattr(book, name, value)
            if new_key is not None:
                del self.index[old_key]
                book.title = new_title
                self.index[new_key] = book

        updated = sorted(changes) + (["title"] if new_key is not None else [])
        logger.info("Updated book %r: %s", book.title, ", ".join(updated))
        return UpdateResult(book=book, changed=True)
