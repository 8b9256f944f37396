"""
Read-only queries over a ``BookStore``: filtered listing and the
aggregate endpoints (genres, authors, stats).
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, List, Optional

from .errors import InvalidField
from .schemas import AuthorList, Book, BookList, GenreList, Stats
from .store import BookStore


_INTEGER = re.compile(r"-?\d+", re.ASCII)


def _normalize(s: Optional[str]) -> str:
    return (s or "").strip().lower()


def _parse_limit(limit: Any) -> Optional[int]:
    if limit is None or limit == "":
        return None
    if isinstance(limit, int) and not isinstance(limit, bool):
        value = limit
    elif isinstance(limit, str) and _INTEGER.fullmatch(limit.strip()):
        value = int(limit.strip())
    else:
        raise InvalidField("Query parameter 'limit' must be a non-negative integer.")
    if value < 0:
        raise InvalidField("Query parameter 'limit' must be a non-negative integer.")
    return value


def _utc_timestamp() -> str:
    """Current UTC instant as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class QueryEngine:
    def __init__(self, store: BookStore) -> None:
        self.store = store

    def list(
        self,
        author: Optional[str] = None,
        genre: Optional[str] = None,
        limit: Any = None,
    ) -> BookList:
        """Filter the catalogue, keeping insertion order.

        ``author`` and ``genre`` are case-insensitive substring matches
        (``genre`` against any of a book's genres) and are AND-combined.
        ``limit`` truncates the filtered list.
        """
        max_items = _parse_limit(limit)
        items: List[Book] = self.store.snapshot()

        nauthor = _normalize(author)
        if nauthor:
            items = [b for b in items if nauthor in _normalize(b.author)]

        ngenre = _normalize(genre)
        if ngenre:
            items = [b for b in items if any(ngenre in _normalize(g) for g in (b.genres or []))]

        if max_items is not None:
            items = items[:max_items]

        return BookList(count=len(items), books=items)

    def distinct_genres(self) -> GenreList:
        genres = dict.fromkeys(g for b in self.store.snapshot() for g in (b.genres or []))
        return GenreList(genres=list(genres))

    def distinct_authors(self) -> AuthorList:
        authors = dict.fromkeys(b.author for b in self.store.snapshot() if b.author)
        return AuthorList(authors=list(authors))

    def stats(self) -> Stats:
        books = self.store.snapshot()
        authors = {b.author for b in books if b.author}
        return Stats(
            total_books=len(books),
            total_authors=len(authors),
            last_updated=_utc_timestamp(),
        )
