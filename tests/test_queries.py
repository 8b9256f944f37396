"""
Tests for listing and aggregate queries.
"""

import re

import pytest

from bookshelf.catalog.errors import InvalidField
from bookshelf.catalog.queries import QueryEngine


@pytest.fixture
def queries(store):
    return QueryEngine(store)


def test_list_without_filters_returns_everything(queries, store):
    result = queries.list()
    assert result.count == len(store)
    assert result.books == store.books


def test_author_filter_is_case_insensitive_substring(queries):
    result = queries.list(author="DOSTOEV")
    assert [b.title for b in result.books] == ["Crime and Punishment", "The Brothers Karamazov"]
    assert result.count == 2


def test_genre_filter_matches_any_genre(queries):
    result = queries.list(genre="myst")
    assert [b.title for b in result.books] == ["The Brothers Karamazov"]


def test_filters_are_combined(queries):
    assert queries.list(author="dostoevsky", genre="psychological").count == 1
    assert queries.list(author="austen", genre="fantasy").count == 0


@pytest.mark.parametrize("limit", [0, 1, 2, "3", 100])
def test_limit_truncates_and_keeps_order(queries, store, limit):
    result = queries.list(limit=limit)
    expected = store.books[: int(limit)]
    assert result.books == expected
    assert result.count == len(expected) <= int(limit)


def test_limit_applies_after_filters(queries):
    result = queries.list(genre="philosophical", limit="1")
    assert [b.title for b in result.books] == ["Crime and Punishment"]


@pytest.mark.parametrize("limit", ["-1", "ten", "2.5"])
def test_invalid_limit(queries, limit):
    with pytest.raises(InvalidField):
        queries.list(limit=limit)


def test_distinct_genres(queries):
    genres = queries.distinct_genres().genres
    assert genres.count("Philosophical fiction") == 1
    assert set(genres) == {
        "Romance",
        "Satire",
        "Philosophical fiction",
        "Psychological fiction",
        "Mystery",
        "Short stories",
        "Fantasy",
    }


def test_distinct_authors_skips_empty(queries, store):
    store.insert({"title": "Anon", "author": "x", "genres": [], "year": 1})
    store.books[-1].author = ""
    authors = queries.distinct_authors().authors
    assert authors == ["Jane Austen", "Fyodor Dostoevsky", "Jorge Luis Borges"]


def test_stats(queries, store):
    stats = queries.stats()
    assert stats.total_books == len(store) == 4
    assert stats.total_authors == 3
    assert stats.total_authors <= stats.total_books
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", stats.last_updated)


def test_stats_tracks_inserts(queries, store):
    store.insert({"title": "Dune", "author": "Frank Herbert", "genres": ["scifi"], "year": 1965})
    stats = queries.stats()
    assert stats.total_books == 5
    assert stats.total_authors == 4


def test_stats_wire_names(queries):
    dumped = queries.stats().model_dump(by_alias=True)
    assert set(dumped) == {"totalBooks", "totalAuthors", "lastUpdated"}
