"""
Pydantic schema definitions for the catalog module.

The ``Book`` model mirrors the records found in the bulk-load data
file. It is deliberately lenient: required-field checks for new books
live in ``BookStore.insert`` so that loading the data file never
rejects a record just because a field is blank. Unknown keys are kept
(``extra="allow"``) and echoed back to clients untouched.

The remaining models wrap the JSON bodies returned by the API so that
every endpoint answers with a ``{ }``-shaped object.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Book(BaseModel):
    """A single catalogue entry.

    ``title`` is free text; the lookup key derived from it (see
    ``normalize_title``) is never stored on the model. ``genres`` keeps
    the order it was given in and can be empty.
    """

    model_config = ConfigDict(extra="allow")

    title: str = ""
    author: str = ""
    country: str = "Unknown"
    language: str = "English"
    pages: int = 0
    year: int = 0
    genres: List[str] = Field(default_factory=list)
    link: str = ""


class BookList(BaseModel):
    """Response body for ``/api/books`` listings."""

    count: int
    books: List[Book]


class GenreList(BaseModel):
    genres: List[str]


class AuthorList(BaseModel):
    authors: List[str]


class Stats(BaseModel):
    """Aggregate numbers for ``/api/stats``.

    Field names follow the wire format (camelCase) through aliases, so
    dump with ``by_alias=True``.
    """

    model_config = ConfigDict(populate_by_name=True)

    total_books: int = Field(alias="totalBooks")
    total_authors: int = Field(alias="totalAuthors")
    last_updated: str = Field(alias="lastUpdated")


class BookMutation(BaseModel):
    """Body returned after a create or an update."""

    message: str
    book: Book


class ErrorMessage(BaseModel):
    message: str
