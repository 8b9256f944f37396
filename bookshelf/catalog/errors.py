"""
Error kinds raised by the catalogue.

Each exception carries the HTTP status it maps to. The dispatcher
catches ``CatalogError`` at the request boundary and turns it into a
``{"message": ...}`` body, so none of these ever reach the server
loop.
"""


class CatalogError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingField(CatalogError):
    """One or more required fields are absent from a new book."""

    status_code = 400


class InvalidField(CatalogError):
    """A field is present but unusable (e.g. a negative year)."""

    status_code = 400


class MalformedBody(CatalogError):
    """The request body could not be parsed as declared."""

    status_code = 400


class Conflict(CatalogError):
    """Another book already owns the normalized title."""

    status_code = 409


class NotFound(CatalogError):
    status_code = 404
