"""
Request dispatcher for the catalogue.

The whole HTTP surface is one ordered table of ``Route`` entries. Each
route pairs a set of methods with a pattern and a handler; the first
route whose method and pattern both match handles the request.
Patterns are built from small matchers over the ``/``-separated raw
path, so ``/api/books/{title}`` and ``/api/booksByTitle`` never need
ad hoc string slicing:

* ``Literal("books")`` matches that exact segment;
* ``Capture("title")`` matches any non-empty segment outside its
  reserved words and hands it to the handler percent-decoded;
* ``StaticPattern`` matches asset suffixes and fixed asset paths.

Handlers return an ``Outcome`` (status, body, media type).
``CatalogError`` raised anywhere below a handler is converted into an
error outcome here, which is the request boundary.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qs, unquote

from pydantic import BaseModel

from ..static import StaticAssets
from .errors import CatalogError, MalformedBody, NotFound
from .queries import QueryEngine
from .schemas import BookMutation, ErrorMessage
from .store import BookStore


logger = logging.getLogger(__name__)

READ_METHODS = frozenset({"GET", "HEAD"})
WRITE_METHODS = frozenset({"POST"})

STATIC_SUFFIXES = (".css", ".js", ".png", ".jpg", ".txt")
STATIC_PATHS = ("/documentation.html",)
RESERVED_TITLES = frozenset({"books", "booksByTitle"})

JSON_MEDIA_TYPE = "application/json"
FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"


@dataclass
class Outcome:
    """Result of dispatching one request.

    ``body`` is a pydantic model for JSON responses or raw bytes for
    static content.
    """

    status: int
    body: Union[BaseModel, bytes]
    media_type: str = JSON_MEDIA_TYPE


@dataclass
class RequestContext:
    method: str
    path: str
    query: Mapping[str, str]
    body: bytes = b""
    content_type: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)

    def fields(self) -> Dict[str, Any]:
        return parse_body(self.content_type, self.body)


def parse_body(content_type: Optional[str], raw: bytes) -> Dict[str, Any]:
    """Parse a fully buffered request body according to its content type.

    JSON must be an object; form data becomes a flat mapping where a
    repeated key keeps all of its values as a list. Any other content
    type yields no fields.
    """
    media_type = (content_type or "").split(";", 1)[0].strip().lower()

    if media_type == JSON_MEDIA_TYPE:
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise MalformedBody(f"Request body is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise MalformedBody("Request body must be a JSON object.")
        return data

    if media_type == FORM_MEDIA_TYPE:
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedBody("Form body is not valid UTF-8.") from exc
        parsed = parse_qs(text, keep_blank_values=True)
        return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}

    return {}


# ----------------------------------------------------------------------
# Path matchers


@dataclass(frozen=True)
class Literal:
    value: str

    def accepts(self, segment: str) -> bool:
        return segment == self.value


@dataclass(frozen=True)
class Capture:
    name: str
    reserved: FrozenSet[str] = frozenset()

    def accepts(self, segment: str) -> bool:
        return bool(segment) and unquote(segment) not in self.reserved


Segment = Union[Literal, Capture]


@dataclass(frozen=True)
class PathPattern:
    segments: Tuple[Segment, ...]

    def match(self, path: str) -> Optional[Dict[str, str]]:
        parts = path.split("/")[1:]
        if len(parts) != len(self.segments):
            return None
        params: Dict[str, str] = {}
        for matcher, part in zip(self.segments, parts):
            if not matcher.accepts(part):
                return None
            if isinstance(matcher, Capture):
                params[matcher.name] = unquote(part)
        return params


@dataclass(frozen=True)
class StaticPattern:
    suffixes: Tuple[str, ...]
    paths: Tuple[str, ...] = ()

    def match(self, path: str) -> Optional[Dict[str, str]]:
        decoded = unquote(path)
        if decoded in self.paths or decoded.endswith(self.suffixes):
            return {"path": decoded}
        return None


def path_pattern(template: str, reserved: FrozenSet[str] = frozenset()) -> PathPattern:
    """Build a ``PathPattern`` from ``"/api/books/:title"``-style text."""
    segments: List[Segment] = []
    for part in template.split("/")[1:]:
        if part.startswith(":"):
            segments.append(Capture(part[1:], reserved))
        else:
            segments.append(Literal(part))
    return PathPattern(tuple(segments))


Handler = Callable[[RequestContext], Outcome]


@dataclass(frozen=True)
class Route:
    methods: FrozenSet[str]
    pattern: Union[PathPattern, StaticPattern]
    handler: Handler


# ----------------------------------------------------------------------
# Dispatcher


class Dispatcher:
    """Map method + path + query onto store and query operations."""

    def __init__(self, store: BookStore, assets: StaticAssets, queries: Optional[QueryEngine] = None) -> None:
        self.store = store
        self.assets = assets
        self.queries = queries or QueryEngine(store)
        self.routes = self._build_routes()

    def _build_routes(self) -> List[Route]:
        return [
            Route(READ_METHODS, StaticPattern(STATIC_SUFFIXES, STATIC_PATHS), self.static_asset),
            Route(READ_METHODS, path_pattern("/"), self.index_page),
            Route(READ_METHODS, path_pattern("/api/books"), self.list_books),
            Route(READ_METHODS, path_pattern("/api/booksByTitle"), self.list_books),
            Route(READ_METHODS, path_pattern("/api/books/:title", RESERVED_TITLES), self.get_book),
            Route(READ_METHODS, path_pattern("/api/booksByTitle/:title", RESERVED_TITLES), self.get_book),
            Route(READ_METHODS, path_pattern("/api/genres"), self.list_genres),
            Route(READ_METHODS, path_pattern("/api/authors"), self.list_authors),
            Route(READ_METHODS, path_pattern("/api/stats"), self.get_stats),
            Route(WRITE_METHODS, path_pattern("/api/books"), self.create_book),
            Route(WRITE_METHODS, path_pattern("/api/books/:title", RESERVED_TITLES), self.update_book),
        ]

    def resolve(self, method: str, path: str) -> Optional[Tuple[Route, Dict[str, str]]]:
        """Return the first route matching ``method`` and ``path``."""
        method = method.upper()
        for route in self.routes:
            if method not in route.methods:
                continue
            params = route.pattern.match(path)
            if params is not None:
                return route, params
        return None

    def dispatch(
        self,
        method: str,
        path: str,
        query: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
        content_type: Optional[str] = None,
    ) -> Outcome:
        """Handle one request.

        ``path`` is the raw, still percent-encoded request path. Errors
        are returned as outcomes carrying ``{"message": ...}``.
        """
        ctx = RequestContext(method.upper(), path, query or {}, body, content_type)
        try:
            resolved = self.resolve(ctx.method, path)
            if resolved is None:
                raise NotFound("Not Found: The requested endpoint does not exist.")
            route, ctx.params = resolved
            outcome = route.handler(ctx)
        except CatalogError as exc:
            logger.info("%s %s -> %d: %s", ctx.method, path, exc.status_code, exc.message)
            return Outcome(exc.status_code, ErrorMessage(message=exc.message))
        logger.debug("%s %s -> %d", ctx.method, path, outcome.status)
        return outcome

    # ------------------------------------------------------------------
    # Handlers

    def static_asset(self, ctx: RequestContext) -> Outcome:
        asset = self.assets.read(ctx.params["path"])
        if asset is None:
            raise NotFound(f"Static file {ctx.params['path']} not found.")
        content, media_type = asset
        return Outcome(200, content, media_type)

    def index_page(self, ctx: RequestContext) -> Outcome:
        return Outcome(200, self.assets.index(), "text/html")

    def list_books(self, ctx: RequestContext) -> Outcome:
        result = self.queries.list(
            author=ctx.query.get("author"),
            genre=ctx.query.get("genre"),
            limit=ctx.query.get("limit"),
        )
        return Outcome(200, result)

    def get_book(self, ctx: RequestContext) -> Outcome:
        return Outcome(200, self.store.get(ctx.params["title"]))

    def list_genres(self, ctx: RequestContext) -> Outcome:
        return Outcome(200, self.queries.distinct_genres())

    def list_authors(self, ctx: RequestContext) -> Outcome:
        return Outcome(200, self.queries.distinct_authors())

    def get_stats(self, ctx: RequestContext) -> Outcome:
        return Outcome(200, self.queries.stats())

    def create_book(self, ctx: RequestContext) -> Outcome:
        book = self.store.insert(ctx.fields())
        return Outcome(201, BookMutation(message="Book added successfully", book=book))

    def update_book(self, ctx: RequestContext) -> Outcome:
        result = self.store.update(ctx.params["title"], ctx.fields())
        if not result.changed:
            return Outcome(200, BookMutation(message="No updatable fields provided.", book=result.book))
        return Outcome(200, BookMutation(message="Book updated successfully.", book=result.book))
