"""
HTTP surface of the catalogue.

A single catch-all route hands every request to the ``Dispatcher``
stored on ``app.state``. Route resolution (including the
``/api/books`` vs ``/api/booksByTitle`` aliases and static assets)
lives in ``dispatch.py``; this module only buffers the body, calls the
dispatcher and encodes the outcome.

Endpoints (all resolved by the dispatcher):
- GET  /                         : index page
- GET  /*.css|js|png|jpg|txt     : static assets, plus /documentation.html
- GET  /api/books                : list with author/genre/limit filters
- GET  /api/books/{title}        : one book (alias /api/booksByTitle/...)
- GET  /api/genres|authors|stats : aggregates
- POST /api/books                : create
- POST /api/books/{title}        : partial update
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect

from .dispatch import Dispatcher, Outcome
from .responses import encode_outcome
from .schemas import ErrorMessage


logger = logging.getLogger(__name__)

HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

router = APIRouter(tags=["catalog"])


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


def _raw_path(request: Request) -> str:
    """The request path exactly as sent, percent-encoding included."""
    raw = request.scope.get("raw_path")
    if raw:
        return raw.decode("latin-1").split("?", 1)[0]
    return quote(request.url.path)


@router.api_route("/{path:path}", methods=HTTP_METHODS, include_in_schema=False)
async def handle_request(request: Request, dispatcher: Dispatcher = Depends(get_dispatcher)) -> Response:
    method = request.method
    try:
        body = await request.body()
    except ClientDisconnect:
        logger.warning("Client disconnected while sending %s %s", method, request.url.path)
        return encode_outcome(Outcome(400, ErrorMessage(message="Could not read request body.")), method)

    # handlers read files and wait on the store lock
    outcome = await run_in_threadpool(
        dispatcher.dispatch,
        method,
        _raw_path(request),
        query=dict(request.query_params),
        body=body,
        content_type=request.headers.get("content-type"),
    )
    return encode_outcome(outcome, method)
