"""
Turn dispatcher outcomes into Starlette responses.

``Content-Type`` and ``Content-Length`` are always set. A HEAD request
gets the headers a GET would have produced and an empty body.
"""

from __future__ import annotations

from fastapi import Response
from pydantic import BaseModel

from .dispatch import Outcome


def render_body(outcome: Outcome) -> bytes:
    if isinstance(outcome.body, BaseModel):
        return outcome.body.model_dump_json(by_alias=True).encode("utf-8")
    return outcome.body


def encode_outcome(outcome: Outcome, method: str = "GET") -> Response:
    content = render_body(outcome)
    headers = {"Content-Length": str(len(content))}
    if method.upper() == "HEAD":
        content = b""
    return Response(
        content=content,
        status_code=outcome.status,
        media_type=outcome.media_type,
        headers=headers,
    )
