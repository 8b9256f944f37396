"""
Catalog package for the book catalog service.

The package keeps every book in memory (``store``), answers listing
and aggregate queries over them (``queries``) and resolves incoming
requests through one ordered route table (``dispatch``). ``router``
exposes the dispatcher to FastAPI. Data is loaded once from a JSON
file at startup and lives for the lifetime of the process; nothing is
written back to disk.
"""

from .router import router as catalog_router  # noqa: F401
