# bookshelf/main.py
from typing import Optional

from fastapi import FastAPI

from .catalog import catalog_router
from .catalog.dispatch import Dispatcher
from .catalog.store import BookStore
from .config import Settings
from .static import StaticAssets


def create_app(settings: Optional[Settings] = None, store: Optional[BookStore] = None) -> FastAPI:
    """Build the application around a store.

    When no store is given one is loaded from ``settings.data_file``.
    The dispatcher's catch-all route owns every path, so FastAPI's own
    docs endpoints are switched off.
    """
    settings = settings or Settings.from_env()
    if store is None:
        store = BookStore()
        store.load_file(settings.data_file)

    app = FastAPI(
        title="Bookshelf",
        description="In-memory book catalogue with a small JSON API and a static front-end.",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.dispatcher = Dispatcher(store, StaticAssets(settings.client_dir))
    app.include_router(catalog_router)
    return app


app = create_app()
