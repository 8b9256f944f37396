"""
Filesystem-backed source for the front-end assets (index page,
stylesheet, scripts, images and the documentation page).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple


logger = logging.getLogger(__name__)

INDEX_FILE = "client.html"

CONTENT_TYPES = {
    ".css": "text/css",
    ".js": "text/javascript",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".txt": "text/plain",
    ".html": "text/html",
}


class StaticAssets:
    def __init__(self, root: Path) -> None:
        self.root = Path(root).resolve()

    def read(self, path: str) -> Optional[Tuple[bytes, str]]:
        """Return ``(content, content_type)`` for a request path, or ``None``.

        Paths resolving outside the asset directory are treated as missing.
        """
        target = (self.root / path.lstrip("/")).resolve()
        if self.root not in target.parents or not target.is_file():
            return None
        try:
            content = target.read_bytes()
        except OSError as exc:
            logger.error("Error reading static file %s: %s", target, exc)
            return None
        return content, CONTENT_TYPES.get(target.suffix.lower(), "application/octet-stream")

    def index(self) -> bytes:
        asset = self.read(INDEX_FILE)
        if asset is None:
            logger.error("Index page %s missing from %s", INDEX_FILE, self.root)
            return b"Error: Client html not found"
        return asset[0]
