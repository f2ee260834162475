"""API server entry point.

Environment:
    HOST, PORT: bind address (default 0.0.0.0:8000).
    SONGCRAFT_LOG_LEVEL: root and uvicorn log level (default INFO).
"""

from __future__ import annotations

import logging
import os
import sys

import uvicorn

from songcraft.api.routes import create_app
from songcraft.services.auth import ApiKeySelector

log = logging.getLogger("songcraft.server")


def setup_logging() -> str:
    level = os.environ.get("SONGCRAFT_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return level


def main() -> None:
    """Run the SongCraft API server."""
    level = setup_logging()
    key_selector = ApiKeySelector()
    if not key_selector.has_selected_api_key():
        log.warning("No API key in the environment; clients must POST /api/key before generating")

    app = create_app(key_selector=key_selector)
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    log.info(f"SongCraft API listening on {host}:{port}")
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=level.lower(),
    )


if __name__ == "__main__":
    main()
