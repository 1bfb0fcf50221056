"""Server entry point for the YouTube knowledge base API.

Run with ``python -m src.main`` or through the ``knowledge-base-api``
console script. Host, port and auto-reload come from the environment.
"""

import os

import uvicorn

from src.api.main import app

__all__ = ["app", "run"]


def run() -> None:
    """Start uvicorn with ``API_HOST`` / ``API_PORT`` / ``API_RELOAD``."""
    uvicorn.run(
        "src.main:app",
        host=os.getenv("API_HOST", "127.0.0.1"),
        port=int(os.getenv("API_PORT", "8030")),
        reload=os.getenv("API_RELOAD", "false").lower() == "true",
    )


if __name__ == "__main__":
    run()
