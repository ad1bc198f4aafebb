"""
Run the API with uvicorn: ``python -m classsite``.
"""

from __future__ import annotations

import logging

import uvicorn

from classsite.app import create_app
from classsite.config import get_settings


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
