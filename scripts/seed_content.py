"""
Create the admin account and default content without starting the server.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from classsite.app import bootstrap
from classsite.config import get_settings
from classsite.dependencies import build_context

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed admin user and defaults")
    parser.add_argument(
        "--backend",
        choices=["database", "file"],
        default=None,
        help="Override CLASSSITE_STORAGE_BACKEND",
    )
    parser.add_argument("--username", default=None, help="Override ADMIN_USERNAME")
    parser.add_argument("--password", default=None, help="Override ADMIN_PASSWORD")
    parser.add_argument(
        "--no-defaults",
        action="store_true",
        help="Only bootstrap the admin user",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")

    overrides = {}
    if args.backend:
        overrides["storage_backend"] = args.backend
    if args.username:
        overrides["admin_username"] = args.username
    if args.password:
        overrides["admin_password"] = args.password
    if args.no_defaults:
        overrides["seed_defaults"] = False
    settings = get_settings().model_copy(update=overrides)

    context = build_context(settings)
    try:
        bootstrap(context)
    finally:
        context.close()
    logger.info("Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
