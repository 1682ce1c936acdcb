"""
Booking core developer entry point.

Creates the relational schema or runs the offline console demo.

Usage:
    Create tables:  python main.py init-db [--database-url URL]
    Console demo:   python main.py demo
"""

import argparse
import asyncio
import logging
import sys
import uuid
from typing import Optional

from booking_core.config import settings
from booking_core.logging_context import set_request_id

logger = logging.getLogger(__name__)


async def _init_db(url: str) -> None:
    from booking_core.database import create_engine_from_settings, init_db

    engine = create_engine_from_settings(url)
    try:
        await init_db(engine)
    finally:
        await engine.dispose()


def _run_console_mode() -> None:
    """Start the offline console demo (no database required)."""
    from console_demo import run

    asyncio.run(run("staff-ana"))


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Booking core developer tools.")
    sub = parser.add_subparsers(dest="command", required=True)

    init_parser = sub.add_parser("init-db", help="Create database tables.")
    init_parser.add_argument(
        "--database-url",
        default=settings.database.url,
        help="Database URL (default: DATABASE_URL).",
    )
    sub.add_parser("demo", help="Run the offline console demo.")

    args = parser.parse_args(argv)
    set_request_id(f"CLI-{uuid.uuid4().hex[:8]}")

    if args.command == "init-db":
        asyncio.run(_init_db(args.database_url))
        logger.info("Schema ready at %s", args.database_url.split("@")[-1])
    elif args.command == "demo":
        _run_console_mode()
    return 0


if __name__ == "__main__":
    sys.exit(main())
