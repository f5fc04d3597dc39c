"""
Command-line entrypoint: run the API under uvicorn, or create the schema and exit.

Run from the backend dir: python backend_entry.py [--host H] [--port P] [--reload]
  python backend_entry.py --create-schema   -> create all tables in DATABASE_URL, exit (no uvicorn)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure backend dir is on path so "from main import app" works
_backend_dir = Path(__file__).resolve().parent
if str(_backend_dir) not in sys.path:
    sys.path.insert(0, str(_backend_dir))


def _create_schema() -> int:
    """Create every table on the configured database; exit without starting the server."""

    async def _run() -> int:
        from core.config import get_settings
        from core.database import init_database, dispose_database, get_database_manager

        settings = get_settings()
        await init_database(settings.database_url)
        try:
            await get_database_manager().create_all()
        finally:
            await dispose_database()
        print("schema ok")
        return 0

    return asyncio.run(_run())


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Ball Mtaani API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    parser.add_argument("--create-schema", action="store_true", help="Create tables and exit (no server)")
    args = parser.parse_args(argv)

    if args.create_schema:
        return _create_schema()

    import uvicorn

    from core.config import get_settings

    logger = logging.getLogger(__name__)
    logger.info("Backend entry: host=%s port=%s", args.host, args.port)
    uvicorn.run(
        "main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=get_settings().log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
