"""Command-line interface for athlete sessions."""

import argparse
import asyncio
import logging
import sys

from athlete_sessions.config import get_settings


async def _init_db() -> None:
    from athlete_sessions.database.connection import Database

    database = Database.from_settings(get_settings())
    try:
        await database.create_tables()
    finally:
        await database.close()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Athlete Sessions - Strava login and server-side sessions"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind address (default: from settings)")
    serve_parser.add_argument(
        "--port", type=int, help="Bind port (default: from settings)"
    )

    # Init-db command
    subparsers.add_parser(
        "init-db", help="Create the database tables (development only)"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "init-db":
        asyncio.run(_init_db())
        print("Database tables created.")
        return 0

    import uvicorn

    from athlete_sessions.api import create_app

    uvicorn.run(
        create_app(settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
