#!/usr/bin/env python3
"""Create the schema and seed the default catalog, check-in activity and exchange rule."""
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace

from lotus_backend.core.config import DatabaseSettings
from lotus_backend.core.errors import InfrastructureError
from lotus_backend.services.engine import RewardsEngine


async def run(args: argparse.Namespace) -> int:
    settings = DatabaseSettings.from_env()
    if args.database_url:
        settings = replace(settings, url=args.database_url)

    engine = RewardsEngine.from_settings(settings)
    try:
        if args.drop:
            await engine.db.drop_all()
            print("Dropped all tables")
        if not args.status_only:
            summary = await engine.seed.bootstrap(create_tables=not args.skip_create)
            print(json.dumps(summary, ensure_ascii=False, indent=2))
        status = await engine.seed.status()
        print(json.dumps(status, ensure_ascii=False, indent=2))
        return 0 if status["connected"] else 1
    except InfrastructureError as exc:
        print(f"Database error: {exc.code}: {exc.message}", file=sys.stderr)
        return 2
    finally:
        await engine.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialise the lotus rewards database.")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    parser.add_argument("--skip-create", action="store_true", help="Seed only, do not create tables")
    parser.add_argument("--status-only", action="store_true", help="Only print connection status and counts")
    parser.add_argument("--drop", action="store_true", help="Drop all tables first (destroys data)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
