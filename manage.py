#!/usr/bin/env python3
"""
Operations script for the relational mirror.
Creates and drops the mirror tables, and checks or repairs its agreement with
the primary store.
"""

import asyncio
import sys
import argparse
import logging

from app.config import settings
from app.database import AsyncSessionLocal, create_tables, drop_tables, close_db_connection
from app.documents import get_document_store
from app.services.mirror import PropertyMirrorService
from app.services.sync import MirrorReconciler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class MirrorManager:
    """Runs mirror maintenance commands against the configured stores."""

    async def init_db(self) -> None:
        """Create the mirror tables."""
        logger.info(f"Creating mirror tables ({settings.environment})")
        await create_tables()

    async def drop_db(self) -> None:
        """Drop the mirror tables."""
        logger.info(f"Dropping mirror tables ({settings.environment})")
        await drop_tables()

    async def check_sync(self) -> bool:
        """
        Report differences between the stores.

        Returns:
            True if the stores agree
        """
        async with AsyncSessionLocal() as session:
            reconciler = MirrorReconciler(get_document_store(), PropertyMirrorService(session))
            report = await reconciler.check()

        for property_id in report.only_in_primary:
            print(f"only in primary store: {property_id}")
        for property_id in report.only_in_mirror:
            print(f"only in mirror:        {property_id}")
        for property_id, fields in report.mismatched.items():
            print(f"mismatched:            {property_id} ({', '.join(fields)})")

        if report.in_sync:
            print("Stores are in sync")
        return report.in_sync

    async def resync(self, prune: bool = False) -> None:
        """Rebuild the mirror from the primary store."""
        async with AsyncSessionLocal() as session:
            reconciler = MirrorReconciler(get_document_store(), PropertyMirrorService(session))
            result = await reconciler.resync(prune=prune)
        print(f"Upserted {result.upserted} rows, pruned {result.pruned} rows")


async def _run(coro):
    try:
        return await coro
    finally:
        await close_db_connection()


def main():
    """Main CLI interface for mirror management."""
    parser = argparse.ArgumentParser(description="Relational mirror management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create the mirror tables")

    subparsers.add_parser("check-sync", help="Compare the primary store with the mirror")

    resync_parser = subparsers.add_parser("resync", help="Rebuild the mirror from the primary store")
    resync_parser.add_argument("--prune", action="store_true", help="Delete mirror rows without a document")

    drop_parser = subparsers.add_parser("drop-db", help="Drop the mirror tables (not in production)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm dropping the tables")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    manager = MirrorManager()

    try:
        if args.command == "init-db":
            asyncio.run(_run(manager.init_db()))

        elif args.command == "check-sync":
            if not asyncio.run(_run(manager.check_sync())):
                sys.exit(1)

        elif args.command == "resync":
            asyncio.run(_run(manager.resync(prune=args.prune)))

        elif args.command == "drop-db":
            if not args.confirm:
                print("Dropping the mirror tables requires --confirm flag")
                return
            asyncio.run(_run(manager.drop_db()))

    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
