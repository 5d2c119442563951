"""
Registry Inspector CLI

Debug tool for the persisted emote vote registry.

Usage:
    # List every persisted scope
    python scripts/registry_inspector.py list

    # Ranked standings for one scope
    python scripts/registry_inspector.py stats --guild-id 123 --channel-id 456

    # Export all scopes to JSON (backup before a migration)
    python scripts/registry_inspector.py export --output backups/registry.json

    # Load scopes from a JSON export
    python scripts/registry_inspector.py import --input backups/registry.json
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import asyncpg
from dotenv import load_dotenv

from emotes.registry import CandidateRegistry
from emotes.store import RegistryStore

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


async def list_scopes(store: RegistryStore):
    """List persisted scopes with candidate and vote totals."""
    snapshots = await store.load_snapshots()
    if not snapshots:
        logger.info("No persisted scopes found.")
        return

    logger.info(f"\n{'='*60}")
    logger.info(f"Found {len(snapshots)} scope(s)")
    logger.info(f"{'='*60}\n")

    for snapshot in snapshots:
        candidates = snapshot.get("candidates", [])
        votes = sum(len(c.get("voters", [])) for c in candidates)
        logger.info(
            f"guild {snapshot['guild_id']} / channel {snapshot['channel_id']}: "
            f"{len(candidates)} candidate(s), {votes} vote(s)"
        )


async def show_stats(store: RegistryStore, guild_id: int, channel_id: int):
    """Print the standings of one scope in the bot's ranking order."""
    snapshot = await store.load_snapshot(guild_id, channel_id)
    if snapshot is None:
        logger.info("Scope not found.")
        return

    registry = CandidateRegistry()
    registry.restore_state(snapshot)
    standings = registry.snapshot_stats(guild_id, channel_id)
    if not standings:
        logger.info("No candidates in this scope.")
        return

    for rank, entry in enumerate(standings, start=1):
        candidate = entry.candidate
        logger.info(
            f"{rank:>3}. {candidate.name:<24} {entry.count:>4} vote(s)  "
            f"id={candidate.id} by {candidate.submitter_name or candidate.submitter_id}"
        )


async def export_scopes(store: RegistryStore, output_file: str):
    """Export every scope to a JSON file."""
    snapshots = await store.load_snapshots()
    Path(output_file).parent.mkdir(parents=True, exist_ok=True)
    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(snapshots, f, indent=2, ensure_ascii=False)
    logger.info(f"Exported {len(snapshots)} scope(s) to {output_file}")


async def import_scopes(store: RegistryStore, input_file: str):
    """Write scopes from a JSON export back to the database."""
    with open(input_file, encoding="utf-8") as f:
        snapshots = json.load(f)

    written = 0
    for snapshot in snapshots:
        if await store.save_snapshot(snapshot):
            written += 1
    logger.info(f"Imported {written}/{len(snapshots)} scope(s) from {input_file}")


async def main_async(args):
    """Async main function."""
    db_url = os.environ.get("DATABASE_URL")
    if not db_url:
        logger.error("DATABASE_URL environment variable required")
        sys.exit(1)

    pool = await asyncpg.create_pool(db_url, min_size=1, max_size=2)
    store = RegistryStore(pool)

    try:
        await store.ensure_schema()
        if args.command == "list":
            await list_scopes(store)
        elif args.command == "stats":
            await show_stats(store, args.guild_id, args.channel_id)
        elif args.command == "export":
            await export_scopes(store, args.output)
        elif args.command == "import":
            await import_scopes(store, args.input)
    finally:
        await pool.close()


def main():
    parser = argparse.ArgumentParser(
        description="Registry Inspector CLI - Inspect persisted emote votes"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List persisted scopes")

    stats_parser = subparsers.add_parser("stats", help="Show standings for a scope")
    stats_parser.add_argument("--guild-id", type=int, required=True, help="Guild ID")
    stats_parser.add_argument("--channel-id", type=int, required=True, help="Channel ID")

    export_parser = subparsers.add_parser("export", help="Export scopes to JSON")
    export_parser.add_argument("--output", "-o", required=True, help="Output file path")

    import_parser = subparsers.add_parser("import", help="Import scopes from JSON")
    import_parser.add_argument("--input", "-i", required=True, help="Input file path")

    args = parser.parse_args()
    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
