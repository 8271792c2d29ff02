#!/usr/bin/env python3
"""
Initialize Fishinge Database
Creates SQLite database with schema, WAL mode and (optionally) starter data
"""

import argparse
import logging
import sqlite3
import sys
from datetime import datetime, timezone
from pathlib import Path

LOGGER = logging.getLogger(__name__)

# Shown while a user is on cooldown, "{cooldown}" is replaced by the remaining time
DEFAULT_COOLDOWN_MESSAGES = [
    "you just fished! Try again in {cooldown}.",
    "your fishing rod is still drying. Try again in {cooldown}.",
    "the fish need a break from you. Come back in {cooldown}.",
    "you are out of bait. The shop reopens in {cooldown}.",
    "the lake is frozen for you for another {cooldown}.",
]

# (name, html_name, count, base_value, min_weight, max_weight, is_trash)
DEFAULT_FISHES = [
    ("🐟", "Fish", 1000, 100, 0.5, 3.0, False),
    ("🐠", "Tropical Fish", 500, 250, 0.1, 0.8, False),
    ("🐡", "Blowfish", 300, 400, 0.8, 4.5, False),
    ("🦀", "Crab", 300, 300, 0.3, 2.0, False),
    ("🦐", "Shrimp", 400, 150, 0.01, 0.1, False),
    ("🦑", "Squid", 150, 600, 1.0, 12.0, False),
    ("🐙", "Octopus", 100, 900, 3.0, 15.0, False),
    ("🦈", "Shark", 20, 5000, 500.0, 1100.0, False),
    ("🐋", "Whale", 5, 20000, 88000.0, 130000.0, False),
    ("👢", "Boot", 400, -50, 0.0, 0.0, True),
    ("🌿", "Seaweed", 400, -20, 0.0, 0.0, True),
    ("🥫", "Tin Can", 300, -30, 0.0, 0.0, True),
]


def seed_defaults(db_path: str, bundle_name: str = "default", now: datetime = None) -> None:
    """
    Insert a starter bundle, its fishes, the current season and the
    cooldown messages.
    """
    # Local imports: init_db.py also runs as a plain script
    from database.manager import DatabaseManager
    from modules.fishing.seasons import YearAndQuarter

    db = DatabaseManager(db_path=db_path)
    now = now or datetime.now(timezone.utc)

    bundle_id = db.create_bundle(bundle_name)
    for name, html_name, count, base_value, min_weight, max_weight, is_trash in DEFAULT_FISHES:
        db.add_fish(bundle_id, name, html_name, count, base_value, min_weight, max_weight, is_trash)
    LOGGER.info(f"🐟 {len(DEFAULT_FISHES)} fishes added to bundle '{bundle_name}'")

    quarter = YearAndQuarter.containing(now)
    db.create_season(str(quarter), quarter.start(), quarter.end(), bundle_id)

    for text in DEFAULT_COOLDOWN_MESSAGES:
        db.add_message(text)
    LOGGER.info(f"💬 {len(DEFAULT_COOLDOWN_MESSAGES)} cooldown messages added")


def init_database(db_path: str = "fishinge.db", force: bool = False, seed: bool = False) -> bool:
    """
    Initialize database with schema

    Args:
        db_path: Path to SQLite database file
        force: If True, drop existing database
        seed: If True, insert starter data
    """
    db_file = Path(db_path)

    if db_file.exists():
        if not force:
            LOGGER.error(f"❌ Database already exists: {db_path}")
            LOGGER.error("   Use --force to recreate it (WARNING: deletes all data!)")
            return False
        LOGGER.warning(f"⚠️ Dropping existing database: {db_path}")
        db_file.unlink()
        for suffix in ("-wal", "-shm"):
            Path(f"{db_path}{suffix}").unlink(missing_ok=True)

    schema_file = Path(__file__).parent / "schema.sql"
    if not schema_file.exists():
        LOGGER.error(f"❌ Schema file not found: {schema_file}")
        return False

    schema_sql = schema_file.read_text(encoding="utf-8")

    LOGGER.info(f"📦 Creating database: {db_path}")
    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.executescript(schema_sql)
        conn.commit()

        # Enable WAL mode for concurrent reads/writes
        cursor.execute("PRAGMA journal_mode=WAL")
        LOGGER.info(f"✅ WAL mode enabled: {cursor.fetchone()[0]}")

        cursor.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
        tables = [row[0] for row in cursor.fetchall()]
        LOGGER.info(f"✅ Tables created: {', '.join(tables)}")
    except sqlite3.Error as e:
        LOGGER.error(f"❌ Failed to initialize database: {e}", exc_info=True)
        return False
    finally:
        conn.close()

    if seed:
        seed_defaults(db_path)

    LOGGER.info(f"✅ Database initialized successfully: {db_path}")
    return True


def main():
    """Main entry point"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-8s %(message)s"
    )

    parser = argparse.ArgumentParser(description="Initialize Fishinge Database")
    parser.add_argument(
        '--db',
        type=str,
        default='fishinge.db',
        help='Path to database file (default: fishinge.db)'
    )
    parser.add_argument(
        '--force',
        action='store_true',
        help='Force recreation (deletes existing database!)'
    )
    parser.add_argument(
        '--seed',
        action='store_true',
        help='Insert a starter bundle, season and cooldown messages'
    )

    args = parser.parse_args()

    success = init_database(args.db, args.force, args.seed)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
