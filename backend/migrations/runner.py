"""
Firestore Migration Runner

Tracks executed migrations in a _migrations collection.

Usage:
    python -m migrations.runner migrate      # Run pending migrations
    python -m migrations.runner status       # Show migration status
    python -m migrations.runner create NAME  # Create new migration file
"""

import argparse
import importlib.util
from datetime import datetime, timezone
from pathlib import Path

from google.cloud.firestore_v1 import Client

from teamfinder.core.logging import get_logger

logger = get_logger("teamfinder.migrations")

MIGRATIONS_COLLECTION = "_migrations"
MIGRATIONS_DIR = Path(__file__).parent


def get_db() -> Client:
    from teamfinder.repositories.firestore_repo import get_client

    return get_client()


def get_executed_migrations(db: Client) -> set[str]:
    """Get set of already executed migration IDs."""
    return {doc.id for doc in db.collection(MIGRATIONS_COLLECTION).stream()}


def mark_migration_executed(db: Client, migration_id: str) -> None:
    db.collection(MIGRATIONS_COLLECTION).document(migration_id).set({
        "executed_at": datetime.now(timezone.utc).isoformat(),
        "status": "completed",
    })


def get_pending_migrations(db: Client, migrations_dir: Path = MIGRATIONS_DIR) -> list[tuple[str, Path]]:
    """Get list of pending migrations (not yet executed), oldest first."""
    executed = get_executed_migrations(db)
    return [
        (file.stem, file)
        for file in sorted(migrations_dir.glob("m_*.py"))
        if file.stem not in executed
    ]


def run_migration(db: Client, migration_id: str, file_path: Path) -> None:
    """Run a single migration and record it.

    Raises:
        AttributeError: the module defines no ``upgrade`` function
    """
    logger.info(f"Running migration: {migration_id}")

    spec = importlib.util.spec_from_file_location(migration_id, file_path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    if not hasattr(module, "upgrade"):
        raise AttributeError(f"{migration_id} has no 'upgrade' function")

    module.upgrade(db)
    mark_migration_executed(db, migration_id)
    logger.info(f"Completed: {migration_id}")


def cmd_migrate(db: Client) -> int:
    """Run all pending migrations, stopping at the first failure."""
    pending = get_pending_migrations(db)

    if not pending:
        print("No pending migrations.")
        return 0

    print(f"Found {len(pending)} pending migration(s):\n")

    for index, (migration_id, file_path) in enumerate(pending):
        try:
            run_migration(db, migration_id, file_path)
        except Exception:
            logger.exception(f"Error running {migration_id}")
            print(f"\nStopping due to error. Completed {index}/{len(pending)} migrations.")
            return 1

    print(f"\nCompleted {len(pending)}/{len(pending)} migrations.")
    return 0


def cmd_status(db: Client) -> None:
    executed = get_executed_migrations(db)
    all_migrations = sorted(MIGRATIONS_DIR.glob("m_*.py"))

    if not all_migrations:
        print("No migrations found.")
        return

    print("Migration Status:\n")
    for file in all_migrations:
        status = "executed" if file.stem in executed else "pending "
        print(f"  {status}  {file.stem}")


def cmd_create(name: str, migrations_dir: Path = MIGRATIONS_DIR) -> Path:
    """Create a new migration file from the template."""
    timestamp = datetime.now().strftime("%Y%m%d")

    # Next sequence number for today
    seq = len(list(migrations_dir.glob(f"m_{timestamp}_*.py"))) + 1

    safe_name = name.lower().replace(" ", "_").replace("-", "_")
    migration_id = f"m_{timestamp}_{seq:03d}_{safe_name}"
    file_path = migrations_dir / f"{migration_id}.py"

    template = f'''"""
Migration: {name}
Created: {datetime.now().isoformat()}

Description:
    Describe what this migration does.
"""

from google.cloud.firestore_v1 import Client


def upgrade(db: Client) -> None:
    """
    Run the migration.

    Args:
        db: Firestore client instance
    """


def downgrade(db: Client) -> None:
    """
    Reverse the migration (optional).

    Args:
        db: Firestore client instance
    """
'''

    file_path.write_text(template)
    print(f"Created migration: {file_path}")
    return file_path


def main() -> int:
    parser = argparse.ArgumentParser(description="Firestore Migration Runner")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("migrate", help="Run pending migrations")
    subparsers.add_parser("status", help="Show migration status")
    create_parser = subparsers.add_parser("create", help="Create new migration")
    create_parser.add_argument("name", help="Migration name (e.g., 'add_team_tags')")

    args = parser.parse_args()

    if args.command == "migrate":
        return cmd_migrate(get_db())
    if args.command == "status":
        cmd_status(get_db())
        return 0
    if args.command == "create":
        cmd_create(args.name)
        return 0
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
