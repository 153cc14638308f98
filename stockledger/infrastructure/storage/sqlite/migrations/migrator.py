"""
Versioned schema migrations for the ledger database.

Migration files are named ``vNNN_name.sql`` and applied in version order.
Each applied version is recorded with a checksum in ``schema_migrations``;
a file whose checksum changed after it was applied stops the run instead
of being re-applied over live ledger data.

Also provides a read-only integrity check that reports products whose
cached stock has drifted from their movement ledger.
"""

import asyncio
import hashlib
import re
import shutil
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
MIGRATION_NAME_RE = re.compile(r"v(\d+)_(.+)\.sql")

REQUIRED_TABLES = [
    "products",
    "movements",
    "sync_events",
    "schema_migrations",
]

# Products whose cached stock differs from the sum of their live movements
LEDGER_DRIFT_SQL = """
    SELECT p.id, p.current_stock, COALESCE(SUM(
        CASE m.movement_type WHEN 'in' THEN m.quantity ELSE -m.quantity END
    ), 0) AS ledger_sum
    FROM products p
    LEFT JOIN movements m ON m.product_id = p.id AND m.deleted_at IS NULL
    GROUP BY p.id
    HAVING p.current_stock != ledger_sum
"""


@dataclass
class MigrationInfo:
    """A migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = MIGRATION_NAME_RE.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        checksum = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=checksum)


@dataclass
class MigrationResult:
    """Outcome of applying one migration."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations() -> list[MigrationInfo]:
    """Migration files in version order; badly named files are skipped."""
    migrations = []
    for path in sorted(MIGRATIONS_DIR.glob("v*.sql")):
        try:
            migrations.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return migrations


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to their recorded checksums."""
    try:
        cursor = await conn.execute(
            "SELECT version, checksum FROM schema_migrations ORDER BY version"
        )
    except aiosqlite.OperationalError:
        # Fresh database
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


async def apply_migration(
    conn: aiosqlite.Connection, migration: MigrationInfo
) -> MigrationResult:
    """Run one migration script and record it."""
    logger.info("applying_migration", version=migration.version, name=migration.name)
    start = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - start) * 1000)

    try:
        await conn.executescript(migration.path.read_text(encoding="utf-8"))
        await conn.execute(
            """
            INSERT OR REPLACE INTO schema_migrations (version, name, checksum, execution_time_ms)
            VALUES (?, ?, ?, ?)
            """,
            (migration.version, migration.name, migration.checksum, elapsed_ms()),
        )
        await conn.commit()

        cursor = await conn.execute("PRAGMA foreign_key_check")
        violations = await cursor.fetchall()
        if violations:
            raise RuntimeError(f"Foreign key violations after migration: {len(violations)}")
    except Exception as e:
        await conn.rollback()
        logger.error("migration_failed", version=migration.version, error=str(e))
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=elapsed_ms(),
            error=str(e),
        )

    logger.info(
        "migration_applied",
        version=migration.version,
        name=migration.name,
        execution_time_ms=elapsed_ms(),
    )
    return MigrationResult(
        version=migration.version,
        name=migration.name,
        success=True,
        execution_time_ms=elapsed_ms(),
    )


def create_backup(db_path: Path) -> Path:
    """Copy the database file aside before migrating it."""
    stamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.info("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Apply every pending migration.

    Args:
        db_path: Database file (default from settings)
        create_backup_before: Copy an existing database aside first

    Returns:
        Results of the migrations that were attempted; empty when the
        schema is already current
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    backup_path = create_backup(db_path) if create_backup_before and db_path.exists() else None
    results: list[MigrationResult] = []

    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")
            applied = await get_applied_migrations(conn)

            for migration in discover_migrations():
                recorded = applied.get(migration.version)
                if recorded == migration.checksum:
                    continue
                if recorded is not None:
                    logger.error(
                        "migration_checksum_changed",
                        version=migration.version,
                        recorded=recorded,
                        current=migration.checksum,
                    )
                    break

                result = await apply_migration(conn, migration)
                results.append(result)
                if not result.success:
                    break
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        if backup_path and backup_path.exists():
            restore_backup(db_path, backup_path)
        raise

    if backup_path and all(r.success for r in results):
        backup_path.unlink()

    return results


# Alias used by the API startup hook
run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict:
    """Current version plus applied and pending migrations."""
    db_path = db_path or get_settings().storage.db_path
    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": [],
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)

    discovered = discover_migrations()
    versions = sorted(applied)
    return {
        "exists": True,
        "current_version": versions[-1] if versions else None,
        "applied_migrations": versions,
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        "total_migrations": len(discovered),
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """
    Check SQLite integrity, required tables and ledger consistency.

    Read-only: drifted stock caches are reported, not corrected. Use the
    reconcile endpoint to repair them.
    """
    db_path = db_path or get_settings().storage.db_path
    checks = []

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = await cursor.fetchall()
        checks.append({
            "check": "foreign_keys",
            "status": "PASS" if not fk_violations else "FAIL",
            "violations": len(fk_violations),
        })

        cursor = await conn.execute("PRAGMA integrity_check")
        integrity = (await cursor.fetchone())[0]
        checks.append({
            "check": "integrity",
            "status": "PASS" if integrity == "ok" else "FAIL",
            "result": integrity,
        })

        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {row[0] for row in await cursor.fetchall()}
        missing = [t for t in REQUIRED_TABLES if t not in tables]
        checks.append({
            "check": "required_tables",
            "status": "PASS" if not missing else "FAIL",
            "missing": missing,
        })

        if not missing:
            cursor = await conn.execute(LEDGER_DRIFT_SQL)
            drifted = [
                {"product_id": row[0], "cached": row[1], "ledger_sum": row[2]}
                for row in await cursor.fetchall()
            ]
            checks.append({
                "check": "ledger_consistency",
                "status": "PASS" if not drifted else "FAIL",
                "drifted_products": drifted,
            })

    return checks


def main() -> None:
    """CLI entry point: migrate, show status, or verify."""
    import argparse

    parser = argparse.ArgumentParser(description="StockLedger database migrator")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    parser.add_argument("--status", action="store_true", help="Show migration status")
    parser.add_argument(
        "--verify", action="store_true", help="Check integrity and ledger consistency"
    )
    parser.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    args = parser.parse_args()

    async def run() -> int:
        if args.status:
            status = await get_migration_status(args.db_path)
            for key, value in status.items():
                print(f"{key}: {value}")
            return 0

        if args.verify:
            failed = 0
            for check in await verify_schema_integrity(args.db_path):
                print(f"[{check['status']}] {check['check']}")
                if check["status"] != "PASS":
                    failed += 1
                    for key, value in check.items():
                        if key not in ("check", "status"):
                            print(f"       {key}: {value}")
            return 1 if failed else 0

        results = await initialize_database(
            args.db_path, create_backup_before=not args.no_backup
        )
        if not results:
            print("Schema is up to date")
        for result in results:
            outcome = "OK" if result.success else "FAILED"
            print(f"[{outcome}] v{result.version} {result.name} ({result.execution_time_ms}ms)")
            if result.error:
                print(f"       {result.error}")
        return 0 if all(r.success for r in results) else 1

    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
