"""Tests for the schema migrator and integrity checks."""

import aiosqlite

from stockledger.infrastructure.storage.sqlite.migrations.migrator import (
    REQUIRED_TABLES,
    discover_migrations,
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)


def test_discovers_migrations_in_order():
    migrations = discover_migrations()
    assert [m.version for m in migrations] == ["001", "002"]
    assert migrations[0].name == "initial_schema"
    assert migrations[1].name == "sync_claim_review"


async def test_initialize_is_idempotent(temp_db_path):
    first = await initialize_database(temp_db_path, create_backup_before=False)
    second = await initialize_database(temp_db_path, create_backup_before=False)

    assert first and all(r.success for r in first)
    assert second == []

    status = await get_migration_status(temp_db_path)
    assert status["current_version"] == "002"
    assert status["pending_migrations"] == []


async def test_backup_removed_after_success(temp_db_path):
    await initialize_database(temp_db_path, create_backup_before=False)
    await initialize_database(temp_db_path, create_backup_before=True)

    assert list(temp_db_path.parent.glob("*.backup_*")) == []


async def test_integrity_reports_drift(temp_db_path):
    await initialize_database(temp_db_path, create_backup_before=False)
    async with aiosqlite.connect(temp_db_path) as conn:
        await conn.execute(
            """
            INSERT INTO products (name, unit, current_stock, created_at, updated_at)
            VALUES ('Cotton Yarn', 'kg', 5, '2025-01-01T00:00:00.000000Z',
                    '2025-01-01T00:00:00.000000Z')
            """
        )
        await conn.commit()

    checks = {c["check"]: c for c in await verify_schema_integrity(temp_db_path)}

    assert checks["required_tables"]["status"] == "PASS"
    assert set(REQUIRED_TABLES) >= {"products", "movements", "sync_events"}
    assert checks["ledger_consistency"]["status"] == "FAIL"
    assert checks["ledger_consistency"]["drifted_products"] == [
        {"product_id": 1, "cached": 5, "ledger_sum": 0}
    ]


async def test_integrity_clean_database(temp_db_path):
    await initialize_database(temp_db_path, create_backup_before=False)
    checks = await verify_schema_integrity(temp_db_path)
    assert all(c["status"] == "PASS" for c in checks)


async def test_sync_events_gain_review_flag(temp_db_path):
    await initialize_database(temp_db_path, create_backup_before=False)
    async with aiosqlite.connect(temp_db_path) as conn:
        cursor = await conn.execute("PRAGMA table_info(sync_events)")
        columns = {row[1]: row for row in await cursor.fetchall()}

    assert "needs_review" in columns
    assert columns["needs_review"][4] == "0"
