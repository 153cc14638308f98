"""SQLite implementation of sync event storage."""

from datetime import datetime

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.sync_event import SyncEvent, SyncStatus, VoucherPayload
from stockledger.core.interfaces.sync_event_store import ISyncEventStore
from stockledger.core.timestamps import format_instant, load_instant
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)


def _opt_instant(value: str | None) -> datetime | None:
    return load_instant(value) if value else None


class SQLiteSyncEventStore(ISyncEventStore):
    """SQLite implementation of sync event storage.

    Every status change is a single conditional UPDATE; the affected row
    count tells the caller whether it won the transition.
    """

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    async def create_event(self, event: SyncEvent) -> SyncEvent:
        """Create a new sync event."""
        payload = event.payload
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO sync_events (
                    product_id, item_name, quantity, unit, gross_weight,
                    tare_weight, roll_no, recorded_by, sync_status,
                    recorded_at, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event.product_id,
                    payload.item_name,
                    payload.quantity,
                    payload.unit,
                    payload.gross_weight,
                    payload.tare_weight,
                    payload.roll_no,
                    payload.recorded_by,
                    event.sync_status.value,
                    format_instant(event.recorded_at),
                    format_instant(event.created_at),
                ),
            )
            event.id = cursor.lastrowid
        return event

    async def get_event(self, event_id: int) -> SyncEvent | None:
        """Get sync event by ID."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM sync_events WHERE id = ?", (event_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_event(row)

    async def list_events(
        self,
        status: SyncStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[SyncEvent]:
        """List events, newest first, optionally filtered by status."""
        where = ""
        params: list = []
        if status is not None:
            where = "WHERE sync_status = ?"
            params.append(status.value)

        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM sync_events {where}
                ORDER BY recorded_at DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                [*params, limit, offset],
            )
            rows = await cursor.fetchall()
            return [self._row_to_event(row) for row in rows]

    async def count_events(self, status: SyncStatus | None = None) -> int:
        """Count events, optionally filtered by status."""
        where = ""
        params: list = []
        if status is not None:
            where = "WHERE sync_status = ?"
            params.append(status.value)

        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(f"SELECT COUNT(*) FROM sync_events {where}", params)
            row = await cursor.fetchone()
            return row[0]

    async def list_sync_candidates(self) -> list[SyncEvent]:
        """Pending and failed events in insertion order, minus those held for review."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM sync_events
                WHERE sync_status = 'pending'
                   OR (sync_status = 'failed' AND needs_review = 0)
                ORDER BY id
                """
            )
            rows = await cursor.fetchall()
            return [self._row_to_event(row) for row in rows]

    async def _transition(self, operation: str, sql: str, params: tuple) -> int:
        pool = await self._get_pool()
        async with pool.transaction(operation) as conn:
            cursor = await conn.execute(sql, params)
            return cursor.rowcount

    async def claim(self, event_id: int, now: datetime) -> bool:
        """Move pending -> in_flight."""
        stamp = format_instant(now)
        updated = await self._transition(
            "claim_sync_event",
            """
            UPDATE sync_events
            SET sync_status = 'in_flight', claimed_at = ?, last_sync_attempt_at = ?
            WHERE id = ? AND sync_status = 'pending'
            """,
            (stamp, stamp, event_id),
        )
        return updated == 1

    async def mark_synced(self, event_id: int, voucher_id: str, now: datetime) -> bool:
        """Move in_flight -> synced, storing the external voucher ID."""
        updated = await self._transition(
            "mark_synced",
            """
            UPDATE sync_events
            SET sync_status = 'synced', external_voucher_id = ?, sync_error = NULL,
                claimed_at = NULL, last_sync_attempt_at = ?
            WHERE id = ? AND sync_status = 'in_flight'
            """,
            (voucher_id, format_instant(now), event_id),
        )
        if updated == 0:
            logger.warning("sync_mark_synced_skipped", event_id=event_id)
        return updated == 1

    async def mark_failed(self, event_id: int, error: str, now: datetime) -> bool:
        """Move in_flight -> failed, storing the error."""
        updated = await self._transition(
            "mark_failed",
            """
            UPDATE sync_events
            SET sync_status = 'failed', sync_error = ?, claimed_at = NULL,
                last_sync_attempt_at = ?
            WHERE id = ? AND sync_status = 'in_flight'
            """,
            (error, format_instant(now), event_id),
        )
        if updated == 0:
            logger.warning("sync_mark_failed_skipped", event_id=event_id)
        return updated == 1

    async def reset_to_pending(self, event_id: int) -> bool:
        """Move failed -> pending."""
        updated = await self._transition(
            "reset_sync_event",
            """
            UPDATE sync_events
            SET sync_status = 'pending', sync_error = NULL, needs_review = 0
            WHERE id = ? AND sync_status = 'failed'
            """,
            (event_id,),
        )
        return updated == 1

    async def release_stale_claims(
        self, claimed_before: datetime, error: str
    ) -> list[int]:
        """
        Move in_flight events claimed before the cutoff to failed; return their IDs.

        Released events are flagged for review: the connector may already
        have accepted them, so only an explicit retry may resubmit them.
        """
        pool = await self._get_pool()
        async with pool.write_transaction("release_stale_claims") as conn:
            cursor = await conn.execute(
                """
                SELECT id FROM sync_events
                WHERE sync_status = 'in_flight' AND claimed_at < ?
                ORDER BY id
                """,
                (format_instant(claimed_before),),
            )
            ids = [row[0] for row in await cursor.fetchall()]
            if ids:
                await conn.executemany(
                    """
                    UPDATE sync_events
                    SET sync_status = 'failed', sync_error = ?, claimed_at = NULL,
                        needs_review = 1
                    WHERE id = ? AND sync_status = 'in_flight'
                    """,
                    [(error, event_id) for event_id in ids],
                )
        return ids

    @staticmethod
    def _row_to_event(row: aiosqlite.Row) -> SyncEvent:
        """Convert a database row to a SyncEvent entity."""
        return SyncEvent(
            id=row["id"],
            product_id=row["product_id"],
            payload=VoucherPayload(
                item_name=row["item_name"],
                quantity=row["quantity"],
                unit=row["unit"],
                gross_weight=row["gross_weight"],
                tare_weight=row["tare_weight"],
                roll_no=row["roll_no"],
                recorded_by=row["recorded_by"],
            ),
            sync_status=SyncStatus(row["sync_status"]),
            sync_error=row["sync_error"],
            external_voucher_id=row["external_voucher_id"],
            last_sync_attempt_at=_opt_instant(row["last_sync_attempt_at"]),
            claimed_at=_opt_instant(row["claimed_at"]),
            needs_review=bool(row["needs_review"]),
            recorded_at=load_instant(row["recorded_at"]),
            created_at=load_instant(row["created_at"]),
        )
