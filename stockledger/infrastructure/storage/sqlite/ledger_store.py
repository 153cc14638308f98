"""SQLite implementation of ledger storage."""

from datetime import datetime

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.movement import (
    IN_DETAIL_FIELDS,
    OUT_DETAIL_FIELDS,
    SORT_FIELDS,
    Movement,
    MovementChange,
    MovementPatch,
    MovementQuery,
    MovementRecord,
    MovementType,
    details_for,
)
from stockledger.core.entities.product import Product, ProductStockTotals
from stockledger.core.entities.reports import StockSummaryRow
from stockledger.core.exceptions import (
    InsufficientStockError,
    MovementNotFoundError,
    ProductNotFoundError,
)
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.timestamps import format_instant, load_instant, utc_now
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)

DETAIL_COLUMNS = (
    "supplier",
    "invoice_no",
    "location",
    "department",
    "issued_by",
    "issued_to",
    "purpose",
)

LEDGER_SUM_SQL = """
    SELECT COALESCE(SUM(
        CASE movement_type WHEN 'in' THEN quantity ELSE -quantity END
    ), 0)
    FROM movements
    WHERE product_id = ? AND deleted_at IS NULL
"""

# Out quantity strictly more recent than each Out row, over the product's
# whole live Out history. Filters and paging are applied after this.
LATER_OUT_CTE = """
    WITH out_offsets AS (
        SELECT id, COALESCE(SUM(quantity) OVER (
            PARTITION BY product_id
            ORDER BY occurred_at DESC, id DESC
            ROWS BETWEEN UNBOUNDED PRECEDING AND 1 PRECEDING
        ), 0) AS later_out_total
        FROM movements
        WHERE movement_type = 'out' AND deleted_at IS NULL {product_clause}
    )
"""


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SQLiteLedgerStore(ILedgerStore):
    """SQLite implementation of product, movement and aggregate storage."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    # Products

    async def create_product(self, product: Product) -> Product:
        """Create a new product with zero stock."""
        now = utc_now()
        product.created_at = now
        product.updated_at = now
        product.current_stock = 0
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO products (
                    name, unit, category, min_stock, current_stock,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, 0, ?, ?)
                """,
                (
                    product.name,
                    product.unit,
                    product.category,
                    product.min_stock,
                    format_instant(now),
                    format_instant(now),
                ),
            )
            product.id = cursor.lastrowid
        logger.info("product_created", product_id=product.id, name=product.name)
        return product

    async def get_product(self, product_id: int) -> Product | None:
        """Get product by ID."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM products WHERE id = ?", (product_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_product(row)

    async def list_products(
        self, search: str | None = None, limit: int = 100, offset: int = 0
    ) -> tuple[list[Product], int]:
        """List products ordered by name, with the total match count."""
        where = ""
        params: list = []
        if search:
            where = "WHERE name LIKE ? ESCAPE '\\' OR category LIKE ? ESCAPE '\\'"
            pattern = _like_pattern(search)
            params = [pattern, pattern]

        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM products {where}", params
            )
            total = (await cursor.fetchone())[0]
            cursor = await conn.execute(
                f"""
                SELECT * FROM products {where}
                ORDER BY name COLLATE NOCASE, id
                LIMIT ? OFFSET ?
                """,
                [*params, limit, offset],
            )
            rows = await cursor.fetchall()
            return [self._row_to_product(row) for row in rows], total

    async def list_low_stock(self) -> list[Product]:
        """List products with a threshold set and stock strictly below it."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM products
                WHERE min_stock > 0 AND current_stock < min_stock
                ORDER BY name COLLATE NOCASE, id
                """
            )
            rows = await cursor.fetchall()
            return [self._row_to_product(row) for row in rows]

    async def list_product_ids(self) -> list[int]:
        """IDs of every product, ascending."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT id FROM products ORDER BY id")
            return [row[0] for row in await cursor.fetchall()]

    async def update_product(self, product: Product) -> Product:
        """Update product metadata. Never writes current_stock."""
        now = utc_now()
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE products SET
                    name = ?,
                    unit = ?,
                    category = ?,
                    min_stock = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    product.name,
                    product.unit,
                    product.category,
                    product.min_stock,
                    format_instant(now),
                    product.id,
                ),
            )
            if cursor.rowcount == 0:
                raise ProductNotFoundError(product.id)  # type: ignore[arg-type]
            cursor = await conn.execute(
                "SELECT * FROM products WHERE id = ?", (product.id,)
            )
            updated = self._row_to_product(await cursor.fetchone())
        logger.info("product_updated", product_id=product.id)
        return updated

    # Aggregate writes

    async def append_movement(self, movement: Movement) -> Movement:
        """Insert a movement and apply its delta to the cached stock atomically."""
        now = format_instant(utc_now())
        pool = await self._get_pool()
        async with pool.write_transaction("append_movement") as conn:
            if movement.movement_type == MovementType.IN:
                cursor = await conn.execute(
                    """
                    UPDATE products
                    SET current_stock = current_stock + ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (movement.quantity, now, movement.product_id),
                )
            else:
                cursor = await conn.execute(
                    """
                    UPDATE products
                    SET current_stock = current_stock - ?, updated_at = ?
                    WHERE id = ? AND current_stock >= ?
                    """,
                    (movement.quantity, now, movement.product_id, movement.quantity),
                )

            if cursor.rowcount == 0:
                available = await self._read_stock(conn, movement.product_id)
                if available is None:
                    raise ProductNotFoundError(movement.product_id)
                raise InsufficientStockError(
                    movement.product_id, movement.quantity, available
                )

            values = self._detail_values(movement)
            cursor = await conn.execute(
                f"""
                INSERT INTO movements (
                    product_id, movement_type, quantity, occurred_at, inserted_at,
                    {", ".join(DETAIL_COLUMNS)}
                ) VALUES (?, ?, ?, ?, ?, {", ".join("?" for _ in DETAIL_COLUMNS)})
                """,
                (
                    movement.product_id,
                    movement.movement_type.value,
                    movement.quantity,
                    format_instant(movement.occurred_at),
                    format_instant(movement.inserted_at),
                    *values,
                ),
            )
            movement.id = cursor.lastrowid
        return movement

    async def update_movement(
        self, movement_id: int, patch: MovementPatch
    ) -> MovementChange:
        """Apply a patch to a live movement and recompute its product's stock."""
        pool = await self._get_pool()
        async with pool.write_transaction("update_movement") as conn:
            current = await self._fetch_movement(conn, movement_id)
            if current is None:
                raise MovementNotFoundError(movement_id)

            details = current.details.model_dump()
            details.update(patch.details)
            updated = current.model_copy(
                update={
                    "quantity": patch.quantity if patch.quantity is not None else current.quantity,
                    "occurred_at": patch.occurred_at or current.occurred_at,
                    "details": details_for(current.movement_type, details),
                }
            )
            await conn.execute(
                f"""
                UPDATE movements SET
                    quantity = ?,
                    occurred_at = ?,
                    {", ".join(f"{col} = ?" for col in DETAIL_COLUMNS)}
                WHERE id = ?
                """,
                (
                    updated.quantity,
                    format_instant(updated.occurred_at),
                    *self._detail_values(updated),
                    movement_id,
                ),
            )
            delta = updated.signed_quantity - current.signed_quantity
            change = await self._rewrite_aggregate(conn, updated, delta)

        logger.info(
            "movement_updated",
            movement_id=movement_id,
            product_id=current.product_id,
            delta=delta,
        )
        return change

    async def delete_movement(self, movement_id: int) -> MovementChange:
        """Soft-delete a movement and recompute its product's stock."""
        now = utc_now()
        pool = await self._get_pool()
        async with pool.write_transaction("delete_movement") as conn:
            current = await self._fetch_movement(conn, movement_id)
            if current is None:
                raise MovementNotFoundError(movement_id)

            await conn.execute(
                "UPDATE movements SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                (format_instant(now), movement_id),
            )
            deleted = current.model_copy(update={"deleted_at": now})
            change = await self._rewrite_aggregate(
                conn, deleted, -current.signed_quantity
            )

        logger.info(
            "movement_soft_deleted",
            movement_id=movement_id,
            product_id=current.product_id,
        )
        return change

    async def recompute_aggregate(self, product_id: int) -> tuple[int, int]:
        """Rewrite cached stock from the full ledger sum."""
        pool = await self._get_pool()
        async with pool.write_transaction("recompute_aggregate") as conn:
            cached = await self._read_stock(conn, product_id)
            if cached is None:
                raise ProductNotFoundError(product_id)
            recomputed = await self._ledger_sum(conn, product_id)
            if recomputed != cached:
                await self._write_stock(conn, product_id, recomputed)
        return cached, recomputed

    async def _rewrite_aggregate(
        self, conn: aiosqlite.Connection, movement: Movement, delta: int
    ) -> MovementChange:
        """Recompute and store the product's stock after an in-transaction change."""
        product_id = movement.product_id
        cached = await self._read_stock(conn, product_id)
        if cached is None:
            raise ProductNotFoundError(product_id)
        recomputed = await self._ledger_sum(conn, product_id)
        if recomputed < 0:
            # Rolled back by the enclosing transaction
            raise InsufficientStockError(product_id, abs(delta), recomputed - delta)
        await self._write_stock(conn, product_id, recomputed)
        return MovementChange(
            movement=movement,
            cached_before=cached,
            expected=cached + delta,
            recomputed=recomputed,
        )

    @staticmethod
    async def _read_stock(conn: aiosqlite.Connection, product_id: int) -> int | None:
        cursor = await conn.execute(
            "SELECT current_stock FROM products WHERE id = ?", (product_id,)
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    @staticmethod
    async def _ledger_sum(conn: aiosqlite.Connection, product_id: int) -> int:
        cursor = await conn.execute(LEDGER_SUM_SQL, (product_id,))
        return (await cursor.fetchone())[0]

    @staticmethod
    async def _write_stock(conn: aiosqlite.Connection, product_id: int, stock: int) -> None:
        await conn.execute(
            "UPDATE products SET current_stock = ?, updated_at = ? WHERE id = ?",
            (stock, format_instant(utc_now()), product_id),
        )

    async def _fetch_movement(
        self, conn: aiosqlite.Connection, movement_id: int
    ) -> Movement | None:
        cursor = await conn.execute(
            "SELECT * FROM movements WHERE id = ? AND deleted_at IS NULL",
            (movement_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_movement(row) if row else None

    # Reads

    async def get_current_stock(self, product_id: int) -> int | None:
        """Cached stock for a product, or None if it does not exist."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await self._read_stock(conn, product_id)

    async def get_movement(self, movement_id: int) -> Movement | None:
        """Get a live (non-deleted) movement by ID."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await self._fetch_movement(conn, movement_id)

    async def page_movements(
        self, query: MovementQuery
    ) -> tuple[list[MovementRecord], int]:
        """One page of matching movements plus the total match count."""
        where, params = self._build_filters(query)
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM movements m WHERE {where}", params
            )
            total = (await cursor.fetchone())[0]
            records = await self._select_records(conn, query, where, params)
        return records, total

    async def export_movements(self, query: MovementQuery) -> list[MovementRecord]:
        """All matching movements, unpaginated."""
        query = query.model_copy(update={"limit": None, "offset": 0})
        where, params = self._build_filters(query)
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await self._select_records(conn, query, where, params)

    async def _select_records(
        self,
        conn: aiosqlite.Connection,
        query: MovementQuery,
        where: str,
        params: list,
    ) -> list[MovementRecord]:
        direction = "ASC" if query.sort_order == "asc" else "DESC"
        sort_by = query.sort_by if query.sort_by in SORT_FIELDS[query.movement_type] else "date"
        if sort_by == "date":
            order = f"m.occurred_at {direction}, m.id {direction}"
        elif sort_by == "quantity":
            order = f"m.quantity {direction}, m.id {direction}"
        else:
            order = f"m.{sort_by} COLLATE NOCASE {direction}, m.id {direction}"

        cte = ""
        cte_params: list = []
        offset_column = "NULL AS later_out_total"
        join = ""
        if query.movement_type == MovementType.OUT:
            product_clause = ""
            if query.product_id is not None:
                product_clause = "AND product_id = ?"
                cte_params.append(query.product_id)
            cte = LATER_OUT_CTE.format(product_clause=product_clause)
            offset_column = "o.later_out_total"
            join = "LEFT JOIN out_offsets o ON o.id = m.id"

        sql = f"""
            {cte}
            SELECT m.*, p.name AS product_name, p.current_stock AS product_stock,
                   {offset_column}
            FROM movements m
            JOIN products p ON p.id = m.product_id
            {join}
            WHERE {where}
            ORDER BY {order}
        """
        all_params = [*cte_params, *params]
        if query.limit is not None:
            sql += " LIMIT ? OFFSET ?"
            all_params.extend([query.limit, query.offset])

        cursor = await conn.execute(sql, all_params)
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _build_filters(query: MovementQuery) -> tuple[str, list]:
        """WHERE clause over alias ``m`` plus its parameters."""
        fields = (
            IN_DETAIL_FIELDS if query.movement_type == MovementType.IN else OUT_DETAIL_FIELDS
        )
        clauses = ["m.movement_type = ?", "m.deleted_at IS NULL"]
        params: list = [query.movement_type.value]

        if query.product_id is not None:
            clauses.append("m.product_id = ?")
            params.append(query.product_id)
        if query.start is not None:
            clauses.append("m.occurred_at >= ?")
            params.append(format_instant(query.start))
        if query.end is not None:
            clauses.append("m.occurred_at < ?")
            params.append(format_instant(query.end))

        for field, value in sorted(query.details.items()):
            # Column names come from the fixed detail field sets only
            if field in fields and value:
                clauses.append(f"LOWER(m.{field}) = LOWER(?)")
                params.append(value.strip())

        if query.search:
            pattern = _like_pattern(query.search.strip())
            columns = sorted(fields)
            clauses.append(
                "(" + " OR ".join(f"m.{col} LIKE ? ESCAPE '\\'" for col in columns) + ")"
            )
            params.extend(pattern for _ in columns)

        return " AND ".join(clauses), params

    async def movement_totals(
        self,
        product_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> ProductStockTotals:
        """Sum of live In and Out quantities within an optional UTC range."""
        clauses = ["product_id = ?", "deleted_at IS NULL"]
        params: list = [product_id]
        if start is not None:
            clauses.append("occurred_at >= ?")
            params.append(format_instant(start))
        if end is not None:
            clauses.append("occurred_at < ?")
            params.append(format_instant(end))

        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                f"""
                SELECT
                    COALESCE(SUM(CASE WHEN movement_type = 'in' THEN quantity END), 0),
                    COALESCE(SUM(CASE WHEN movement_type = 'out' THEN quantity END), 0)
                FROM movements
                WHERE {" AND ".join(clauses)}
                """,
                params,
            )
            row = await cursor.fetchone()
        return ProductStockTotals(product_id=product_id, total_in=row[0], total_out=row[1])

    async def stock_summary(
        self, start: datetime | None, end: datetime | None
    ) -> list[StockSummaryRow]:
        """Per-product In/Out totals in a UTC range plus current stock."""
        join_clauses = ["m.product_id = p.id", "m.deleted_at IS NULL"]
        params: list = []
        if start is not None:
            join_clauses.append("m.occurred_at >= ?")
            params.append(format_instant(start))
        if end is not None:
            join_clauses.append("m.occurred_at < ?")
            params.append(format_instant(end))

        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                f"""
                SELECT
                    p.id, p.name, p.unit, p.category, p.current_stock,
                    COALESCE(SUM(CASE WHEN m.movement_type = 'in' THEN m.quantity END), 0)
                        AS total_in,
                    COALESCE(SUM(CASE WHEN m.movement_type = 'out' THEN m.quantity END), 0)
                        AS total_out
                FROM products p
                LEFT JOIN movements m ON {" AND ".join(join_clauses)}
                GROUP BY p.id
                ORDER BY p.name COLLATE NOCASE, p.id
                """,
                params,
            )
            rows = await cursor.fetchall()
        return [
            StockSummaryRow(
                product_id=row["id"],
                product_name=row["name"],
                unit=row["unit"],
                category=row["category"],
                total_in=row["total_in"],
                total_out=row["total_out"],
                current_stock=row["current_stock"],
            )
            for row in rows
        ]

    @staticmethod
    def _detail_values(movement: Movement) -> list[str | None]:
        data = movement.details.model_dump()
        return [data.get(col) for col in DETAIL_COLUMNS]

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        """Convert a database row to a Product entity."""
        return Product(
            id=row["id"],
            name=row["name"],
            unit=row["unit"],
            category=row["category"],
            min_stock=row["min_stock"],
            current_stock=row["current_stock"],
            created_at=load_instant(row["created_at"]),
            updated_at=load_instant(row["updated_at"]),
        )

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> Movement:
        """Convert a database row to a Movement entity."""
        movement_type = MovementType(row["movement_type"])
        fields = IN_DETAIL_FIELDS if movement_type == MovementType.IN else OUT_DETAIL_FIELDS
        return Movement(
            id=row["id"],
            product_id=row["product_id"],
            movement_type=movement_type,
            quantity=row["quantity"],
            occurred_at=load_instant(row["occurred_at"]),
            inserted_at=load_instant(row["inserted_at"]),
            details=details_for(movement_type, {f: row[f] for f in fields}),
            deleted_at=load_instant(row["deleted_at"]) if row["deleted_at"] else None,
        )

    @classmethod
    def _row_to_record(cls, row: aiosqlite.Row) -> MovementRecord:
        """Convert a joined history row to a MovementRecord."""
        return MovementRecord(
            movement=cls._row_to_movement(row),
            product_name=row["product_name"],
            product_stock=row["product_stock"],
            later_out_total=row["later_out_total"],
        )
