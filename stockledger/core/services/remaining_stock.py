"""
Remaining-stock projection for stock-out history.

For an Out movement, "remaining stock" is the product's stock right after
that movement took effect:

    remaining = current_stock + sum(quantity of every Out more recent than it)

"More recent" is ordered by ``occurred_at`` descending with ties broken by
insertion order (higher id is more recent). The sum has to cover the full
Out history of the product, never just the rows on the current page, which
is why the store computes ``later_out_total`` before filtering and paging.
"""

from collections.abc import Iterable, Sequence

from stockledger.core.entities.movement import MovementRecord, MovementType


def project_remaining(current_stock: int, outs_desc: Sequence[int]) -> list[int]:
    """
    Project remaining stock for a complete, most-recent-first list of Outs.

    Example:
        >>> project_remaining(50, [5, 10, 15])
        [50, 55, 65]
    """
    remaining: list[int] = []
    running = current_stock
    for quantity in outs_desc:
        remaining.append(running)
        running += quantity
    return remaining


def attach(
    current_stock: int | dict[int, int], records: Iterable[MovementRecord]
) -> list[MovementRecord]:
    """
    Set ``remaining_stock`` on Out records that carry ``later_out_total``.

    Args:
        current_stock: Stock of the single product, or a map by product ID
        records: Store rows in any order, from any page

    Returns:
        The same records, updated in place
    """
    result = list(records)
    for record in result:
        movement = record.movement
        if movement.movement_type != MovementType.OUT or record.later_out_total is None:
            continue
        if isinstance(current_stock, dict):
            stock = current_stock.get(movement.product_id)
            if stock is None:
                continue
        else:
            stock = current_stock
        record.remaining_stock = stock + record.later_out_total
    return result
