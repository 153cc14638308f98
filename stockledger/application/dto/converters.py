"""Entity -> response DTO conversions shared by use cases."""

from stockledger.application.dto.responses import (
    MovementResponse,
    ProductResponse,
    SyncEventResponse,
    SyncOutcomeResponse,
)
from stockledger.core.entities.movement import Movement, MovementRecord
from stockledger.core.entities.product import Product
from stockledger.core.entities.sync_event import SyncEvent, SyncOutcome


def product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.id,  # type: ignore[arg-type]
        name=product.name,
        unit=product.unit,
        category=product.category,
        min_stock=product.min_stock,
        current_stock=product.current_stock,
        is_low_stock=product.is_low_stock,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def movement_response(
    movement: Movement,
    product_name: str | None = None,
    remaining_stock: int | None = None,
) -> MovementResponse:
    return MovementResponse(
        id=movement.id,  # type: ignore[arg-type]
        product_id=movement.product_id,
        movement_type=movement.movement_type.value,
        quantity=movement.quantity,
        occurred_at=movement.occurred_at,
        inserted_at=movement.inserted_at,
        details=movement.details.model_dump(),
        product_name=product_name,
        remaining_stock=remaining_stock,
    )


def record_response(record: MovementRecord) -> MovementResponse:
    return movement_response(record.movement, record.product_name, record.remaining_stock)


def sync_event_response(event: SyncEvent) -> SyncEventResponse:
    p = event.payload
    return SyncEventResponse(
        id=event.id,  # type: ignore[arg-type]
        product_id=event.product_id,
        item_name=p.item_name,
        quantity=p.quantity,
        unit=p.unit,
        gross_weight=p.gross_weight,
        tare_weight=p.tare_weight,
        roll_no=p.roll_no,
        recorded_by=p.recorded_by,
        sync_status=event.sync_status.value,
        sync_error=event.sync_error,
        external_voucher_id=event.external_voucher_id,
        needs_review=event.needs_review,
        last_sync_attempt_at=event.last_sync_attempt_at,
        recorded_at=event.recorded_at,
        created_at=event.created_at,
    )


def outcome_response(outcome: SyncOutcome) -> SyncOutcomeResponse:
    return SyncOutcomeResponse(
        event_id=outcome.event_id,
        status=outcome.status.value,
        voucher_id=outcome.voucher_id,
        error=outcome.error,
        connector_called=outcome.connector_called,
    )
