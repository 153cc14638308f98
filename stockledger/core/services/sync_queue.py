"""
Sync Queue Manager.

Pushes production records to the external accounting system, tracking each
one through an explicit state machine:

    pending --claim--> in_flight --ok--> synced (absorbing)
                                 --error/timeout--> failed --retry--> pending

Claiming is a single compare-and-set update, so two concurrent sync requests
for the same event cannot both call the connector. Connector failures are
recorded onto the event and never propagate to the caller.

A claim that expires is failed and flagged for review, since the connector
may have accepted the voucher before the outcome could be stored. Flagged
events are left out of sync-all; only an explicit retry resubmits them.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from stockledger.config import get_logger
from stockledger.core.entities.sync_event import (
    SyncEvent,
    SyncOutcome,
    SyncStatus,
    SyncSummary,
    VoucherPayload,
)
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    ExternalSyncError,
    InvalidSyncTransitionError,
    ProductNotFoundError,
    SyncEventNotFoundError,
    ValidationError,
)
from stockledger.core.interfaces.connector import IAccountingConnector
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.interfaces.sync_event_store import ISyncEventStore
from stockledger.core.timestamps import ensure_utc, utc_now

logger = get_logger(__name__)

CLAIM_EXPIRED_MESSAGE = "Sync claim expired before completion"


class SyncQueueManager:
    """Drives sync events through their lifecycle against a connector."""

    def __init__(
        self,
        event_store: ISyncEventStore,
        connector: IAccountingConnector,
        ledger_store: ILedgerStore,
        timeout_seconds: float = 5.0,
        claim_ttl_seconds: int = 300,
        state_write_retries: int = 5,
        retry_delay: float = 0.05,
    ) -> None:
        self._events = event_store
        self._connector = connector
        self._ledger = ledger_store
        self._timeout = timeout_seconds
        self._claim_ttl = timedelta(seconds=claim_ttl_seconds)
        self._state_write_retries = state_write_retries
        self._retry_delay = retry_delay

    def _get_retry_decorator(self) -> Any:
        """Get tenacity retry decorator for busy-database state writes."""
        return retry(
            stop=stop_after_attempt(self._state_write_retries),
            wait=wait_exponential(
                multiplier=self._retry_delay,
                min=self._retry_delay,
                max=self._retry_delay * 8,
            ),
            retry=retry_if_exception_type(ConcurrencyConflictError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "sync_state_write_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _write_state(
        self, operation: Callable[..., Awaitable[bool]], *args: Any
    ) -> bool:
        return await self._get_retry_decorator()(operation)(*args)

    async def record_event(
        self,
        product_id: int,
        gross_weight: float,
        tare_weight: float = 0.0,
        unit: str = "kg",
        roll_no: str | None = None,
        recorded_by: str | None = None,
        recorded_at: datetime | None = None,
    ) -> SyncEvent:
        """
        Record a production weight reading as a pending sync event.

        Does not touch the stock ledger.

        Raises:
            ValidationError: Non-positive gross or net weight, negative tare
            ProductNotFoundError: Unknown product
        """
        if gross_weight <= 0:
            raise ValidationError("gross_weight", "Must be greater than zero", gross_weight)
        if tare_weight < 0:
            raise ValidationError("tare_weight", "Must not be negative", tare_weight)
        net = gross_weight - tare_weight
        if net <= 0:
            raise ValidationError(
                "tare_weight", "Net weight must be greater than zero", tare_weight
            )

        product = await self._ledger.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        now = utc_now()
        recorded_at = ensure_utc(recorded_at, "recorded_at") if recorded_at else now
        event = SyncEvent(
            product_id=product_id,
            payload=VoucherPayload(
                item_name=product.name,
                quantity=net,
                unit=unit,
                gross_weight=gross_weight,
                tare_weight=tare_weight,
                roll_no=roll_no or f"ERP-{int(now.timestamp() * 1000)}",
                recorded_by=recorded_by,
            ),
            recorded_at=recorded_at,
        )
        event = await self._events.create_event(event)

        logger.info(
            "sync_event_recorded",
            event_id=event.id,
            product_id=product_id,
            roll_no=event.payload.roll_no,
            net=net,
        )
        return event

    async def sync_one(self, event_id: int) -> SyncOutcome:
        """
        Attempt to push one pending event to the accounting system.

        Returns:
            Outcome with the resulting status. Connector errors are reported
            here as a failed outcome, not raised.

        Raises:
            SyncEventNotFoundError: Unknown event
            InvalidSyncTransitionError: Event is failed and must be retried first
        """
        event = await self._events.get_event(event_id)
        if event is None:
            raise SyncEventNotFoundError(event_id)

        if event.sync_status == SyncStatus.SYNCED:
            return SyncOutcome(
                event_id=event_id,
                status=SyncStatus.SYNCED,
                voucher_id=event.external_voucher_id,
            )
        if event.sync_status == SyncStatus.FAILED:
            raise InvalidSyncTransitionError(
                event_id, SyncStatus.FAILED.value, SyncStatus.IN_FLIGHT.value
            )

        if not await self._events.claim(event_id, utc_now()):
            # Another worker holds the claim or already finished it
            current = await self._events.get_event(event_id)
            status = current.sync_status if current else SyncStatus.IN_FLIGHT
            logger.info("sync_claim_lost", event_id=event_id, status=status.value)
            return SyncOutcome(
                event_id=event_id,
                status=status,
                voucher_id=current.external_voucher_id if current else None,
                error=current.sync_error if current else None,
            )

        logger.info("sync_started", event_id=event_id, roll_no=event.payload.roll_no)
        try:
            result = await asyncio.wait_for(
                self._connector.create_voucher(event), timeout=self._timeout
            )
            if not result.success:
                raise ExternalSyncError(result.message, event_id)
        except TimeoutError:
            error = ExternalSyncError.timeout(self._timeout, event_id)
            return await self._fail(event_id, error.message)
        except Exception as e:
            return await self._fail(event_id, str(e) or type(e).__name__)

        voucher_id = result.voucher_id or event.payload.roll_no
        try:
            await self._write_state(self._events.mark_synced, event_id, voucher_id, utc_now())
        except Exception as e:
            # Tally holds the voucher; the claim stays in flight until it
            # expires into review
            logger.error(
                "sync_outcome_unrecorded",
                event_id=event_id,
                voucher_id=voucher_id,
                error=str(e),
            )
            return SyncOutcome(
                event_id=event_id,
                status=SyncStatus.IN_FLIGHT,
                voucher_id=voucher_id,
                error=f"Voucher {voucher_id} created but not recorded: {e}",
                connector_called=True,
            )

        logger.info("sync_succeeded", event_id=event_id, voucher_id=voucher_id)
        return SyncOutcome(
            event_id=event_id,
            status=SyncStatus.SYNCED,
            voucher_id=voucher_id,
            connector_called=True,
        )

    async def _fail(self, event_id: int, message: str) -> SyncOutcome:
        status = SyncStatus.FAILED
        try:
            await self._write_state(self._events.mark_failed, event_id, message, utc_now())
        except Exception as e:
            logger.error("sync_outcome_unrecorded", event_id=event_id, error=str(e))
            status = SyncStatus.IN_FLIGHT
        logger.warning("sync_failed", event_id=event_id, error=message)
        return SyncOutcome(
            event_id=event_id,
            status=status,
            error=message,
            connector_called=True,
        )

    async def retry(self, event_id: int) -> SyncEvent:
        """
        Return a failed event to pending so it can be synced again.

        Raises:
            SyncEventNotFoundError: Unknown event
            InvalidSyncTransitionError: Event is not in the failed state
        """
        event = await self._events.get_event(event_id)
        if event is None:
            raise SyncEventNotFoundError(event_id)
        if event.sync_status != SyncStatus.FAILED or not await self._events.reset_to_pending(
            event_id
        ):
            raise InvalidSyncTransitionError(
                event_id, event.sync_status.value, SyncStatus.PENDING.value
            )

        logger.info("sync_retry_requested", event_id=event_id, reviewed=event.needs_review)
        event.sync_status = SyncStatus.PENDING
        event.sync_error = None
        event.needs_review = False
        return event

    async def release_stale_claims(self) -> list[int]:
        """Fail in-flight events whose claim outlived the TTL and flag them for review."""
        released = await self._events.release_stale_claims(
            utc_now() - self._claim_ttl, CLAIM_EXPIRED_MESSAGE
        )
        if released:
            logger.warning("sync_claims_released", event_ids=released)
        return released

    async def sync_all(self) -> SyncSummary:
        """
        Attempt every pending and failed event once, in insertion order.

        Failed events are moved back to pending first, except those held for
        review after an expired claim. One event failing does not stop the
        pass; unexpected errors are logged and counted as failures.
        """
        await self.release_stale_claims()
        summary = SyncSummary()

        for event in await self._events.list_sync_candidates():
            event_id = event.id
            if event_id is None or event.needs_review:
                continue
            try:
                if event.sync_status == SyncStatus.FAILED:
                    await self.retry(event_id)
                outcome = await self.sync_one(event_id)
            except (SyncEventNotFoundError, InvalidSyncTransitionError) as e:
                # state changed under us
                logger.info("sync_all_skipped", event_id=event_id, reason=e.code)
                summary.skipped += 1
                continue
            except Exception as e:
                logger.error("sync_all_event_error", event_id=event_id, error=str(e))
                summary.attempted += 1
                summary.failed += 1
                continue

            summary.outcomes.append(outcome)
            if not outcome.connector_called:
                summary.skipped += 1
                continue
            summary.attempted += 1
            if outcome.status == SyncStatus.SYNCED:
                summary.succeeded += 1
            else:
                summary.failed += 1

        logger.info(
            "sync_all_complete",
            attempted=summary.attempted,
            succeeded=summary.succeeded,
            failed=summary.failed,
            skipped=summary.skipped,
        )
        return summary

    async def test_connection(self) -> bool:
        """Check whether the accounting system is reachable."""
        try:
            reachable = await self._connector.test_connection()
        except Exception as e:
            logger.warning("sync_connection_test_error", error=str(e))
            return False
        logger.info("sync_connection_tested", reachable=reachable)
        return reachable
