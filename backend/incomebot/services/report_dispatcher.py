"""
Report Dispatcher — one scheduled firing fanned out to every registered business.

Each business is handled independently: a generation or delivery failure for
one recipient is logged and counted, and the loop moves on. Failure text is
never delivered to the recipient.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from incomebot.errors import DataAccessError, DeliveryError
from incomebot.models.report_models import ScheduleKind
from incomebot.services.delivery import ReportDelivery
from incomebot.services.perf_monitor import DispatchTracker, tracker as default_tracker
from incomebot.services.report_composer import NOT_REGISTERED_MESSAGE, ReportComposer
from incomebot.services.repositories import IncomeRepository

logger = logging.getLogger("incomebot-dispatch")


@dataclass
class DispatchResult:
    kind: ScheduleKind
    sent: int = 0
    failed: int = 0


class ReportDispatcher:
    def __init__(
        self,
        repository: IncomeRepository,
        composer: ReportComposer,
        delivery: ReportDelivery,
        tracker: Optional[DispatchTracker] = None,
    ):
        self.repository = repository
        self.composer = composer
        self.delivery = delivery
        self.tracker = tracker or default_tracker

    async def dispatch(self, kind: ScheduleKind, now: Optional[datetime] = None) -> DispatchResult:
        kind = ScheduleKind(kind)
        result = DispatchResult(kind=kind)
        started = time.perf_counter()
        logger.info(f"Executing {kind.value} report", extra={"schedule_kind": kind.value})

        try:
            managers = await self.repository.list_managers()
        except DataAccessError as e:
            logger.error(f"Could not list businesses for {kind.value} report: {e}", extra={"schedule_kind": kind.value})
            return result

        if not managers:
            logger.info("No registered businesses found for automated reports")

        for manager in managers:
            extra = {"schedule_kind": kind.value, "manager_id": manager.id}
            try:
                text = await self.composer.compose(kind, manager, now)
                await self.delivery.send(manager.delivery_address, text)
            except DeliveryError as e:
                result.failed += 1
                logger.warning(f"{kind.value} report not delivered: {e}", extra=extra)
                continue
            except Exception as e:
                result.failed += 1
                logger.error(
                    f"{kind.value} report generation failed for {manager.business_name}: "
                    f"{type(e).__name__}: {e}",
                    extra=extra,
                )
                continue
            result.sent += 1
            logger.info(f"{kind.value} report sent to {manager.business_name}", extra=extra)

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        self.tracker.record_dispatch(kind.value, result.sent, result.failed, duration_ms)
        logger.info(
            f"{kind.value} dispatch complete: {result.sent} sent, {result.failed} failed",
            extra={"schedule_kind": kind.value, "duration_ms": duration_ms},
        )
        return result

    async def send_test_report(self, delivery_address: str, now: Optional[datetime] = None) -> bool:
        """
        Send the weekly report on demand to one address.

        Returns False when the address has no registered business (the
        recipient gets a "register first" notice instead). Repository and
        delivery errors propagate to the caller.
        """
        manager = await self.repository.get_manager_by_delivery_address(delivery_address)
        if manager is None:
            await self.delivery.send(delivery_address, NOT_REGISTERED_MESSAGE)
            return False

        text = await self.composer.compose_manual(manager, now)
        await self.delivery.send(delivery_address, text)
        logger.info("Manual test report sent", extra={"manager_id": manager.id})
        return True
