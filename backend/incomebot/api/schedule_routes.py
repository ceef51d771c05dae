"""Schedule routes — inspect and toggle automated reports, send a manual test report."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from incomebot.api.deps import get_context
from incomebot.context import AppContext
from incomebot.errors import DeliveryError
from incomebot.models.report_models import ReportSchedule, ScheduleKind

router = APIRouter(prefix="/api/v1/schedules", tags=["Schedules"])
logger = logging.getLogger("incomebot-api")


class ScheduleOut(BaseModel):
    kind: str
    enabled: bool
    tick_interval_seconds: int
    description: str

    @classmethod
    def from_schedule(cls, schedule: ReportSchedule) -> "ScheduleOut":
        return cls(
            kind=schedule.kind.value,
            enabled=schedule.enabled,
            tick_interval_seconds=int(schedule.tick_interval.total_seconds()),
            description=schedule.description,
        )


class ScheduleUpdate(BaseModel):
    enabled: bool


class ManualReportRequest(BaseModel):
    delivery_address: str


@router.get("", response_model=List[ScheduleOut])
async def list_schedules(ctx: AppContext = Depends(get_context)):
    return [ScheduleOut.from_schedule(s) for s in ctx.scheduler.get_schedule_status()]


@router.put("/{kind}", response_model=ScheduleOut)
async def update_schedule(kind: ScheduleKind, body: ScheduleUpdate, ctx: AppContext = Depends(get_context)):
    try:
        schedule = ctx.scheduler.update_schedule(kind, body.enabled)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ScheduleOut.from_schedule(schedule)


@router.post("/test-report")
async def send_test_report(body: ManualReportRequest, ctx: AppContext = Depends(get_context)):
    try:
        registered = await ctx.dispatcher.send_test_report(body.delivery_address)
    except DeliveryError as e:
        logger.warning(f"Manual test report failed: {e}")
        raise HTTPException(status_code=502, detail="Report could not be delivered")
    return {"status": "sent" if registered else "not_registered"}
