from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.orm import Session

from outagewatch.config import settings
from outagewatch.database import get_db
from outagewatch.schemas.outage import (
    ConfirmationOut,
    DowntimeStats,
    ImpactSummary,
    MessageOut,
    OutageInsights,
    OutageOut,
    OutageReport,
)
from outagewatch.services import analytics, outage_lifecycle
from outagewatch.services.outage_store import OutageStore

router = APIRouter(prefix="/outages", tags=["outages"])


def get_store(db: Session = Depends(get_db)) -> OutageStore:
    return OutageStore(db)


@router.post(
    "",
    response_model=OutageOut | ConfirmationOut,
    status_code=status.HTTP_201_CREATED,
)
def report_outage(
    response: Response,
    report: OutageReport | None = None,
    store: OutageStore = Depends(get_store),
):
    """Report a service outage, or confirm the ongoing one for the same service and area."""
    # An empty body is a report with every field missing
    report = report or OutageReport()
    outage, created = outage_lifecycle.report_outage(store, report.service, report.area, report.down_time)
    if created:
        return OutageOut.model_validate(outage)
    response.status_code = status.HTTP_200_OK
    return ConfirmationOut(outage=OutageOut.model_validate(outage))


@router.get("", response_model=list[OutageOut])
def list_outages(store: OutageStore = Depends(get_store)):
    """All outages, most recently reported first."""
    return outage_lifecycle.list_outages(store)


@router.get("/stats", response_model=DowntimeStats, response_model_exclude_none=True)
def get_stats(store: OutageStore = Depends(get_store)):
    return analytics.compute_stats(store)


@router.get("/insights", response_model=OutageInsights, response_model_exclude_none=True)
def get_insights(store: OutageStore = Depends(get_store)):
    return analytics.compute_insights(store)


@router.get("/impact", response_model=ImpactSummary, response_model_exclude_none=True)
def get_impact(store: OutageStore = Depends(get_store)):
    return analytics.compute_impact(store)


@router.put("/{outage_id}/restore", response_model=OutageOut)
def restore_outage(outage_id: str, store: OutageStore = Depends(get_store)):
    """Mark an outage as restored."""
    return outage_lifecycle.restore_outage(store, outage_id)


@router.delete("/{outage_id}", response_model=MessageOut)
def delete_outage(
    outage_id: str,
    x_admin_password: str | None = Header(None),
    store: OutageStore = Depends(get_store),
):
    """Admin only: delete an outage record."""
    outage_lifecycle.delete_outage(store, outage_id, x_admin_password, settings.admin_password)
    return MessageOut(message="Deleted")
