"""Outage store: the only code that queries the outages table."""

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from outagewatch.models.outage import Outage, OutageStatus, Service


class OutageStore:
    """Equality lookups and full scans over Outage rows, bound to one session."""

    def __init__(self, db: Session):
        self.db = db

    def increment_ongoing(self, service: Service, area: str) -> Outage | None:
        """Atomically add one confirmation to the ongoing outage, if any.

        Leaves the transaction open so the caller can update derived fields
        before committing.
        """
        stmt = (
            update(Outage)
            .where(
                Outage.service == service,
                Outage.area == area,
                Outage.status == OutageStatus.ongoing,
            )
            .values(confirm_count=Outage.confirm_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            return None
        select_stmt = (
            select(Outage)
            .where(
                Outage.service == service,
                Outage.area == area,
                Outage.status == OutageStatus.ongoing,
            )
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(select_stmt).one()

    def create(self, service: Service, area: str, down_time: datetime) -> Outage:
        outage = Outage(service=service, area=area, down_time=down_time)
        self.db.add(outage)
        self.db.commit()
        self.db.refresh(outage)
        return outage

    def get(self, outage_id: int, refresh: bool = False) -> Outage | None:
        return self.db.get(Outage, outage_id, populate_existing=refresh)

    def list_newest_first(self) -> list[Outage]:
        stmt = select(Outage).order_by(Outage.created_at.desc(), Outage.id.desc())
        return list(self.db.scalars(stmt))

    def scan(self, status: OutageStatus | None = None) -> list[Outage]:
        stmt = select(Outage)
        if status is not None:
            stmt = stmt.where(Outage.status == status)
        return list(self.db.scalars(stmt.order_by(Outage.id)))

    def resolve(self, outage_id: int, up_time: datetime, duration_minutes: float) -> Outage | None:
        """Resolve the outage only if it is still ongoing. Returns None otherwise."""
        stmt = (
            update(Outage)
            .where(Outage.id == outage_id, Outage.status == OutageStatus.ongoing)
            .values(
                up_time=up_time,
                duration_minutes=duration_minutes,
                status=OutageStatus.resolved,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        if result.rowcount == 0:
            return None
        return self.db.get(Outage, outage_id, populate_existing=True)

    def save(self, outage: Outage) -> Outage:
        self.db.commit()
        self.db.refresh(outage)
        return outage

    def delete(self, outage_id: int) -> int:
        result = self.db.execute(delete(Outage).where(Outage.id == outage_id))
        self.db.commit()
        return result.rowcount

    def rollback(self):
        self.db.rollback()
