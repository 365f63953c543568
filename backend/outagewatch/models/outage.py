from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime, Float, Index, Integer, String, text
from sqlalchemy import Enum as SAEnum

from outagewatch.database import Base


class Service(str, Enum):
    """Services a community member can report as down."""
    electricity = "Electricity"
    water = "Water"
    internet = "Internet"
    transport = "Transport"


class OutageStatus(str, Enum):
    ongoing = "ongoing"
    resolved = "resolved"  # terminal


class ConfidenceLevel(str, Enum):
    """Trust in an outage, derived only from how many reports confirmed it."""
    unverified = "unverified"
    likely = "likely"
    confirmed = "confirmed"


AREA_MAX_LENGTH = 200


def _enum_column(enum_cls):
    # Store the enum values ("Electricity"), not the member names
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda e: [m.value for m in e],
        validate_strings=True,
    )


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (as read back from SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    """Current UTC time truncated to millisecond resolution."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class Outage(Base):
    """One tracked disruption of a service in an area."""
    __tablename__ = "outages"
    __table_args__ = (
        # At most one ongoing outage per (service, area)
        Index(
            "uq_outages_ongoing_service_area",
            "service",
            "area",
            unique=True,
            sqlite_where=text("status = 'ongoing'"),
            postgresql_where=text("status = 'ongoing'"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    service = Column(_enum_column(Service), nullable=False, index=True)
    area = Column(String(AREA_MAX_LENGTH), nullable=False, index=True)
    down_time = Column(DateTime(timezone=True), nullable=False)
    up_time = Column(DateTime(timezone=True), nullable=True)
    duration_minutes = Column(Float, nullable=True)
    status = Column(_enum_column(OutageStatus), nullable=False, default=OutageStatus.ongoing, index=True)
    confirm_count = Column(Integer, nullable=False, default=1)
    confidence_level = Column(_enum_column(ConfidenceLevel), nullable=False, default=ConfidenceLevel.unverified)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f"<Outage(id={self.id}, service='{self.service}', area='{self.area}', status='{self.status}')>"
