from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from outagewatch.models.outage import AREA_MAX_LENGTH, ConfidenceLevel, OutageStatus, Service, as_utc


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OutageReport(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    # Optional so that missing fields reach the service as one validation error
    service: Service | None = None
    area: str | None = Field(default=None, max_length=AREA_MAX_LENGTH)
    down_time: datetime | None = None

    @field_validator("service", "area", "down_time", mode="before")
    @classmethod
    def _blank_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class OutageOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    service: Service
    area: str
    down_time: datetime
    up_time: datetime | None = None
    duration_minutes: float | None = None
    status: OutageStatus
    confirm_count: int
    confidence_level: ConfidenceLevel
    created_at: datetime

    @field_validator("down_time", "up_time", "created_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class ConfirmationOut(CamelModel):
    message: str = "Confirmation added"
    outage: OutageOut


class MessageOut(CamelModel):
    message: str


class DowntimeStats(CamelModel):
    """All fields unset when there are no resolved outages."""
    total_downtime_minutes: float | None = None
    average_downtime_minutes: float | None = None
    service_wise_downtime: dict[Service, float] | None = None
    reliability_scores: dict[Service, float] | None = None  # 0-100


class OutageInsights(CamelModel):
    peak_outage_hour: int | None = None  # 0-23, UTC
    worst_day_of_week: int | None = None  # 0=Sunday .. 6=Saturday, UTC
    recurring_areas: dict[str, int] | None = None


class ImpactSummary(CamelModel):
    estimated_time_lost_hours: float | None = None
    most_affected_area: str | None = None
    most_disruptive_service: Service | None = None
