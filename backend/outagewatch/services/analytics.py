"""Downtime analytics: in-memory reductions over a full scan of the outage store.

Every arg-max picks the highest value; ties go to the smallest key
(numeric for hour/weekday, lexicographic for area, declaration order of
Service for services).
"""

from collections import Counter, defaultdict
from typing import Callable

from outagewatch.models.outage import OutageStatus, Service, as_utc
from outagewatch.schemas.outage import DowntimeStats, ImpactSummary, OutageInsights
from outagewatch.services.outage_store import OutageStore

_SERVICE_ORDER = {s: i for i, s in enumerate(Service)}


def reliability_score(downtime_minutes: float) -> float:
    """100 minus two points per hour of cumulative downtime, floored at 0."""
    return max(0.0, 100 - (downtime_minutes / 60) * 2)


def day_of_week(dt) -> int:
    """0=Sunday .. 6=Saturday."""
    return dt.isoweekday() % 7


def _max_key(totals: dict, order: Callable = lambda k: k):
    return min(totals, key=lambda k: (-totals[k], order(k)))


def compute_stats(store: OutageStore) -> DowntimeStats:
    outages = store.scan(OutageStatus.resolved)
    if not outages:
        return DowntimeStats()

    total = 0.0
    per_service: dict[Service, float] = defaultdict(float)
    for o in outages:
        total += o.duration_minutes
        per_service[o.service] += o.duration_minutes

    return DowntimeStats(
        total_downtime_minutes=total,
        average_downtime_minutes=total / len(outages),
        service_wise_downtime=dict(per_service),
        reliability_scores={s: reliability_score(m) for s, m in per_service.items()},
    )


def compute_insights(store: OutageStore) -> OutageInsights:
    outages = store.scan()
    if not outages:
        return OutageInsights()

    hours: Counter[int] = Counter()
    days: Counter[int] = Counter()
    areas: Counter[str] = Counter()
    for o in outages:
        down = as_utc(o.down_time)
        hours[down.hour] += 1
        days[day_of_week(down)] += 1
        areas[o.area] += 1

    return OutageInsights(
        peak_outage_hour=_max_key(hours),
        worst_day_of_week=_max_key(days),
        recurring_areas=dict(areas),
    )


def compute_impact(store: OutageStore) -> ImpactSummary:
    outages = store.scan(OutageStatus.resolved)
    if not outages:
        return ImpactSummary()

    total_hours = 0.0
    area_hours: dict[str, float] = defaultdict(float)
    service_hours: dict[Service, float] = defaultdict(float)
    for o in outages:
        hours = o.duration_minutes / 60
        total_hours += hours
        area_hours[o.area] += hours
        service_hours[o.service] += hours

    return ImpactSummary(
        estimated_time_lost_hours=total_hours,
        most_affected_area=_max_key(area_hours),
        most_disruptive_service=_max_key(service_hours, _SERVICE_ORDER.__getitem__),
    )
