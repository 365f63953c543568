"""Outage lifecycle: report/confirm, restore, and admin delete."""

import hmac
import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError

from outagewatch.errors import AlreadyResolved, Forbidden, InvalidId, OutageNotFound, ValidationFailed
from outagewatch.models.outage import AREA_MAX_LENGTH, ConfidenceLevel, Outage, OutageStatus, Service, as_utc, utcnow
from outagewatch.services.outage_store import OutageStore

logger = logging.getLogger(__name__)

_MS = timedelta(milliseconds=1)
_MAX_ID = 2**63 - 1


def confidence_for(confirm_count: int) -> ConfidenceLevel:
    """Map a confirmation count to a confidence level (monotonic)."""
    if confirm_count >= 3:
        return ConfidenceLevel.confirmed
    if confirm_count == 2:
        return ConfidenceLevel.likely
    return ConfidenceLevel.unverified


def normalize_timestamp(value: datetime) -> datetime:
    """UTC, millisecond resolution."""
    value = as_utc(value)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def parse_outage_id(raw_id) -> int:
    raw = str(raw_id).strip()
    if not raw.isascii() or not raw.isdigit() or not 1 <= int(raw) <= _MAX_ID:
        raise InvalidId()
    return int(raw)


def report_outage(
    store: OutageStore,
    service: Service | None,
    area: str | None,
    down_time: datetime | None,
) -> tuple[Outage, bool]:
    """Record a report for (service, area).

    Returns (outage, created). created is False when the report was folded
    into an existing ongoing outage as a confirmation.
    """
    if service is None or not area or down_time is None:
        raise ValidationFailed()
    area = area.strip()
    if not area:
        raise ValidationFailed()
    if len(area) > AREA_MAX_LENGTH:
        raise ValidationFailed("Area too long")

    # Two passes: the insert can lose a race against a concurrent report for
    # the same pair, in which case the retry lands on the confirm path.
    for _ in range(2):
        outage = store.increment_ongoing(service, area)
        if outage is not None:
            outage.confidence_level = confidence_for(outage.confirm_count)
            store.save(outage)
            logger.info(
                "Confirmation added to outage %d (%s / %s): count=%d level=%s",
                outage.id, service.value, area, outage.confirm_count, outage.confidence_level.value,
            )
            return outage, False

        try:
            outage = store.create(service, area, normalize_timestamp(down_time))
        except IntegrityError:
            store.rollback()
            logger.info("Concurrent report for %s / %s, retrying as confirmation", service.value, area)
            continue
        logger.info("New outage %d reported: %s / %s", outage.id, service.value, area)
        return outage, True

    raise RuntimeError(f"Could not record report for {service.value} / {area}")


def list_outages(store: OutageStore) -> list[Outage]:
    return store.list_newest_first()


def restore_outage(store: OutageStore, raw_id) -> Outage:
    """Mark an ongoing outage resolved and freeze its duration."""
    outage_id = parse_outage_id(raw_id)
    outage = store.get(outage_id)
    if outage is None:
        raise OutageNotFound()
    if outage.status == OutageStatus.resolved:
        raise AlreadyResolved()

    up_time = utcnow()
    duration = (up_time - as_utc(outage.down_time)) / _MS / 60000
    # Conditional on status so a concurrent restore cannot overwrite the first
    outage = store.resolve(outage_id, up_time, duration)
    if outage is None:
        if store.get(outage_id, refresh=True) is None:
            raise OutageNotFound()
        raise AlreadyResolved()
    logger.info("Outage %d restored after %.1f minutes", outage.id, outage.duration_minutes)
    return outage


def delete_outage(store: OutageStore, raw_id, caller_secret: str | None, admin_secret: str) -> None:
    """Delete an outage. Authorization is checked before the id is even parsed."""
    if not admin_secret or caller_secret is None or not hmac.compare_digest(
        caller_secret.encode(), admin_secret.encode()
    ):
        logger.warning("Rejected delete of outage %r: bad admin password", raw_id)
        raise Forbidden()

    outage_id = parse_outage_id(raw_id)
    if store.delete(outage_id):
        logger.info("Outage %d deleted", outage_id)
