import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VenueClock:
    zone_name: str
    zone: tzinfo | None

    @classmethod
    def for_zone(cls, name: str) -> "VenueClock":
        return cls(zone_name=name, zone=resolve_zone(name))

    def now(self) -> datetime:
        return now_in(self.zone)


def resolve_zone(name: str) -> ZoneInfo | None:
    """Return the venue zone, or None when the tz database has no such key."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("unknown time zone %r", name)
        return None


def now_in(zone: tzinfo | None) -> datetime:
    return datetime.now(zone or timezone.utc)


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_offset_minutes(dt: datetime) -> int:
    offset = dt.utcoffset()
    if offset is None:
        return 0
    return int(offset.total_seconds() // 60)
