from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

FIRST_HOUR = 8
LAST_HOUR = 22


@dataclass(frozen=True)
class Timeslot:
    id: str
    label: str


@dataclass(frozen=True)
class Court:
    id: str
    name: str
    description: str | None = None
    price_per_hour: int | None = None
    active: bool = True


DEFAULT_COURTS: tuple[Court, ...] = (
    Court(id="court-1", name="Court 1"),
    Court(id="court-2", name="Court 2"),
    Court(id="court-3", name="Court 3"),
    Court(id="court-4", name="Court 4"),
)


def generate_timeslots() -> list[Timeslot]:
    """One-hour slots from 08:00 to 22:00, built on a fixed virtual date."""
    slots: list[Timeslot] = []
    for hour in range(FIRST_HOUR, LAST_HOUR):
        start = datetime(2020, 1, 1, hour)
        end = start + timedelta(hours=1)
        slots.append(
            Timeslot(
                id=f"{hour:02d}:00-{hour + 1:02d}:00",
                label=f"{start:%H:%M} - {end:%H:%M}",
            )
        )
    return slots


TIMESLOT_IDS: frozenset[str] = frozenset(slot.id for slot in generate_timeslots())
