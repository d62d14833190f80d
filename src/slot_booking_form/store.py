from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from .models import Slot

logger = logging.getLogger(__name__)

WEEKDAY_LABELS = ("一", "二", "三", "四", "五", "六", "日")
DATE_SEPARATORS = re.compile(r"[/\-.]")
YEAR_PATTERN = re.compile(r"\d{4}")
MORNING_CUTOFF_HOUR = 12


class SlotStore:
    """Last known slot list. Replaced wholesale, never patched slot by slot."""

    def __init__(self, slots: Iterable[Slot] = ()) -> None:
        self._slots: tuple[Slot, ...] = tuple(slots)

    @property
    def slots(self) -> tuple[Slot, ...]:
        return self._slots

    def replace(self, slots: Iterable[Slot]) -> None:
        self._slots = tuple(slots)

    def clear(self) -> None:
        self._slots = ()

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self):
        return iter(self._slots)


def unique_dates(slots: Sequence[Slot]) -> list[str]:
    """Distinct dates in the order they first appear."""

    return list(dict.fromkeys(slot.date for slot in slots))


def slots_for_date(slots: Sequence[Slot], selected_date: Optional[str]) -> list[Slot]:
    return [slot for slot in slots if slot.date == selected_date]


def split_by_period(slots: Sequence[Slot]) -> tuple[list[Slot], list[Slot]]:
    """Split into (morning, afternoon) on the hour of ``time_slot``.

    Slots whose hour cannot be read belong to neither group.
    """

    morning: list[Slot] = []
    afternoon: list[Slot] = []
    for slot in slots:
        hour = slot.hour
        if hour is None:
            logger.debug("Unreadable time slot %r on %s", slot.time_slot, slot.date)
            continue
        if hour < MORNING_CUTOFF_HOUR:
            morning.append(slot)
        else:
            afternoon.append(slot)
    return morning, afternoon


def available_count(slots: Sequence[Slot]) -> int:
    return sum(1 for slot in slots if not slot.is_booked)


def booked_slots(slots: Sequence[Slot]) -> list[Slot]:
    return [slot for slot in slots if slot.is_booked]


def parse_slot_date(raw: str, default_year: int) -> Optional[date]:
    text = raw.strip()
    if not text:
        return None

    if "T" in text:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone()
        return parsed.date()

    if not YEAR_PATTERN.search(text):
        text = f"{default_year}/{text}"

    parts = DATE_SEPARATORS.split(text)
    if len(parts) != 3:
        return None
    # Year may lead (2026/4/22) or trail, as in US-locale sheets (4/22/2026).
    if len(parts[-1]) == 4 and len(parts[0]) != 4:
        parts = [parts[2], parts[0], parts[1]]
    try:
        year, month, day = (int(part) for part in parts)
        return date(year, month, day)
    except ValueError:
        return None


def format_date_label(raw: str, default_year: int) -> str:
    """Render a sheet date such as ``4/22`` as ``2026/04/22(三)``.

    Anything that does not parse is shown as given.
    """

    parsed = parse_slot_date(raw, default_year)
    if parsed is None:
        return raw
    return f"{parsed:%Y/%m/%d}({WEEKDAY_LABELS[parsed.weekday()]})"
