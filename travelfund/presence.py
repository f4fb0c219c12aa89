"""Participant presence on trip dates.

Presence only drives defaults (which participants a new expense is shared
among) and "not present" hints. It never overrides a saved inclusion choice.
"""

from datetime import date, datetime


def to_date(value) -> date:
    """Truncate a date, datetime or ISO string to a plain date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    raise TypeError(f"Cannot interpret {value!r} as a date")


def _period_bounds(period) -> tuple[date, date]:
    if isinstance(period, dict):
        return to_date(period["startDate"]), to_date(period["endDate"])
    return to_date(period.start_date), to_date(period.end_date)


def is_present(participant: dict | None, on_date) -> bool:
    """Whether on_date falls inside any of the participant's periods (inclusive)."""
    if not participant:
        return False
    day = to_date(on_date)
    for period in participant.get("participationPeriods") or []:
        start, end = _period_bounds(period)
        if start <= day <= end:
            return True
    return False


def period_within_trip(period, trip) -> bool:
    """Pure predicate: the period is well-formed and lies inside the trip window.

    Both arguments may be snapshot dicts or objects with start_date/end_date.
    """
    start, end = _period_bounds(period)
    trip_start, trip_end = _period_bounds(trip)
    return start <= end and start >= trip_start and end <= trip_end


def default_shared_among(trip: dict | None, on_date) -> list[dict]:
    """Default sharedAmong for a new expense: everyone listed, present ones included."""
    if not trip:
        return []
    return [
        {
            "participantId": p["id"],
            "included": is_present(p, on_date),
            "weight": 1.0,
        }
        for p in trip["participants"]
    ]
