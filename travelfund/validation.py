"""Ledger invariants checked before any mutation is written."""

from travelfund.balances import EPSILON
from travelfund.presence import period_within_trip, to_date


class LedgerError(Exception):
    """A refused mutation, reported to the caller as label + detail."""

    label = "LedgerError"
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidPeriod(LedgerError):
    label = "InvalidPeriod"


class InvalidTripDates(LedgerError):
    label = "InvalidTripDates"


class UnbalancedPayment(LedgerError):
    label = "UnbalancedPayment"


class ReferentialBlock(LedgerError):
    label = "ReferentialBlock"
    status_code = 409


class UnknownParticipant(LedgerError):
    label = "UnknownParticipant"


class InvalidImport(LedgerError):
    label = "InvalidImport"


def check_trip_dates(start_date, end_date) -> None:
    if to_date(start_date) > to_date(end_date):
        raise InvalidTripDates("Trip start date must not be after its end date")


def check_periods(periods: list, trip) -> None:
    """Every participation period must lie within the trip window."""
    for period in periods:
        if not period_within_trip(period, trip):
            raise InvalidPeriod("Participation period must lie within the trip dates")


def check_participants_known(participant_ids, trip_participant_ids: set[str]) -> None:
    for pid in participant_ids:
        if pid not in trip_participant_ids:
            raise UnknownParticipant(f"Participant {pid} is not in this trip")


def clean_payers(amount: float, paid_by: list[dict], paid_from_fund: bool) -> list[dict]:
    """Return the payer list to store for an expense.

    Fund-paid expenses keep no payers. Otherwise amounts are rounded to
    cents as they will be stored, entries that round to zero are dropped and
    the rest must add up to the expense amount.
    """
    if paid_from_fund:
        return []

    amount = round(float(amount), 2)
    payers = []
    for p in paid_by:
        cents = round(float(p["amount"]), 2)
        if cents != 0:
            payers.append({**p, "amount": cents})
    total = sum(p["amount"] for p in payers)
    if round(abs(total - amount), 2) > EPSILON:
        raise UnbalancedPayment(
            f"Payers cover {total:.2f} but the expense amount is {amount:.2f}"
        )
    return payers


def complete_shared_among(shared_among: list[dict], participant_ids: list[str]) -> list[dict]:
    """Cover every trip participant, listing missing ones as not included."""
    listed = {s["participantId"] for s in shared_among}
    completed = list(shared_among)
    for pid in participant_ids:
        if pid not in listed:
            completed.append({"participantId": pid, "included": False, "weight": 1.0})
    return completed


def participant_references(trip: dict, participant_id: str) -> list[str]:
    """Describe where a participant is still referenced in a trip snapshot."""
    refs = []
    for expense in trip.get("expenses") or []:
        if any(p["participantId"] == participant_id for p in expense.get("paidBy") or []):
            refs.append(f"payer of expense {expense['id']}")
        if any(
            s["participantId"] == participant_id and s.get("included")
            for s in expense.get("sharedAmong") or []
        ):
            refs.append(f"shares expense {expense['id']}")
    for contribution in trip.get("advanceContributions") or []:
        if contribution["participantId"] == participant_id:
            refs.append(f"contribution {contribution['id']}")
    return refs
