import logging
from datetime import date as date_type

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from travelfund.database import get_db
from travelfund.deps import commit_change, get_child, get_trip
from travelfund.models import Expense, ExpensePayer, ExpenseShare, Trip
from travelfund.presence import default_shared_among
from travelfund.schemas import ExpenseIn
from travelfund.serializers import serialize_expense, serialize_trip
from travelfund.validation import (
    check_participants_known, clean_payers, complete_shared_among,
)

logger = logging.getLogger("travelfund")

router = APIRouter()


def _prepare_expense(trip: Trip, data: ExpenseIn) -> tuple[list[dict], list[dict]]:
    """Validate payers and shares against the trip; nothing is written here."""
    participant_ids = [p.id for p in trip.participants]
    known = set(participant_ids)
    check_participants_known((p.participant_id for p in data.paid_by), known)
    check_participants_known((s.participant_id for s in data.shared_among), known)

    payers = clean_payers(
        data.amount,
        [{"participantId": p.participant_id, "amount": p.amount} for p in data.paid_by],
        data.paid_from_fund,
    )
    shares = complete_shared_among(
        [
            {"participantId": s.participant_id, "included": s.included, "weight": s.weight}
            for s in data.shared_among
        ],
        participant_ids,
    )
    return payers, shares


def _apply_expense(expense: Expense, data: ExpenseIn, payers: list[dict], shares: list[dict]) -> None:
    expense.amount = data.amount
    expense.date = data.date
    expense.category = data.category
    expense.custom_label = data.custom_label if data.category == "Custom" else None
    expense.paid_from_fund = data.paid_from_fund
    expense.comment = data.comment
    expense.payers = [
        ExpensePayer(participant_id=p["participantId"], amount=p["amount"])
        for p in payers
    ]
    expense.shares = [
        ExpenseShare(participant_id=s["participantId"], included=s["included"], weight=s["weight"])
        for s in shares
    ]


@router.get("/trips/{trip_id}/expenses/defaults")
def expense_defaults(
    date: date_type = Query(...),
    trip: Trip = Depends(get_trip),
):
    """Suggested sharedAmong for a new expense on the given date."""
    return {
        "date": date.isoformat(),
        "sharedAmong": default_shared_among(serialize_trip(trip), date),
    }


@router.post("/trips/{trip_id}/expenses", status_code=201)
def add_expense(
    data: ExpenseIn,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    payers, shares = _prepare_expense(trip, data)

    expense = Expense(trip_id=trip.id)
    _apply_expense(expense, data, payers, shares)
    db.add(expense)
    db.flush()

    commit_change(db, trip, "expense.created", expense.id)
    db.refresh(expense)
    logger.info(
        "Expense added",
        extra={"extra_data": {"trip_id": trip.id, "expense_id": expense.id, "amount": data.amount}},
    )
    return serialize_expense(expense)


@router.put("/trips/{trip_id}/expenses/{expense_id}")
def update_expense(
    expense_id: str,
    data: ExpenseIn,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    expense = get_child(db, Expense, trip, expense_id, "Expense")
    payers, shares = _prepare_expense(trip, data)

    # Replace child rows wholesale
    expense.payers = []
    expense.shares = []
    db.flush()
    _apply_expense(expense, data, payers, shares)

    commit_change(db, trip, "expense.updated", expense.id)
    db.refresh(expense)
    return serialize_expense(expense)


@router.delete("/trips/{trip_id}/expenses/{expense_id}", status_code=204)
def delete_expense(
    expense_id: str,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    expense = get_child(db, Expense, trip, expense_id, "Expense")
    db.delete(expense)
    commit_change(db, trip, "expense.deleted", expense_id)
    return None
