import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from travelfund.database import get_db
from travelfund.deps import commit_change, get_child, get_trip
from travelfund.models import AdvanceContribution, Trip
from travelfund.schemas import ContributionIn
from travelfund.serializers import serialize_contribution
from travelfund.validation import check_participants_known

logger = logging.getLogger("travelfund")

router = APIRouter()


@router.post("/trips/{trip_id}/contributions", status_code=201)
def add_contribution(
    data: ContributionIn,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    check_participants_known([data.participant_id], {p.id for p in trip.participants})

    contribution = AdvanceContribution(
        trip_id=trip.id,
        participant_id=data.participant_id,
        amount=round(data.amount, 2),
        date=data.date,
        comment=data.comment,
    )
    db.add(contribution)
    db.flush()
    commit_change(db, trip, "contribution.created", contribution.id)
    db.refresh(contribution)
    logger.info(
        "Contribution added",
        extra={"extra_data": {"trip_id": trip.id, "participant_id": data.participant_id, "amount": data.amount}},
    )
    return serialize_contribution(contribution)


@router.put("/trips/{trip_id}/contributions/{contribution_id}")
def update_contribution(
    contribution_id: str,
    data: ContributionIn,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    contribution = get_child(db, AdvanceContribution, trip, contribution_id, "Contribution")
    check_participants_known([data.participant_id], {p.id for p in trip.participants})

    contribution.participant_id = data.participant_id
    contribution.amount = round(data.amount, 2)
    contribution.date = data.date
    contribution.comment = data.comment

    commit_change(db, trip, "contribution.updated", contribution.id)
    db.refresh(contribution)
    return serialize_contribution(contribution)


@router.delete("/trips/{trip_id}/contributions/{contribution_id}", status_code=204)
def delete_contribution(
    contribution_id: str,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    contribution = get_child(db, AdvanceContribution, trip, contribution_id, "Contribution")
    db.delete(contribution)
    commit_change(db, trip, "contribution.deleted", contribution_id)
    return None
