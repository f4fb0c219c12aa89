import logging
from datetime import date as date_type

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from travelfund.database import get_db
from travelfund.deps import commit_change, get_child, get_trip
from travelfund.models import (
    AdvanceContribution, ExpenseShare, Participant, ParticipationPeriod, Trip,
)
from travelfund.presence import is_present
from travelfund.schemas import DonationIn, ParticipantIn
from travelfund.serializers import serialize_participant, serialize_trip
from travelfund.validation import ReferentialBlock, check_periods, participant_references

logger = logging.getLogger("travelfund")

router = APIRouter()


def _set_periods(participant: Participant, data: ParticipantIn) -> None:
    participant.periods = [
        ParticipationPeriod(start_date=p.start_date, end_date=p.end_date)
        for p in data.participation_periods
    ]


@router.post("/trips/{trip_id}/participants", status_code=201)
def add_participant(
    data: ParticipantIn,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    check_periods(data.participation_periods, trip)

    next_position = max((p.position for p in trip.participants), default=-1) + 1
    participant = Participant(
        trip_id=trip.id,
        name=data.name,
        email=data.email,
        position=next_position,
    )
    _set_periods(participant, data)
    db.add(participant)
    db.flush()

    if data.initial_contribution:
        db.add(AdvanceContribution(
            trip_id=trip.id,
            participant_id=participant.id,
            amount=round(data.initial_contribution, 2),
            date=trip.start_date,
            comment="Initial contribution",
        ))

    commit_change(db, trip, "participant.created", participant.id)
    db.refresh(participant)
    logger.info("Participant added", extra={"extra_data": {"trip_id": trip.id, "participant_id": participant.id}})
    return serialize_participant(participant)


@router.put("/trips/{trip_id}/participants/{participant_id}")
def update_participant(
    participant_id: str,
    data: ParticipantIn,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    participant = get_child(db, Participant, trip, participant_id, "Participant")
    check_periods(data.participation_periods, trip)

    participant.name = data.name
    participant.email = data.email
    _set_periods(participant, data)

    commit_change(db, trip, "participant.updated", participant.id)
    db.refresh(participant)
    return serialize_participant(participant)


@router.delete("/trips/{trip_id}/participants/{participant_id}", status_code=204)
def remove_participant(
    participant_id: str,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    participant = get_child(db, Participant, trip, participant_id, "Participant")

    refs = participant_references(serialize_trip(trip), participant.id)
    if refs:
        logger.warning(
            "Participant removal refused",
            extra={"extra_data": {"trip_id": trip.id, "participant_id": participant.id, "references": refs}},
        )
        raise ReferentialBlock(
            f"{participant.name} is involved in expenses or contributions and cannot be removed"
        )

    # Only excluded share rows remain; they go with the participant
    db.query(ExpenseShare).filter(ExpenseShare.participant_id == participant.id).delete()
    db.delete(participant)
    commit_change(db, trip, "participant.deleted", participant_id)
    return None


@router.get("/trips/{trip_id}/participants/{participant_id}/presence")
def participant_presence(
    participant_id: str,
    date: date_type = Query(...),
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    participant = get_child(db, Participant, trip, participant_id, "Participant")
    return {
        "participantId": participant.id,
        "date": date.isoformat(),
        "present": is_present(serialize_participant(participant), date),
    }


@router.put("/trips/{trip_id}/participants/{participant_id}/donation")
def set_refund_donation(
    participant_id: str,
    data: DonationIn,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    participant = get_child(db, Participant, trip, participant_id, "Participant")
    participant.refund_donated = data.donated
    commit_change(db, trip, "participant.donation", participant.id)
    db.refresh(participant)
    logger.info(
        "Refund donation changed",
        extra={"extra_data": {"trip_id": trip.id, "participant_id": participant.id, "donated": data.donated}},
    )
    return serialize_participant(participant)
