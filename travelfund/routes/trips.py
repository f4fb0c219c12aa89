import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from travelfund import events
from travelfund.database import get_db
from travelfund.deps import commit_change, get_trip
from travelfund.email import send_trip_link
from travelfund.models import Trip, ParticipationPeriod, Participant
from travelfund.ratelimit import TRIP_CREATE_LIMIT, limiter
from travelfund.schemas import CreateTripIn, UpdateTripIn
from travelfund.serializers import serialize_trip, serialize_trip_summary
from travelfund.validation import InvalidPeriod, check_trip_dates

logger = logging.getLogger("travelfund")

router = APIRouter()


@router.post("/trips", status_code=201)
@limiter.limit(TRIP_CREATE_LIMIT)
def create_trip(request: Request, data: CreateTripIn, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    check_trip_dates(data.start_date, data.end_date)

    trip = Trip(
        name=data.name,
        start_date=data.start_date,
        end_date=data.end_date,
        currency=data.currency,
        description=data.description,
    )
    db.add(trip)
    db.commit()
    db.refresh(trip)
    events.notify(trip.id, "trip.created", trip.id)
    logger.info("Trip created", extra={"extra_data": {"trip_id": trip.id}})

    if data.email:
        background_tasks.add_task(send_trip_link, data.email, serialize_trip_summary(trip))

    return serialize_trip(trip)


@router.get("/trips")
def list_trips(db: Session = Depends(get_db)):
    trips = db.query(Trip).order_by(Trip.updated_at.desc()).all()
    return [serialize_trip_summary(t) for t in trips]


@router.get("/trips/{trip_id}")
def read_trip(trip: Trip = Depends(get_trip)):
    return serialize_trip(trip)


@router.patch("/trips/{trip_id}")
def update_trip(
    data: UpdateTripIn,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    raw = data.model_dump(exclude_unset=True)

    start_date = data.start_date if data.start_date is not None else trip.start_date
    end_date = data.end_date if data.end_date is not None else trip.end_date
    check_trip_dates(start_date, end_date)

    # Existing periods must still fit the new window
    outside = (
        db.query(ParticipationPeriod)
        .join(Participant, Participant.id == ParticipationPeriod.participant_id)
        .filter(
            Participant.trip_id == trip.id,
            (ParticipationPeriod.start_date < start_date) | (ParticipationPeriod.end_date > end_date),
        )
        .first()
    )
    if outside:
        raise InvalidPeriod("Existing participation periods fall outside the new trip dates")

    if data.name is not None:
        trip.name = data.name
    if data.currency is not None:
        trip.currency = data.currency
    if "description" in raw:
        trip.description = data.description
    trip.start_date = start_date
    trip.end_date = end_date

    commit_change(db, trip, "trip.updated", trip.id)
    db.refresh(trip)
    return serialize_trip(trip)


@router.delete("/trips/{trip_id}", status_code=204)
def delete_trip(
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    trip_id = trip.id
    db.delete(trip)
    db.commit()
    events.notify(trip_id, "trip.deleted", trip_id)
    logger.info("Trip deleted", extra={"extra_data": {"trip_id": trip_id}})
    return None
