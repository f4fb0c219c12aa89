from datetime import datetime

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from travelfund import events
from travelfund.database import get_db
from travelfund.models import Trip


def get_trip(
    trip_id: str,
    db: Session = Depends(get_db),
) -> Trip:
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip


def get_child(db: Session, model, trip: Trip, entity_id: str, label: str):
    """Load an entity owned by this trip or fail with 404."""
    entity = db.query(model).filter(model.id == entity_id, model.trip_id == trip.id).first()
    if not entity:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return entity


def commit_change(db: Session, trip: Trip, action: str, entity_id: str | None = None) -> None:
    """Commit a mutation, then tell the change observers about it."""
    trip.updated_at = datetime.utcnow()
    db.commit()
    events.notify(trip.id, action, entity_id)
