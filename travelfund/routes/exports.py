import logging

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from travelfund import events
from travelfund.database import get_db
from travelfund.deps import get_trip
from travelfund.export import export_filename, export_json, export_xlsx, import_trip, parse_import
from travelfund.models import Trip
from travelfund.ratelimit import TRIP_CREATE_LIMIT, limiter
from travelfund.serializers import serialize_trip

logger = logging.getLogger("travelfund")

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/trips/{trip_id}/export.json")
def export_trip_json(trip: Trip = Depends(get_trip)):
    snapshot = serialize_trip(trip)
    filename = export_filename(snapshot, "json")
    return JSONResponse(
        export_json(snapshot),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/trips/{trip_id}/export.xlsx")
def export_trip_xlsx(trip: Trip = Depends(get_trip)):
    snapshot = serialize_trip(trip)
    filename = export_filename(snapshot, "xlsx")
    logger.info("Trip exported", extra={"extra_data": {"trip_id": trip.id, "format": "xlsx"}})
    return Response(
        content=export_xlsx(snapshot),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/trips/import", status_code=201)
@limiter.limit(TRIP_CREATE_LIMIT)
def import_trip_json(request: Request, payload: dict = Body(...), db: Session = Depends(get_db)):
    data = parse_import(payload)
    trip = import_trip(db, data)
    db.commit()
    db.refresh(trip)
    events.notify(trip.id, "trip.imported", trip.id)
    logger.info("Trip imported", extra={"extra_data": {"trip_id": trip.id}})
    return serialize_trip(trip)
