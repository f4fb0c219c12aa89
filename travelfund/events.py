"""Change notifications for committed ledger mutations.

Observers are called after a mutation has been committed, with the trip id,
an action name (e.g. "expense.created") and the id of the affected entity.
An observer that raises is logged and skipped; the mutation stays committed.
"""

import logging
from typing import Callable

logger = logging.getLogger("travelfund")

TripObserver = Callable[[str, str, str | None], None]

_observers: list[TripObserver] = []


def subscribe(observer: TripObserver) -> None:
    if observer not in _observers:
        _observers.append(observer)


def unsubscribe(observer: TripObserver) -> None:
    if observer in _observers:
        _observers.remove(observer)


def notify(trip_id: str, action: str, entity_id: str | None = None) -> None:
    for observer in list(_observers):
        try:
            observer(trip_id, action, entity_id)
        except Exception:
            logger.exception(
                "Trip observer failed",
                extra={"extra_data": {"trip_id": trip_id, "action": action}},
            )


def log_change(trip_id: str, action: str, entity_id: str | None = None) -> None:
    logger.info(
        "Trip changed",
        extra={"extra_data": {"trip_id": trip_id, "action": action, "entity_id": entity_id}},
    )
