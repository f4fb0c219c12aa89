import os

from slowapi import Limiter
from slowapi.util import get_remote_address

TRIP_CREATE_LIMIT = os.getenv("TRIP_CREATE_LIMIT", "20/hour")

limiter = Limiter(
    key_func=get_remote_address,
    enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true",
)
