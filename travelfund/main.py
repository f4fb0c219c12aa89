import logging
import os

import sentry_sdk
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from travelfund import events
from travelfund.database import engine, Base
from travelfund.logging_config import setup_logging
from travelfund.middleware import RequestLoggingMiddleware
from travelfund.ratelimit import limiter
from travelfund.routes import contributions, expenses, exports, participants, settlements, trips
from travelfund.validation import LedgerError

load_dotenv()

# Sentry
sentry_dsn = os.getenv("SENTRY_DSN")
if sentry_dsn:
    sentry_sdk.init(
        dsn=sentry_dsn,
        traces_sample_rate=0.1,
        send_default_pii=False,
    )

setup_logging()
logger = logging.getLogger("travelfund")
events.subscribe(events.log_change)

app = FastAPI(title="Travel Fund API", version="0.1.0")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    logger.warning(
        "Mutation refused",
        extra={"extra_data": {"error": exc.label, "detail": exc.detail, "path": request.url.path}},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.label, "detail": exc.detail},
    )


# CORS
origins = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in origins],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type"],
)
app.add_middleware(RequestLoggingMiddleware)

# Create tables
Base.metadata.create_all(bind=engine)

# Routes
app.include_router(trips.router, prefix="/api")
app.include_router(exports.router, prefix="/api")
app.include_router(participants.router, prefix="/api")
app.include_router(expenses.router, prefix="/api")
app.include_router(contributions.router, prefix="/api")
app.include_router(settlements.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok"}
