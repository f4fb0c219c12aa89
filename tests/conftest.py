import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from travelfund.database import Base, get_db
from travelfund.main import app


@pytest.fixture
def db_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(db_session_factory):
    def override_get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def trip(client):
    """A trip from June 1st to June 10th."""
    resp = client.post("/api/trips", json={
        "name": "Alps 2024",
        "start_date": "2024-06-01",
        "end_date": "2024-06-10",
        "currency": "EUR",
    })
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def abc(client, trip):
    """Participants A, B and C present for the whole trip."""
    ids = {}
    for name in ("A", "B", "C"):
        resp = client.post(f"/api/trips/{trip['id']}/participants", json={
            "name": name,
            "participation_periods": [{"start_date": "2024-06-01", "end_date": "2024-06-10"}],
        })
        assert resp.status_code == 201
        ids[name] = resp.json()["id"]
    return ids


# --- Snapshot builders for the pure functions ---

def make_participant(pid, name=None, periods=(), donated=False):
    return {
        "id": pid,
        "name": name or pid,
        "participationPeriods": [
            {"startDate": start, "endDate": end} for start, end in periods
        ],
        "refundDonated": donated,
    }


def make_expense(amount, paid_by=None, shared=None, from_fund=False, eid="e"):
    return {
        "id": eid,
        "amount": amount,
        "paidFromFund": from_fund,
        "paidBy": [
            {"participantId": pid, "amount": amt} for pid, amt in (paid_by or {}).items()
        ],
        "sharedAmong": [
            {"participantId": pid, "included": True, "weight": w} for pid, w in (shared or {}).items()
        ],
    }


def make_trip(participants, expenses=(), contributions=()):
    return {
        "id": "t1",
        "name": "Trip",
        "currency": "EUR",
        "startDate": "2024-06-01",
        "endDate": "2024-06-10",
        "participants": list(participants),
        "expenses": list(expenses),
        "advanceContributions": [
            {"id": f"c{i}", "participantId": pid, "amount": amt}
            for i, (pid, amt) in enumerate(contributions)
        ],
    }
