from datetime import date as date_type
from typing import Literal

from pydantic import BaseModel, Field, field_validator

ExpenseCategory = Literal["Meal", "Fuel", "Hotel", "Custom"]


# --- Trip ---

class CreateTripIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    start_date: date_type
    end_date: date_type
    currency: str = "EUR"
    description: str | None = None
    email: str | None = None  # send the trip link here


class UpdateTripIn(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    start_date: date_type | None = None
    end_date: date_type | None = None
    currency: str | None = None
    description: str | None = None


# --- Participants ---

class PeriodIn(BaseModel):
    start_date: date_type
    end_date: date_type


class ParticipantIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str | None = None
    participation_periods: list[PeriodIn] = []
    initial_contribution: float | None = Field(default=None, gt=0)


class DonationIn(BaseModel):
    donated: bool


# --- Expenses ---

class PayerIn(BaseModel):
    participant_id: str
    amount: float = Field(ge=0)

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: float) -> float:
        return round(v, 2)


class ShareIn(BaseModel):
    participant_id: str
    included: bool = True
    weight: float = Field(default=1.0, gt=0)


class ExpenseIn(BaseModel):
    amount: float = Field(gt=0)
    date: date_type
    category: ExpenseCategory = "Custom"
    custom_label: str | None = None
    paid_by: list[PayerIn] = []
    paid_from_fund: bool = False
    shared_among: list[ShareIn]
    comment: str | None = None

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: float) -> float:
        return round(v, 2)

    @field_validator("shared_among")
    @classmethod
    def unique_shares(cls, v: list[ShareIn]) -> list[ShareIn]:
        ids = [s.participant_id for s in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Each participant may appear only once in shared_among")
        return v

    @field_validator("paid_by")
    @classmethod
    def unique_payers(cls, v: list[PayerIn]) -> list[PayerIn]:
        ids = [p.participant_id for p in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Each participant may appear only once in paid_by")
        return v


# --- Contributions ---

class ContributionIn(BaseModel):
    participant_id: str
    amount: float = Field(gt=0)
    date: date_type
    comment: str | None = None
