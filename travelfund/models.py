import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean, Column, String, Integer, Numeric, Float, Date, DateTime, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from travelfund.database import Base


def new_uuid():
    return str(uuid.uuid4())


# two-decimal currency unit, read back as float
MONEY = Numeric(12, 2, asdecimal=False)


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")  # display tag only
    description = Column(String(1000), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    participants = relationship(
        "Participant", back_populates="trip", order_by="Participant.position",
        cascade="all, delete-orphan",
    )
    expenses = relationship(
        "Expense", back_populates="trip", order_by="Expense.created_at",
        cascade="all, delete-orphan",
    )
    contributions = relationship(
        "AdvanceContribution", back_populates="trip", order_by="AdvanceContribution.created_at",
        cascade="all, delete-orphan",
    )


class Participant(Base):
    __tablename__ = "participants"

    id = Column(String, primary_key=True, default=new_uuid)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    position = Column(Integer, nullable=False, default=0)
    refund_donated = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    trip = relationship("Trip", back_populates="participants")
    periods = relationship(
        "ParticipationPeriod", back_populates="participant", order_by="ParticipationPeriod.start_date",
        cascade="all, delete-orphan",
    )


class ParticipationPeriod(Base):
    __tablename__ = "participation_periods"

    id = Column(String, primary_key=True, default=new_uuid)
    participant_id = Column(String, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    participant = relationship("Participant", back_populates="periods")


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=new_uuid)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    amount = Column(MONEY, nullable=False)
    date = Column(Date, nullable=False)
    category = Column(String(20), nullable=False, default="Custom")
    custom_label = Column(String(100), nullable=True)
    paid_from_fund = Column(Boolean, nullable=False, default=False)
    comment = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    trip = relationship("Trip", back_populates="expenses")
    payers = relationship("ExpensePayer", back_populates="expense", cascade="all, delete-orphan")
    shares = relationship("ExpenseShare", back_populates="expense", cascade="all, delete-orphan")


class ExpensePayer(Base):
    __tablename__ = "expense_payers"

    id = Column(String, primary_key=True, default=new_uuid)
    expense_id = Column(String, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(String, ForeignKey("participants.id", ondelete="RESTRICT"), nullable=False)
    amount = Column(MONEY, nullable=False)

    __table_args__ = (UniqueConstraint("expense_id", "participant_id"),)

    expense = relationship("Expense", back_populates="payers")


class ExpenseShare(Base):
    __tablename__ = "expense_shares"

    id = Column(String, primary_key=True, default=new_uuid)
    expense_id = Column(String, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(String, ForeignKey("participants.id", ondelete="RESTRICT"), nullable=False)
    included = Column(Boolean, nullable=False, default=True)
    weight = Column(Float, nullable=False, default=1.0)

    __table_args__ = (UniqueConstraint("expense_id", "participant_id"),)

    expense = relationship("Expense", back_populates="shares")


class AdvanceContribution(Base):
    __tablename__ = "contributions"

    id = Column(String, primary_key=True, default=new_uuid)
    trip_id = Column(String, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(String, ForeignKey("participants.id", ondelete="RESTRICT"), nullable=False)
    amount = Column(MONEY, nullable=False)
    date = Column(Date, nullable=False)
    comment = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    trip = relationship("Trip", back_populates="contributions")
