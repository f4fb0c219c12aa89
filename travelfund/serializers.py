from travelfund.models import Trip, Participant, Expense, AdvanceContribution


def serialize_period(period) -> dict:
    return {
        "id": str(period.id),
        "startDate": period.start_date.isoformat(),
        "endDate": period.end_date.isoformat(),
    }


def serialize_participant(participant: Participant) -> dict:
    return {
        "id": str(participant.id),
        "name": participant.name,
        "email": participant.email,
        "participationPeriods": [serialize_period(p) for p in participant.periods],
        "refundDonated": bool(participant.refund_donated),
    }


def serialize_expense(expense: Expense) -> dict:
    return {
        "id": str(expense.id),
        "amount": float(expense.amount),
        "date": expense.date.isoformat(),
        "category": expense.category,
        "customLabel": expense.custom_label,
        "paidBy": [
            {"participantId": str(p.participant_id), "amount": float(p.amount)}
            for p in expense.payers
        ],
        "paidFromFund": bool(expense.paid_from_fund),
        "sharedAmong": [
            {"participantId": str(s.participant_id), "included": bool(s.included), "weight": float(s.weight)}
            for s in expense.shares
        ],
        "comment": expense.comment,
        "createdAt": expense.created_at.isoformat(),
        "updatedAt": expense.updated_at.isoformat(),
    }


def serialize_contribution(contribution: AdvanceContribution) -> dict:
    return {
        "id": str(contribution.id),
        "participantId": str(contribution.participant_id),
        "amount": float(contribution.amount),
        "date": contribution.date.isoformat(),
        "comment": contribution.comment,
        "createdAt": contribution.created_at.isoformat(),
    }


def serialize_trip_summary(trip: Trip) -> dict:
    return {
        "id": str(trip.id),
        "name": trip.name,
        "startDate": trip.start_date.isoformat(),
        "endDate": trip.end_date.isoformat(),
        "currency": trip.currency,
        "createdAt": trip.created_at.isoformat(),
        "updatedAt": trip.updated_at.isoformat(),
        "participantCount": len(trip.participants),
    }


def serialize_trip(trip: Trip) -> dict:
    """Full trip snapshot; the input format of the balance functions."""
    return {
        "id": str(trip.id),
        "name": trip.name,
        "startDate": trip.start_date.isoformat(),
        "endDate": trip.end_date.isoformat(),
        "currency": trip.currency,
        "description": trip.description,
        "participants": [serialize_participant(p) for p in trip.participants],
        "expenses": [serialize_expense(e) for e in trip.expenses],
        "advanceContributions": [serialize_contribution(c) for c in trip.contributions],
        "createdAt": trip.created_at.isoformat(),
        "updatedAt": trip.updated_at.isoformat(),
    }


def round_money(value: float) -> float:
    return round(value, 2)


def serialize_settlement(settlement: dict) -> dict:
    return {
        **settlement,
        "advancePaid": round_money(settlement["advancePaid"]),
        "personallyPaid": round_money(settlement["personallyPaid"]),
        "expenseShare": round_money(settlement["expenseShare"]),
        "dueAmount": round_money(settlement["dueAmount"]),
        "refundAmount": round_money(settlement["refundAmount"]),
    }


def serialize_transfer(transfer: dict, names: dict[str, str]) -> dict:
    return {
        "from": transfer["from"],
        "fromName": names.get(transfer["from"]),
        "to": transfer["to"],
        "toName": names.get(transfer["to"]),
        "amount": round_money(transfer["amount"]),
    }
