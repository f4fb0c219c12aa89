from fastapi import APIRouter, Depends

from travelfund.balances import (
    calculate_settlements, fund_balance, minimize_settlements, settlement_balances, total_expenses,
)
from travelfund.deps import get_trip
from travelfund.models import Trip
from travelfund.serializers import (
    round_money, serialize_settlement, serialize_transfer, serialize_trip,
)

router = APIRouter()


def build_summary(snapshot: dict) -> dict:
    """Settlements, transfers and totals for one trip snapshot."""
    settlements = calculate_settlements(snapshot)
    transfers = minimize_settlements(settlement_balances(settlements))
    names = {p["id"]: p["name"] for p in snapshot["participants"]}

    total_refund = sum(s["refundAmount"] for s in settlements)
    total_donated = sum(s["refundAmount"] for s in settlements if s["donated"])

    return {
        "tripId": snapshot["id"],
        "currency": snapshot["currency"],
        "totalExpenses": round_money(total_expenses(snapshot)),
        "fundBalance": round_money(fund_balance(snapshot)),
        "totalDue": round_money(sum(s["dueAmount"] for s in settlements)),
        "totalRefund": round_money(total_refund - total_donated),
        "totalDonated": round_money(total_donated),
        "settlements": [serialize_settlement(s) for s in settlements],
        "transfers": [serialize_transfer(t, names) for t in transfers],
    }


@router.get("/trips/{trip_id}/settlements")
def get_settlements(trip: Trip = Depends(get_trip)):
    return [serialize_settlement(s) for s in calculate_settlements(serialize_trip(trip))]


@router.get("/trips/{trip_id}/transfers")
def get_transfers(trip: Trip = Depends(get_trip)):
    snapshot = serialize_trip(trip)
    settlements = calculate_settlements(snapshot)
    names = {p["id"]: p["name"] for p in snapshot["participants"]}
    return {
        "transfers": [
            serialize_transfer(t, names)
            for t in minimize_settlements(settlement_balances(settlements))
        ],
        # Left in the fund after transfers; refunded from it rather than by transfer
        "fundBalance": round_money(fund_balance(snapshot)),
    }


@router.get("/trips/{trip_id}/summary")
def get_summary(trip: Trip = Depends(get_trip)):
    return build_summary(serialize_trip(trip))


@router.get("/trips/{trip_id}/fund")
def get_fund(trip: Trip = Depends(get_trip)):
    snapshot = serialize_trip(trip)
    contributed: dict[str, float] = {p["id"]: 0.0 for p in snapshot["participants"]}
    for c in snapshot["advanceContributions"]:
        contributed[c["participantId"]] = contributed.get(c["participantId"], 0.0) + c["amount"]
    spent = sum(e["amount"] for e in snapshot["expenses"] if e["paidFromFund"])

    return {
        "totalContributions": round_money(sum(contributed.values())),
        "totalFundExpenses": round_money(spent),
        "balance": round_money(fund_balance(snapshot)),
        "contributions": [
            {"participantId": pid, "amount": round_money(amount)}
            for pid, amount in contributed.items()
        ],
    }
