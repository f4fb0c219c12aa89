"""Share computation, settlement aggregation and debt simplification.

All functions here are pure and operate on a trip snapshot as produced by
serializers.serialize_trip (camelCase dicts).
"""

# Amounts closer than this are treated as equal (one cent)
EPSILON = 0.01


def compute_shares(
    expense: dict,
    shared_among: list[dict] | None = None,
) -> dict[str, float]:
    """Split an expense among its included participants by weight.

    Participants not flagged as included get no entry. When nobody is
    included, or the included weights add up to zero, every share is zero.
    """
    if shared_among is None:
        shared_among = expense.get("sharedAmong") or []

    included = [s for s in shared_among if s.get("included")]
    total_weight = sum(float(s.get("weight", 0)) for s in included)

    result: dict[str, float] = {}
    if total_weight <= 0:
        for s in included:
            result[s["participantId"]] = 0.0
        return result

    amount = float(expense["amount"])
    for s in included:
        result[s["participantId"]] = amount * float(s.get("weight", 0)) / total_weight
    return result


def calculate_settlements(trip: dict | None) -> list[dict]:
    """Compute what every participant paid, owes, and gets back.

    Returns one entry per participant, in participant order. A missing trip
    yields an empty list.
    """
    if not trip:
        return []

    expenses = trip.get("expenses") or []
    contributions = trip.get("advanceContributions") or []

    advance: dict[str, float] = {}
    for c in contributions:
        advance[c["participantId"]] = advance.get(c["participantId"], 0.0) + float(c["amount"])

    paid: dict[str, float] = {}
    owed: dict[str, float] = {}
    for expense in expenses:
        if not expense.get("paidFromFund"):
            for payer in expense.get("paidBy") or []:
                pid = payer["participantId"]
                paid[pid] = paid.get(pid, 0.0) + float(payer["amount"])
        for pid, share in compute_shares(expense).items():
            owed[pid] = owed.get(pid, 0.0) + share

    settlements = []
    for participant in trip.get("participants") or []:
        pid = participant["id"]
        advance_paid = advance.get(pid, 0.0)
        personally_paid = paid.get(pid, 0.0)
        expense_share = owed.get(pid, 0.0)
        net = advance_paid + personally_paid - expense_share
        settlements.append({
            "participantId": pid,
            "name": participant.get("name"),
            "advancePaid": advance_paid,
            "personallyPaid": personally_paid,
            "expenseShare": expense_share,
            "dueAmount": max(0.0, -net),
            "refundAmount": max(0.0, net),
            "donated": bool(participant.get("refundDonated")),
        })
    return settlements


def settlement_balances(settlements: list[dict]) -> dict[str, float]:
    """Signed balance per participant: positive is owed to them, negative they owe."""
    return {s["participantId"]: s["refundAmount"] - s["dueAmount"] for s in settlements}


def minimize_settlements(balances: dict[str, float]) -> list[dict]:
    """Reduce signed balances to a short list of debtor -> creditor transfers.

    Greedy two-pointer walk over the balances sorted ascending: the largest
    debtor pays the largest creditor until one of them is settled. Stops when
    all that is left to pay or receive is within EPSILON. Produces at most
    n - 1 transfers. Deterministic, not guaranteed optimal.
    """
    ordered = sorted(
        ([member_id, float(balance)] for member_id, balance in balances.items()),
        key=lambda entry: entry[1],
    )

    transfers = []
    i = 0
    j = len(ordered) - 1
    # EPSILON bounds what is left on either side, not single balances
    total_owed = sum(-entry[1] for entry in ordered if entry[1] < 0)
    total_receivable = sum(entry[1] for entry in ordered if entry[1] > 0)

    while i < j and total_owed > EPSILON and total_receivable > EPSILON:
        owed = -ordered[i][1]
        receivable = ordered[j][1]
        if owed <= 0:
            i += 1
            continue
        if receivable <= 0:
            j -= 1
            continue

        amount = min(owed, receivable)
        transfers.append({
            "from": ordered[i][0],
            "to": ordered[j][0],
            "amount": amount,
        })
        ordered[i][1] += amount
        ordered[j][1] -= amount
        total_owed -= amount
        total_receivable -= amount
        if ordered[i][1] >= 0:
            i += 1
        if ordered[j][1] <= 0:
            j -= 1

    return transfers


def fund_balance(trip: dict | None) -> float:
    """Money left in the travel fund: contributions minus fund-paid expenses."""
    if not trip:
        return 0.0
    contributed = sum(float(c["amount"]) for c in trip.get("advanceContributions") or [])
    spent = sum(float(e["amount"]) for e in trip.get("expenses") or [] if e.get("paidFromFund"))
    return contributed - spent


def total_expenses(trip: dict | None) -> float:
    if not trip:
        return 0.0
    return sum(float(e["amount"]) for e in trip.get("expenses") or [])
