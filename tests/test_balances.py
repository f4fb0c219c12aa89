"""Tests for share, settlement and transfer computation on trip snapshots."""

import pytest

from conftest import make_expense, make_participant, make_trip
from travelfund.balances import (
    EPSILON,
    calculate_settlements,
    compute_shares,
    fund_balance,
    minimize_settlements,
    settlement_balances,
    total_expenses,
)


@pytest.fixture
def abc_trip():
    """A pays 90 shared equally by A, B and C."""
    return make_trip(
        [make_participant("A"), make_participant("B"), make_participant("C")],
        expenses=[make_expense(90, paid_by={"A": 90}, shared={"A": 1, "B": 1, "C": 1})],
    )


class TestComputeShares:

    def test_equal_weights(self):
        shares = compute_shares(make_expense(90, shared={"A": 1, "B": 1, "C": 1}))
        assert shares == {"A": 30.0, "B": 30.0, "C": 30.0}

    def test_weighted_fund_expense(self):
        """40 from the fund, B weight 1 and C weight 3."""
        shares = compute_shares(make_expense(40, shared={"B": 1, "C": 3}, from_fund=True))
        assert shares["B"] == pytest.approx(10)
        assert shares["C"] == pytest.approx(30)

    def test_fractional_weight(self):
        shares = compute_shares(make_expense(50, shared={"parent": 1, "child": 0.5, "other": 1}))
        assert shares["child"] == pytest.approx(10)
        assert shares["parent"] == pytest.approx(20)

    def test_excluded_participants_get_no_share(self):
        expense = make_expense(60, shared={"A": 1, "B": 1})
        expense["sharedAmong"].append({"participantId": "C", "included": False, "weight": 1})
        shares = compute_shares(expense)
        assert "C" not in shares
        assert shares == {"A": 30.0, "B": 30.0}

    def test_nobody_included_gives_no_shares(self):
        expense = make_expense(60)
        expense["sharedAmong"] = [{"participantId": "A", "included": False, "weight": 1}]
        assert compute_shares(expense) == {}

    def test_zero_total_weight_gives_zero_shares(self):
        expense = make_expense(60, shared={"A": 0, "B": 0})
        assert compute_shares(expense) == {"A": 0.0, "B": 0.0}

    def test_explicit_shared_among_overrides_expense(self):
        expense = make_expense(60, shared={"A": 1})
        shares = compute_shares(expense, [
            {"participantId": "B", "included": True, "weight": 2},
            {"participantId": "C", "included": True, "weight": 1},
        ])
        assert shares == {"B": 40.0, "C": 20.0}

    @pytest.mark.parametrize("amount,weights", [
        (100, {"A": 1, "B": 1, "C": 1}),
        (33.33, {"A": 0.5, "B": 1.5, "C": 2.25}),
        (0.07, {"A": 1, "B": 2}),
        (1234.56, {"A": 3, "B": 7, "C": 0.1, "D": 1}),
    ])
    def test_shares_add_up_to_amount(self, amount, weights):
        shares = compute_shares(make_expense(amount, shared=weights))
        assert abs(sum(shares.values()) - amount) <= EPSILON


class TestCalculateSettlements:

    def test_scenario_one_payer(self, abc_trip):
        settlements = calculate_settlements(abc_trip)
        by_id = {s["participantId"]: s for s in settlements}

        assert by_id["A"]["personallyPaid"] == 90
        assert by_id["A"]["expenseShare"] == pytest.approx(30)
        assert by_id["A"]["dueAmount"] == 0
        assert by_id["A"]["refundAmount"] == pytest.approx(60)
        for pid in ("B", "C"):
            assert by_id[pid]["dueAmount"] == pytest.approx(30)
            assert by_id[pid]["refundAmount"] == 0

    def test_order_follows_participants(self, abc_trip):
        abc_trip["participants"].reverse()
        assert [s["participantId"] for s in calculate_settlements(abc_trip)] == ["C", "B", "A"]

    def test_no_trip(self):
        assert calculate_settlements(None) == []

    def test_idle_participant_is_all_zero(self, abc_trip):
        abc_trip["participants"].append(make_participant("D"))
        d = calculate_settlements(abc_trip)[-1]
        assert d == {
            "participantId": "D",
            "name": "D",
            "advancePaid": 0.0,
            "personallyPaid": 0.0,
            "expenseShare": 0.0,
            "dueAmount": 0.0,
            "refundAmount": 0.0,
            "donated": False,
        }

    def test_fund_paid_expense_ignores_payers(self):
        expense = make_expense(40, paid_by={"A": 40}, shared={"B": 1, "C": 3}, from_fund=True)
        trip = make_trip(
            [make_participant("A"), make_participant("B"), make_participant("C")],
            expenses=[expense],
            contributions=[("A", 40)],
        )
        by_id = {s["participantId"]: s for s in calculate_settlements(trip)}
        assert by_id["A"]["personallyPaid"] == 0
        assert by_id["A"]["advancePaid"] == 40
        assert by_id["A"]["refundAmount"] == pytest.approx(40)
        assert by_id["B"]["dueAmount"] == pytest.approx(10)
        assert by_id["C"]["dueAmount"] == pytest.approx(30)

    def test_multi_payer_expense(self):
        trip = make_trip(
            [make_participant("A"), make_participant("B")],
            expenses=[make_expense(100, paid_by={"A": 70, "B": 30}, shared={"A": 1, "B": 1})],
        )
        by_id = {s["participantId"]: s for s in calculate_settlements(trip)}
        assert by_id["A"]["refundAmount"] == pytest.approx(20)
        assert by_id["B"]["dueAmount"] == pytest.approx(20)

    def test_omitted_participant_is_excluded(self, abc_trip):
        abc_trip["expenses"][0]["sharedAmong"] = [
            {"participantId": "A", "included": True, "weight": 1},
            {"participantId": "B", "included": True, "weight": 1},
        ]
        by_id = {s["participantId"]: s for s in calculate_settlements(abc_trip)}
        assert by_id["C"]["expenseShare"] == 0
        assert by_id["B"]["dueAmount"] == pytest.approx(45)

    def test_donated_flag_does_not_change_amounts(self, abc_trip):
        before = calculate_settlements(abc_trip)
        abc_trip["participants"][0]["refundDonated"] = True
        after = calculate_settlements(abc_trip)
        assert after[0]["donated"] is True
        assert {k: v for k, v in after[0].items() if k != "donated"} == \
            {k: v for k, v in before[0].items() if k != "donated"}

    def test_conservation(self):
        participants = [make_participant(p) for p in "ABCD"]
        expenses = [
            make_expense(123.45, paid_by={"A": 100, "B": 23.45}, shared={"A": 1, "B": 2, "C": 0.5}, eid="e1"),
            make_expense(80, shared={"B": 1, "C": 1, "D": 1}, from_fund=True, eid="e2"),
            make_expense(19.99, paid_by={"D": 19.99}, shared={"A": 1, "D": 1}, eid="e3"),
        ]
        # Contributions exactly cover the fund expenses
        trip = make_trip(participants, expenses, contributions=[("C", 50), ("D", 30)])
        settlements = calculate_settlements(trip)
        total_due = sum(s["dueAmount"] for s in settlements)
        total_refund = sum(s["refundAmount"] for s in settlements)
        assert abs(total_due - total_refund) <= EPSILON


class TestMinimizeSettlements:

    def test_scenario_one_payer(self, abc_trip):
        transfers = minimize_settlements(settlement_balances(calculate_settlements(abc_trip)))
        assert len(transfers) == 2
        assert {(t["from"], t["to"]) for t in transfers} == {("B", "A"), ("C", "A")}
        for t in transfers:
            assert t["amount"] == pytest.approx(30)

    def test_empty_and_settled(self):
        assert minimize_settlements({}) == []
        assert minimize_settlements({"A": 0, "B": 0.004, "C": -0.004}) == []

    def test_largest_debtor_pays_largest_creditor_first(self):
        transfers = minimize_settlements({"A": -50, "B": -10, "C": 45, "D": 15})
        assert transfers[0] == {"from": "A", "to": "C", "amount": 45}

    @pytest.mark.parametrize("balances", [
        {"A": 60, "B": -30, "C": -30},
        {"A": -10, "B": -20, "C": -30, "D": 25, "E": 35},
        {"A": 33.33, "B": 33.34, "C": -66.67},
        {"A": 0.5, "B": -0.25, "C": -0.25, "D": 0},
        {"p1": 12.5, "p2": -7.3, "p3": 4.1, "p4": -9.3, "p5": 0.0, "p6": 0.0},
        {"A": 0.045, "B": -0.009, "C": -0.009, "D": -0.009, "E": -0.009, "F": -0.009},
        {"A": 100 / 3, "B": 100 / 3, "C": 100 / 3, "D": -100},
    ])
    def test_transfers_zero_every_balance(self, balances):
        transfers = minimize_settlements(balances)
        adjusted = dict(balances)
        for t in transfers:
            assert t["amount"] > 0
            adjusted[t["from"]] += t["amount"]
            adjusted[t["to"]] -= t["amount"]
        for value in adjusted.values():
            assert abs(value) <= EPSILON

        non_zero = [b for b in balances.values() if b != 0]
        assert len(transfers) <= max(0, len(non_zero) - 1)

    def test_sub_cent_debts_still_pay_a_creditor(self):
        transfers = minimize_settlements({"A": 0.045, "B": -0.009, "C": -0.009, "D": -0.009, "E": -0.009, "F": -0.009})
        # Each debt is below EPSILON on its own, together they are not
        assert [t["from"] for t in transfers] == ["B", "C", "D", "E"]
        assert {t["to"] for t in transfers} == {"A"}
        assert 0.045 - sum(t["amount"] for t in transfers) <= EPSILON

    def test_input_is_not_modified(self):
        balances = {"A": 10, "B": -10}
        minimize_settlements(balances)
        assert balances == {"A": 10, "B": -10}


class TestFund:

    def test_fund_balance(self):
        trip = make_trip(
            [make_participant("A"), make_participant("B")],
            expenses=[
                make_expense(40, shared={"A": 1}, from_fund=True, eid="e1"),
                make_expense(25, paid_by={"B": 25}, shared={"A": 1}, eid="e2"),
            ],
            contributions=[("A", 50), ("B", 50)],
        )
        assert fund_balance(trip) == pytest.approx(60)
        assert total_expenses(trip) == pytest.approx(65)

    def test_no_trip(self):
        assert fund_balance(None) == 0.0
        assert total_expenses(None) == 0.0
