"""Trip export (JSON, XLSX) and JSON import.

Exports are rendered from a trip snapshot; imports are validated into
pydantic models before anything touches the database.
"""
import io
import re
from datetime import date as date_type, datetime

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from travelfund.balances import (
    calculate_settlements, fund_balance, minimize_settlements, settlement_balances, total_expenses,
)
from travelfund.models import (
    AdvanceContribution, Expense, ExpensePayer, ExpenseShare, Participant, ParticipationPeriod, Trip,
)
from travelfund.schemas import ExpenseCategory
from travelfund.validation import (
    InvalidImport, check_participants_known, check_periods, check_trip_dates, clean_payers,
    complete_shared_among,
)

EXPORT_VERSION = 1


# --- Import schema (mirrors serializers.serialize_trip) ---

class _Snapshot(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PeriodSnapshot(_Snapshot):
    start_date: date_type
    end_date: date_type


class ParticipantSnapshot(_Snapshot):
    id: str
    name: str = Field(min_length=1)
    email: str | None = None
    participation_periods: list[PeriodSnapshot] = []
    refund_donated: bool = False


class PayerSnapshot(_Snapshot):
    participant_id: str
    amount: float = Field(ge=0)


class ShareSnapshot(_Snapshot):
    participant_id: str
    included: bool = True
    weight: float = Field(default=1.0, gt=0)


class ExpenseSnapshot(_Snapshot):
    amount: float = Field(gt=0)
    date: date_type
    category: ExpenseCategory = "Custom"
    custom_label: str | None = None
    paid_by: list[PayerSnapshot] = []
    paid_from_fund: bool = False
    shared_among: list[ShareSnapshot] = []
    comment: str | None = None


class ContributionSnapshot(_Snapshot):
    participant_id: str
    amount: float = Field(gt=0)
    date: date_type
    comment: str | None = None


class TripSnapshot(_Snapshot):
    name: str = Field(min_length=1)
    start_date: date_type
    end_date: date_type
    currency: str = "EUR"
    description: str | None = None
    participants: list[ParticipantSnapshot] = []
    expenses: list[ExpenseSnapshot] = []
    advance_contributions: list[ContributionSnapshot] = []


def slugify(name: str) -> str:
    slug = re.sub(r"\s+", "-", name.strip().lower())
    return re.sub(r"[^\w-]+", "", slug) or "trip"


def export_filename(snapshot: dict, extension: str) -> str:
    return f"{slugify(snapshot['name'])}_{datetime.utcnow().date().isoformat()}.{extension}"


def export_json(snapshot: dict) -> dict:
    """The trip snapshot plus its derived settlements, ready for json.dumps."""
    settlements = calculate_settlements(snapshot)
    return {
        "version": EXPORT_VERSION,
        "exportedAt": datetime.utcnow().isoformat() + "Z",
        "trip": snapshot,
        "settlements": settlements,
        "transfers": minimize_settlements(settlement_balances(settlements)),
    }


def parse_import(payload: dict) -> TripSnapshot:
    """Validate an uploaded export (or a bare trip snapshot)."""
    raw = payload.get("trip", payload) if isinstance(payload, dict) else payload
    try:
        trip = TripSnapshot.model_validate(raw)
    except ValidationError as e:
        raise InvalidImport(f"Invalid trip data format: {e.error_count()} error(s)") from e

    ids = [p.id for p in trip.participants]
    if len(ids) != len(set(ids)):
        raise InvalidImport("Duplicate participant ids in import")
    return trip


def import_trip(db: Session, data: TripSnapshot) -> Trip:
    """Create a new trip from a validated snapshot.

    Every entity gets a fresh id; participant references are remapped. Runs
    the same invariant checks as the mutators and adds nothing on failure.
    """
    check_trip_dates(data.start_date, data.end_date)
    window = {"startDate": data.start_date, "endDate": data.end_date}
    known = {p.id for p in data.participants}
    for p in data.participants:
        check_periods(p.participation_periods, window)

    prepared = []
    for e in data.expenses:
        payer_ids = [p.participant_id for p in e.paid_by]
        share_ids = [s.participant_id for s in e.shared_among]
        if len(payer_ids) != len(set(payer_ids)) or len(share_ids) != len(set(share_ids)):
            raise InvalidImport("A participant is listed twice on one expense")
        check_participants_known((p.participant_id for p in e.paid_by), known)
        check_participants_known((s.participant_id for s in e.shared_among), known)
        payers = clean_payers(
            e.amount,
            [{"participantId": p.participant_id, "amount": p.amount} for p in e.paid_by],
            e.paid_from_fund,
        )
        shares = complete_shared_among(
            [{"participantId": s.participant_id, "included": s.included, "weight": s.weight}
             for s in e.shared_among],
            [p.id for p in data.participants],
        )
        prepared.append((e, payers, shares))
    check_participants_known((c.participant_id for c in data.advance_contributions), known)

    trip = Trip(
        name=data.name,
        start_date=data.start_date,
        end_date=data.end_date,
        currency=data.currency,
        description=data.description,
    )
    db.add(trip)
    db.flush()

    id_map: dict[str, str] = {}
    for position, p in enumerate(data.participants):
        participant = Participant(
            trip_id=trip.id,
            name=p.name,
            email=p.email,
            position=position,
            refund_donated=p.refund_donated,
            periods=[
                ParticipationPeriod(start_date=period.start_date, end_date=period.end_date)
                for period in p.participation_periods
            ],
        )
        db.add(participant)
        db.flush()
        id_map[p.id] = participant.id

    for e, payers, shares in prepared:
        db.add(Expense(
            trip_id=trip.id,
            amount=round(e.amount, 2),
            date=e.date,
            category=e.category,
            custom_label=e.custom_label if e.category == "Custom" else None,
            paid_from_fund=e.paid_from_fund,
            comment=e.comment,
            payers=[
                ExpensePayer(participant_id=id_map[p["participantId"]], amount=p["amount"])
                for p in payers
            ],
            shares=[
                ExpenseShare(participant_id=id_map[s["participantId"]], included=s["included"], weight=s["weight"])
                for s in shares
            ],
        ))

    for c in data.advance_contributions:
        db.add(AdvanceContribution(
            trip_id=trip.id,
            participant_id=id_map[c.participant_id],
            amount=round(c.amount, 2),
            date=c.date,
            comment=c.comment,
        ))

    return trip


# --- XLSX ---

def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="9B87F5")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            if cell.value is None:
                continue
            max_len = max(max_len, len(str(cell.value)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _money_format(ws, columns, first_row=2):
    for r in range(first_row, ws.max_row + 1):
        for c in columns:
            ws.cell(r, c).number_format = "0.00"


def export_xlsx(snapshot: dict) -> bytes:
    """Workbook with Summary, Transfers, Expenses, Contributions and Participants sheets."""
    names = {p["id"]: p["name"] for p in snapshot["participants"]}
    settlements = calculate_settlements(snapshot)
    transfers = minimize_settlements(settlement_balances(settlements))

    wb = Workbook()
    ws = wb.active
    ws.title = "Summary"
    ws.append(["Travel Expense Summary"])
    ws.cell(1, 1).font = Font(bold=True, size=14)
    ws.append([f"Travel Name: {snapshot['name']}"])
    ws.append([f"Travel Period: {snapshot['startDate']} - {snapshot['endDate']}"])
    ws.append([f"Currency: {snapshot['currency']}"])
    ws.append([f"Total Expenses: {total_expenses(snapshot):.2f}"])
    ws.append([f"Travel Fund Balance: {fund_balance(snapshot):.2f}"])
    ws.append([])
    ws.append(["Participant", "Advance Paid", "Personally Paid", "Expense Share",
               "Due Amount", "Refund Amount", "Donated"])
    header_row = ws.max_row
    _style_header(ws, header_row)
    for s in settlements:
        ws.append([
            s["name"], s["advancePaid"], s["personallyPaid"], s["expenseShare"],
            s["dueAmount"], s["refundAmount"], "Yes" if s["donated"] else "No",
        ])
    _money_format(ws, range(2, 7), first_row=header_row + 1)
    _autosize_columns(ws)

    ws = wb.create_sheet("Transfers")
    ws.append(["From", "To", "Amount"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for t in transfers:
        ws.append([names.get(t["from"], "Unknown"), names.get(t["to"], "Unknown"), t["amount"]])
    _money_format(ws, [3])
    _autosize_columns(ws)

    ws = wb.create_sheet("Expenses")
    ws.append(["Date", "Type", "Amount", "Paid By", "Paid From Fund", "Shared Among", "Comment"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for e in snapshot["expenses"]:
        paid_by = ", ".join(
            f"{names.get(p['participantId'], 'Unknown')}: {p['amount']:.2f}" for p in e["paidBy"]
        )
        shared = ", ".join(
            f"{names.get(s['participantId'], 'Unknown')} x{s['weight']:g}"
            for s in e["sharedAmong"] if s["included"]
        )
        label = e["category"] + (f": {e['customLabel']}" if e.get("customLabel") else "")
        ws.append([
            e["date"], label, e["amount"], paid_by,
            "Yes" if e["paidFromFund"] else "No", shared, e.get("comment") or "",
        ])
    _money_format(ws, [3])
    _autosize_columns(ws)

    ws = wb.create_sheet("Contributions")
    ws.append(["Date", "Participant", "Amount", "Comment"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for c in snapshot["advanceContributions"]:
        ws.append([c["date"], names.get(c["participantId"], "Unknown"), c["amount"], c.get("comment") or ""])
    _money_format(ws, [3])
    _autosize_columns(ws)

    ws = wb.create_sheet("Participants")
    ws.append(["Name", "Email", "Participation Periods"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for p in snapshot["participants"]:
        periods = ", ".join(f"{pp['startDate']} - {pp['endDate']}" for pp in p["participationPeriods"])
        ws.append([p["name"], p.get("email") or "", periods])
    _autosize_columns(ws)

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
