import logging
import os
from datetime import date
from html import escape

import resend

logger = logging.getLogger("travelfund")


def _format_window(start: str, end: str) -> str:
    start_date, end_date = date.fromisoformat(start), date.fromisoformat(end)
    if start_date == end_date:
        return start_date.strftime("%d %b %Y")
    return f"{start_date.strftime('%d %b')} - {end_date.strftime('%d %b %Y')}"


def build_trip_email(email: str, trip: dict) -> dict:
    """Resend payload announcing a new trip ledger, from its summary dict."""
    frontend_url = os.getenv("FRONTEND_URL", "http://localhost:5173")
    trip_url = f"{frontend_url}/trip/{trip['id']}"
    name = escape(trip["name"])
    window = _format_window(trip["startDate"], trip["endDate"])

    return {
        "from": os.getenv("EMAIL_FROM", "onboarding@resend.dev"),
        "to": [email],
        "subject": f"Travel fund ready: {trip['name']} ({window})",
        "html": (
            f"<p>The shared ledger for <strong>{name}</strong> is open.</p>"
            f"<p>Trip dates: {window}. Amounts are tracked in {escape(trip['currency'])}.</p>"
            f"<p>Add participants with the days they travel, record advance contributions to the fund, "
            f"and log expenses as they happen. Balances and transfers update after every change.</p>"
            f'<p><a href="{trip_url}">Open the ledger</a></p>'
            f"<p style=\"color:#888;font-size:12px\">Share this link with your travel companions.</p>"
        ),
    }


def send_trip_link(email: str, trip: dict):
    api_key = os.getenv("RESEND_API_KEY")
    if not api_key:
        return

    resend.api_key = api_key
    resend.Emails.send(build_trip_email(email, trip))
    logger.info("Trip link sent", extra={"extra_data": {"trip_id": trip["id"]}})
