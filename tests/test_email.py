import resend

from travelfund.email import build_trip_email, send_trip_link

TRIP = {
    "id": "t-1",
    "name": "Alps <2024>",
    "startDate": "2024-06-01",
    "endDate": "2024-06-10",
    "currency": "EUR",
}


def test_message_carries_trip_details(monkeypatch):
    monkeypatch.setenv("FRONTEND_URL", "https://fund.example")
    message = build_trip_email("a@example.com", TRIP)
    assert message["to"] == ["a@example.com"]
    assert message["subject"] == "Travel fund ready: Alps <2024> (01 Jun - 10 Jun 2024)"
    assert "Alps &lt;2024&gt;" in message["html"]
    assert "EUR" in message["html"]
    assert 'href="https://fund.example/trip/t-1"' in message["html"]


def test_single_day_trip():
    message = build_trip_email("a@example.com", {**TRIP, "endDate": "2024-06-01"})
    assert message["subject"].endswith("(01 Jun 2024)")


def test_not_sent_without_api_key(monkeypatch):
    sent = []
    monkeypatch.delenv("RESEND_API_KEY", raising=False)
    monkeypatch.setattr(resend.Emails, "send", sent.append)
    send_trip_link("a@example.com", TRIP)
    assert sent == []


def test_sent_with_api_key(monkeypatch):
    sent = []
    monkeypatch.setenv("RESEND_API_KEY", "re_test")
    monkeypatch.setattr(resend.Emails, "send", sent.append)
    send_trip_link("a@example.com", TRIP)
    assert len(sent) == 1
    assert sent[0]["to"] == ["a@example.com"]
