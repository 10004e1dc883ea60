"""
Discovery-call booking from the sidebar. Only visitors who already joined the waitlist
in this session get the calendar link; the booking is logged to the sheet webhook
fire-and-forget.
"""
import threading

import requests

from client.config import discovery_call_url, sheet_webhook_url
from client.session import SessionState

MSG_JOIN_FIRST = "Please fill in your details in the waitlist form first to schedule a call."
MEETING_LABEL = "Discovery Call Booked"
SOURCE_LABEL = "Sidebar - Discovery Call"
WEBHOOK_TIMEOUT_S = 10


def build_booking_payload(state: SessionState, user_agent: str = "", referrer: str = "") -> dict:
    lead = state.submitted_lead or {}
    geo = state.geo.cached
    return {
        "name": lead.get("name") or "Returning User",
        "email": lead.get("email") or "-",
        "phone": lead.get("phone") or "-",
        "country": geo.country if geo else "",
        "meeting": MEETING_LABEL,
        "source": SOURCE_LABEL,
        "ip": geo.ip if geo else "",
        "city": geo.city if geo else "",
        "userAgent": user_agent,
        "referrer": referrer,
    }


def fire_and_forget(url: str, payload: dict, http=None) -> threading.Thread | None:
    """POST in a daemon thread; the caller never sees the outcome."""
    if not url:
        return None
    http = http or requests

    def _post():
        try:
            http.post(url, json=payload, timeout=WEBHOOK_TIMEOUT_S)
        except requests.RequestException:
            pass

    t = threading.Thread(target=_post, daemon=True)
    t.start()
    return t


def book_discovery_call(state: SessionState, http=None, user_agent: str = "", referrer: str = ""):
    """
    Returns (calendar_url, None) when the visitor may book, else (None, message).
    The sheet log is started in the background and not awaited.
    """
    if state.submitted_lead is None:
        return None, MSG_JOIN_FIRST
    payload = build_booking_payload(state, user_agent=user_agent, referrer=referrer)
    fire_and_forget(sheet_webhook_url(), payload, http=http)
    return discovery_call_url(), None
