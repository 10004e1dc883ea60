"""
Lead pipeline shared by /submit_contact.php and /api/sheet-webhook:
build tracking data, append one fixed-order row to the sheet, then notify by email.
"""
import json
from datetime import datetime, timezone

from api.mailer import notify_new_lead
from api.security import text_field
from api.sheets import append_lead_row, get_worksheet

DEFAULT_SOURCE = "Website Waitlist"


def build_lead(data: dict, now: datetime) -> dict:
    return {
        "name": text_field(data, "name"),
        "email": text_field(data, "email"),
        "phone": text_field(data, "phone"),
        "country": text_field(data, "country"),
        "signup_date": now.strftime("%Y-%m-%d %H:%M:%S"),
        "meeting_schedule": text_field(data, "meetingSchedule", "meeting"),
        "source": text_field(data, "source", default=DEFAULT_SOURCE),
    }


def build_tracking(data: dict, headers, now: datetime) -> dict:
    """Full geo payload if the browser sent one, else the discrete ip/city/region fields."""
    geo_raw = data.get("geoRaw")
    if isinstance(geo_raw, dict) and geo_raw:
        tracking = dict(geo_raw)
    else:
        tracking = {
            "ip": text_field(data, "ip"),
            "city": text_field(data, "city"),
            "region": text_field(data, "region"),
        }
    tracking["userAgent"] = text_field(data, "userAgent") or (headers.get("User-Agent") or "")
    tracking["referrer"] = text_field(data, "referrer") or (headers.get("Referer") or "")
    tracking["timestamp"] = now.isoformat(timespec="seconds")
    return tracking


def build_row(lead: dict, tracking: dict) -> list:
    # Name, Email, Phone, Country, Signup Date, Meeting Schedule, Source, API Data
    return [
        lead["name"],
        lead["email"],
        lead["phone"],
        lead["country"],
        lead["signup_date"],
        lead["meeting_schedule"],
        lead["source"],
        json.dumps(tracking, default=str),
    ]


def record_lead(data: dict, headers, now: datetime | None = None) -> dict:
    """
    Append the lead, then send the notification. Never raises: returns
    {"status": "success"} or {"status": "error", "message": ...}.
    A failed email does not undo or fail an appended row.
    """
    try:
        if not isinstance(data, dict):
            raise ValueError("Expected a JSON object")
        now = now or datetime.now(timezone.utc)
        lead = build_lead(data, now)
        tracking = build_tracking(data, headers, now)

        ws = get_worksheet()
        if ws is None:
            return {"status": "error", "message": "Spreadsheet not configured"}
        append_lead_row(ws, build_row(lead, tracking))
    except Exception as e:
        print("[leads] append failed:", type(e).__name__, str(e))
        return {"status": "error", "message": str(e)}

    notify_new_lead(lead, tracking)
    return {"status": "success"}
