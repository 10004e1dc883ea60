"""
Internal lead notifications via Resend.
Requires: RESEND_API_KEY. Optional: EMAIL_FROM, LEADS_NOTIFY_TO
"""
import json
import os

DEFAULT_NOTIFY_TO = "connect@socialimpression.co"
LEAD_SUBJECT = "New Website Lead - Social Impressions"


def send_email(to_email, subject, text_body):
    import urllib.request
    import urllib.error
    api_key = os.environ.get("RESEND_API_KEY", "")
    if not api_key:
        raise RuntimeError("RESEND_API_KEY not set")
    from_addr = os.environ.get("EMAIL_FROM", "Social Impressions <noreply@socialimpression.co>")
    payload = json.dumps({
        "from": from_addr,
        "to": [to_email],
        "subject": subject,
        "text": text_body,
    }).encode("utf-8")
    req = urllib.request.Request(
        "https://api.resend.com/emails",
        data=payload,
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        },
    )
    try:
        resp = urllib.request.urlopen(req, timeout=10)
        return json.loads(resp.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        body = e.read().decode("utf-8", errors="replace")
        raise RuntimeError(f"Resend {e.code}: {body}")


def build_lead_email(lead: dict, tracking: dict) -> tuple[str, str]:
    """Returns (subject, plain-text body) for the sales inbox."""
    lines = [
        "New Lead Details:",
        "",
        f"Name: {lead.get('name', '')}",
        f"Email: {lead.get('email', '')}",
        f"Phone: {lead.get('phone', '')}",
        f"Country: {lead.get('country', '')}",
        f"Region: {tracking.get('region') or ''}",
        f"City: {tracking.get('city') or ''}",
        f"Meeting Schedule: {lead.get('meeting_schedule', '')}",
        f"Source: {lead.get('source', '')}",
        "",
        f"IP: {tracking.get('ip') or ''}",
        f"ISP: {tracking.get('org') or ''}",
        f"User Agent: {tracking.get('userAgent') or ''}",
        f"Time: {tracking.get('timestamp') or ''}",
    ]
    return LEAD_SUBJECT, "\n".join(lines)


def notify_new_lead(lead: dict, tracking: dict) -> bool:
    """Best-effort: never raises. Returns True if Resend accepted the message."""
    if not os.environ.get("RESEND_API_KEY"):
        print("[mailer] RESEND_API_KEY not set, skipping lead notification")
        return False
    to_addr = os.environ.get("LEADS_NOTIFY_TO") or DEFAULT_NOTIFY_TO
    try:
        subject, body = build_lead_email(lead, tracking)
        send_email(to_addr, subject, body)
        return True
    except Exception as e:
        print("[mailer] lead notification failed:", type(e).__name__, str(e))
        return False
