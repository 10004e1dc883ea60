"""
Waitlist form logic: field validation and the submission state machine.

    idle -> loading -> success | error
    error -> idle          (retry)
    success -> idle        (submit_another, offered SUBMIT_ANOTHER_DELAY seconds after success)

Optimistic completion: the POST to /submit_contact.php is given SUBMIT_TIMEOUT_S seconds.
If it times out the form still reports success: the server already holds the payload and
completes the sheet append and email regardless of the client. Any other transport failure
is reported as an error.
"""
import re
import time
from dataclasses import dataclass, field

import requests

from client.geo import EMPTY_GEO
from client.session import SessionState

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[0-9\s\-().]{10,20}$")

SUBMIT_TIMEOUT_S = 3
SUBMIT_ANOTHER_DELAY = 5

IDLE = "idle"
LOADING = "loading"
SUCCESS = "success"
ERROR = "error"

MSG_FIX_FIELDS = "Please fix the highlighted fields."
MSG_CONNECT = "Failed to connect. Please try again."
MSG_GENERIC = "Something went wrong."


class StateError(Exception):
    """Action not allowed in the form's current state."""


@dataclass
class SubmitResult:
    status: str
    message: str = ""
    errors: dict = field(default_factory=lambda: {"name": False, "email": False, "phone": False})
    timed_out: bool = False


def validate(form: dict) -> dict:
    """Returns {"name": bool, "email": bool, "phone": bool}; True marks an invalid field."""
    return {
        "name": not (form.get("name") or "").strip(),
        "email": not EMAIL_RE.match(form.get("email") or ""),
        "phone": not PHONE_RE.match(form.get("phone") or ""),
    }


def _is_success(result) -> bool:
    if not isinstance(result, dict):
        return False
    return result.get("status") == "success" or result.get("success") is True


class WaitlistForm:
    def __init__(self, session: SessionState, http=None, clock=time.monotonic):
        self.session = session
        self.http = http or requests
        self.clock = clock
        self.status = IDLE
        self.message = ""
        self.errors = {"name": False, "email": False, "phone": False}
        self._succeeded_at: float | None = None

    def submit(self, form: dict) -> SubmitResult:
        if self.status in (LOADING, SUCCESS):
            raise StateError(f"cannot submit while {self.status}")

        errors = validate(form)
        self.errors = errors
        if any(errors.values()):
            return self._finish(ERROR, MSG_FIX_FIELDS)

        self.status = LOADING
        self.message = ""
        # Never wait on the geo lookup here; it only enriches the lead.
        geo = self.session.geo.cached or EMPTY_GEO
        payload = {
            "name": form.get("name", ""),
            "email": form.get("email", ""),
            "phone": form.get("phone", ""),
            "country": geo.country,
            "city": geo.city,
            "region": geo.region,
            "ip": geo.ip,
            "geoRaw": dict(geo.raw),
        }

        try:
            r = self.http.post(
                f"{self.session.base_url}/submit_contact.php",
                json=payload,
                timeout=SUBMIT_TIMEOUT_S,
            )
        except requests.Timeout:
            self.session.submitted_lead = payload
            return self._finish(SUCCESS, timed_out=True)
        except requests.RequestException as e:
            print("[waitlist] submission error:", type(e).__name__, str(e))
            return self._finish(ERROR, MSG_CONNECT)

        try:
            result = r.json()
        except ValueError:
            print("[waitlist] invalid server response:", (r.text or "")[:200])
            return self._finish(ERROR, MSG_CONNECT)

        if _is_success(result):
            self.session.submitted_lead = payload
            return self._finish(SUCCESS)
        message = result.get("message") if isinstance(result, dict) else None
        return self._finish(ERROR, message or MSG_GENERIC)

    def retry(self) -> None:
        if self.status != ERROR:
            raise StateError(f"nothing to retry while {self.status}")
        self.status = IDLE
        self.message = ""

    def can_submit_another(self) -> bool:
        return (
            self.status == SUCCESS
            and self._succeeded_at is not None
            and self.clock() - self._succeeded_at >= SUBMIT_ANOTHER_DELAY
        )

    def submit_another(self) -> None:
        if not self.can_submit_another():
            raise StateError("submit another is not available yet")
        self.status = IDLE
        self.message = ""
        self.errors = {"name": False, "email": False, "phone": False}
        self._succeeded_at = None

    def _finish(self, status: str, message: str = "", timed_out: bool = False) -> SubmitResult:
        self.status = status
        self.message = message
        if status == SUCCESS:
            self._succeeded_at = self.clock()
        return SubmitResult(status=status, message=message, errors=dict(self.errors), timed_out=timed_out)
