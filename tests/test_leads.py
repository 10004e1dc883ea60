"""
Lead pipeline: tracking data, fixed column order, sheet append, best-effort email.
"""
import json
from datetime import datetime, timezone

import pytest

from api import leads, mailer, sheets
from api.security import sanitize_text, text_field
from api.submit_contact import process_submission
from conftest import FakeWorksheet

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
HEADERS = {"User-Agent": "Mozilla/5.0 (test)", "Referer": "https://socialimpression.co/"}


# ═══════════════════════════════════════════════
# 1. INPUT HYGIENE
# ═══════════════════════════════════════════════

class TestSanitize:
    def test_strips_control_chars(self):
        assert sanitize_text("Ann\x00\x07") == "Ann"

    def test_non_strings_become_blank(self):
        assert sanitize_text(None) == ""
        assert sanitize_text({"a": 1}) == ""
        assert sanitize_text(["x"]) == ""

    def test_scalars_keep_their_value(self):
        assert sanitize_text(5551234567) == "5551234567"
        assert sanitize_text(0) == "0"
        assert sanitize_text(True) == "True"

    def test_length_cap_is_opt_in(self):
        assert len(sanitize_text("a" * 2000, max_length=500)) == 500
        assert len(text_field({"name": "a" * 2000}, "name")) == 2000

    def test_text_field_prefers_first_non_empty(self):
        assert text_field({"meeting": "Tue 3pm"}, "meetingSchedule", "meeting") == "Tue 3pm"
        assert text_field({}, "source", default="Website Waitlist") == "Website Waitlist"


# ═══════════════════════════════════════════════
# 2. ROW CONTRACT
# ═══════════════════════════════════════════════

class TestRow:
    def test_scenario_minimal_submission(self, worksheet):
        result = process_submission(
            {"name": "Ann", "email": "ann@x.co", "phone": "+1 555-123-4567"}, HEADERS, now=NOW
        )
        assert result == {"status": "success"}
        assert len(worksheet.rows) == 1
        row = worksheet.rows[0]
        assert len(row) == 8
        assert row[:7] == ["Ann", "ann@x.co", "+1 555-123-4567", "", "2026-03-01 12:00:00", "", "Website Waitlist"]
        tracking = json.loads(row[7])
        assert tracking == {
            "ip": "",
            "city": "",
            "region": "",
            "userAgent": "Mozilla/5.0 (test)",
            "referrer": "https://socialimpression.co/",
            "timestamp": "2026-03-01T12:00:00+00:00",
        }

    def test_full_submission_order(self, worksheet):
        data = {
            "source": "Landing Form",
            "meetingSchedule": "Friday",
            "country": "India",
            "phone": "9876543210",
            "email": "raj@example.in",
            "name": "Raj",
        }
        process_submission(data, {}, now=NOW)
        assert worksheet.rows[0][:7] == ["Raj", "raj@example.in", "9876543210", "India", "2026-03-01 12:00:00", "Friday", "Landing Form"]

    def test_numeric_phone_lands_in_phone_column(self, worksheet):
        result = process_submission({"name": "Ann", "email": "ann@x.co", "phone": 5551234567}, {}, now=NOW)
        assert result == {"status": "success"}
        assert worksheet.rows[0][2] == "5551234567"

    def test_meeting_alias(self):
        lead = leads.build_lead({"meeting": "Discovery Call Booked"}, NOW)
        assert lead["meeting_schedule"] == "Discovery Call Booked"

    def test_wrong_width_rejected(self):
        with pytest.raises(ValueError):
            sheets.append_lead_row(FakeWorksheet(), ["too", "short"])


# ═══════════════════════════════════════════════
# 3. TRACKING DATA
# ═══════════════════════════════════════════════

class TestTracking:
    def test_full_geo_payload_preferred(self):
        raw = {"ip": "8.8.8.8", "city": "Pune", "region": "MH", "org": "AS123 Example", "postal": "411001"}
        t = leads.build_tracking({"geoRaw": raw, "ip": "1.1.1.1", "userAgent": "UA"}, {}, NOW)
        assert t["org"] == "AS123 Example"
        assert t["ip"] == "8.8.8.8"
        assert t["userAgent"] == "UA"
        assert raw.get("userAgent") is None

    def test_discrete_fields_when_no_geo(self):
        t = leads.build_tracking({"ip": "1.1.1.1", "city": "Delhi", "region": "DL", "geoRaw": {}}, {}, NOW)
        assert (t["ip"], t["city"], t["region"]) == ("1.1.1.1", "Delhi", "DL")

    def test_geo_raw_not_an_object_is_ignored(self):
        t = leads.build_tracking({"geoRaw": "oops", "city": "Delhi"}, {}, NOW)
        assert t["city"] == "Delhi"

    def test_body_tracking_overrides_headers(self):
        t = leads.build_tracking({"referrer": "https://ads.example"}, HEADERS, NOW)
        assert t["referrer"] == "https://ads.example"
        assert t["userAgent"] == "Mozilla/5.0 (test)"


# ═══════════════════════════════════════════════
# 4. FAILURES
# ═══════════════════════════════════════════════

class TestFailures:
    def test_email_failure_does_not_block_append(self, worksheet, monkeypatch):
        monkeypatch.setenv("RESEND_API_KEY", "re_test")

        def boom(*args, **kwargs):
            raise RuntimeError("Resend 500: down")

        monkeypatch.setattr(mailer, "send_email", boom)
        result = process_submission({"name": "Ann", "email": "ann@x.co", "phone": "5551234567"}, {}, now=NOW)
        assert result == {"status": "success"}
        assert len(worksheet.rows) == 1

    def test_email_sent_after_append(self, worksheet, monkeypatch):
        monkeypatch.setenv("RESEND_API_KEY", "re_test")
        monkeypatch.setenv("LEADS_NOTIFY_TO", "sales@example.com")
        sent = []
        monkeypatch.setattr(mailer, "send_email", lambda to, subject, body: sent.append((to, subject, body, len(worksheet.rows))))
        process_submission({"name": "Ann", "email": "ann@x.co", "phone": "5551234567"}, {}, now=NOW)
        to, subject, body, rows_at_send = sent[0]
        assert to == "sales@example.com"
        assert subject == "New Website Lead - Social Impressions"
        assert "Name: Ann" in body
        assert rows_at_send == 1

    def test_sheet_not_configured(self, monkeypatch):
        monkeypatch.setattr(leads, "get_worksheet", lambda: None)
        result = process_submission({"name": "Ann"}, {}, now=NOW)
        assert result == {"status": "error", "message": "Spreadsheet not configured"}

    def test_append_error_is_reported(self, monkeypatch):
        class BrokenSheet:
            def append_row(self, row, value_input_option=None):
                raise RuntimeError("quota exceeded")

        monkeypatch.setattr(leads, "get_worksheet", lambda: BrokenSheet())
        result = process_submission({"name": "Ann"}, {}, now=NOW)
        assert result == {"status": "error", "message": "quota exceeded"}

    def test_non_object_body(self, worksheet):
        result = process_submission(["not", "a", "dict"], {}, now=NOW)
        assert result["status"] == "error"
        assert worksheet.rows == []

    def test_unconfigured_worksheet_getter(self, monkeypatch):
        monkeypatch.delenv("LEADS_SHEET_ID", raising=False)
        assert sheets.get_worksheet() is None


# ═══════════════════════════════════════════════
# 5. NOTIFICATION EMAIL
# ═══════════════════════════════════════════════

class TestLeadEmail:
    def test_body_lists_lead_and_tracking(self):
        lead = leads.build_lead({"name": "Ann", "email": "ann@x.co", "phone": "555", "country": "US"}, NOW)
        tracking = {"ip": "8.8.8.8", "city": "Austin", "region": "TX", "org": "AS15169", "userAgent": "UA", "timestamp": "t"}
        subject, body = mailer.build_lead_email(lead, tracking)
        assert subject == "New Website Lead - Social Impressions"
        for line in ["Name: Ann", "Country: US", "Region: TX", "City: Austin", "Source: Website Waitlist", "IP: 8.8.8.8", "ISP: AS15169"]:
            assert line in body

    def test_skipped_without_key(self):
        assert mailer.notify_new_lead({}, {}) is False

    def test_send_email_requires_key(self):
        with pytest.raises(RuntimeError):
            mailer.send_email("a@b.co", "s", "b")
