"""
Vercel serverless: POST /submit_contact.php — waitlist signup.
Appends the lead to the tracking sheet and emails the sales inbox.
Requires: LEADS_SHEET_ID, GOOGLE_SHEETS_CRED (or GOOGLE_SHEETS_CRED_JSON), RESEND_API_KEY
"""
import json
from http.server import BaseHTTPRequestHandler

from api.leads import record_lead


def process_submission(data: dict, headers, now=None) -> dict:
    # Fields were validated in the browser; the server only fills in blanks.
    return record_lead(data, headers, now=now)


class handler(BaseHTTPRequestHandler):
    def do_POST(self):
        try:
            content_len = int(self.headers.get("Content-Length", 0))
        except ValueError:
            self._send(400, {"status": "error", "message": "Invalid Content-Length"})
            return
        raw = self.rfile.read(content_len).decode("utf-8") if content_len else "{}"
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            self._send(400, {"status": "error", "message": "Invalid JSON"})
            return

        self._send(200, process_submission(data, self.headers))

    def do_OPTIONS(self):
        self.send_response(204)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    def _send(self, status, body):
        self.send_response(status)
        self.send_header("Content-type", "application/json")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()
        self.wfile.write(json.dumps(body).encode("utf-8"))
