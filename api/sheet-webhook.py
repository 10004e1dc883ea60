"""
Vercel serverless: POST /api/sheet-webhook — logs discovery-call bookings and other
client-side events to the leads sheet. Callers fire and forget; the response is informational.
"""
import json
from http.server import BaseHTTPRequestHandler

from api.leads import record_lead

DEFAULT_WEBHOOK_SOURCE = "Discovery Call Booked"


def log_event(data: dict, headers) -> dict:
    if isinstance(data, dict) and not data.get("source"):
        data = {**data, "source": DEFAULT_WEBHOOK_SOURCE}
    return record_lead(data, headers)


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

        result = log_event(data, self.headers)
        if result.get("status") != "success":
            print("[sheet-webhook] not logged:", result.get("message"))
        self._send(200, result)

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
