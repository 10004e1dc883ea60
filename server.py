"""
Social Impressions local dev server: serves the landing page + the form-service endpoints.
Set env: LEADS_SHEET_ID, GOOGLE_SHEETS_CRED (or GOOGLE_SHEETS_CRED_JSON), RESEND_API_KEY (optional).
Run: python server.py  →  http://127.0.0.1:8001/
"""
import json
import os
import pathlib

from dotenv import load_dotenv
load_dotenv(dotenv_path=pathlib.Path(__file__).resolve().parent / ".env")

from flask import Flask, request, jsonify, send_from_directory, Response

from api import geo
from api.submit_contact import process_submission
from client.config import contact_form_url, discovery_call_url
import importlib
sheet_webhook_mod = importlib.import_module("api.sheet-webhook")

ROOT = os.path.dirname(os.path.abspath(__file__))

app = Flask(__name__, static_folder=None)


# ── Security headers ──

@app.after_request
def add_security_headers(response):
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), geolocation=(), payment=()"
    return response


# ── Rate limiting (simple in-memory) ──

from collections import defaultdict
import time

_rate_limits = defaultdict(list)
RATE_LIMIT_WINDOW = 60
RATE_LIMIT_MAX = 30

def check_rate_limit(key: str) -> bool:
    now = time.time()
    _rate_limits[key] = [t for t in _rate_limits[key] if now - t < RATE_LIMIT_WINDOW]
    if len(_rate_limits[key]) >= RATE_LIMIT_MAX:
        return False
    _rate_limits[key].append(now)
    return True


def _caller_ip() -> str:
    return geo.get_client_ip(request.headers, request.remote_addr or "") or "unknown"


def _rate_limited():
    r = jsonify({"status": "error", "message": "Too many requests. Try again shortly."})
    r.headers["Access-Control-Allow-Origin"] = "*"
    return r, 429


# --- Page routes ---

@app.route("/")
def index():
    if not os.path.isfile(os.path.join(ROOT, "index.html")):
        return "Coming soon.", 200
    return send_from_directory(ROOT, "index.html")


@app.route("/health")
def health():
    return jsonify({"status": "ok"})


@app.route("/api/public-config")
def public_config():
    """Links the landing page renders (calendar + external contact form)."""
    return jsonify({
        "discoveryCallUrl": discovery_call_url(),
        "contactFormUrl": contact_form_url(),
    })


# --- Form-service routes ---

@app.route("/geo.php", methods=["GET", "OPTIONS"])
def geo_lookup():
    if request.method == "OPTIONS":
        r = Response("", 204)
    else:
        try:
            status, body = geo.lookup(request.headers, request.remote_addr or "")
        except Exception as e:
            print("[geo error]", type(e).__name__, str(e))
            status, body = 502, {"error": "Geo lookup failed", "ip": _caller_ip()}
        payload = body if isinstance(body, str) else json.dumps(body)
        r = Response(payload, status, mimetype="application/json")
    r.headers["Access-Control-Allow-Origin"] = "*"
    r.headers["Access-Control-Allow-Methods"] = "GET"
    r.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return r


def _post_preflight():
    r = Response("", 204)
    r.headers["Access-Control-Allow-Origin"] = "*"
    r.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
    r.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return r


@app.route("/submit_contact.php", methods=["POST", "OPTIONS"])
def submit_contact():
    if request.method == "OPTIONS":
        return _post_preflight()
    if not check_rate_limit(_caller_ip()):
        return _rate_limited()
    data = request.get_json(force=True, silent=True) or {}
    r = jsonify(process_submission(data, request.headers))
    r.headers["Access-Control-Allow-Origin"] = "*"
    return r


@app.route("/api/sheet-webhook", methods=["POST", "OPTIONS"])
def sheet_webhook():
    if request.method == "OPTIONS":
        return _post_preflight()
    if not check_rate_limit(_caller_ip()):
        return _rate_limited()
    data = request.get_json(force=True, silent=True) or {}
    result = sheet_webhook_mod.log_event(data, request.headers)
    if result.get("status") != "success":
        print("[sheet-webhook] not logged:", result.get("message"))
    r = jsonify(result)
    r.headers["Access-Control-Allow-Origin"] = "*"
    return r


ALLOWED_STATIC_EXTENSIONS = {'.html', '.css', '.js', '.png', '.jpg', '.jpeg', '.gif', '.svg', '.ico', '.webp', '.woff', '.woff2', '.ttf'}

@app.route("/<path:path>")
def serve_static(path):
    """Serve static files (css, js, etc.) that exist on disk."""
    if ".." in path or path.startswith("/"):
        return "Not Found", 404
    resolved = os.path.realpath(os.path.join(ROOT, path))
    root = os.path.realpath(ROOT)
    if not resolved.startswith(root):
        return "Not Found", 404
    ext = os.path.splitext(path)[1].lower()
    if ext not in ALLOWED_STATIC_EXTENSIONS:
        return "Not Found", 404
    if os.path.isfile(resolved):
        return send_from_directory(ROOT, path)
    return "Not Found", 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8001))
    print(f"Form service running at http://127.0.0.1:{port}/")
    if not os.environ.get("LEADS_SHEET_ID"):
        print("WARNING: LEADS_SHEET_ID not set in .env — signups will be rejected.")
    if not os.environ.get("RESEND_API_KEY"):
        print("WARNING: RESEND_API_KEY not set in .env — lead notification emails are skipped.")
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG", "false").lower() == "true")
