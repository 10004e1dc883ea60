"""
Vercel serverless: GET /geo.php — resolves the visitor's IP to a location document.
Calls ipapi.co server-side (no CORS in the browser), falls back to freeipapi.com.
Optional: GEO_PRIMARY_URL, GEO_FALLBACK_URL
"""
import ipaddress
import json
import os
import time
from http.server import BaseHTTPRequestHandler

import requests

PRIMARY_URL = os.environ.get("GEO_PRIMARY_URL", "https://ipapi.co")
FALLBACK_URL = os.environ.get("GEO_FALLBACK_URL", "https://freeipapi.com/api/json")

# (connect, read)
TIMEOUT = (4, 8)
TOTAL_TIMEOUT_S = 8
HEADERS = {
    "User-Agent": "SocialImpression/1.0",
    "Accept": "application/json",
}


def get_client_ip(headers, remote_addr: str = "") -> str:
    """Trusted proxy header first, then X-Forwarded-For, then the socket address."""
    cf_ip = (headers.get("CF-Connecting-IP") or "").strip()
    if cf_ip:
        return cf_ip
    forwarded = headers.get("X-Forwarded-For") or ""
    if forwarded.strip():
        return forwarded.split(",")[0].strip()
    return remote_addr or ""


def is_private_ip(ip: str) -> bool:
    """Loopback, private, reserved or unparseable addresses can't be geolocated directly."""
    try:
        addr = ipaddress.ip_address((ip or "").strip())
    except ValueError:
        return True
    return (
        addr.is_loopback
        or addr.is_private
        or addr.is_reserved
        or addr.is_link_local
        or addr.is_unspecified
    )


def _get(url: str):
    """
    Returns (status_code, text), or None on transport error. requests only bounds each
    socket read, so the body is streamed and the whole exchange is held to
    TOTAL_TIMEOUT_S.
    """
    deadline = time.monotonic() + TOTAL_TIMEOUT_S
    try:
        r = requests.get(url, headers=HEADERS, timeout=TIMEOUT, allow_redirects=True, stream=True)
        try:
            chunks = []
            for chunk in r.iter_content(4096):
                if time.monotonic() > deadline:
                    raise requests.Timeout(f"no complete response within {TOTAL_TIMEOUT_S}s")
                chunks.append(chunk)
            return r.status_code, b"".join(chunks).decode(r.encoding or "utf-8", errors="replace")
        finally:
            r.close()
    except requests.RequestException as e:
        print("[geo] request failed:", url, type(e).__name__, str(e))
        return None


def fetch_primary(ip: str | None) -> str | None:
    """Returns ipapi.co's raw body, or None on transport error / non-200 / empty body."""
    url = f"{PRIMARY_URL}/{ip}/json/" if ip else f"{PRIMARY_URL}/json/"
    got = _get(url)
    if got is None:
        return None
    status, text = got
    if status != 200 or not text:
        return None
    return text


def normalize_freeipapi(data: dict) -> dict:
    """Map freeipapi.com field names onto the ipapi.co schema."""
    return {
        "ip": data.get("ipAddress", ""),
        "city": data.get("cityName", ""),
        "region": data.get("regionName", ""),
        "country_name": data.get("countryName", ""),
        "country_code": data.get("countryCode", ""),
        "latitude": data.get("latitude", ""),
        "longitude": data.get("longitude", ""),
        "timezone": data.get("timeZone", ""),
        "source": "freeipapi",
    }


def fetch_fallback(ip: str | None) -> dict | None:
    url = f"{FALLBACK_URL}/{ip}" if ip else f"{FALLBACK_URL}/"
    got = _get(url)
    if got is None:
        return None
    status, text = got
    if status != 200 or not text:
        return None
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return normalize_freeipapi(data)


def lookup(headers, remote_addr: str = ""):
    """
    Returns (status, body). body is the primary provider's raw JSON text when it answered,
    otherwise a dict (normalized fallback, or the error document).
    """
    client_ip = get_client_ip(headers, remote_addr)
    query_ip = None if is_private_ip(client_ip) else client_ip

    raw = fetch_primary(query_ip)
    if raw is not None:
        return 200, raw

    fallback = fetch_fallback(query_ip)
    if fallback is not None:
        return 200, fallback

    print("[geo] both providers failed for", client_ip or "<unknown>")
    return 502, {"error": "Geo lookup failed", "ip": client_ip}


class handler(BaseHTTPRequestHandler):
    def do_GET(self):
        try:
            status, body = lookup(self.headers, self.client_address[0] if self.client_address else "")
        except Exception as e:
            print("[geo error]", type(e).__name__, str(e))
            status, body = 502, {"error": "Geo lookup failed", "ip": ""}
        self._send(status, body)

    def do_OPTIONS(self):
        self.send_response(204)
        self._cors()
        self.end_headers()

    def _cors(self):
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")

    def _send(self, status, body):
        payload = body if isinstance(body, str) else json.dumps(body)
        self.send_response(status)
        self.send_header("Content-type", "application/json")
        self._cors()
        self.end_headers()
        self.wfile.write(payload.encode("utf-8"))
