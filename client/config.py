"""
Build-time endpoint configuration for the landing page client.
Each setting falls back to its VITE_* name so the same .env serves both frontends.
"""
import os


def _env(name: str, legacy: str, default: str = "") -> str:
    return (os.environ.get(name) or os.environ.get(legacy) or default).strip()


def form_service_url() -> str:
    """Base URL hosting /submit_contact.php and /geo.php. Empty means same origin."""
    return _env("FORM_SERVICE_URL", "VITE_API_URL").rstrip("/")


def discovery_call_url() -> str:
    return _env("DISCOVERY_CALL_URL", "VITE_DISCOVERY_CALL_URL")


def contact_form_url() -> str:
    return _env("CONTACT_FORM_URL", "VITE_GOOGLE_FORM_URL")


def sheet_webhook_url() -> str:
    return _env("SHEET_WEBHOOK_URL", "VITE_GOOGLE_SHEET_URL")
