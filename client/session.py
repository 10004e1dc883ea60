"""
Per-browser-session state: which intro sequences have played, the geo cache,
and the lead submitted in this session (reused when booking a discovery call).
"""
from client.config import form_service_url
from client.geo import GeoCache


class SessionState:
    def __init__(self, base_url: str | None = None, http=None, prefetch_geo: bool = True):
        self.base_url = form_service_url() if base_url is None else base_url
        self.geo = GeoCache(self.base_url, http=http)
        self.intro_shown = False
        self.content_shown = False
        self.submitted_lead: dict | None = None
        # Geo is fetched silently on page load; submissions use whatever has arrived.
        self.geo_prefetch = self.geo.prefetch() if prefetch_geo else None

    def should_play_intro(self) -> bool:
        return not self.intro_shown

    def should_play_content_splash(self) -> bool:
        return not self.content_shown

    def mark_intro_shown(self) -> None:
        self.intro_shown = True

    def mark_content_shown(self) -> None:
        self.content_shown = True

    def clear(self) -> None:
        """Session ended: everything starts over on the next visit."""
        self.intro_shown = False
        self.content_shown = False
        self.submitted_lead = None
        self.geo.clear()
