"""
Silent geo detection for the waitlist form.

Calls our own /geo.php proxy in the background, once per session. No prompts, no
permissions; failures just produce empty location data. The complete provider response
is kept in `raw` so it can be stored alongside the lead.
"""
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field

import requests

GEO_TIMEOUT_S = 8


@dataclass(frozen=True)
class GeoResult:
    ip: str = ""
    city: str = ""
    region: str = ""
    country: str = ""
    country_code: str = ""
    raw: dict = field(default_factory=dict)


EMPTY_GEO = GeoResult()


def parse_geo(data: dict) -> GeoResult:
    """Accepts either provider's field names."""
    return GeoResult(
        ip=data.get("ip") or data.get("ipAddress") or "",
        city=data.get("city") or data.get("cityName") or "",
        region=data.get("region") or data.get("regionName") or "",
        country=data.get("country_name") or data.get("countryName") or "",
        country_code=(data.get("country_code") or data.get("countryCode") or "").lower(),
        raw=data,
    )


class GeoCache:
    """
    Session-scoped geo lookup. The first result with a country is cached and returned
    as the same object on every later call; callers that arrive while a lookup is in
    flight wait on that lookup instead of starting another.
    """

    def __init__(self, base_url: str = "", http=None):
        self.base_url = (base_url or "").rstrip("/")
        self.http = http or requests
        self._lock = threading.Lock()
        self._cached: GeoResult | None = None
        self._inflight: Future | None = None

    @property
    def cached(self) -> GeoResult | None:
        return self._cached

    def prefetch(self) -> threading.Thread:
        """Start detect() in the background, as the page does on mount."""
        t = threading.Thread(target=self.detect, daemon=True)
        t.start()
        return t

    def detect(self) -> GeoResult:
        with self._lock:
            if self._cached is not None:
                return self._cached
            if self._inflight is not None:
                future, owner = self._inflight, False
            else:
                future, owner = Future(), True
                self._inflight = future

        if not owner:
            return future.result()

        result = EMPTY_GEO
        try:
            result = self._fetch()
        finally:
            with self._lock:
                if result.country:
                    self._cached = result
                self._inflight = None
            future.set_result(result)
        return result

    def clear(self) -> None:
        with self._lock:
            self._cached = None
            self._inflight = None

    def _fetch(self) -> GeoResult:
        try:
            r = self.http.get(f"{self.base_url}/geo.php", timeout=GEO_TIMEOUT_S)
            if r.status_code != 200:
                return EMPTY_GEO
            data = r.json()
            if not isinstance(data, dict):
                return EMPTY_GEO
            return parse_geo(data)
        except (requests.RequestException, ValueError) as e:
            print("[geo] detection failed:", type(e).__name__, str(e))
            return EMPTY_GEO
