"""Client for the remote rule-data service.

Endpoints:
    GET {base_url}/tax-data/{year}                      full payload
    GET {base_url}/tax-data/{year}/version?current={v}  VersionInfo

A payload carries the same four documents as an embedded bundle plus its
version and year:

    {"version": "...", "tax_year": 2024,
     "federal": {...}, "fica": {...}, "states": {...}, "retirement": {...}}

Transport problems (unreachable host, timeout, non-2xx) raise NetworkFailure.
A body that is not JSON raises ValidationFailure. Neither is retried here.
"""

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Callable, Optional

from pydantic import ValidationError

from ... import __version__
from ..errors import NetworkFailure, ValidationFailure
from ..taxes.schemas import VersionInfo
from .bundle import loads_exact

logger = logging.getLogger(__name__)

# (url, timeout_seconds) -> response body
Fetcher = Callable[[str, float], bytes]


def urllib_fetch(url: str, timeout: float) -> bytes:
    request = urllib.request.Request(
        url,
        headers={
            "Accept": "application/json",
            "User-Agent": f"take-home/{__version__}",
        },
    )
    with urllib.request.urlopen(request, timeout=timeout) as response:
        return response.read()


class RemoteRuleSource:
    """Fetches rule payloads and version info over HTTP."""

    def __init__(self, base_url: str, timeout: float = 10.0, fetcher: Optional[Fetcher] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._fetch = fetcher or urllib_fetch

    def payload_url(self, year: int) -> str:
        return f"{self.base_url}/tax-data/{year}"

    def version_url(self, year: int, current: Optional[str] = None) -> str:
        url = f"{self.base_url}/tax-data/{year}/version"
        if current:
            url += "?" + urllib.parse.urlencode({"current": current})
        return url

    def _get_json(self, url: str) -> Any:
        logger.debug(f"GET {url}")
        try:
            body = self._fetch(url, self.timeout)
        except urllib.error.HTTPError as e:
            raise NetworkFailure(f"{url} returned HTTP {e.code}") from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise NetworkFailure(f"Could not reach {url}: {e}") from e

        try:
            return loads_exact(body)
        except (ValueError, UnicodeDecodeError) as e:
            raise ValidationFailure([f"response from {url} is not valid JSON: {e}"]) from e

    def fetch(self, year: int) -> Any:
        """Fetch the raw payload for a year. Validation is the caller's job."""
        return self._get_json(self.payload_url(year))

    def check_version(self, year: int, current: Optional[str] = None) -> VersionInfo:
        """Ask whether a newer payload than `current` exists."""
        data = self._get_json(self.version_url(year, current))
        try:
            return VersionInfo.model_validate(data)
        except ValidationError as e:
            raise ValidationFailure([f"version response: {err['msg']}" for err in e.errors()]) from e
