"""
TheTVDB (v4) API client for looking up series and movie names.

Only the two calls the renamer needs are implemented: login, which exchanges
the API key for a bearer token, and search. Every failure is raised as a
`TvdbError` subclass so callers can fall back to the names parsed from the
filename.
"""
import threading
from typing import Any, Dict, List, Optional

import requests

from mediarenamer.utils import constants, logger
from mediarenamer.utils.logger import LogLevel


class TvdbError(Exception):
    """Base exception for TVDB API errors."""

    pass


class TvdbAPIError(TvdbError):
    """Exception for request, HTTP or response parsing failures."""

    pass


class TvdbAuthError(TvdbError):
    """Exception for a rejected API key or a missing token."""

    pass


class TvdbNotFoundError(TvdbError):
    """Exception for when a search returns no candidates."""

    pass


class AmbiguousMatchError(TvdbError):
    """Exception for equally ranked candidates when strict matching is on."""

    pass


class TvdbClient:
    """Client for the TheTVDB v4 API."""

    def __init__(
        self,
        api_key: str,
        timeout: float = constants.LOOKUP_TIMEOUT,
        base_url: str = constants.TVDB_BASE_URL,
        session: requests.Session | None = None,
    ):
        if not api_key:
            raise TvdbAuthError("TVDB API key is required. Set it in the config file or MEDIA_RENAMER_TVDB_API_KEY.")

        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.token: str | None = None
        self._login_lock = threading.Lock()

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _parse(self, response: requests.Response) -> Any:
        if response.status_code in (401, 403):
            raise TvdbAuthError(f"HTTP error: {response.status_code}")
        if response.status_code != 200:
            raise TvdbAPIError(f"HTTP error: {response.status_code}")
        try:
            payload = response.json()
        except ValueError as e:
            raise TvdbAPIError(f"Invalid JSON response: {e}")
        if not isinstance(payload, dict) or "data" not in payload:
            raise TvdbAPIError("Response without data")
        return payload["data"]

    def login(self) -> None:
        """Exchange the API key for a bearer token."""
        try:
            response = self.session.post(self._url("login"), json={"apikey": self.api_key}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TvdbAPIError(f"Request failed: {e}")

        data = self._parse(response)
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise TvdbAuthError("Login reply did not contain a token")
        self.token = token
        logger.log("tvdb.login", LogLevel.INFO, status="connected")

    def ensure_login(self) -> None:
        """Log in once; concurrent callers wait for the first attempt."""
        with self._login_lock:
            if self.token is None:
                self.login()

    def search(self, name: str, media_type: str, year: Optional[int] = None) -> List[Dict[str, Any]]:
        """Search by name; `media_type` is "series" or "movie"."""
        self.ensure_login()

        params = {"q": name, "type": media_type}
        if year:
            params["year"] = str(year)

        logger.log("tvdb.search", LogLevel.DEBUG, query=name, type=media_type, year=year)
        try:
            response = self.session.get(
                self._url("search"),
                params=params,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TvdbAPIError(f"Request failed: {e}")

        data = self._parse(response)
        if not isinstance(data, list):
            raise TvdbAPIError("Search reply data is not a list")
        logger.log("tvdb.results", LogLevel.DEBUG, query=name, count=len(data))
        return data
