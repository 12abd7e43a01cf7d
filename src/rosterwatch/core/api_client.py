"""HTTP client for the bot detector's local web API.

Thin wrapper over ``httpx.Client``. There is deliberately no retry or backoff
here: the roster poller treats every tick as independent and simply keeps the
last good snapshot when a call fails.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import httpx

from rosterwatch.config import settings

__all__ = ["ApiError", "RosterApiClient"]

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """Raised for transport failures, non-success statuses and bad bodies."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RosterApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/") + "/"
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.DEFAULT_TIMEOUT,
            headers={
                "User-Agent": settings.DEFAULT_USER_AGENT,
                "Content-Type": "application/json; charset=UTF-8",
            },
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "RosterApiClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    def _call(self, method: str, path: str, body: Any = None) -> Any:
        url = self.base_url + path.lstrip("/")
        try:
            if method != "GET" and body is not None:
                resp = self._client.request(method, url, json=body)
            else:
                resp = self._client.request(method, url)
        except httpx.HTTPError as e:
            raise ApiError(f"{method} {path} failed: {e}") from e
        logger.debug("%s %s -> %s", method, path, resp.status_code)
        if resp.is_error:
            try:
                err_body = resp.json()
            except ValueError:
                err_body = resp.text
            raise ApiError(
                f"{method} {path} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                body=err_body,
            )
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(
                f"{method} {path} returned malformed JSON", status_code=resp.status_code
            ) from e

    # Reads ------------------------------------------------------------
    def get_roster(self) -> Any:
        """Return the raw roster payload (player list or state object)."""
        return self._call("GET", "players")

    def get_user_settings(self) -> Any:
        return self._call("GET", "settings")

    # Mutations (all keyed by steam id) ---------------------------------
    def save_user_settings(self, data: dict) -> None:
        self._call("POST", "settings", data)

    def save_user_note(self, steam_id: int | str, note: str) -> None:
        self._call("POST", f"notes/{steam_id}", {"note": note})

    def add_whitelist(self, steam_id: int | str) -> None:
        self._call("POST", f"whitelist/{steam_id}")

    def remove_whitelist(self, steam_id: int | str) -> None:
        self._call("DELETE", f"whitelist/{steam_id}")

    def mark_player(self, steam_id: int | str, attrs: Iterable[str]) -> None:
        attr_list = [a for a in attrs if a]
        if not attr_list:
            raise ValueError("at least one attribute is required to mark a player")
        self._call("POST", f"mark/{steam_id}", {"attrs": attr_list})
