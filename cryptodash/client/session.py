"""
client/session.py — Cookie-session HTTP client with transparent refresh.

SessionClient wraps an httpx.AsyncClient whose cookie jar holds the
`token` / `refreshToken` cookies issued by the server. When a request comes
back 401 it asks the SessionManager to recover the session, then replays the
request exactly once.

Single-flight refresh:
  SessionManager.recover() is the only place that calls POST /auth/refresh.
  While one refresh is in flight every other caller that hits a 401 parks
  on a future in the pending queue instead of starting its own refresh.
  When the refresh settles the whole queue is resolved (each caller replays
  its own request) or rejected (each caller fails with the same error,
  SessionExpiredError when the server refused the refresh token).
  is_refreshing is reset in a finally block whatever the outcome.

Requests that never trigger a refresh:
  - the refresh call itself (it goes straight through the raw httpx client)
  - requests that were already replayed once
  - credential endpoints (/auth/login, /auth/register, /auth/logout), where
    a 401 means wrong credentials rather than an expired session

Paths are matched relative to base_url, so a client for http://host/api treats
/api/auth/login as the login endpoint.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

REFRESH_PATH = "/auth/refresh"
CREDENTIAL_PATHS = ("/auth/login", "/auth/register", "/auth/logout")
AUTH_PAGES = ("/login", "/register")
ACCESS_COOKIE = "token"
REFRESH_COOKIE = "refreshToken"


class SessionState(enum.Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    ACCESS_EXPIRED_REFRESH_VALID = "access_expired_refresh_valid"
    EXPIRED = "expired"


class ApiError(Exception):
    """A non-2xx response from the API, decoded from the error envelope."""

    def __init__(self, status_code: int, code: str | None, message: str, details: list | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or []

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        error = body.get("error") if isinstance(body, dict) else None
        error = error or {}
        return cls(
            response.status_code,
            error.get("code"),
            error.get("message") or response.reason_phrase,
            error.get("details"),
        )


class SessionExpiredError(ApiError):
    """The refresh token was rejected; the user has to log in again."""


class SessionManager:
    """
    Owns the refresh coordination state for one client.

    `refresh` performs the actual refresh round trip and returns its response.
    `on_expired` runs once per rejected refresh, before any waiter resumes.
    """

    def __init__(
        self,
        refresh: Callable[[], Awaitable[httpx.Response]],
        on_expired: Callable[[], None] | None = None,
    ) -> None:
        self._refresh = refresh
        self._on_expired = on_expired
        self.state = SessionState.ANONYMOUS
        self.is_refreshing = False
        self._pending: list[asyncio.Future] = []

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def recover(self) -> None:
        """
        Returns once the session has a fresh access token.

        Raises SessionExpiredError when the server rejects the refresh token
        (401). A transport error or any other error status is raised as-is
        and leaves the cookies alone. Every caller queued behind the same
        refresh gets the same error.
        """
        if self.is_refreshing:
            waiter = asyncio.get_running_loop().create_future()
            self._pending.append(waiter)
            await waiter
            return

        self.is_refreshing = True
        self.state = SessionState.ACCESS_EXPIRED_REFRESH_VALID
        try:
            response = await self._refresh()
            if response.status_code == 401:
                raise SessionExpiredError.from_response(response)
            if response.is_error:
                raise ApiError.from_response(response)
        except SessionExpiredError as exc:
            self.state = SessionState.EXPIRED
            logger.info("Session refresh rejected: %s", exc.code)
            self._settle(exc)
            if self._on_expired is not None:
                self._on_expired()
            raise
        except Exception as exc:
            # Transport failure or server error: the refresh token may still be valid.
            logger.warning("Session refresh failed: %s", exc)
            self._settle(exc)
            raise
        else:
            self.state = SessionState.AUTHENTICATED
            self._settle(None)
        finally:
            self.is_refreshing = False
            # Only reachable with waiters left if the refresh was cancelled.
            for waiter in self._drain():
                waiter.cancel()

    def _drain(self) -> list[asyncio.Future]:
        waiters, self._pending = self._pending, []
        return [w for w in waiters if not w.done()]

    def _settle(self, error: BaseException | None) -> None:
        for waiter in self._drain():
            if error is None:
                waiter.set_result(None)
            else:
                waiter.set_exception(error)


class SessionClient:
    """
    Async API client for the CryptoDash backend.

    Usage:
        async with SessionClient("https://api.example.com") as client:
            await client.login("a@x.com", "secret1")
            me = await client.me()

    `on_session_expired` is the "redirect to login" hook. It is called once
    per failed refresh, unless `location` is already an auth page.
    """

    def __init__(
        self,
        base_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
        on_session_expired: Callable[[], Any] | None = None,
        location: str | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )
        self.session = SessionManager(self._post_refresh, on_expired=self._expire_locally)
        self.on_session_expired = on_session_expired
        self.location = location

    async def __aenter__(self) -> "SessionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def cookies(self) -> httpx.Cookies:
        return self._http.cookies

    # ── Core request path ──────────────────────────────────────────────────

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = await self._http.request(method, url, **kwargs)
        if not self._should_recover(response):
            return response

        await self.session.recover()

        # Replay exactly once; a second 401 goes back to the caller as-is.
        return await self._http.request(method, url, **kwargs)

    def _should_recover(self, response: httpx.Response) -> bool:
        if response.status_code != 401:
            return False
        path = self._api_path(response.request.url)
        return path != REFRESH_PATH and path not in CREDENTIAL_PATHS

    def _api_path(self, url: httpx.URL) -> str:
        """Request path with the base_url path stripped."""
        path = url.path
        prefix = self._http.base_url.path.rstrip("/")
        if prefix and path.startswith(prefix + "/"):
            return path[len(prefix):]
        return path

    async def _post_refresh(self) -> httpx.Response:
        logger.debug("Refreshing access token")
        return await self._http.post(REFRESH_PATH)

    async def refresh(self) -> None:
        """Forces a refresh through the single-flight manager."""
        await self.session.recover()

    def _expire_locally(self) -> None:
        self._http.cookies.delete(ACCESS_COOKIE)
        self._http.cookies.delete(REFRESH_COOKIE)
        if self.on_session_expired is not None and self.location not in AUTH_PAGES:
            self.on_session_expired()

    # ── Convenience API ────────────────────────────────────────────────────

    @staticmethod
    def _data(response: httpx.Response) -> dict:
        if response.is_error:
            raise ApiError.from_response(response)
        return response.json().get("data", {})

    async def register(self, email: str, password: str, name: str) -> dict:
        response = await self.request(
            "POST", "/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        data = self._data(response)
        self.session.state = SessionState.AUTHENTICATED
        return data["user"]

    async def login(self, email: str, password: str) -> dict:
        response = await self.request(
            "POST", "/auth/login",
            json={"email": email, "password": password},
        )
        data = self._data(response)
        self.session.state = SessionState.AUTHENTICATED
        return data["user"]

    async def logout(self) -> None:
        try:
            await self.request("POST", "/auth/logout")
        finally:
            self._http.cookies.clear()
            self.session.state = SessionState.ANONYMOUS

    async def me(self) -> dict:
        data = self._data(await self.request("GET", "/me"))
        self.session.state = SessionState.AUTHENTICATED
        return data["user"]

    async def get_preferences(self) -> dict | None:
        """Returns None when the user has not completed onboarding yet."""
        response = await self.request("GET", "/preferences")
        if response.status_code == 404:
            return None
        return self._data(response)["preferences"]

    async def save_preferences(self, preferences: dict) -> dict:
        response = await self.request("POST", "/preferences", json=preferences)
        return self._data(response)["preferences"]

    async def vote(self, content_id: str, vote: str) -> dict:
        response = await self.request(
            "POST", "/vote",
            json={"contentId": content_id, "vote": vote},
        )
        return self._data(response)["vote"]
