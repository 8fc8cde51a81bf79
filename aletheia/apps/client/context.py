"""Authenticated session context passed to every service and controller."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx

from aletheia.libs.schemas.settings import AppSettings

from .errors import GatewayError, SessionStateError

LOGGER = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass(frozen=True)
class SessionContext:
    user_id: str
    access_token: str
    refresh_token: str | None = None
    email: str | None = None


AuthListener = Callable[[str, "SessionContext | None"], "Awaitable[None] | None"]


class AuthClient:
    """Minimal client for the hosted auth REST endpoints.

    Listeners registered with ``on_change`` are told about sign-in, token refresh
    and sign-out so long-lived controllers can swap their context.
    """

    def __init__(
        self,
        *,
        base_url: str,
        anon_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._timeout = timeout
        self._transport = transport
        self._session: SessionContext | None = None
        self._listeners: list[AuthListener] = []

    @classmethod
    def from_settings(cls, settings: AppSettings, **kwargs: Any) -> "AuthClient":
        return cls(base_url=settings.supabase_url, anon_key=settings.supabase_anon_key, **kwargs)

    @property
    def session(self) -> SessionContext | None:
        return self._session

    def require_session(self) -> SessionContext:
        if self._session is None:
            raise SessionStateError("Please sign in to continue")
        return self._session

    def on_change(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def sign_in(self, email: str, password: str) -> SessionContext:
        payload = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return await self._adopt(payload, SIGNED_IN)

    async def refresh(self) -> SessionContext:
        current = self.require_session()
        if not current.refresh_token:
            raise SessionStateError("Session cannot be refreshed")
        payload = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": current.refresh_token},
        )
        return await self._adopt(payload, TOKEN_REFRESHED)

    async def restore(self, access_token: str, refresh_token: str | None = None) -> SessionContext:
        """Resolve an existing access token into a session via ``/auth/v1/user``."""

        user = await self._request("GET", "/auth/v1/user", token=access_token)
        if not isinstance(user, dict) or "id" not in user:
            raise GatewayError("Unauthenticated", status_code=401)
        context = SessionContext(
            user_id=str(user["id"]),
            access_token=access_token,
            refresh_token=refresh_token,
            email=user.get("email"),
        )
        self._session = context
        await self._notify(SIGNED_IN, context)
        return context

    async def sign_out(self) -> None:
        current = self._session
        self._session = None
        if current is not None:
            try:
                await self._request("POST", "/auth/v1/logout", token=current.access_token)
            except GatewayError as exc:
                LOGGER.warning("Remote sign-out failed: %s", exc)
        await self._notify(SIGNED_OUT, None)

    async def _adopt(self, payload: Any, event: str) -> SessionContext:
        if not isinstance(payload, dict) or "access_token" not in payload:
            raise GatewayError("Authentication response missing access token")
        user = payload.get("user") or {}
        if "id" not in user:
            raise GatewayError("Authentication response missing user")
        context = SessionContext(
            user_id=str(user["id"]),
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            email=user.get("email"),
        )
        self._session = context
        await self._notify(event, context)
        return context

    async def _notify(self, event: str, context: SessionContext | None) -> None:
        for listener in list(self._listeners):
            result = listener(event, context)
            if inspect.isawaitable(result):
                await result

    async def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"apikey": self._anon_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.request(
                    method, f"{self._base_url}{path}", headers=headers, params=params, json=json
                )
            except httpx.RequestError as exc:
                raise GatewayError(f"Auth service unreachable: {exc}") from exc
        if not response.is_success:
            message = "Authentication failed"
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                message = body.get("error_description") or body.get("msg") or message
            raise GatewayError(message, status_code=response.status_code)
        if not response.content:
            return None
        return response.json()


__all__ = ["AuthClient", "AuthListener", "SIGNED_IN", "SIGNED_OUT", "SessionContext", "TOKEN_REFRESHED"]
