"""
Notes API Backend — Supabase Auth Identity Provider
=====================================================

What:  Resolves bearer tokens by asking Supabase Auth who they belong to.
How:   GET {SUPABASE_URL}/auth/v1/user with the caller's token and the
       project's service key, over one shared httpx.AsyncClient.
Who:   Built once by the lifespan; called by TokenVerifier on every request.

Answer mapping:
    200 + user JSON with `id`  → UserIdentity
    200 without a user id      → None (token not accepted)
    4xx                        → None (token rejected / expired / unknown)
    5xx                        → IdentityProviderError (→ 500)
    transport error            → retried with tenacity, then IdentityProviderError

Resilience:
    Only transport-level failures (connect/read errors, timeouts) are retried;
    an HTTP answer of any status is final. The retry budget is short because
    every request waits on this lookup.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import Settings
from app.exceptions import IdentityProviderError
from app.schemas.note import UserIdentity
from app.services.identity_base import IdentityProvider

logger = logging.getLogger(__name__)


class SupabaseIdentityProvider(IdentityProvider):
    """Supabase Auth implementation of the identity provider contract."""

    USER_PATH = "/auth/v1/user"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        service_key: str,
        retry_attempts: int = 3,
        retry_min_wait: float = 0.2,
        retry_max_wait: float = 2.0,
        owns_client: bool = False,
    ):
        self._client = client
        self._user_url = base_url.rstrip("/") + self.USER_PATH
        self._service_key = service_key
        self._retry_attempts = retry_attempts
        self._retry_min_wait = retry_min_wait
        self._retry_max_wait = retry_max_wait
        self._owns_client = owns_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseIdentityProvider":
        client = httpx.AsyncClient(timeout=settings.identity_timeout)
        logger.info("Identity provider configured for %s", settings.supabase_url or "<unset>")
        return cls(
            client=client,
            base_url=settings.supabase_url,
            service_key=settings.supabase_service_role_key,
            retry_attempts=settings.identity_retry_attempts,
            retry_min_wait=settings.identity_retry_min_wait,
            retry_max_wait=settings.identity_retry_max_wait,
            owns_client=True,
        )

    async def resolve_user(self, token: str) -> Optional[UserIdentity]:
        try:
            response = await self._fetch_user(token)
        except httpx.TransportError as exc:
            logger.error(
                "Identity provider unreachable after %d attempts: %s",
                self._retry_attempts,
                exc,
            )
            raise IdentityProviderError(
                message=f"Identity provider unreachable: {exc}",
                context={"error_type": type(exc).__name__},
            ) from exc

        if response.status_code >= 500:
            logger.error("Identity provider answered %d", response.status_code)
            raise IdentityProviderError(
                message=f"Identity provider answered {response.status_code}",
                context={"status": response.status_code},
            )

        if response.status_code != 200:
            logger.info("Token rejected by identity provider (%d)", response.status_code)
            return None

        try:
            body = response.json()
        except ValueError as exc:
            raise IdentityProviderError(
                message="Identity provider returned a non-JSON body",
                context={"status": response.status_code},
            ) from exc

        return self._identity_from_body(body)

    async def _fetch_user(self, token: str) -> httpx.Response:
        response = None
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential_jitter(
                initial=self._retry_min_wait,
                max=self._retry_max_wait,
                jitter=self._retry_min_wait,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                response = await self._client.get(
                    self._user_url,
                    headers={
                        "apikey": self._service_key,
                        "Authorization": f"Bearer {token}",
                    },
                )
        return response

    @staticmethod
    def _identity_from_body(body: Any) -> Optional[UserIdentity]:
        if not isinstance(body, dict):
            return None
        # Some client libraries wrap the user as {"user": {...}}
        user: Dict[str, Any] = body.get("user") if isinstance(body.get("user"), dict) else body
        user_id = user.get("id")
        if not user_id:
            return None
        return UserIdentity(id=str(user_id), email=user.get("email"))

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
