"""
Notes API Backend — Token Verifier
====================================

What:  First gate of every request: who is calling?
How:   Extracts the bearer token from the Authorization header and asks the
       identity provider to resolve it. No caching: every request is checked.

Outcomes:
    header absent / not "Bearer <token>" / empty token → Failure(MISSING_TOKEN)
    provider does not accept the token                 → Failure(INVALID_TOKEN)
    provider unreachable                               → exception propagates
    otherwise                                          → UserIdentity
"""

import logging
from typing import Optional

from app.exceptions import Failure, Outcome
from app.schemas.note import UserIdentity
from app.services.identity_base import IdentityProvider

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token part of `Bearer <token>`, or None if there is none."""
    if not authorization:
        return None
    value = authorization.strip()
    if value.lower().startswith(BEARER_PREFIX):
        token = value[len(BEARER_PREFIX):].strip()
    else:
        token = ""
    return token or None


class TokenVerifier:
    """Stateless gate over an IdentityProvider."""

    def __init__(self, provider: IdentityProvider):
        self.provider = provider

    async def verify(self, authorization: Optional[str]) -> Outcome[UserIdentity]:
        token = extract_bearer_token(authorization)
        if token is None:
            return Failure.missing_token()

        user = await self.provider.resolve_user(token)
        if user is None:
            return Failure.invalid_token()

        logger.debug("Authenticated user %s", user.id)
        return user
