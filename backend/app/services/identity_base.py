"""
Notes API Backend — Abstract Identity Provider Interface
==========================================================

What:  Contract the token verifier expects from an external identity authority.
Why:   The verifier only needs "token in, user or nothing out"; keeping the
       provider behind an interface lets tests (and a future provider) plug in
       without touching the pipeline.
Who:   Implemented by SupabaseIdentityProvider; consumed by TokenVerifier.
"""

from abc import ABC, abstractmethod
from typing import Optional

from app.schemas.note import UserIdentity


class IdentityProvider(ABC):
    """
    Resolves bearer tokens to user identities.

    Contract:
        - resolve_user() returns the identity for a valid token
        - returns None when the provider rejects the token or knows no user
        - raises IdentityProviderError (or lets transport errors surface)
          when the provider cannot be asked at all; that is never a 401
    """

    @abstractmethod
    async def resolve_user(self, token: str) -> Optional[UserIdentity]:
        """
        Ask the provider who owns `token`.

        Args:
            token: Opaque bearer token, already stripped of the "Bearer " prefix.

        Returns:
            UserIdentity with at least a stable `id`, or None if the token is
            not accepted.

        Raises:
            IdentityProviderError: the provider is unreachable or failing.
        """
        ...

    async def close(self) -> None:
        """Release any connections held by the provider. Called on shutdown."""
        return None
