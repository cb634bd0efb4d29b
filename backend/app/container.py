"""
Notes API Backend — Application Services Container
====================================================

What:  Builds and tears down the process-wide collaborators.
Why:   The store engine and the identity-provider client are created once,
       shared by every request, and must be closed before the process exits.
       Holding them in one object makes that lifecycle explicit and lets tests
       inject their own collaborators instead of patching globals.
Who:   Opened and closed by the lifespan in main.py; read by route
       dependencies through `request.app.state.services`.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from app.config import Settings
from app.database import Database
from app.services.identity_base import IdentityProvider
from app.services.note_pipeline import NotePipeline
from app.services.note_repository import NoteRepository
from app.services.supabase_identity import SupabaseIdentityProvider
from app.services.token_verifier import TokenVerifier

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    pipeline: NotePipeline
    identity_provider: IdentityProvider
    database: Optional[Database] = None

    @classmethod
    def open(cls, settings: Settings) -> "AppServices":
        """Create the engine, the provider client and the pipeline wired to both."""
        database = Database.from_settings(settings)
        provider = SupabaseIdentityProvider.from_settings(settings)
        pipeline = NotePipeline(
            verifier=TokenVerifier(provider),
            repository=NoteRepository(database),
        )
        logger.info("Application services opened")
        return cls(pipeline=pipeline, identity_provider=provider, database=database)

    async def close(self) -> None:
        """Close the provider client, then dispose the connection pool."""
        try:
            await self.identity_provider.close()
        finally:
            if self.database is not None:
                await self.database.dispose()
        logger.info("Application services closed")
