"""Anonymous credential acquisition through identity-pool federation."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from ..config import CognitoConfig
from ..errors import CredentialsError
from .clients import CognitoIdentityClient, StsClient
from .credentials import Credentials
from .store import CredentialStore, InMemoryCredentialStore

logger = logging.getLogger(__name__)


class AnonymousCredentialsProvider:
    """Exchanges a guest identity for temporary credentials and caches them.

    ``credentials`` always holds the latest successful result; a new exchange
    replaces it as a whole. Readers should re-read it before each use.
    """

    def __init__(
        self,
        config: CognitoConfig,
        *,
        store: Optional[CredentialStore] = None,
        identity_client: Optional[CognitoIdentityClient] = None,
        sts_client: Optional[StsClient] = None,
    ) -> None:
        self.config = config
        self.store = store or InMemoryCredentialStore()
        self.identity_client = identity_client or CognitoIdentityClient(config.region, timeout=config.timeout)
        self.sts_client = sts_client or StsClient(config.region, timeout=config.timeout)
        self.credentials: Optional[Credentials] = None
        self.attempts = 0

    async def get_credentials(self) -> Credentials:
        """Return unexpired credentials from memory, then the store, then a new exchange."""
        if self.credentials is not None and not self.credentials.expired():
            return self.credentials
        stored = self._load_stored()
        if stored is not None and not stored.expired():
            self.credentials = stored
            return stored
        return await self.get_anonymous_credentials()

    async def get_anonymous_credentials(self) -> Credentials:
        """Run the three-step exchange, retrying the whole sequence on failure.

        Raises :class:`CredentialsError` once ``config.max_attempts`` attempts
        have failed; nothing is cached in that case.
        """
        max_attempts = max(1, self.config.max_attempts)
        attempt = 0
        while True:
            attempt += 1
            self.attempts += 1
            try:
                credentials = await self._exchange()
            except Exception as exc:
                if attempt >= max_attempts:
                    logger.warning("Credential exchange failed after %d attempts: %s", attempt, exc)
                    raise CredentialsError(f"anonymous credential exchange failed: {exc}", attempts=attempt) from exc
                logger.debug("Credential exchange attempt %d failed: %s", attempt, exc)
                if self.config.retry_delay > 0:
                    await asyncio.sleep(self.config.retry_delay)
                continue

            self.credentials = credentials
            self._persist(credentials)
            return credentials

    async def _exchange(self) -> Credentials:
        identity_id = await self.identity_client.get_id(self.config.identity_pool_id)
        token = await self.identity_client.get_open_id_token(identity_id)
        return await self.sts_client.assume_role_with_web_identity(
            self.config.guest_role_arn,
            self.config.session_name,
            token.token,
        )

    def _persist(self, credentials: Credentials) -> None:
        try:
            self.store.set(self.config.credential_storage_key, json.dumps(credentials.to_dict()))
        except Exception as exc:
            logger.debug("Ignoring credential cache write failure: %s", exc)

    def _load_stored(self) -> Optional[Credentials]:
        try:
            raw = self.store.get(self.config.credential_storage_key)
            if raw is None:
                return None
            return Credentials.from_dict(json.loads(raw))
        except Exception as exc:
            logger.debug("Ignoring unreadable cached credentials: %s", exc)
            return None
