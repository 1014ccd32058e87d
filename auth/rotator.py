"""
Refresh-secret rotation.

Rotation keeps the refresh secret and regenerates everything else, so a
session can be extended indefinitely without re-entering a password while
every rotation still invalidates the previous access and anti-forgery
secrets.
"""
import logging
from typing import Optional

from core.errors import InvalidCredential, MissingCredential

from .authorizer import constant_time_equals
from .issuer import TokenIssuer
from .store import BundleStore
from .types import CredentialBundle, TokenConfig

logger = logging.getLogger(__name__)


class Rotator:
    """Mints a replacement bundle from a presented refresh secret."""

    def __init__(self, store: BundleStore, issuer: TokenIssuer):
        self._store = store
        self._issuer = issuer

    def rotate(
        self,
        presented_refresh: str,
        owner_id: int,
        config: Optional[TokenConfig] = None,
    ) -> CredentialBundle:
        """Replace the owner's bundle, preserving its refresh secret.

        Args:
            presented_refresh: Refresh secret supplied by the client
            owner_id: Owner the client claims to be
            config: Overrides the issuer's default TokenConfig

        Returns:
            The new, persisted bundle

        Raises:
            MissingCredential: no refresh secret supplied
            InvalidCredential: unknown secret, other owner, or compare mismatch
            GenerationFailed: new secrets could not be generated
            StoreUnavailable: lookup or upsert failed
        """
        if not presented_refresh:
            raise MissingCredential()

        existing = self._store.find_by_refresh_secret(presented_refresh)
        if existing is None or existing.owner_id != owner_id:
            raise InvalidCredential()

        # The lookup already matched; re-check exactly in case the store
        # matched loosely (collation, case folding).
        if not constant_time_equals(presented_refresh, existing.refresh_secret):
            raise InvalidCredential()

        new_bundle = self._issuer.reissue_keeping_refresh(existing, config)
        self._store.upsert(owner_id, new_bundle)
        logger.info(f"Rotated bundle for owner {owner_id}")
        return new_bundle
