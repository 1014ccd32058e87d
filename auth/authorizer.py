"""
Per-request bundle validation.

Gates run in a fixed order: presence, lookup, expiry, anti-forgery. The
anti-forgery check is last and constant-time: it is the step an attacker
who already holds a valid access secret would try to brute-force.
"""
import hmac
import logging
from typing import Callable

from core.errors import CredentialExpired, InvalidCredential, MissingCredential
from core.timestamps import now

from .store import BundleStore

logger = logging.getLogger(__name__)


def constant_time_equals(presented: str, stored: str) -> bool:
    """Compare two secrets without leaking the first mismatching position."""
    return hmac.compare_digest(presented.encode("utf-8"), stored.encode("utf-8"))


class Authorizer:
    """Resolves the owner of a presented (access, anti-forgery) pair."""

    def __init__(self, store: BundleStore, clock: Callable = now):
        self._store = store
        self._clock = clock

    def authorize(self, presented_access: str, presented_anti_forgery: str) -> int:
        """Validate a protected request's credentials.

        Args:
            presented_access: Access secret from the access header
            presented_anti_forgery: Anti-forgery secret from its own header

        Returns:
            Owner id of the matching bundle

        Raises:
            MissingCredential: either secret absent or empty
            InvalidCredential: unknown access secret or anti-forgery mismatch
            CredentialExpired: access secret past expires_at
            StoreUnavailable: the store lookup failed
        """
        if not presented_access or not presented_anti_forgery:
            raise MissingCredential()

        bundle = self._store.find_by_access_secret(presented_access)
        if bundle is None:
            raise InvalidCredential()

        if bundle.is_expired(self._clock()):
            logger.info(f"Expired access secret presented for owner {bundle.owner_id}")
            raise CredentialExpired()

        if not constant_time_equals(presented_anti_forgery, bundle.anti_forgery_secret):
            logger.warning(f"Anti-forgery mismatch for owner {bundle.owner_id}")
            raise InvalidCredential()

        return bundle.owner_id
