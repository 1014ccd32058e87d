"""
Session lifecycle: login, authorize, refresh, logout.

SessionService owns one BundleStore and the components built around it.
The app factory (or a test) constructs it explicitly; there is no
process-wide store.
"""
import logging
from typing import Callable, Optional

from core.errors import CredentialError
from core.event_logger import log_event
from core.timestamps import now

from .authorizer import Authorizer
from .issuer import TokenIssuer
from .rotator import Rotator
from .store import BundleStore
from .types import CredentialBundle, TokenConfig

logger = logging.getLogger(__name__)


class SessionService:
    """Single-bundle-per-user session management."""

    def __init__(
        self,
        store: BundleStore,
        issuer: TokenIssuer,
        authorizer: Optional[Authorizer] = None,
        rotator: Optional[Rotator] = None,
    ):
        self.store = store
        self.issuer = issuer
        self.authorizer = authorizer or Authorizer(store)
        self.rotator = rotator or Rotator(store, issuer)

    @classmethod
    def build(
        cls,
        store: BundleStore,
        config: TokenConfig,
        clock: Callable = now,
    ) -> "SessionService":
        """Wire issuer, authorizer and rotator around store with one clock."""
        issuer = TokenIssuer(config, clock=clock)
        return cls(
            store,
            issuer,
            authorizer=Authorizer(store, clock=clock),
            rotator=Rotator(store, issuer),
        )

    def login(self, owner_id: int, username: Optional[str] = None) -> CredentialBundle:
        """Issue a new bundle for an authenticated user, replacing any previous one."""
        bundle = self.issuer.issue(owner_id)
        self.store.upsert(owner_id, bundle)
        log_event("login", user=username or str(owner_id), details="bundle issued")
        return bundle

    def authorize(self, access_secret: str, anti_forgery_secret: str) -> int:
        """Resolve the owner of a protected request. See Authorizer.authorize."""
        return self._authorize_audited("authorize", access_secret, anti_forgery_secret)

    def _authorize_audited(self, action: str, access_secret: str, anti_forgery_secret: str) -> int:
        try:
            return self.authorizer.authorize(access_secret, anti_forgery_secret)
        except CredentialError as e:
            log_event(action, details=f"credentials rejected: {type(e).__name__}", status="failed")
            raise

    def refresh(
        self,
        refresh_secret: str,
        owner_id: int,
        username: Optional[str] = None,
    ) -> CredentialBundle:
        """Rotate the owner's bundle, keeping its refresh secret."""
        try:
            bundle = self.rotator.rotate(refresh_secret, owner_id)
        except CredentialError:
            log_event(
                "refresh",
                user=username or str(owner_id),
                details="refresh secret rejected",
                status="failed",
            )
            raise
        log_event("refresh", user=username or str(owner_id), details="bundle rotated")
        return bundle

    def logout(self, access_secret: str, anti_forgery_secret: str) -> int:
        """Authorize the request, then delete the caller's bundle.

        Returns:
            Owner id whose bundle was removed
        """
        owner_id = self._authorize_audited("logout", access_secret, anti_forgery_secret)
        removed = self.store.delete(owner_id)
        if not removed:
            # Replaced or deleted concurrently between authorize and delete.
            logger.info(f"Logout for owner {owner_id} found no bundle to delete")
        log_event("logout", user=str(owner_id), details="bundle deleted")
        return owner_id

    def current_bundle(self, owner_id: int) -> Optional[CredentialBundle]:
        return self.store.get_for_owner(owner_id)
