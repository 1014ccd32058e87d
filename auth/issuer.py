"""
Credential bundle construction.

The issuer only builds bundles; persisting them is the caller's job
(SessionService on login, Rotator on refresh).
"""
import logging
from typing import Callable, Optional

from core.errors import EntropyUnavailable, GenerationFailed
from core.timestamps import now

from .generator import SecretGenerator
from .types import CredentialBundle, TokenConfig

logger = logging.getLogger(__name__)


class TokenIssuer:
    """Builds fresh CredentialBundles from a SecretGenerator and a clock."""

    def __init__(
        self,
        config: TokenConfig,
        generator: Optional[SecretGenerator] = None,
        clock: Callable = now,
    ):
        self.config = config
        self._generator = generator or SecretGenerator()
        self._clock = clock

    def issue(self, owner_id: int, config: Optional[TokenConfig] = None) -> CredentialBundle:
        """Create a new bundle with three independently drawn secrets.

        Args:
            owner_id: User the bundle will belong to
            config: Overrides the issuer's default TokenConfig

        Returns:
            Unpersisted CredentialBundle

        Raises:
            GenerationFailed: any secret could not be generated
        """
        cfg = config or self.config
        try:
            refresh = self._generator.generate(cfg.refresh_bytes)
        except EntropyUnavailable as e:
            logger.error(f"Refresh secret generation failed for owner {owner_id}")
            raise GenerationFailed("could not generate credential bundle") from e
        return self._build(owner_id, refresh, cfg)

    def reissue_keeping_refresh(
        self,
        existing: CredentialBundle,
        config: Optional[TokenConfig] = None,
    ) -> CredentialBundle:
        """Same as issue() but carries existing.refresh_secret over unchanged."""
        return self._build(existing.owner_id, existing.refresh_secret, config or self.config)

    def _build(self, owner_id: int, refresh_secret: str, cfg: TokenConfig) -> CredentialBundle:
        # All secrets are drawn before the bundle exists: all-or-nothing.
        try:
            access = self._generator.generate(cfg.access_bytes)
            anti_forgery = self._generator.generate(cfg.anti_forgery_bytes)
        except EntropyUnavailable as e:
            logger.error(f"Secret generation failed for owner {owner_id}")
            raise GenerationFailed("could not generate credential bundle") from e

        created_at = self._clock()
        return CredentialBundle(
            owner_id=owner_id,
            access_secret=access,
            refresh_secret=refresh_secret,
            anti_forgery_secret=anti_forgery,
            expires_at=created_at + cfg.access_lifetime,
            created_at=created_at,
        )
