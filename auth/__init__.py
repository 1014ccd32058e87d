"""
Session credential authentication module.

Public API:
- Sessions: SessionService (login, authorize, refresh, logout)
- Components: SecretGenerator, TokenIssuer, Authorizer, Rotator
- Stores: BundleStore, InMemoryBundleStore, SqlBundleStore
- Identity: UserRepository, hash_password, verify_password, validate_credentials

Internal modules should import from submodules directly.
External callers should use this facade.

Import Rules:
- External callers: Use `from auth import X` (this facade)
- Internal auth modules: Use `from .submodule import X` (direct imports)
- Ban: `from auth import X` inside auth submodules (causes facade import)
"""

# =============================================================================
# Types
# =============================================================================
from .types import CredentialBundle, Owner, TokenConfig

# =============================================================================
# Token lifecycle
# =============================================================================
from .generator import SecretGenerator, generate_secret, decode_secret
from .issuer import TokenIssuer
from .authorizer import Authorizer, constant_time_equals
from .rotator import Rotator
from .sessions import SessionService

# =============================================================================
# Persistence
# =============================================================================
from .store import BundleStore, InMemoryBundleStore
from .sql_store import SqlBundleStore

# =============================================================================
# Identity & passwords
# =============================================================================
from .identity import UserRepository
from .passwords import hash_password, verify_password, validate_credentials

# =============================================================================
# Configuration
# =============================================================================
from .config import token_config_from_settings, MAX_USERNAME_LENGTH, MAX_PASSWORD_LENGTH

__all__ = [
    "CredentialBundle",
    "Owner",
    "TokenConfig",
    "SecretGenerator",
    "generate_secret",
    "decode_secret",
    "TokenIssuer",
    "Authorizer",
    "constant_time_equals",
    "Rotator",
    "SessionService",
    "BundleStore",
    "InMemoryBundleStore",
    "SqlBundleStore",
    "UserRepository",
    "hash_password",
    "verify_password",
    "validate_credentials",
    "token_config_from_settings",
    "MAX_USERNAME_LENGTH",
    "MAX_PASSWORD_LENGTH",
]
