"""
Opaque secret generation.

Secrets are raw CSPRNG bytes encoded as unpadded URL-safe base64, so they
can travel in headers, JSON and query strings unchanged.
"""
import base64
import secrets

from core.errors import EntropyUnavailable


def generate_secret(byte_length: int) -> str:
    """Return byte_length random bytes as an unpadded URL-safe string.

    Raises:
        ValueError: byte_length is not a positive int
        EntropyUnavailable: the OS randomness source failed
    """
    if isinstance(byte_length, bool) or not isinstance(byte_length, int) or byte_length <= 0:
        raise ValueError(f"byte_length must be a positive int, got {byte_length!r}")

    try:
        raw = secrets.token_bytes(byte_length)
    except (OSError, NotImplementedError) as e:
        raise EntropyUnavailable("randomness source unavailable") from e

    if len(raw) != byte_length:
        raise EntropyUnavailable(f"short read from randomness source ({len(raw)}/{byte_length})")

    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def decode_secret(secret: str) -> bytes:
    """Inverse of generate_secret's encoding."""
    padding = "=" * (-len(secret) % 4)
    return base64.urlsafe_b64decode(secret + padding)


class SecretGenerator:
    """Injectable wrapper around generate_secret."""

    def generate(self, byte_length: int) -> str:
        return generate_secret(byte_length)
