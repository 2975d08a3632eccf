"""Token derivation and storage-key helpers."""

import hashlib
import secrets
from typing import Optional

from gateway.domain.constants import (
    TOKEN_CONFIG_KEY_PREFIX,
    TOKEN_PREVIEW_LENGTH,
    TOKEN_RANDOM_SEED_BYTES,
    TOKEN_SERVER_ENTROPY_BYTES,
)


def derive_token(
    session_id: str,
    timestamp: int,
    user_agent: Optional[str] = None,
    entropy: Optional[str] = None,
    behavioral_fingerprint: Optional[str] = None,
    additional_entropy: Optional[str] = None,
) -> str:
    """
    SHA-512 over a random seed plus every caller-supplied entropy source.

    Only the random seed and the server entropy make the token
    unpredictable; the other inputs bind it to its context.
    """
    digest = hashlib.sha512()
    digest.update(secrets.token_bytes(TOKEN_RANDOM_SEED_BYTES))
    digest.update(str(timestamp).encode())
    digest.update(session_id.encode())
    for part in (entropy, user_agent, behavioral_fingerprint, additional_entropy):
        if part:
            digest.update(part.encode())
    digest.update(secrets.token_bytes(TOKEN_SERVER_ENTROPY_BYTES))
    return digest.hexdigest()


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()


def token_config_key(token: str) -> str:
    """Storage key for a token record; the raw token is never stored."""
    return f"{TOKEN_CONFIG_KEY_PREFIX}{sha256_hex(token)}"


def token_preview(token: str) -> str:
    return token[:TOKEN_PREVIEW_LENGTH] + "..."
