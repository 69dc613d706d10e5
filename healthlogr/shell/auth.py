"""Authentication - API key generation and validation.

Handles API key creation, hashing, and validation. Never stores plaintext keys.
The user_id used throughout the store is derived from the key hash.
"""

import hashlib
import logging
import secrets
from typing import Protocol

from ..core.models import User


logger = logging.getLogger(__name__)

# API key prefix for identification
API_KEY_PREFIX = "hlr_"
API_KEY_MIN_LENGTH = 40


class UserStore(Protocol):
    def save_user(self, user_id: str, user: User) -> None: ...

    def get_user(self, user_id: str) -> User | None: ...

    def user_exists(self, user_id: str) -> bool: ...


def generate_api_key() -> str:
    """Generate a cryptographically secure API key in the form hlr_<random>."""
    return f"{API_KEY_PREFIX}{secrets.token_urlsafe(32)}"


def hash_api_key(api_key: str) -> str:
    """Derive the 32-character user_id from an API key (truncated SHA256)."""
    return hashlib.sha256(api_key.encode()).hexdigest()[:32]


def validate_api_key_format(api_key: str | None) -> bool:
    """Check prefix and minimum length without touching the store."""
    if not api_key or not api_key.startswith(API_KEY_PREFIX):
        return False
    return len(api_key) >= API_KEY_MIN_LENGTH


class AuthClient:
    """Registers users and resolves API keys against the user store."""

    def __init__(self, store: UserStore) -> None:
        self._store = store

    def register_user(self, email: str, name: str | None = None) -> tuple[str, str]:
        """Register a new user and generate their API key.

        Returns:
            Tuple of (api_key, user_id) - api_key is only returned once!
        """
        api_key = generate_api_key()
        user_id = hash_api_key(api_key)

        self._store.save_user(user_id, User(email=email, name=name, api_key_hash=user_id))

        logger.info("User registered successfully: %s", user_id[:8])
        return api_key, user_id

    def validate_api_key(self, api_key: str) -> str | None:
        """Return the user_id for a known key, None for malformed or unknown keys."""
        if not validate_api_key_format(api_key):
            logger.warning("Invalid API key format")
            return None

        user_id = hash_api_key(api_key)
        if not self._store.user_exists(user_id):
            logger.warning("API key not found")
            return None

        logger.debug("API key validated for user: %s", user_id[:8])
        return user_id

    def get_user(self, user_id: str) -> User | None:
        return self._store.get_user(user_id)
