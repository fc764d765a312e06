from __future__ import annotations

import secrets

from passlib.context import CryptContext

# argon2 for new hashes; anything else still verifies and is upgraded on login
pwd = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd.verify(password, password_hash)


def verify_and_upgrade(password: str, password_hash: str) -> tuple[bool, str | None]:
    """(matches, replacement hash or None when the stored one is current)."""
    return pwd.verify_and_update(password, password_hash)


def unusable_password_hash() -> str:
    # accounts created through OAuth never see this secret
    return pwd.hash(secrets.token_urlsafe(32))
