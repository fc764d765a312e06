from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session as DbSession

from threaddate.models.one_time_token import OneTimeToken


class TokenError(ValueError):
    pass


def new_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def expires_in(minutes: int) -> datetime:
    return utcnow() + timedelta(minutes=minutes)


def as_utc(value: datetime) -> datetime:
    # SQLite (and some drivers) hand back naive datetimes for timezone columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(expires_at: datetime | None) -> bool:
    return expires_at is None or as_utc(expires_at) < utcnow()


def issue_token(db: DbSession, user_id, purpose: str, minutes: int) -> str:
    """Store the digest of a fresh token and return the raw value for the email link. Caller commits."""
    raw = new_token()
    db.add(OneTimeToken(token_hash=hash_token(raw), user_id=user_id, purpose=purpose, expires_at=expires_in(minutes)))
    return raw


def consume_token(db: DbSession, raw: str, purpose: str) -> OneTimeToken:
    row = db.get(OneTimeToken, hash_token(raw or ""))
    if row is None or row.purpose != purpose or row.used_at is not None:
        raise TokenError("Invalid or used token")
    if is_expired(row.expires_at):
        raise TokenError("Token expired")
    row.used_at = utcnow()
    return row
