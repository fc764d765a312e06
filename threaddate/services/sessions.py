from __future__ import annotations

import os
from datetime import timedelta

from fastapi import Request, Response
from sqlalchemy.orm import Session as DbSession

from threaddate.models.session import AuthSession

from .tokens import hash_token, is_expired, new_token, utcnow

COOKIE_NAME = "td_session"
SESSION_DAYS = 7


def start_session(db: DbSession, user_id, req: Request) -> str:
    """Add a session row for `user_id` and return the raw cookie value. Caller commits."""
    raw = new_token()
    db.add(
        AuthSession(
            user_id=user_id,
            token_hash=hash_token(raw),
            expires_at=utcnow() + timedelta(days=SESSION_DAYS),
            user_agent=(req.headers.get("user-agent") or "")[:255] or None,
            ip_address=req.client.host if req.client else None,
        )
    )
    return raw


def find_session(db: DbSession, raw: str | None) -> AuthSession | None:
    """The live (not revoked, not expired) session behind a cookie value."""
    if not raw:
        return None
    sess = (
        db.query(AuthSession)
        .filter(AuthSession.token_hash == hash_token(raw), AuthSession.revoked_at.is_(None))
        .first()
    )
    if sess is None or is_expired(sess.expires_at):
        return None
    return sess


def revoke_sessions(db: DbSession, user_id, keep: AuthSession | None = None) -> None:
    q = db.query(AuthSession).filter(AuthSession.user_id == user_id, AuthSession.revoked_at.is_(None))
    if keep is not None:
        q = q.filter(AuthSession.id != keep.id)
    q.update({"revoked_at": utcnow()}, synchronize_session=False)


def set_session_cookie(resp: Response, token: str) -> None:
    is_prod = os.getenv("ENV") == "production"
    resp.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=SESSION_DAYS * 24 * 60 * 60,
        path="/",
        domain=(os.getenv("COOKIE_DOMAIN") or None) if is_prod else None,
        secure=is_prod,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(resp: Response) -> None:
    resp.delete_cookie(COOKIE_NAME, path="/")
