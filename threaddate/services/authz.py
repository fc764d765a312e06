from __future__ import annotations

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session as DbSession

from threaddate.log_config import user_id_ctx_var
from threaddate.models.profile import Profile
from threaddate.models.user import User
from threaddate.services.sessions import COOKIE_NAME, find_session
from threaddate.utils.constants import ROLE_ADMIN

ADMIN_REQUIRED = "Admin access required"


def get_optional_user(req: Request, db: DbSession) -> User | None:
    """Resolve the session cookie to an active user, or None."""
    sess = find_session(db, req.cookies.get(COOKIE_NAME))
    if sess is None:
        return None

    user = db.get(User, sess.user_id)
    if not user or not user.is_active:
        return None

    user_id_ctx_var.set(str(user.id))
    return user


def require_user(req: Request, db: DbSession, detail: str = "Not authenticated") -> User:
    user = get_optional_user(req, db)
    if not user:
        raise HTTPException(status_code=401, detail=detail)
    return user


def is_admin(db: DbSession, user: User | None) -> bool:
    # always a fresh read, a demoted admin loses access on the next request
    if user is None:
        return False
    role = db.query(Profile.role).filter(Profile.id == user.id).scalar()
    return role == ROLE_ADMIN


def require_admin(req: Request, db: DbSession) -> User:
    user = get_optional_user(req, db)
    if not is_admin(db, user):
        raise HTTPException(status_code=403, detail=ADMIN_REQUIRED)
    return user
