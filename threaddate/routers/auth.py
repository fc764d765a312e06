from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import RedirectResponse
from loguru import logger
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session as DbSession

from threaddate.database import get_db
from threaddate.models.one_time_token import PURPOSE_PASSWORD_RESET, PURPOSE_VERIFY_EMAIL
from threaddate.models.profile import Profile
from threaddate.models.user import User
from threaddate.services.authz import require_user
from threaddate.services.mailer import app_base_url, reset_email, send_email, verification_email
from threaddate.services.oauth import OAuthError, exchange_code_for_identity
from threaddate.services.passwords import hash_password, unusable_password_hash, verify_and_upgrade, verify_password
from threaddate.services.sessions import (
    COOKIE_NAME,
    clear_session_cookie,
    find_session,
    revoke_sessions,
    set_session_cookie,
    start_session,
)
from threaddate.services.tokens import TokenError, consume_token, issue_token, utcnow
from threaddate.utils.security import get_safe_redirect_path

router = APIRouter(prefix="/auth", tags=["auth"])

AUTH_ERROR_PATH = "/auth/auth-code-error"
VERIFY_TOKEN_MINUTES = 24 * 60
RESET_TOKEN_MINUTES = 45


class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=200)
    username: str | None = Field(default=None, min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_]+$")


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class ResetRequestIn(BaseModel):
    email: EmailStr


class ResetConfirmIn(BaseModel):
    token: str
    new_password: str = Field(min_length=8)


class ChangePasswordIn(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)


async def _send_or_log(to: str, message: tuple[str, str]) -> None:
    # the row is already committed; a mail outage must not turn into a 500
    subject, html = message
    try:
        await send_email(to=to, subject=subject, html=html)
    except (RuntimeError, httpx.HTTPError):
        logger.bind(subject=subject).exception("email_send_failed")


def _consume(db: DbSession, raw: str, purpose: str) -> User:
    try:
        row = consume_token(db, raw, purpose)
    except TokenError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user = db.get(User, row.user_id)
    if not user:
        raise HTTPException(status_code=400, detail="User not found")
    return user


@router.post("/register")
async def register(payload: RegisterIn, db: DbSession = Depends(get_db)):
    email = payload.email.lower().strip()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    username = (payload.username or "").strip() or None
    if username and db.query(Profile).filter(Profile.username == username).first():
        raise HTTPException(status_code=400, detail="Username already taken")

    user = User(email=email, password_hash=hash_password(payload.password), is_email_verified=False)
    db.add(user)
    db.flush()
    db.add(Profile(id=user.id, username=username))
    token = issue_token(db, user.id, PURPOSE_VERIFY_EMAIL, VERIFY_TOKEN_MINUTES)
    db.commit()
    logger.bind(user_id=str(user.id)).info("user_registered")

    await _send_or_log(user.email, verification_email(token))
    return {"ok": True, "message": "Check your email to verify your account."}


@router.get("/verify-email")
def verify_email(token: str, db: DbSession = Depends(get_db)):
    user = _consume(db, token, PURPOSE_VERIFY_EMAIL)
    user.is_email_verified = True
    db.commit()
    return {"ok": True}


@router.post("/login")
def login(payload: LoginIn, req: Request, resp: Response, db: DbSession = Depends(get_db)):
    email = payload.email.lower().strip()
    user = db.query(User).filter(User.email == email).first()

    ok, upgraded = verify_and_upgrade(payload.password, user.password_hash) if user else (False, None)
    if not ok or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_email_verified:
        raise HTTPException(status_code=403, detail="Email not verified")

    if upgraded:
        user.password_hash = upgraded
    raw = start_session(db, user.id, req)
    db.commit()

    set_session_cookie(resp, raw)
    logger.bind(user_id=str(user.id)).info("user_logged_in")
    return {"ok": True}


@router.post("/logout")
def logout(req: Request, resp: Response, db: DbSession = Depends(get_db)):
    sess = find_session(db, req.cookies.get(COOKIE_NAME))
    if sess:
        sess.revoked_at = utcnow()
        db.commit()
    clear_session_cookie(resp)
    return {"ok": True}


@router.get("/me")
def me(req: Request, db: DbSession = Depends(get_db)):
    user = require_user(req, db)
    prof = db.get(Profile, user.id)
    return {
        "id": str(user.id),
        "email": user.email,
        "is_email_verified": user.is_email_verified,
        "username": prof.username if prof else None,
        "role": prof.role if prof else None,
    }


@router.post("/password-reset/request")
async def password_reset_request(payload: ResetRequestIn, db: DbSession = Depends(get_db)):
    email = payload.email.lower().strip()
    user = db.query(User).filter(User.email == email).first()

    # same answer whether or not the account exists
    if not user:
        return {"ok": True}

    token = issue_token(db, user.id, PURPOSE_PASSWORD_RESET, RESET_TOKEN_MINUTES)
    db.commit()

    await _send_or_log(user.email, reset_email(token))
    return {"ok": True}


@router.post("/password-reset/confirm")
def password_reset_confirm(payload: ResetConfirmIn, db: DbSession = Depends(get_db)):
    user = _consume(db, payload.token, PURPOSE_PASSWORD_RESET)
    user.password_hash = hash_password(payload.new_password)
    revoke_sessions(db, user.id)
    db.commit()
    logger.bind(user_id=str(user.id)).info("password_reset")
    return {"ok": True}


@router.post("/change-password")
def change_password(payload: ChangePasswordIn, req: Request, db: DbSession = Depends(get_db)):
    user = require_user(req, db)

    if not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    if verify_password(payload.new_password, user.password_hash):
        raise HTTPException(status_code=400, detail="New password must be different")

    user.password_hash = hash_password(payload.new_password)
    # other devices are signed out, this one stays
    revoke_sessions(db, user.id, keep=find_session(db, req.cookies.get(COOKIE_NAME)))
    db.commit()
    return {"ok": True}


def _user_for_identity(db: DbSession, email: str, avatar_url: str | None) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email, password_hash=unusable_password_hash(), is_email_verified=True)
        db.add(user)
        db.flush()
        logger.bind(user_id=str(user.id)).info("user_registered_oauth")
    elif not user.is_email_verified:
        # whoever registered this address never proved they own it; the
        # provider does, so their password and sessions are dropped
        user.password_hash = unusable_password_hash()
        revoke_sessions(db, user.id)
        user.is_email_verified = True
        logger.bind(user_id=str(user.id)).info("unverified_account_claimed_oauth")

    if db.get(Profile, user.id) is None:
        db.add(Profile(id=user.id, avatar_url=avatar_url))
    return user


@router.get("/callback")
def oauth_callback(
    req: Request,
    code: str | None = None,
    next_path: str | None = Query(default=None, alias="next"),
    db: DbSession = Depends(get_db),
):
    base = app_base_url()
    error_redirect = RedirectResponse(f"{base}{AUTH_ERROR_PATH}", status_code=302)

    if not code:
        return error_redirect

    try:
        identity = exchange_code_for_identity(code)
    except OAuthError:
        logger.exception("oauth_exchange_failed")
        return error_redirect

    user = _user_for_identity(db, identity.email, identity.avatar_url)
    if not user.is_active:
        db.rollback()
        return error_redirect

    raw = start_session(db, user.id, req)
    db.commit()

    resp = RedirectResponse(f"{base}{get_safe_redirect_path(next_path)}", status_code=302)
    set_session_cookie(resp, raw)
    logger.bind(user_id=str(user.id)).info("user_logged_in_oauth")
    return resp
