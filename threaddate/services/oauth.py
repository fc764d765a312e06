from __future__ import annotations

import os
from dataclasses import dataclass

import httpx


class OAuthError(RuntimeError):
    pass


@dataclass
class OAuthIdentity:
    email: str
    name: str | None = None
    avatar_url: str | None = None


def _required(name: str) -> str:
    v = os.getenv(name, "").strip()
    if not v:
        raise OAuthError(f"{name} is not set")
    return v


def exchange_code_for_identity(code: str) -> OAuthIdentity:
    """
    Authorization-code exchange: code -> access token -> userinfo.
    Any provider or transport failure surfaces as OAuthError.
    """
    token_url = _required("OAUTH_TOKEN_URL")
    userinfo_url = _required("OAUTH_USERINFO_URL")

    try:
        with httpx.Client(timeout=15.0) as client:
            r = client.post(
                token_url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "client_id": _required("OAUTH_CLIENT_ID"),
                    "client_secret": _required("OAUTH_CLIENT_SECRET"),
                    "redirect_uri": _required("OAUTH_REDIRECT_URI"),
                },
                headers={"Accept": "application/json"},
            )
            if r.status_code >= 300:
                raise OAuthError(f"token endpoint returned {r.status_code}")

            access_token = (r.json() or {}).get("access_token")
            if not access_token:
                raise OAuthError("token endpoint returned no access_token")

            u = client.get(userinfo_url, headers={"Authorization": f"Bearer {access_token}"})
            if u.status_code >= 300:
                raise OAuthError(f"userinfo endpoint returned {u.status_code}")
            info = u.json() or {}
    except (httpx.HTTPError, ValueError) as e:
        raise OAuthError(str(e)) from e

    email = (info.get("email") or "").strip().lower()
    if not email:
        raise OAuthError("provider did not return an email")

    return OAuthIdentity(
        email=email,
        name=(info.get("name") or info.get("preferred_username") or None),
        avatar_url=(info.get("picture") or info.get("avatar_url") or None),
    )
