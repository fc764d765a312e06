from __future__ import annotations

import os
from html import escape

import httpx
from loguru import logger

RESEND_API_URL = "https://api.resend.com/emails"


def _settings() -> tuple[str, str]:
    api_key = os.getenv("RESEND_API_KEY", "").strip()
    if not api_key:
        raise RuntimeError("RESEND_API_KEY not set")
    sender = os.getenv("RESEND_FROM", "ThreadDate <no-reply@threaddate.com>").strip()
    return api_key, sender


def app_base_url() -> str:
    return os.getenv("APP_BASE_URL", "http://localhost:3000").strip().rstrip("/")


def verify_link(token: str) -> str:
    return f"{app_base_url()}/auth/verify?token={token}"


def reset_link(token: str) -> str:
    return f"{app_base_url()}/reset-password?token={token}"


def _layout(heading: str, intro: str, link: str, button: str, footer: str) -> str:
    href = escape(link, quote=True)
    return (
        "<div style=\"font-family:Georgia,serif;max-width:520px;margin:0 auto;color:#2b2118\">"
        f"<h2 style=\"margin-bottom:8px\">{escape(heading)}</h2>"
        f"<p>{escape(intro)}</p>"
        f"<p><a href=\"{href}\" style=\"display:inline-block;padding:10px 18px;background:#7a4b2a;"
        f"color:#fff;text-decoration:none;border-radius:4px\">{escape(button)}</a></p>"
        f"<p style=\"font-size:12px;color:#7d6f64\">{escape(footer)}<br>{href}</p>"
        "</div>"
    )


def verification_email(token: str) -> tuple[str, str]:
    """(subject, html) for the address confirmation sent after registration."""
    return "Verify your email", _layout(
        "Welcome to ThreadDate",
        "Confirm your email address to start submitting tags and voting.",
        verify_link(token),
        "Verify email",
        "The link is valid for 24 hours.",
    )


def reset_email(token: str) -> tuple[str, str]:
    return "Reset your password", _layout(
        "Reset your password",
        "Someone asked to reset the password on your ThreadDate account. If it was not you, ignore this email.",
        reset_link(token),
        "Choose a new password",
        "The link is valid for 45 minutes.",
    )


async def send_email(to: str, subject: str, html: str):
    api_key, sender = _settings()

    async with httpx.AsyncClient(timeout=20) as client:
        r = await client.post(
            RESEND_API_URL,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            json={"from": sender, "to": [to], "subject": subject, "html": html},
        )
        r.raise_for_status()

    logger.bind(subject=subject).info("email_sent")
    return r.json()
