from __future__ import annotations

from urllib.parse import unquote


def get_safe_redirect_path(path: str | None, fallback: str = "/") -> str:
    """
    Return `path` when it is an internal path, otherwise `fallback`.

    Rejects protocol-relative paths (//host), anything carrying a scheme,
    backslashes, javascript:/data: pseudo paths and percent-encoded versions
    of the same tricks.
    """
    if not path:
        return fallback

    if not path.startswith("/") or path.startswith("//"):
        return fallback

    lowered = path.lower()
    if (
        "://" in path
        or "\\" in path
        or lowered.startswith("/javascript:")
        or lowered.startswith("/data:")
    ):
        return fallback

    decoded = unquote(path)
    if "://" in decoded or decoded.startswith("//") or "\\" in decoded:
        return fallback

    return path
