from __future__ import annotations

from threaddate.models.brand import Brand
from threaddate.services.tokens import utcnow

# action -> (verified, verification_status)
BRAND_DECISIONS = {
    "verify": (True, "verified"),
    "reject": (False, "rejected"),
}

# every status may move to either decision; re-verifying a rejected brand is allowed
ALLOWED_TRANSITIONS = {
    "pending": ["verified", "rejected"],
    "verified": ["verified", "rejected"],
    "rejected": ["verified", "rejected"],
}


def ensure_transition(current: str, target: str) -> None:
    if current not in ALLOWED_TRANSITIONS:
        raise ValueError(f"Unknown state: {current}")
    if target not in ALLOWED_TRANSITIONS:
        raise ValueError(f"Unknown target state: {target}")

    allowed = ALLOWED_TRANSITIONS.get(current, [])
    if target not in allowed:
        raise ValueError(f"Invalid transition: {current} -> {target}")


def apply_brand_decision(brand: Brand, action: str, admin_id) -> None:
    if action not in BRAND_DECISIONS:
        raise ValueError(f"Unknown action: {action}")

    verified, status = BRAND_DECISIONS[action]
    ensure_transition(brand.verification_status or "pending", status)

    brand.verified = verified
    brand.verification_status = status
    if verified:
        brand.verified_at = utcnow()
        brand.verified_by = admin_id
    else:
        brand.verified_at = None
        brand.verified_by = None
