from __future__ import annotations

from typing import Literal

from pydantic import ValidationError

from threaddate.utils.constants import CLOTHING_TYPES, ERAS, IDENTIFIER_CATEGORIES, STATUSES, STITCH_TYPES

Era = Literal[ERAS]
IdentifierCategory = Literal[IDENTIFIER_CATEGORIES]
StitchType = Literal[STITCH_TYPES]
ClothingType = Literal[CLOTHING_TYPES]
Status = Literal[STATUSES]


def first_error_message(errors: list[dict]) -> str:
    """Turn pydantic's error list into one line a form can show."""
    if not errors:
        return "Invalid request"
    err = errors[0]
    loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
    msg = err.get("msg", "Invalid value")
    return f"{'.'.join(loc)}: {msg}" if loc else msg


def validation_message(exc: ValidationError) -> str:
    return first_error_message(exc.errors())
