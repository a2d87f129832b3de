# app/core/ids.py
import uuid
from typing import Any

from app.core.exceptions import ValidationError


def canonical_id(ref: Any) -> str:
    """
    Normalize a product/cart reference to its canonical string form.

    Accepts a UUID, a UUID string (any case, with or without hyphens) or a
    loaded record exposing `.id`. Line items may hold either a bare id or a
    full Product, so every comparison goes through this function instead of
    comparing objects.

    Raises:
        ValidationError: if the reference is not a valid id.
    """
    if ref is None:
        raise ValidationError("Missing id")

    raw = getattr(ref, "id", ref)
    if isinstance(raw, uuid.UUID):
        return str(raw)

    try:
        return str(uuid.UUID(str(raw).strip()))
    except ValueError:
        raise ValidationError(f"Malformed id '{raw}'", field="id")


def parse_id(ref: Any) -> uuid.UUID:
    """Same as canonical_id but returns a uuid.UUID for DB lookups."""
    return uuid.UUID(canonical_id(ref))
