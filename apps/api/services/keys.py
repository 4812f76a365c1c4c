"""Entity key validation."""

from __future__ import annotations

import uuid
from typing import Any, Iterable, List

from services.errors import InvalidArgumentError


def require_key(value: Any, name: str = "id") -> str:
    """Return the canonical form of a UUID key or raise InvalidArgumentError."""
    text = str(value or "").strip()
    try:
        return str(uuid.UUID(text))
    except ValueError as exc:
        raise InvalidArgumentError(f"{name} is not a valid key.") from exc


def require_keys(values: Iterable[Any], name: str = "ids") -> List[str]:
    """Validate a list of keys, dropping duplicates but keeping first-seen order."""
    return list(dict.fromkeys(require_key(value, name) for value in values or []))
