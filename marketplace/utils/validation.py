"""Request input parsing helpers"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from marketplace.utils.exceptions import InvalidInput


def require_fields(body: Optional[Dict[str, Any]], fields: Iterable[str]) -> Dict[str, Any]:
    """
    Ensure every field in ``fields`` is present and truthy in ``body``.

    Empty strings and ``None`` count as missing. Raises InvalidInput with a
    per-field error map naming each missing field.
    """
    if not isinstance(body, dict):
        raise InvalidInput("Request body must be a JSON object")

    errors = {name: "This field is required" for name in fields if _is_missing(body.get(name))}
    if errors:
        raise InvalidInput(f"Missing required fields: {', '.join(errors)}", errors=errors)
    return body


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def parse_numeric_id(raw: Any, name: str = "id") -> int:
    """Parse a numeric identifier from a path segment or body value"""
    if isinstance(raw, bool):
        raise InvalidInput(f"Invalid {name}", errors={name: "Must be an integer"})
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)

    text = str(raw).strip() if raw is not None else ""
    try:
        return int(text)
    except ValueError:
        raise InvalidInput(f"Invalid {name}: {raw!r}", errors={name: "Must be an integer"})


def parse_id_list(raw: Any, name: str = "ids") -> list:
    """Parse a comma separated list (or JSON list) of numeric ids"""
    if raw is None or raw == "":
        return []
    items = raw if isinstance(raw, list) else str(raw).split(",")
    return [parse_numeric_id(item, name) for item in items if str(item).strip()]


def to_number(raw: Any) -> Optional[float]:
    """Lenient numeric conversion: returns None for anything non-numeric or non-finite"""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        value = float(raw if isinstance(raw, float) else str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    if isinstance(raw, float):
        return raw
    return int(value) if value.is_integer() else value


def parse_datetime(raw: Any, name: str = "date") -> datetime:
    """Parse an ISO-8601 date or datetime, assuming UTC when naive"""
    if isinstance(raw, datetime):
        value = raw
    else:
        text = str(raw or "").strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidInput(f"Invalid {name}: {raw!r}", errors={name: "Must be an ISO-8601 date"})

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def isoformat(value: datetime) -> str:
    """Serialize an aware datetime as ISO-8601 with a Z suffix"""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def pick_fields(body: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    """Keep only the allowed keys whose values were actually supplied"""
    return {name: body[name] for name in allowed if name in body and body[name] is not None}
