from __future__ import annotations

from typing import Any, Iterable, Optional

from .exceptions import InvalidParameter


def coerce_int(value: Any) -> Optional[int]:
    """Return ``value`` as an int when it is integral, otherwise ``None``.

    Accepts ints, integral floats and integer strings (form posts); booleans
    are rejected even though they subclass int.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def int_param(request, name: str, default: int, minimum: int = 1, maximum: Optional[int] = None) -> int:
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return default
    value = coerce_int(raw)
    if value is None or value < minimum or (maximum is not None and value > maximum):
        upper = f" and {maximum}" if maximum is not None else ""
        bound = f"between {minimum}{upper}" if upper else f"at least {minimum}"
        raise InvalidParameter(f"{name} must be an integer {bound}")
    return value


def choice_param(request, name: str, default: str, choices: Iterable[str]) -> str:
    value = request.query_params.get(name) or default
    allowed = list(choices)
    if value not in allowed:
        raise InvalidParameter(f"{name} must be one of: {', '.join(allowed)}")
    return value
