"""Helpers for pulling numeric prices out of decoded JSON payloads."""

import math
from typing import Any

from price_collector.core.exceptions import FetchError

_MISSING = object()


def extract_price(
    payload: Any,
    path: tuple[str, ...],
    error_cls: type[FetchError] = FetchError,
) -> float:
    """Walk ``path`` through nested mappings and return a positive float.

    A missing field is an error rather than a default value: substituting
    zero would store a plausible-looking but wrong price.

    Args:
        payload: Decoded JSON document.
        path: Keys to follow, e.g. ``("rates", "BRL")``.
        error_cls: ``FetchError`` subclass to raise on failure.

    Returns:
        The price as a finite, strictly positive float.

    Raises:
        FetchError: If a key is missing, or the value is not a finite
            positive number.

    """
    current: Any = payload
    for key in path:
        if not isinstance(current, dict):
            current = _MISSING
            break
        current = current.get(key, _MISSING)  # pyright: ignore[reportUnknownMemberType]
        if current is _MISSING:
            break

    field = ".".join(path)
    if current is _MISSING or current is None:
        msg = f"Response is missing field '{field}'"
        raise error_cls(msg)
    if isinstance(current, bool) or not isinstance(current, int | float):
        msg = f"Field '{field}' is not numeric: {current!r}"
        raise error_cls(msg)

    value = float(current)
    if not math.isfinite(value) or value <= 0:
        msg = f"Field '{field}' must be positive, got {value!r}"
        raise error_cls(msg)
    return value
