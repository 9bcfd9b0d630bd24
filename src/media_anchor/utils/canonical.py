"""Deterministic serialization of request metadata for signing.

The output matches what a JavaScript client produces with a key-sorted
``JSON.stringify``, so both sides sign byte-identical strings.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

MAX_SAFE_INTEGER = 2**53


def _format_shortest(value: float) -> str:
    # ECMAScript Number::toString over the shortest round-trip digits repr yields.
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    point = len(digits) + exponent
    digits = digits.rstrip("0")
    count = len(digits)

    if count <= point <= 21:
        return sign + digits + "0" * (point - count)
    if 0 < point <= 21:
        return sign + digits[:point] + "." + digits[point:]
    if -6 < point <= 0:
        return sign + "0." + "0" * -point + digits
    mantissa = digits[0] + ("." + digits[1:] if count > 1 else "")
    shift = point - 1
    return f"{sign}{mantissa}e{'+' if shift > 0 else '-'}{abs(shift)}"


def render_number(value: int | float) -> str:
    """Render a number the way ``JSON.stringify`` does.

    Integers beyond 2**53 are rendered through a float, as a JavaScript
    client would have parsed them.
    """
    if isinstance(value, int) and abs(value) <= MAX_SAFE_INTEGER:
        return str(value)
    try:
        value = float(value)
    except OverflowError:
        return "null"
    if not math.isfinite(value):
        return "null"
    return _format_shortest(value)


def canonicalize(value: Any) -> str:
    """Return the canonical string form of a JSON-like value.

    Object keys are sorted by code point; array order is preserved.
    """
    if value is None or isinstance(value, bool):
        return json.dumps(value)
    if isinstance(value, int | float):
        return render_number(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, Mapping):
        pairs = (
            f"{json.dumps(str(key), ensure_ascii=False)}:{canonicalize(value[key])}"
            for key in sorted(value, key=str)
        )
        return "{" + ",".join(pairs) + "}"
    if isinstance(value, list | tuple):
        return "[" + ",".join(canonicalize(item) for item in value) + "]"
    raise TypeError(f"Cannot canonicalize value of type {type(value).__name__}")


def build_sign_target(
    video_hash: str,
    media_type: str,
    metadata: Mapping[str, Any] | None,
    timestamp_ms: int | float,
    nonce: str,
) -> str:
    """Join the signed request fields into the dot-separated signing target."""
    return ".".join(
        (
            video_hash,
            media_type,
            canonicalize(metadata or {}),
            render_number(timestamp_ms),
            nonce,
        )
    )
