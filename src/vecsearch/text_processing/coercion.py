"""Type coercion of raw row values into Redis hash scalars."""

import json
import math
import re
from collections.abc import Iterable
from typing import Any

from vecsearch.core.constants import LIST_SEPARATOR
from vecsearch.core.logging import get_logger
from vecsearch.core.models import FieldType

logger = get_logger(__name__)

# Regex patterns compiled once for efficiency
_NON_NUMERIC_PATTERN = re.compile(r"[^0-9.+\-]")  # Keep digits, signs and the decimal point
_UNSAFE_TEXT_PATTERN = re.compile(r"[^\w\s-]")


def coerce_numeric(value: Any, *, strict: bool = False) -> float:
    """Parse a possibly currency-formatted value into a float.

    Every character that is not a digit, sign or decimal point is removed
    before parsing, so ``"$1,299.00"`` becomes ``1299.0``.

    Args:
        value: Raw value from a CSV cell or JSON document.
        strict: Raise instead of falling back to ``0.0``.

    Returns:
        A finite float. Unparseable input yields ``0.0`` unless ``strict``.

    Raises:
        ValueError: If ``strict`` and the value is not numeric.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = _NON_NUMERIC_PATTERN.sub("", str(value))
        try:
            number = float(cleaned)
        except ValueError:
            if strict:
                raise ValueError(f"Not a numeric value: {value!r}") from None
            logger.debug("Coercing non-numeric value %r to 0", value)
            return 0.0

    if not math.isfinite(number):
        if strict:
            raise ValueError(f"Not a finite numeric value: {value!r}")
        return 0.0
    return number


def _flatten(values: Iterable[Any]) -> list[Any]:
    flat: list[Any] = []
    for item in values:
        if isinstance(item, (list, tuple)):
            flat.extend(_flatten(item))
        else:
            flat.append(item)
    return flat


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


def coerce_text(value: Any, *, sanitize: bool = False) -> str:
    """Normalize a TEXT/TAG value.

    Arrays are flattened and joined with ``,``; booleans become
    ``"true"``/``"false"``; objects are stored as JSON and decoded again when
    read back.

    Args:
        value: Raw value.
        sanitize: Strip everything but word characters, whitespace and hyphens.

    Returns:
        The string to store.
    """
    if isinstance(value, (list, tuple)):
        text = LIST_SEPARATOR.join(_stringify(item) for item in _flatten(value))
    else:
        text = _stringify(value)

    if sanitize:
        text = _UNSAFE_TEXT_PATTERN.sub("", text)
    return text


def coerce_value(
    field_type: FieldType,
    value: Any,
    *,
    sanitize_text: bool = False,
    strict_numeric: bool = False,
) -> float | str:
    """Coerce ``value`` according to the declared ``field_type``."""
    if field_type == FieldType.NUMERIC:
        return coerce_numeric(value, strict=strict_numeric)
    return coerce_text(value, sanitize=sanitize_text and field_type == FieldType.TEXT)
