"""Canonical field-name normalization shared by CSV and JSON ingestion."""

import re

_INVALID_CHARS_PATTERN = re.compile(r"[^A-Za-z0-9_]")


def normalize_field_name(name: str) -> str:
    """Map a source key onto the index attribute naming rule.

    Dotted/labelled keys (``Product.title``) become ``Product__title``; any
    other character outside ``[A-Za-z0-9_]`` becomes ``_``. Case is preserved.

    Args:
        name: Raw CSV header or JSON key.

    Returns:
        The normalized attribute name.
    """
    return _INVALID_CHARS_PATTERN.sub("_", name.strip().replace(".", "__"))
