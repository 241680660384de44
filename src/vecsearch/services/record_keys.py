"""Redis key helpers for indexes, records and parent documents."""

from __future__ import annotations

import uuid

from vecsearch.core.constants import INDEX_NAME_PREFIX, PARENT_KEY_SEGMENT, RECORD_KEY_PREFIX


def index_key(index_name: str) -> str:
    """RediSearch index name for a logical index (``idx:<name>``)."""
    return f"{INDEX_NAME_PREFIX}{index_name}"


def index_name_from_key(key: str) -> str:
    """Inverse of :func:`index_key`."""
    if key.startswith(INDEX_NAME_PREFIX):
        return key[len(INDEX_NAME_PREFIX) :]
    return key


def key_prefix(index_name: str) -> str:
    """Hash key prefix indexed by ``idx:<name>`` (``vs:<name>:``)."""
    return f"{RECORD_KEY_PREFIX}:{index_name}:"


def record_key(index_name: str, uid: str) -> str:
    return f"{key_prefix(index_name)}{uid}"


def parent_key(index_name: str, uid: str) -> str:
    return f"{key_prefix(index_name)}{PARENT_KEY_SEGMENT}:{uid}"


def sweep_pattern(index_name: str) -> str:
    """SCAN MATCH pattern covering every record and parent of an index."""
    return f"{key_prefix(index_name)}*"


def generate_uid() -> str:
    return str(uuid.uuid4())
