"""Central constants shared across the indexing/search stack."""

from typing import Final

# Key namespaces.
INDEX_NAME_PREFIX: Final[str] = "idx:"
RECORD_KEY_PREFIX: Final[str] = "vs"
PARENT_KEY_SEGMENT: Final[str] = "parent"

# Vector index parameters.
VECTOR_FIELD_SUFFIX: Final[str] = "_vec"
VECTOR_ALGORITHM: Final[str] = "HNSW"
VECTOR_ELEMENT_TYPE: Final[str] = "FLOAT32"

# Record attributes.
K_UID: Final[str] = "__uid"
K_DIST: Final[str] = "dist"
K_CONTENT_PARENT_UIDS: Final[str] = "content_parent_uids"

# Parent document attributes.
K_PARENT_UID: Final[str] = "uid"
K_ITEMS: Final[str] = "items"

# Query parameter name the embedding is bound to.
VECTOR_PARAM: Final[str] = "vec"

LIST_SEPARATOR: Final[str] = ","
