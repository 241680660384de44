"""Domain models for index schemas, records, and compiled queries."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FieldType(str, Enum):
    """Logical field types accepted in an index schema."""

    TEXT = "TEXT"
    TAG = "TAG"
    NUMERIC = "NUMERIC"
    VECTOR = "VECTOR"


class Combinator(str, Enum):
    """How attribute predicates are joined."""

    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class FieldSchema:
    """A declared (or backend-reported) index attribute."""

    name: str
    type: FieldType
    sortable: bool = False


@dataclass(frozen=True)
class Record:
    """A flat hash record ready to be written under ``key``."""

    key: str
    uid: str
    values: dict[str, Any]


@dataclass(frozen=True)
class Predicate:
    """One attribute filter.

    ``values`` is ``(low, high)`` for NUMERIC, the accepted tags for TAG and a
    single token string for TEXT.
    """

    field: str
    type: FieldType
    values: tuple[Any, ...]


@dataclass(frozen=True)
class VectorClause:
    """KNN request over a vector attribute."""

    field_name: str
    vector: list[float]
    k: int


@dataclass(frozen=True)
class CompiledQuery:
    """A query ready to be executed against a RediSearch index."""

    query_string: str
    limit: int
    combinator: Combinator = Combinator.AND
    text_part: str | None = None
    predicates: tuple[Predicate, ...] = ()
    vector_clause: VectorClause | None = None
    params: dict[str, bytes] = field(default_factory=dict)
    sort_by: str | None = None
    return_fields: tuple[str, ...] = ()
    want_parents: bool = False


@dataclass(slots=True)
class SearchHit:
    """A normalized search result."""

    id: str
    fields: dict[str, Any]
    dist: float | str | None = None  # raw string when the backend score is not numeric

    def to_dict(self) -> dict[str, Any]:
        data = {"id": self.id, **self.fields}
        if self.dist is not None:
            data["dist"] = self.dist
        return data


@dataclass(slots=True)
class ParentView:
    """A parent document reassembled from its chunk records."""

    uid: str
    chunks: list[dict[str, Any]] = field(default_factory=list)
