"""Tests for query compilation."""

import pytest

from vecsearch.adapters.redis_mapper import decode_vector
from vecsearch.core.exceptions import QueryCompileFailure
from vecsearch.core.models import Combinator, FieldSchema, FieldType, Predicate
from vecsearch.services.embedding_service import EmbeddingGateway
from vecsearch.services.query_compiler import (
    QueryCompiler,
    escape_tag,
    escape_text,
    join_clauses,
    render_predicate,
)

FIELDS = {
    "title": FieldSchema("title", FieldType.TEXT),
    "price": FieldSchema("price", FieldType.NUMERIC),
    "color": FieldSchema("color", FieldType.TAG),
    "description": FieldSchema("description", FieldType.TEXT),
    "description_vec": FieldSchema("description_vec", FieldType.VECTOR),
    "__uid": FieldSchema("__uid", FieldType.TAG),
}

SCALAR_FIELDS = {name: f for name, f in FIELDS.items() if f.type != FieldType.VECTOR}


@pytest.fixture
def compiler(embedding_gateway: EmbeddingGateway) -> QueryCompiler:
    return QueryCompiler(embedding_gateway)


def test_escaping():
    assert escape_text("red-shoes") == "red\\-shoes"
    assert escape_tag("light blue") == "light\\ blue"
    assert escape_text("light blue") == "light blue"


def test_render_predicates():
    assert render_predicate(Predicate("price", FieldType.NUMERIC, (10.0, 20.0))) == (
        "@price:[10.0 20.0]"
    )
    assert render_predicate(Predicate("color", FieldType.TAG, ("red", "blue"))) == (
        "@color:{red | blue}"
    )
    assert render_predicate(Predicate("title", FieldType.TEXT, ("shoes",))) == "@title:(shoes)"


def test_join_clauses():
    assert join_clauses(["@a:(x)", "@b:(y)"], Combinator.AND) == "@a:(x) @b:(y)"
    assert join_clauses(["@a:(x)", "@b:(y)"], Combinator.OR) == "(@a:(x) | @b:(y))"
    assert join_clauses([], Combinator.OR) == ""


async def test_nothing_to_search_returns_none(compiler: QueryCompiler):
    assert await compiler.compile(FIELDS, None, {}) is None
    assert await compiler.compile(FIELDS, "   ", {"unknown": "x"}) is None


async def test_numeric_scalar_is_exact_range(compiler: QueryCompiler):
    compiled = await compiler.compile(SCALAR_FIELDS, None, {"price": "19.99"})

    assert compiled is not None
    assert compiled.query_string == "@price:[19.99 19.99]"
    assert compiled.vector_clause is None
    assert compiled.params == {}


async def test_numeric_pair_is_range(compiler: QueryCompiler):
    compiled = await compiler.compile(SCALAR_FIELDS, None, {"price": [10, "$20"]})
    assert compiled is not None
    assert compiled.query_string == "@price:[10.0 20.0]"


async def test_numeric_bad_range_fails(compiler: QueryCompiler):
    with pytest.raises(QueryCompileFailure):
        await compiler.compile(SCALAR_FIELDS, None, {"price": [1, 2, 3]})


async def test_object_filter_fails(compiler: QueryCompiler):
    with pytest.raises(QueryCompileFailure):
        await compiler.compile(SCALAR_FIELDS, None, {"color": {"$in": ["red"]}})


async def test_tag_string_is_split_on_commas(compiler: QueryCompiler):
    compiled = await compiler.compile(SCALAR_FIELDS, None, {"color": "red, blue"})
    assert compiled is not None
    assert compiled.query_string == "@color:{red | blue}"


async def test_or_combinator(compiler: QueryCompiler):
    compiled = await compiler.compile(
        SCALAR_FIELDS,
        None,
        {"color": "red", "title": "shoes"},
        combinator=Combinator.OR,
    )
    assert compiled is not None
    assert compiled.query_string == "(@color:{red} | @title:(shoes))"


async def test_invalid_limit_and_combinator(compiler: QueryCompiler):
    with pytest.raises(QueryCompileFailure):
        await compiler.compile(SCALAR_FIELDS, "shoes", limit=0)
    with pytest.raises(QueryCompileFailure):
        await compiler.compile(SCALAR_FIELDS, "shoes", combinator="XOR")  # type: ignore[arg-type]


async def test_free_text_without_vector_field(compiler: QueryCompiler):
    compiled = await compiler.compile(SCALAR_FIELDS, "shoes", {"color": "red"})

    assert compiled is not None
    assert compiled.query_string == "shoes @color:{red}"
    assert compiled.sort_by is None
    assert "dist" not in compiled.return_fields


async def test_free_text_is_escaped_without_vector_field(compiler: QueryCompiler):
    compiled = await compiler.compile(SCALAR_FIELDS, "user@example.com", {})

    assert compiled is not None
    assert compiled.query_string == "user\\@example\\.com"
    assert compiled.text_part == "user@example.com"


async def test_knn_without_filters(compiler: QueryCompiler):
    compiled = await compiler.compile(FIELDS, "red shoes", limit=5)

    assert compiled is not None
    assert compiled.query_string == "*=>[KNN 5 @description_vec $vec AS dist]"
    assert compiled.sort_by == "dist"
    assert compiled.return_fields[-1] == "dist"
    assert "description_vec" not in compiled.return_fields
    assert len(decode_vector(compiled.params["vec"])) == 8


async def test_knn_with_prefilter(compiler: QueryCompiler):
    compiled = await compiler.compile(FIELDS, "red shoes", {"price": [0, 50], "color": "red"})

    assert compiled is not None
    assert compiled.query_string == (
        "(@price:[0.0 50.0] @color:{red})=>[KNN 10 @description_vec $vec AS dist]"
    )
    assert compiled.vector_clause is not None
    assert compiled.vector_clause.k == 10


async def test_knn_with_or_prefilter(compiler: QueryCompiler):
    compiled = await compiler.compile(
        FIELDS, "red shoes", {"color": "red", "title": "boot"}, combinator=Combinator.OR
    )
    assert compiled is not None
    assert compiled.query_string.startswith("(@color:{red} | @title:(boot))=>[KNN")


async def test_filters_on_vector_and_unknown_fields_are_ignored(compiler: QueryCompiler):
    compiled = await compiler.compile(
        SCALAR_FIELDS, None, {"description_vec": "x", "missing": 1, "price": 5}
    )
    assert compiled is not None
    assert compiled.query_string == "@price:[5.0 5.0]"


def test_compile_raw_passes_query_through(compiler: QueryCompiler):
    compiled = compiler.compile_raw(FIELDS, "@price:[10 20]", limit=3)
    assert compiled.query_string == "@price:[10 20]"
    assert compiled.limit == 3
    assert compiled.params == {}


async def test_null_filter_values_are_ignored(compiler: QueryCompiler):
    assert await compiler.compile(FIELDS, None, {"title": None, "price": None}) is None

    compiled = await compiler.compile(SCALAR_FIELDS, None, {"color": None, "price": 5})
    assert compiled is not None
    assert compiled.query_string == "@price:[5.0 5.0]"
