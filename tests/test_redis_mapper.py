"""Tests for Redis value mapping helpers."""

import struct

from vecsearch.adapters.redis_mapper import (
    decode_value,
    decode_vector,
    document_to_hit,
    encode_vector,
    hash_to_fields,
    parse_distance,
    parse_index_attributes,
)
from vecsearch.core.models import FieldSchema, FieldType


def test_encode_vector_is_little_endian_float32():
    blob = encode_vector([1.0, -2.5])
    assert blob == struct.pack("<2f", 1.0, -2.5)
    assert decode_vector(blob) == [1.0, -2.5]


def test_parse_index_attributes_reads_ft_info():
    info = {
        "attributes": [
            [b"identifier", b"title", b"attribute", b"title", b"type", b"TEXT",
             b"WEIGHT", b"1", b"SORTABLE"],
            [b"identifier", b"price", b"attribute", b"price", b"type", b"NUMERIC"],
            [b"identifier", b"body_vec", b"attribute", b"body_vec", b"type", b"VECTOR",
             b"algorithm", b"HNSW"],
            [b"identifier", b"__uid", b"attribute", b"__uid", b"type", b"TAG",
             b"SEPARATOR", b","],
        ]
    }

    fields = parse_index_attributes(info)

    assert list(fields) == ["title", "price", "body_vec", "__uid"]
    assert fields["title"] == FieldSchema("title", FieldType.TEXT, sortable=True)
    assert fields["price"].type == FieldType.NUMERIC
    assert fields["body_vec"].type == FieldType.VECTOR
    assert fields["__uid"].sortable is False


def test_decode_value_expands_json():
    assert decode_value(b'{"a": 1}') == {"a": 1}
    assert decode_value("[1, 2]") == [1, 2]
    assert decode_value("[not json") == "[not json"
    assert decode_value(b"plain") == "plain"


def test_parse_distance():
    assert parse_distance("0.25") == 0.25
    assert parse_distance(b"1") == 1.0
    assert parse_distance("n/a") == "n/a"
    assert parse_distance(None) is None
    assert parse_distance("nan") == "nan"
    assert parse_distance(b"inf") == "inf"


def test_hash_to_fields_drops_vectors_and_converts_numbers():
    schema = {
        "title": FieldSchema("title", FieldType.TEXT),
        "price": FieldSchema("price", FieldType.NUMERIC),
        "body_vec": FieldSchema("body_vec", FieldType.VECTOR),
    }
    raw = {
        b"title": b"Red Shoes",
        b"price": b"19.99",
        b"body_vec": encode_vector([0.1, 0.2]),
    }

    assert hash_to_fields(raw, schema) == {"title": "Red Shoes", "price": 19.99}


def test_document_to_hit_extracts_distance():
    schema = {"price": FieldSchema("price", FieldType.NUMERIC)}
    hit = document_to_hit("vs:products:1", {"price": "19.99", "dist": "0.125"}, schema)

    assert hit.id == "vs:products:1"
    assert hit.fields == {"price": 19.99}
    assert hit.dist == 0.125
    assert hit.to_dict() == {"id": "vs:products:1", "price": 19.99, "dist": 0.125}
