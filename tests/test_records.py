"""
Tests for record normalization.
"""
import dataclasses

import pytest

from app.records import MalformedRecordError, Record, normalize_record
from tests.conftest import make_raw_item


def test_normalize_full_payload():
    """All extracted fields land in the Record shape"""
    record = normalize_record(make_raw_item(1, "bulbasaur"))

    assert record.id == 1
    assert record.name == "bulbasaur"
    assert record.categories == ("grass", "poison")
    assert dict(record.numeric_attributes) == {"height": 7, "weight": 69, "hp": 45, "attack": 49}
    assert record.named_attribute_groups["abilities"] == ("overgrow", "chlorophyll")
    assert record.images["official"] == "https://img.example.test/art/1.png"
    assert record.images["classic"] == "https://img.example.test/1.png"
    assert record.images["shiny"] == "https://img.example.test/shiny/1.png"
    assert record.images["animated"] is None


def test_normalize_sparse_payload_defaults_to_empty():
    """Missing nested fields never fail the record"""
    record = normalize_record({"id": 99})

    assert record.id == 99
    assert record.name == ""
    assert record.categories == ()
    assert dict(record.numeric_attributes) == {}
    assert record.named_attribute_groups["abilities"] == ()
    assert set(record.images) == {"official", "classic", "shiny", "animated"}
    assert all(url is None for url in record.images.values())


def test_normalize_skips_incomplete_list_entries():
    """Broken entries inside lists are skipped, not fatal"""
    raw = {
        "id": 5,
        "name": "charmeleon",
        "types": [{"type": None}, {"type": {"name": "fire"}}, "junk"],
        "stats": [{"stat": {"name": "speed"}}, {"base_stat": 80, "stat": {"name": "hp"}}],
        "abilities": None,
        "sprites": {"other": None},
    }
    record = normalize_record(raw)

    assert record.categories == ("fire",)
    assert dict(record.numeric_attributes) == {"hp": 80}
    assert record.named_attribute_groups["abilities"] == ()


@pytest.mark.parametrize("raw", [
    None,
    [],
    "text",
    {"name": "no id"},
    {"id": "abc"},
    {"id": "42"},
    {"id": True},
    {"id": 42.9},
    {"id": float("inf")},
    {"id": float("nan")},
])
def test_normalize_rejects_malformed_payload(raw):
    """Non-objects and payloads without an integer id are malformed"""
    with pytest.raises(MalformedRecordError):
        normalize_record(raw)


def test_normalize_accepts_integral_float_id():
    raw = make_raw_item(7)
    raw["id"] = 7.0

    record = normalize_record(raw)

    assert record.id == 7
    assert isinstance(record.id, int)


def test_record_is_read_only():
    """Stored payloads cannot be mutated in place"""
    record = normalize_record(make_raw_item(3))

    with pytest.raises(dataclasses.FrozenInstanceError):
        record.name = "changed"
    with pytest.raises(TypeError):
        record.numeric_attributes["hp"] = 1
    with pytest.raises(TypeError):
        record.images["classic"] = None


def test_record_dict_round_trip():
    """to_dict output rebuilds an equal Record"""
    record = normalize_record(make_raw_item(25, "pikachu"))
    assert Record.from_dict(record.to_dict()) == record


def test_record_from_dict_requires_id():
    with pytest.raises(MalformedRecordError):
        Record.from_dict({"name": "nameless"})
