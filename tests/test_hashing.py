# tests/test_hashing.py
import pytest
from vaultwatch.hashing import InvalidInputError, calculate_hash, canonical_json


def mock_vault_data():
    return {
        "database_url": "postgres://localhost:5432/testdb",
        "api_key": "test-api-key-123",
        "debug_mode": True,
        "max_connections": 10,
        "timeout_seconds": 30.5,
        "features": ["feature1", "feature2"],
        "nested_config": {"cache_enabled": True, "cache_ttl": 300},
    }


@pytest.mark.parametrize("data", [
    {"key1": "value1", "key2": "value2"},
    {"string": "value", "int": 42, "float": 3.14, "bool": True, "array": ["a", "b", "c"], "nested": {"inner": "value"}},
    {},
    {
        "database": {"host": "localhost", "port": 5432, "username": "admin", "password": "secret", "ssl": True},
        "redis": {"host": "redis-server", "port": 6379},
        "features": ["feature1", "feature2", {"name": "feature3", "enabled": True}],
    },
])
def test_calculate_hash_returns_sha256_hex(data):
    """Any JSON-like snapshot should hash to 64 lowercase hex chars"""
    digest = calculate_hash(data)

    assert len(digest) == 64
    assert digest == digest.lower()
    int(digest, 16)


def test_calculate_hash_none_is_invalid():
    with pytest.raises(InvalidInputError, match="vault data cannot be None"):
        calculate_hash(None)


def test_empty_snapshot_is_valid_and_stable():
    assert calculate_hash({}) == calculate_hash({})
    assert canonical_json({}) == "{}"


def test_calculate_hash_is_consistent():
    data = {"key1": "value1", "key2": "value2", "key3": 42}
    assert calculate_hash(data) == calculate_hash(dict(data))


def test_calculate_hash_ignores_key_order():
    first = {"a": "value1", "b": "value2", "c": "value3"}
    second = {"c": "value3", "a": "value1", "b": "value2"}

    assert calculate_hash(first) == calculate_hash(second)
    assert calculate_hash({"a": 1, "b": 2}) == calculate_hash({"b": 2, "a": 1})


def test_calculate_hash_ignores_nested_key_order():
    first = {"outer": {"x": 1, "y": {"p": True, "q": None}}, "list": [{"m": 1, "n": 2}]}
    second = {"list": [{"n": 2, "m": 1}], "outer": {"y": {"q": None, "p": True}, "x": 1}}

    assert calculate_hash(first) == calculate_hash(second)


def test_calculate_hash_detects_changes():
    original = calculate_hash({"key1": "value1", "key2": "value2"})

    assert calculate_hash({"key1": "changed_value", "key2": "value2"}) != original
    assert calculate_hash({"key1": "value1", "key2": "value2", "key3": "new_value"}) != original
    assert calculate_hash({"key1": "value1"}) != original


def test_calculate_hash_detects_deep_changes():
    data = mock_vault_data()
    original = calculate_hash(data)

    data["nested_config"]["cache_ttl"] = 600
    assert calculate_hash(data) != original

    data = mock_vault_data()
    data["features"].append("feature3")
    assert calculate_hash(data) != original


def test_list_order_is_significant():
    assert calculate_hash({"l": [1, 2]}) != calculate_hash({"l": [2, 1]})


def test_value_types_are_distinguished():
    """1, "1", 1.5 and True must not collide"""
    digests = {
        calculate_hash({"v": 1}),
        calculate_hash({"v": "1"}),
        calculate_hash({"v": 1.5}),
        calculate_hash({"v": True}),
        calculate_hash({"v": None}),
    }
    assert len(digests) == 5


def test_numbers_serialize_stably():
    assert canonical_json({"f": 30.5, "i": 10}) == '{"f":30.5,"i":10}'
    assert calculate_hash({"f": 0.1 + 0.2}) == calculate_hash({"f": 0.1 + 0.2})


def test_known_digest():
    # sha256('{"a":1,"b":2}')
    assert calculate_hash({"b": 2, "a": 1}) == (
        "43258cff783fe7036d8a43033f830adfc60ec037382473548ac742b888292777"
    )


@pytest.mark.parametrize("value", [float("nan"), float("inf"), object(), b"raw"])
def test_unserializable_values_are_invalid(value):
    with pytest.raises(InvalidInputError):
        calculate_hash({"bad": value})
