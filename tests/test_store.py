from datetime import timedelta
from types import SimpleNamespace

import pytest
from redis.exceptions import ResponseError

from keyspace.storage.leaderboard import Leaderboard
from keyspace.storage.schemas import HashValue, KeyConfig, Missing, OtherValue, ScalarValue
from keyspace.storage.store import RedisStore


def test_write_and_read_scalar(store, fake_redis):
    assert store.write("foo", "bar") == "bar"
    assert fake_redis.get("test:foo") == "bar"
    assert store.read("foo") == "bar"
    assert store.read("missing") is None


def test_write_many_returns_clean_keys(store, fake_redis):
    assert store.write({"a": 1, "b": 2}) == {"a": 1, "b": 2}
    assert fake_redis.get("test:a") == "1"
    assert store.read(["b", "a", "missing"]) == {"a": "1", "b": "2", "missing": None}


def test_write_mapping_value_creates_hash(store, fake_redis):
    assert store.write("user", {"name": "foo", "age": 3}) == {"name": "foo", "age": "3"}
    assert fake_redis.hgetall("test:user") == {"name": "foo", "age": "3"}
    assert store.read("user") == {"name": "foo", "age": "3"}
    # mget does not see hashes, read falls back per key
    assert store.read(["user"]) == {"user": {"name": "foo", "age": "3"}}


def test_read_value_variants(store):
    store.write("s", "1")
    store.write_hash("h", {"a": "1"})
    scalar = store.read_value("s")
    assert isinstance(scalar, ScalarValue) and scalar.value == "1"
    assert scalar.key == "test:s"
    hashed = store.read_value("h")
    assert isinstance(hashed, HashValue) and hashed.fields == {"a": "1"}
    missing = store.read_value("nope")
    assert isinstance(missing, Missing) and missing.unwrap() is None


def test_write_with_expiry(store, fake_redis):
    store.write("foo", "bar", expiry=timedelta(seconds=100))
    assert 0 < fake_redis.ttl("test:foo") <= 100
    store.write({"a": 1}, expiry=timedelta(seconds=50))
    assert 0 < fake_redis.ttl("test:a") <= 50


def test_write_uses_configured_expiry(fake_redis):
    store = RedisStore(fake_redis, KeyConfig(environment="test", expiry=timedelta(minutes=5)))
    store.write("foo", "bar")
    assert 0 < fake_redis.ttl("test:foo") <= 300
    store.write("plain", "x", expiry=timedelta(seconds=10))
    assert fake_redis.ttl("test:plain") <= 10


def test_write_reports_rejected_writes():
    client = SimpleNamespace(set=lambda *a, **kw: False)
    store = RedisStore(client, KeyConfig(environment="test"))
    assert store.write("foo", "bar") is False


def test_namespace_option(store, fake_redis):
    store.write("foo", "bar", namespace="cache")
    assert fake_redis.get("test:cache:foo") == "bar"
    assert store.read("foo", namespace="cache") == "bar"
    assert store.read("foo") is None


def test_delete(store):
    store.write({"a": 1, "b": 2})
    assert store.delete("a") is True
    assert store.delete("a") is False
    assert store.delete(["b", "missing"]) is True


def test_increment_and_decrement(store):
    assert store.increment("counter") == 1
    assert store.increment("counter", 5) == 6
    assert store.decrement("counter", 2) == 4
    assert store.decrement("counter") == 3
    assert store.increment("ratio", 1.5) == pytest.approx(1.5)


def test_increment_wrong_type_propagates(store):
    store.write_hash("h", {"a": 1})
    with pytest.raises(ResponseError):
        store.increment("h")


def test_read_hash_fields(store):
    store.write_hash("h", {"a": 1, "b": "x"})
    assert store.read_hash("h") == {"a": "1", "b": "x"}
    assert store.read_hash("h", "a") == "1"
    assert store.read_hash("h", "zz") is False
    assert store.read_hash("h", ["a", "zz"]) == {"a": "1", "zz": False}


def test_increment_hash_typing(store, fake_redis):
    assert store.increment_hash("h", "a") == 1
    result = store.increment_hash("h", {"a": 2, "f": 0.5, "n": "3", "s": "text"})
    assert result["a"] == 3
    assert isinstance(result["a"], int)
    assert result["f"] == pytest.approx(0.5)
    assert isinstance(result["f"], float)
    assert result["n"] == 3
    # non-numeric values are stored as they are
    assert result["s"] == "text"
    assert fake_redis.hget("test:h", "s") == "text"


def test_decrement_hash(store):
    store.write_hash("h", {"a": 10})
    assert store.decrement_hash("h", "a") == 9
    assert store.decrement_hash("h", {"a": 4, "b": 1}) == {"a": 5, "b": -1}


def test_delete_from_hash(store):
    store.write_hash("h", {"a": 1, "b": 2})
    assert store.delete_from_hash("h", "a") is True
    assert store.delete_from_hash("h", "a") is False
    assert store.delete_from_hash("h", ["b", "nope"]) == {"b": True, "nope": False}


def test_hash_aggregates(store):
    store.write_hash("n", {"a": 1, "b": 2.5, "c": "x"})
    assert store.hash_length("n") == 3
    assert sorted(store.hash_values("n")) == ["1", "2.5", "x"]
    assert store.hash_sum("n") == pytest.approx(3.5)
    assert store.hash_sum("missing") == 0


def test_find_and_fetch(store):
    store.write({"foo": 1, "bar": 2, "baz:1": 3})
    store.write_hash("h", {"a": 1})
    assert store.find() == ["bar", "baz:1", "foo", "h"]
    assert store.find("ba*") == ["bar", "baz:1"]
    assert store.find("ba*", raw=True) == ["test:bar", "test:baz:1"]
    assert store.fetch("ba*") == {"bar": "2", "baz:1": "3"}
    assert store.fetch("h") == {"h": {"a": "1"}}


def test_clear(store):
    store.write("foo", "bar")
    assert store.clear() is True
    assert store.find() == []


def test_lists(store, fake_redis):
    assert store.list_add("l", "a") == 1
    assert store.list_add("l", ["b", "c"]) == 3
    assert store.list_add("l", "z", prepend=True) == 4
    assert fake_redis.lrange("test:l", 0, -1) == ["z", "a", "b", "c"]
    assert store.list_get("l") == ["z", "a", "b", "c"]
    assert store.list_get("l", 0) == "z"
    assert store.list_get("l", [1, 2]) == ["a", "b"]
    assert store.list_set("l", 0, "y") is True
    assert store.list_set("l", {1: "q"}) == {1: True}
    assert store.list_pop("l") == "y"
    assert store.list_pop("l", last=True) == "c"
    assert store.list_length("l") == 2
    assert store.list_pop("l", blocking=True, timeout=1) == "q"


def test_list_add_checked(store, fake_redis):
    assert store.list_add("nope", "x", check=True) == 0
    assert fake_redis.exists("test:nope") == 0
    assert store.list_pop("nope") is None


def test_config_can_be_replaced(store, fake_redis):
    store.config = KeyConfig(environment="prod")
    store.write("foo", "bar")
    assert fake_redis.get("prod:foo") == "bar"


def test_reads_skip_lists_and_sorted_sets(store, fake_redis):
    store.write("foo", "bar")
    Leaderboard("highscores", store).add_member("alice", 3)
    store.list_add("inbox", "x")

    fetched = store.fetch()
    assert fetched == {"foo": "bar", "inbox": None, "leaderboards:highscores": None}
    assert store.read("inbox") is None
    assert store.read(["foo", "inbox", "leaderboards:highscores"]) == {
        "foo": "bar",
        "inbox": None,
        "leaderboards:highscores": None,
    }

    other = store.read_value("inbox")
    assert isinstance(other, OtherValue)
    assert other.redis_type == "list"
    assert store.read_value("leaderboards:highscores").redis_type == "zset"
    # the data itself is untouched
    assert fake_redis.lrange("test:inbox", 0, -1) == ["x"]
