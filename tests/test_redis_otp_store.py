import pytest
import redis

from agriconnect.infrastructure.otp.redis_store import RedisOTPStore


class FakePipeline:
    """Buffers commands like redis-py: immediate after WATCH, buffered again after MULTI."""

    def __init__(self, client):
        self.client = client
        self.buffered = True
        self.ops = []
        self.watched = {}

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.ops = []
        self.watched = {}

    def watch(self, *keys):
        self.buffered = False
        self.watched = {key: self.client.versions.get(key, 0) for key in keys}

    def unwatch(self):
        self.buffered = True
        self.watched = {}

    def multi(self):
        self.buffered = True

    def __getattr__(self, name):
        method = getattr(self.client, name)

        def call(*args, **kwargs):
            if self.buffered:
                self.ops.append((method, args, kwargs))
                return self
            return method(*args, **kwargs)
        return call

    def execute(self):
        ops, watched = self.ops, self.watched
        self.ops, self.watched, self.buffered = [], {}, True
        if any(self.client.versions.get(key, 0) != version for key, version in watched.items()):
            raise redis.WatchError("Watched variable changed.")
        return [method(*args, **kwargs) for method, args, kwargs in ops]


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.versions = {}

    def _touch(self, key):
        self.versions[key] = self.versions.get(key, 0) + 1

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    def hset(self, key, mapping):
        self.data.setdefault(key, {}).update({k: str(v) for k, v in mapping.items()})
        self._touch(key)
        return len(mapping)

    def hgetall(self, key):
        return dict(self.data.get(key) or {})

    def hget(self, key, field):
        return (self.data.get(key) or {}).get(field)

    def hincrby(self, key, field, amount):
        # like redis, a missing key is created
        entry = self.data.setdefault(key, {})
        value = int(entry.get(field, 0)) + amount
        entry[field] = str(value)
        self._touch(key)
        return value

    def exists(self, key):
        return int(key in self.data)

    def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
                self._touch(key)
            self.ttls.pop(key, None)
        return removed


class ExpiringRedis(FakeRedis):
    """The key's TTL runs out right after EXISTS answers."""

    def exists(self, key):
        found = super().exists(key)
        if found:
            self.delete(key)
        return found


class RacingPipeline(FakePipeline):
    def execute(self):
        raise redis.WatchError("key changed")


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store(fake_redis):
    return RedisOTPStore(expiry_minutes=10, client=fake_redis)


def test_put_sets_hash_with_ttl(store, fake_redis):
    store.put("9876543210", "123456")
    entry = store.get("9876543210")
    assert entry.code == "123456"
    assert entry.attempt_count == 0
    assert fake_redis.ttls["otp:9876543210"] == 600


def test_failed_attempts_are_counted(store):
    store.put("9876543210", "123456")
    assert store.record_failed_attempt("9876543210") == 1
    assert store.record_failed_attempt("9876543210") == 2
    assert store.get("9876543210").attempt_count == 2
    assert store.record_failed_attempt("9123456789") == 0


def test_failed_attempt_on_expiring_key_does_not_recreate_it():
    client = ExpiringRedis()
    store = RedisOTPStore(expiry_minutes=10, client=client)
    store.put("9876543210", "123456")

    assert store.record_failed_attempt("9876543210") == 0
    assert "otp:9876543210" not in client.data
    assert store.get("9876543210") is None


def test_hash_without_code_reads_as_absent(store, fake_redis):
    fake_redis.data["otp:9876543210"] = {"attempts": "1"}
    assert store.get("9876543210") is None


def test_pop_if_match_deletes_once(store):
    store.put("9876543210", "123456")
    assert store.pop_if_match("9876543210", "654321") is False
    assert store.pop_if_match("9876543210", "123456") is True
    assert store.get("9876543210") is None
    assert store.pop_if_match("9876543210", "123456") is False


def test_verified_marker(store, fake_redis):
    store.mark_verified("9876543210", "123456")
    assert fake_redis.ttls["otp:verified:9876543210"] == 600
    assert store.consume_verified("9876543210", "111111") is False
    assert store.consume_verified("9876543210", "123456") is True
    assert store.consume_verified("9876543210", "123456") is False


def test_verified_marker_dropped_after_max_wrong_codes(store, fake_redis):
    store.mark_verified("9876543210", "123456")
    for _ in range(3):
        assert store.consume_verified("9876543210", "000000", max_attempts=3) is False

    assert "otp:verified:9876543210" not in fake_redis.data
    assert store.consume_verified("9876543210", "123456", max_attempts=3) is False


def test_wrong_code_on_missing_marker_creates_nothing(store, fake_redis):
    assert store.consume_verified("9876543210", "000000") is False
    assert "otp:verified:9876543210" not in fake_redis.data


def test_concurrent_change_loses_the_race(store, fake_redis, monkeypatch):
    store.put("9876543210", "123456")
    monkeypatch.setattr(fake_redis, "pipeline", lambda transaction=True: RacingPipeline(fake_redis))
    assert store.pop_if_match("9876543210", "123456") is False


def test_sweep_is_left_to_ttls(store):
    store.put("9876543210", "123456")
    assert store.sweep_expired() == 0


def test_requires_url_without_client():
    with pytest.raises(RuntimeError):
        RedisOTPStore(url=None)
