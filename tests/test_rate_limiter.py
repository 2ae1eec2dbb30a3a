from agriconnect.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from agriconnect.infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter


def test_memory_rate_limiter_allows_then_blocks():
    rl = InMemoryRateLimiter()
    key = "send-otp:9876543210"
    assert rl.allow(key, max_requests=2, window_seconds=60) is True
    assert rl.allow(key, max_requests=2, window_seconds=60) is True
    assert rl.allow(key, max_requests=2, window_seconds=60) is False
    # other keys are unaffected
    assert rl.allow("send-otp:9123456789", max_requests=2, window_seconds=60) is True


def test_memory_rate_limiter_window_slides(monkeypatch):
    from agriconnect.infrastructure.rate_limit import memory_rate_limiter as mod

    now = [1000.0]
    monkeypatch.setattr(mod.time, "time", lambda: now[0])
    rl = InMemoryRateLimiter()
    assert rl.allow("k", 1, 60) is True
    assert rl.allow("k", 1, 60) is False
    now[0] += 61
    assert rl.allow("k", 1, 60) is True


class FakePipe:
    def __init__(self, client):
        self.client = client
        self.ops = []

    def incr(self, k, n):
        self.ops.append(("incr", k, n))
        return self

    def expire(self, k, s):
        self.ops.append(("expire", k, s))
        return self

    def execute(self):
        results = []
        for op, k, n in self.ops:
            if op == "incr":
                self.client.store[k] = self.client.store.get(k, 0) + n
                results.append(self.client.store[k])
            else:
                self.client.expiries[k] = n
                results.append(True)
        return results


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expiries = {}

    def pipeline(self):
        return FakePipe(self)


def test_redis_rate_limiter_with_fake(monkeypatch):
    from agriconnect.infrastructure.rate_limit import redis_rate_limiter as mod

    monkeypatch.setattr(mod.time, "time", lambda: 1000.0)
    client = FakeRedis()
    rl = RedisRateLimiter(client=client)

    assert rl.allow("k1", 2, 60) is True
    assert rl.allow("k1", 2, 60) is True
    assert rl.allow("k1", 2, 60) is False

    (key,) = client.store.keys()
    assert key.startswith("agri:rl:k1:")
    assert client.expiries[key] == 60


def test_redis_rate_limiter_window_key():
    rl = RedisRateLimiter(client=FakeRedis())
    assert rl.window_key("k", 60, now=119.0) == "agri:rl:k:1"
    assert rl.window_key("k", 60, now=120.0) == "agri:rl:k:2"
