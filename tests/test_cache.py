from finengine.utils.cache import TTLCache, payload_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_get_set_and_expiry():
    clock = FakeClock()
    c = TTLCache(default_ttl_seconds=60, clock=clock)
    c.set("k", {"ok": True})
    value, remaining = c.get("k")
    assert value == {"ok": True}
    assert remaining == 60

    clock.now += 61
    assert c.get("k") is None
    assert len(c) == 0
    assert c.hits == 1 and c.misses == 1


def test_eviction_when_full():
    clock = FakeClock()
    c = TTLCache(default_ttl_seconds=60, max_items=10, clock=clock)
    for i in range(10):
        clock.now += 1
        c.set(f"k{i}", i)
    c.set("new", 99)
    assert len(c) == 10
    assert c.get("k0") is None
    assert c.get("new")[0] == 99


def test_get_or_compute_skips_failures():
    c = TTLCache()
    calls = []

    def compute():
        calls.append(1)
        return {"ok": False}

    c.get_or_compute("k", compute, cache_if=lambda r: r["ok"])
    _, cached = c.get_or_compute("k", compute, cache_if=lambda r: r["ok"])
    assert not cached
    assert len(calls) == 2


def test_payload_key_ignores_key_order():
    a = payload_key("tax", {"a": 1, "b": {"c": 2, "d": 3}})
    b = payload_key("tax", {"b": {"d": 3, "c": 2}, "a": 1})
    assert a == b
    assert a != payload_key("growth", {"a": 1, "b": {"c": 2, "d": 3}})
