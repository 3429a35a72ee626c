import pytest

from app.core.redis import InMemoryStore, KeyValueStore, create_store


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_values_expire_after_ttl():
    clock = FakeClock()
    store = InMemoryStore(clock=clock)

    store.set("otp:guest@example.com", {"code": "123456"}, ttl=30)
    assert store.get("otp:guest@example.com") == {"code": "123456"}

    clock.now += 31
    assert store.get("otp:guest@example.com") is None


def test_delete_and_delete_prefix():
    store = InMemoryStore()
    store.set("booking_stats:a", 1)
    store.set("booking_stats:b", 2)
    store.set("other", 3)

    store.delete("other")
    assert store.get("other") is None

    store.delete_prefix("booking_stats:")
    assert store.get("booking_stats:a") is None
    assert store.get("booking_stats:b") is None


def test_create_store_without_redis_url_is_in_memory():
    assert isinstance(create_store(""), InMemoryStore)


def test_incomplete_store_cannot_be_created():
    class GetOnlyStore(KeyValueStore):
        def get(self, key):
            return None

    with pytest.raises(TypeError):
        GetOnlyStore()
