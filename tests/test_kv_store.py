from datetime import datetime, timedelta

from streamsurf.utils.kv_store import InMemoryKeyValueStore


def test_put_get_delete():
    store = InMemoryKeyValueStore()
    store.put("a@example.com", "123456", timedelta(minutes=10))

    assert store.get("a@example.com") == "123456"
    assert store.get("b@example.com") is None

    store.delete("a@example.com")
    store.delete("a@example.com")
    assert store.get("a@example.com") is None


def test_put_overwrites_previous_value():
    store = InMemoryKeyValueStore()
    store.put("k", "first", timedelta(minutes=1))
    store.put("k", "second", timedelta(minutes=1))
    assert store.get("k") == "second"
    assert len(store) == 1


def test_entries_expire_on_read():
    now = [datetime(2025, 1, 1)]
    store = InMemoryKeyValueStore(now_fn=lambda: now[0])
    store.put("k", "v", timedelta(minutes=10))

    now[0] += timedelta(minutes=9, seconds=59)
    assert store.get("k") == "v"

    now[0] += timedelta(seconds=1)
    assert store.get("k") is None
    assert len(store) == 0
