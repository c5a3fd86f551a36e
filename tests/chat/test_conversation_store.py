import threading
from unittest.mock import MagicMock

from src.chat.store import ConversationStore


def _store(max_conversations=None):
    factory = MagicMock(side_effect=lambda key: MagicMock(name=key))
    return ConversationStore(factory, max_conversations=max_conversations), factory


def test_key_for_thread():
    assert ConversationStore.key_for("C123", "1700000000.000100") == "C123:1700000000.000100"


def test_get_or_create_reuses_conversation():
    store, factory = _store()
    first = store.get_or_create("C1:1")
    assert store.get_or_create("C1:1") is first
    factory.assert_called_once_with("C1:1")
    assert store.get("C1:1") is first
    assert store.get("C1:2") is None


def test_oldest_conversation_evicted_at_limit():
    store, _ = _store(max_conversations=2)
    store.get_or_create("a")
    store.get_or_create("b")
    store.get_or_create("c")

    assert store.count() == 2
    assert store.get("a") is None
    assert store.get("c") is not None


def test_non_positive_limit_means_unlimited():
    store, _ = _store(max_conversations=0)
    for n in range(5):
        store.get_or_create(str(n))
    assert store.count() == 5


def test_concurrent_get_or_create_builds_one_controller():
    store, factory = _store()
    results = []

    def _worker():
        results.append(store.get_or_create("same"))

    threads = [threading.Thread(target=_worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    factory.assert_called_once()
    assert all(r is results[0] for r in results)
