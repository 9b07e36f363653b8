import threading

from src.news_aggregator.models.news import Article
from src.news_aggregator.tools.cache import ArticleCache, DEFAULT_KEY, derive_key


def _articles(title: str = "Story"):
    return [Article(title=title, url="https://example.com/story")]


def test_derive_key_is_order_independent() -> None:
    assert derive_key(["b", "a"]) == derive_key(["a", "b"])
    assert derive_key(["tech", "ai"]) == "news:ai,tech"


def test_derive_key_empty_uses_sentinel() -> None:
    assert derive_key([]) == DEFAULT_KEY
    assert derive_key(None) == DEFAULT_KEY
    assert derive_key([]) == derive_key([])


def test_derive_key_does_not_reorder_input() -> None:
    preferences = ["sports", "finance"]
    derive_key(preferences)
    assert preferences == ["sports", "finance"]


def test_derive_key_keeps_duplicates() -> None:
    assert derive_key(["ai", "ai"]) == "news:ai,ai"
    assert derive_key(["ai", "ai"]) != derive_key(["ai"])


def test_set_then_get_within_ttl(clock) -> None:
    cache = ArticleCache(ttl_seconds=300, clock=clock)
    data = _articles()
    cache.set("news:tech", data)

    clock.advance(299)
    assert cache.get("news:tech") == data


def test_get_after_expiry_evicts_entry(clock) -> None:
    cache = ArticleCache(ttl_seconds=300, clock=clock)
    cache.set("news:tech", _articles())

    clock.advance(301)
    assert cache.get("news:tech") is None
    assert len(cache) == 0
    # A second read stays absent.
    assert cache.get("news:tech") is None


def test_entry_at_exact_expiry_is_still_valid(clock) -> None:
    cache = ArticleCache(ttl_seconds=10, clock=clock)
    cache.set("k", _articles())
    clock.advance(10)
    assert cache.get("k") is not None


def test_set_overwrites_and_resets_expiry(clock) -> None:
    cache = ArticleCache(ttl_seconds=10, clock=clock)
    cache.set("k", _articles("old"))
    clock.advance(8)
    cache.set("k", _articles("new"))
    clock.advance(8)

    result = cache.get("k")
    assert result is not None
    assert result[0].title == "new"


def test_per_entry_ttl_override(clock) -> None:
    cache = ArticleCache(ttl_seconds=300, clock=clock)
    cache.set("short", _articles(), ttl=5)
    cache.set("default", _articles())

    clock.advance(6)
    assert cache.get("short") is None
    assert cache.get("default") is not None


def test_delete_and_clear(clock) -> None:
    cache = ArticleCache(clock=clock)
    cache.set("a", _articles())
    cache.set("b", _articles())

    cache.delete("a")
    cache.delete("missing")
    assert cache.get("a") is None
    assert cache.get("b") is not None

    cache.clear()
    assert len(cache) == 0


def test_stats_partitions_without_evicting(clock) -> None:
    cache = ArticleCache(ttl_seconds=60, clock=clock)
    cache.set("old", _articles(), ttl=10)
    cache.set("fresh", _articles())

    clock.advance(20)
    stats = cache.stats()
    assert stats.total == 2
    assert stats.valid == 1
    assert stats.expired == 1
    assert stats.valid + stats.expired == stats.total
    assert stats.ttl_seconds == 60
    # The expired entry is still held until a get observes it.
    assert len(cache) == 2


def test_concurrent_writers_on_distinct_keys() -> None:
    cache = ArticleCache()

    def writer(prefix: str) -> None:
        for idx in range(200):
            cache.set(f"{prefix}:{idx}", _articles())

    threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert cache.stats().total == 8 * 200


def test_mutating_returned_articles_leaves_entry_intact(clock) -> None:
    cache = ArticleCache(clock=clock)
    data = _articles("original")
    cache.set("k", data)

    data[0].title = "changed before read"
    first = cache.get("k")
    first[0].title = "changed after read"

    assert cache.get("k")[0].title == "original"
