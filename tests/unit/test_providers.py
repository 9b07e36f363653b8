import httpx
import pytest

from src.news_aggregator.tools import base
from src.news_aggregator.tools.base import FetchStatus, NewsProvider, ProviderError, attempt_fetch, build_query
from src.news_aggregator.tools.gnews_tool import GNewsProvider
from src.news_aggregator.tools.newsapi_tool import NewsAPIProvider


GNEWS_PAYLOAD = {
    "totalArticles": 1,
    "articles": [
        {
            "title": "GNews Example",
            "description": "Summary",
            "content": "Story body",
            "url": "https://news.example.com/item",
            "image": "https://news.example.com/item.jpg",
            "publishedAt": "2024-01-01T00:00:00Z",
            "source": {"name": "Example News", "url": "https://news.example.com"},
        }
    ],
}

NEWSAPI_PAYLOAD = {
    "status": "ok",
    "articles": [
        {
            "source": {"id": None, "name": "Wire"},
            "title": "NewsAPI Example",
            "description": None,
            "url": "https://wire.example.com/story",
            "urlToImage": "https://wire.example.com/story.png",
            "publishedAt": "2024-02-02T12:30:00Z",
        }
    ],
}


def _json_response(url: str, payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload, request=httpx.Request("GET", url))


def test_build_query_joins_with_or() -> None:
    assert build_query(["tech", "ai"]) == "tech OR ai"
    assert build_query([]) == "general"


def test_gnews_declines_without_api_key(monkeypatch) -> None:
    def fail_get(*args, **kwargs):
        raise AssertionError("no request expected")

    monkeypatch.setattr(base.httpx, "get", fail_get)
    provider = GNewsProvider(api_key=None, base_url="https://gnews.io/api/v4")

    assert provider.fetch(["tech"]) is None
    assert attempt_fetch(provider, ["tech"]).status is FetchStatus.DECLINED


def test_gnews_maps_articles(monkeypatch) -> None:
    calls = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        calls.update(url=url, params=params, timeout=timeout)
        return _json_response(url, GNEWS_PAYLOAD)

    monkeypatch.setattr(base.httpx, "get", fake_get)
    provider = GNewsProvider(api_key="test-key", base_url="https://gnews.io/api/v4/", timeout=10.0, max_results=5)

    articles = provider.fetch(["tech", "ai"])

    assert calls["url"] == "https://gnews.io/api/v4/search"
    assert calls["params"] == {"q": "tech OR ai", "lang": "en", "max": 5, "apikey": "test-key"}
    assert calls["timeout"] == 10.0
    assert len(articles) == 1
    article = articles[0]
    assert article.title == "GNews Example"
    assert article.image == "https://news.example.com/item.jpg"
    assert article.published_at.year == 2024
    assert article.source.name == "Example News"
    assert article.source.url == "https://news.example.com"


def test_newsapi_uses_header_and_maps_missing_fields_to_none(monkeypatch) -> None:
    calls = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        calls.update(url=url, params=params, headers=headers)
        return _json_response(url, NEWSAPI_PAYLOAD)

    monkeypatch.setattr(base.httpx, "get", fake_get)
    provider = NewsAPIProvider(api_key="secret", base_url="https://newsapi.org/v2")

    articles = provider.fetch([])

    assert calls["url"] == "https://newsapi.org/v2/everything"
    assert calls["headers"] == {"X-Api-Key": "secret"}
    assert calls["params"]["q"] == "general"
    assert calls["params"]["sortBy"] == "publishedAt"
    article = articles[0]
    assert article.image == "https://wire.example.com/story.png"
    assert article.description is None
    assert article.content is None
    assert article.source.name == "Wire"
    assert article.source.url is None


def test_missing_articles_key_is_empty_success(monkeypatch) -> None:
    monkeypatch.setattr(base.httpx, "get", lambda url, **kwargs: _json_response(url, {"totalArticles": 0}))
    provider = GNewsProvider(api_key="k", base_url="https://gnews.io/api/v4")

    outcome = attempt_fetch(provider, ["tech"])
    assert outcome.status is FetchStatus.SUCCEEDED
    assert outcome.articles == []
    assert not outcome.usable


def test_http_error_raises_provider_error(monkeypatch) -> None:
    monkeypatch.setattr(base.httpx, "get", lambda url, **kwargs: _json_response(url, {"errors": ["bad"]}, 403))
    provider = GNewsProvider(api_key="k", base_url="https://gnews.io/api/v4")

    with pytest.raises(ProviderError):
        provider.fetch(["tech"])

    outcome = attempt_fetch(provider, ["tech"])
    assert outcome.status is FetchStatus.FAILED
    assert "gnews" in outcome.error


def test_timeout_is_a_failed_attempt(monkeypatch) -> None:
    def timeout_get(url, **kwargs):
        raise httpx.ReadTimeout("timed out", request=httpx.Request("GET", url))

    monkeypatch.setattr(base.httpx, "get", timeout_get)
    provider = NewsAPIProvider(api_key="k", base_url="https://newsapi.org/v2")

    outcome = attempt_fetch(provider, ["tech"])
    assert outcome.status is FetchStatus.FAILED


def test_malformed_body_is_a_failed_attempt(monkeypatch) -> None:
    def bad_body(url, **kwargs):
        return httpx.Response(200, content=b"<html>", request=httpx.Request("GET", url))

    monkeypatch.setattr(base.httpx, "get", bad_body)
    provider = GNewsProvider(api_key="k", base_url="https://gnews.io/api/v4")

    assert attempt_fetch(provider, ["tech"]).status is FetchStatus.FAILED


def test_provider_without_fetch_cannot_be_instantiated() -> None:
    class Incomplete(NewsProvider):
        name = "incomplete"

    with pytest.raises(TypeError):
        Incomplete(api_key="k", base_url="https://example.com")
