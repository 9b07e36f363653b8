from typing import Callable, List, Sequence

from ..config import Settings
from ..models.news import Article, Provenance, RetrievalResult
from ..tools.base import NewsProvider, ProviderOutcome, attempt_fetch
from ..tools.cache import ArticleCache, derive_key
from ..tools.gnews_tool import GNewsProvider
from ..tools.newsapi_tool import NewsAPIProvider
from .synthesis import generate_mock_news
from ..logging_config import get_logger


logger = get_logger("core.retrieval")


def build_providers(settings: Settings) -> List[NewsProvider]:
    """Providers in priority order: GNews first, NewsAPI second."""

    return [
        GNewsProvider(
            api_key=settings.gnews_api_key,
            base_url=settings.gnews_base_url,
            timeout=settings.provider_timeout_seconds,
            max_results=settings.max_articles,
        ),
        NewsAPIProvider(
            api_key=settings.newsapi_key,
            base_url=settings.newsapi_base_url,
            timeout=settings.provider_timeout_seconds,
            max_results=settings.max_articles,
        ),
    ]


class NewsRetriever:
    """Fetch articles for a preference set with caching and provider fallback.

    1. Check the cache.
    2. Try each provider once, in order; the first non-empty result wins.
    3. If none produced articles, synthesize placeholder articles.
    4. Store whatever was produced in the cache.

    Provider calls are sequential. Two concurrent misses on the same key may
    both reach the providers; the later cache write wins.
    """

    def __init__(
        self,
        cache: ArticleCache,
        providers: Sequence[NewsProvider],
        synthesizer: Callable[[Sequence[str]], List[Article]] = generate_mock_news,
    ) -> None:
        self.cache = cache
        self.providers = list(providers)
        self.synthesizer = synthesizer

    def get_news(self, preferences: Sequence[str] | None = None) -> RetrievalResult:
        preferences = list(preferences or [])
        key = derive_key(preferences)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info("retrieve_news_cache_hit", key=key, results=len(cached))
            return RetrievalResult(articles=cached, cached=True, source=Provenance.CACHE.value)

        articles, source = self._fetch_live(preferences)
        if articles is None:
            articles = self.synthesizer(preferences)
            source = Provenance.SYNTHETIC.value
            logger.info("retrieve_news_synthesized", key=key, results=len(articles))

        self.cache.set(key, articles)
        logger.info("retrieve_news_fetched", key=key, backend=source, results=len(articles))
        return RetrievalResult(articles=articles, cached=False, source=source)

    def search_news(self, query: str, preferences: Sequence[str] | None = None) -> RetrievalResult:
        """Search by adding the query to the preference set."""

        return self.get_news([*(preferences or []), query])

    def _fetch_live(self, preferences: List[str]):
        outcomes: List[ProviderOutcome] = []
        for provider in self.providers:
            outcome = attempt_fetch(provider, preferences)
            outcomes.append(outcome)
            if outcome.usable:
                return outcome.articles, outcome.provider

        logger.info(
            "retrieve_news_providers_exhausted",
            outcomes={o.provider: o.status.value for o in outcomes},
        )
        return None, None
