from typing import List, Optional, Sequence

from ..models.news import Article, ArticleSource, Provenance
from .base import NewsProvider, ProviderError, build_query, parse_published_at


class NewsAPIProvider(NewsProvider):
    """Secondary provider backed by NewsAPI.org; authenticates with a header."""

    name = Provenance.NEWSAPI.value

    def fetch(self, preferences: Sequence[str]) -> Optional[List[Article]]:
        if not self.configured:
            return None

        params = {
            "q": build_query(preferences),
            "language": "en",
            "pageSize": self.max_results,
            "sortBy": "publishedAt",
        }
        data = self._get_json(
            f"{self.base_url}/everything",
            params=params,
            headers={"X-Api-Key": self.api_key},
        )

        raw_articles = data.get("articles") or []
        try:
            return [_to_article(item) for item in raw_articles]
        except (AttributeError, TypeError) as exc:
            raise ProviderError(self.name, f"malformed article: {exc}") from exc


def _to_article(item: dict) -> Article:
    # NewsAPI only exposes the source name.
    source_obj = item.get("source") or {}
    return Article(
        title=item.get("title"),
        description=item.get("description"),
        content=item.get("content"),
        url=item.get("url"),
        image=item.get("urlToImage"),
        published_at=parse_published_at(item.get("publishedAt")),
        source=ArticleSource(name=source_obj.get("name"), url=None),
    )
