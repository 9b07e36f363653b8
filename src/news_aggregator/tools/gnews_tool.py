from typing import List, Optional, Sequence

from ..models.news import Article, ArticleSource, Provenance
from .base import NewsProvider, ProviderError, build_query, parse_published_at


class GNewsProvider(NewsProvider):
    """Primary provider backed by the GNews search API (key in the query string)."""

    name = Provenance.GNEWS.value

    def fetch(self, preferences: Sequence[str]) -> Optional[List[Article]]:
        if not self.configured:
            return None

        params = {
            "q": build_query(preferences),
            "lang": "en",
            "max": self.max_results,
            "apikey": self.api_key,
        }
        data = self._get_json(f"{self.base_url}/search", params=params)

        raw_articles = data.get("articles") or []
        try:
            return [_to_article(item) for item in raw_articles]
        except (AttributeError, TypeError) as exc:
            raise ProviderError(self.name, f"malformed article: {exc}") from exc


def _to_article(item: dict) -> Article:
    source_obj = item.get("source") or {}
    return Article(
        title=item.get("title"),
        description=item.get("description"),
        content=item.get("content"),
        url=item.get("url"),
        image=item.get("image"),
        published_at=parse_published_at(item.get("publishedAt")),
        source=ArticleSource(name=source_obj.get("name"), url=source_obj.get("url")),
    )
