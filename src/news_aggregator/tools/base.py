from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

import httpx

from ..models.news import Article
from ..logging_config import get_logger


logger = get_logger("tools.providers")

GENERIC_QUERY = "general"
QUERY_SEPARATOR = " OR "


class ProviderError(RuntimeError):
    """Raised when a configured provider could not produce a usable response."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class FetchStatus(str, Enum):
    DECLINED = "declined"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


@dataclass
class ProviderOutcome:
    provider: str
    status: FetchStatus
    articles: List[Article] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def usable(self) -> bool:
        return self.status is FetchStatus.SUCCEEDED and len(self.articles) > 0


def build_query(preferences: Sequence[str]) -> str:
    if not preferences:
        return GENERIC_QUERY
    return QUERY_SEPARATOR.join(preferences)


def parse_published_at(value: str | None):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class NewsProvider(ABC):
    """Base class for an external article source.

    Subclasses implement ``fetch``, which returns ``None`` when the provider
    is not configured, raises ``ProviderError`` when the call fails, and
    otherwise returns the (possibly empty) list of articles.
    """

    name: str = "provider"

    def __init__(self, api_key: str | None, base_url: str, timeout: float = 10.0, max_results: int = 10) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_results = max_results

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @abstractmethod
    def fetch(self, preferences: Sequence[str]) -> Optional[List[Article]]:
        """Return articles, or None when the provider is not configured."""

    def _get_json(self, url: str, params: dict, headers: dict | None = None) -> dict:
        try:
            response = httpx.get(url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(self.name, "malformed JSON response") from exc
        if not isinstance(data, dict):
            raise ProviderError(self.name, "unexpected response shape")
        return data


def attempt_fetch(provider, preferences: Sequence[str]) -> ProviderOutcome:
    """Run one ``provider.fetch`` call and fold the result into a ProviderOutcome.

    Any exception raised by the provider counts as a failed attempt; it is
    logged and never re-raised.
    """

    name = getattr(provider, "name", type(provider).__name__)
    try:
        articles = provider.fetch(preferences)
        if articles is not None:
            articles = [Article.model_validate(article) for article in articles]
    except Exception as exc:
        logger.warning("provider_failed", provider=name, error=str(exc), error_type=type(exc).__name__)
        return ProviderOutcome(provider=name, status=FetchStatus.FAILED, error=str(exc))

    if articles is None:
        logger.info("provider_declined", provider=name)
        return ProviderOutcome(provider=name, status=FetchStatus.DECLINED)

    logger.info("provider_succeeded", provider=name, results=len(articles))
    return ProviderOutcome(provider=name, status=FetchStatus.SUCCEEDED, articles=articles)
