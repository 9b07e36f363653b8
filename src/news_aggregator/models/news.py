from datetime import datetime
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field


class ArticleSource(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None


class Article(BaseModel):
    """Canonical article shape every provider is mapped into.

    Fields a provider does not supply are kept as ``None`` so that all
    articles serialize with the same keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    url: Optional[str] = None
    image: Optional[str] = None
    published_at: Optional[datetime] = Field(default=None, alias="publishedAt")
    source: ArticleSource = Field(default_factory=ArticleSource)


class Provenance(str, Enum):
    CACHE = "cache"
    GNEWS = "gnews"
    NEWSAPI = "newsapi"
    SYNTHETIC = "synthetic"


class RetrievalResult(BaseModel):
    articles: List[Article]
    cached: bool
    source: str
