from .news import Article, ArticleSource, Provenance, RetrievalResult  # noqa: F401
from .user import User  # noqa: F401
