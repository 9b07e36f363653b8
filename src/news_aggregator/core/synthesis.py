from datetime import datetime, timedelta, timezone
from typing import List, Sequence

from ..models.news import Article, ArticleSource


MOCK_SITE = "https://example.com"


def _image(seed: str) -> str:
    return f"https://picsum.photos/seed/{seed}/800/400"


def generate_mock_news(preferences: Sequence[str], now: datetime | None = None) -> List[Article]:
    """Build placeholder articles for when no provider returned anything.

    Three articles cover the lead (first) topic, plus one article per extra
    topic. Every title names the lead topic.
    """

    topics = list(preferences) or ["general"]
    lead = topics[0]
    now = now or datetime.now(timezone.utc)

    articles = [
        Article(
            title=f"Latest updates in {lead} industry",
            description=f"Breaking news and developments in the {lead} sector that you need to know about today.",
            content=f"This is a comprehensive article about the latest trends and updates in {lead}. "
            "Stay informed with our in-depth coverage...",
            url=f"{MOCK_SITE}/news/{lead}/article-1",
            image=_image(lead),
            published_at=now,
            source=ArticleSource(name="Mock News Source", url=MOCK_SITE),
        ),
        Article(
            title=f"Top {lead} stories of the week",
            description=f"A roundup of the most important {lead} news from this week.",
            content=f"Here are the top stories you might have missed in {lead} this week...",
            url=f"{MOCK_SITE}/news/{lead}/article-2",
            image=_image(f"{lead}2"),
            published_at=now - timedelta(days=1),
            source=ArticleSource(name="Weekly Digest", url=MOCK_SITE),
        ),
        Article(
            title=f"Expert analysis on {lead} trends",
            description=f"Industry experts share their insights on where {lead} is heading.",
            content=f"Our panel of experts discusses the future of {lead} and what to expect in the coming months...",
            url=f"{MOCK_SITE}/news/{lead}/article-3",
            image=_image(f"{lead}3"),
            published_at=now - timedelta(days=2),
            source=ArticleSource(name="Expert Insights", url=MOCK_SITE),
        ),
    ]

    for offset, topic in enumerate(topics[1:], start=1):
        articles.append(
            Article(
                title=f"{topic[:1].upper()}{topic[1:]} news update alongside {lead}",
                description=f"The latest news and updates about {topic}.",
                content=f"Detailed coverage of {topic} news and developments...",
                url=f"{MOCK_SITE}/news/{topic}/latest",
                image=_image(topic),
                published_at=now - timedelta(hours=6 * offset),
                source=ArticleSource(name="Topic News", url=MOCK_SITE),
            )
        )

    return articles
