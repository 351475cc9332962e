"""ガールズちゃんねる新着トピック取得のテスト"""

import pytest

from matome.core.config import BaseConfig
from matome.ingest.discovery import extract_topic_urls, fetch_new_topics
from matome.ingest.errors import ErrorKind

LISTING_HTML = """
<html><body>
<ul class="topic-list">
  <li><a href="/topics/5012345/">トピック1</a></li>
  <li><a href="https://girlschannel.net/topics/5012346/">トピック2</a></li>
  <li><a href="/topics/5012345/">トピック1（重複）</a></li>
  <li><a href="/topics/new/?page=2">次へ</a></li>
  <li><a href="/topics/5012347/?all=true">コメント全件</a></li>
  <li><a href="https://example.com/topics/1/">外部</a></li>
  <li><a href="/topics/5012348">トピック3</a></li>
</ul>
</body></html>
"""


def test_extract_topic_urls():
    """Given: 重複・ページ送り・外部リンクを含む一覧HTML
    When: extract_topic_urls()を呼び出す
    Then: トピックURLだけが出現順に重複なく返される
    """
    urls = extract_topic_urls(LISTING_HTML, "https://girlschannel.net/")

    assert urls == [
        "https://girlschannel.net/topics/5012345/",
        "https://girlschannel.net/topics/5012346/",
        "https://girlschannel.net/topics/5012348/",
    ]


def test_extract_topic_urls_with_limit():
    assert extract_topic_urls(LISTING_HTML, "https://girlschannel.net", limit=1) == [
        "https://girlschannel.net/topics/5012345/"
    ]


@pytest.mark.asyncio
async def test_fetch_new_topics(fake_transport):
    """Given: 新着一覧の2ページ目が取得できる
    When: fetch_new_topics(page=2)を呼び出す
    Then: トピックURLの一覧が返される
    """
    transport = fake_transport(
        {"https://girlschannel.net/topics/new/?page=2": LISTING_HTML.encode("utf-8")}
    )

    listing = await fetch_new_topics(transport, page=2, limit=2, config=BaseConfig())

    assert listing.ok
    assert listing.page == 2
    assert listing.urls == (
        "https://girlschannel.net/topics/5012345/",
        "https://girlschannel.net/topics/5012346/",
    )


@pytest.mark.asyncio
async def test_fetch_new_topics_failure(fake_transport):
    transport = fake_transport({"https://girlschannel.net/topics/new/?page=1": 503})

    listing = await fetch_new_topics(transport, config=BaseConfig())

    assert not listing.ok
    assert listing.error.kind is ErrorKind.TRANSIENT
    assert listing.urls == ()
