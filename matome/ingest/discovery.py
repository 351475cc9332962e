"""ガールズちゃんねるの新着トピック一覧の取得。"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup

from matome.core.clients.http_client import HTTPTransport
from matome.core.config import BaseConfig
from matome.ingest.encoding import decode
from matome.ingest.errors import IngestError
from matome.ingest.fetcher import FetchFailure, fetch_candidates
from matome.ingest.locators import load_sources
from matome.ingest.models import DocumentCandidate, DocumentFormat, SourceEncoding, UserAgentProfile

logger = logging.getLogger(__name__)

_TOPIC_HREF_RE = re.compile(r"^(?:https?://(?:www\.)?girlschannel\.net)?/topics/(\d+)/?$")


@dataclass(frozen=True)
class TopicListing:
    page: int
    urls: tuple[str, ...] = ()
    error: IngestError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def extract_topic_urls(html: str, base_url: str, limit: int | None = None) -> list[str]:
    """一覧ページのHTMLから ``/topics/<id>/`` のリンクを重複なしで取り出します。"""
    soup = BeautifulSoup(html, "html.parser")
    base_url = base_url.rstrip("/")

    urls: list[str] = []
    seen: set[str] = set()
    for link in soup.select("a[href]"):
        match = _TOPIC_HREF_RE.match(link["href"].strip())
        if not match or match.group(1) in seen:
            continue
        seen.add(match.group(1))
        urls.append(f"{base_url}/topics/{match.group(1)}/")
        if limit is not None and len(urls) >= limit:
            break
    return urls


async def fetch_new_topics(
    transport: HTTPTransport,
    *,
    page: int = 1,
    limit: int | None = 100,
    config: BaseConfig | None = None,
) -> TopicListing:
    """新着トピック一覧（``/topics/new/?page=N``）からトピックURLを取得します。

    Parameters
    ----------
    transport : HTTPTransport
        フェッチ機能。
    page : int
        一覧のページ番号（1始まり）。
    limit : int, optional
        取得する最大件数。
    config : BaseConfig, optional
        設定。

    Returns
    -------
    TopicListing
        トピックURLの一覧。取得に失敗した場合は ``error`` が入ります。

    """
    config = config or BaseConfig()
    base_url = config.GIRLSCHANNEL_BASE_URL.rstrip("/")
    url = load_sources()["girlschannel"]["new_topics"].format(base=base_url, page=page)

    candidate = DocumentCandidate(
        url=url, format=DocumentFormat.HTML, user_agent=UserAgentProfile.BROWSER, label="new"
    )
    outcome = await fetch_candidates(transport, [candidate], config)
    if isinstance(outcome, FetchFailure):
        return TopicListing(page=page, error=outcome.to_error())

    decoded = decode(outcome.content, hint=SourceEncoding.UTF8)
    urls = extract_topic_urls(decoded.text, base_url, limit)
    logger.info(f"🆕 新着トピック {len(urls)}件 (page={page})")
    return TopicListing(page=page, urls=tuple(urls))
