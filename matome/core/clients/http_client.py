"""HTTPクライアント（取り込みパイプラインに注入するフェッチ機能）。"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

import cloudscraper
import httpx
import requests

from matome.core.config import BaseConfig
from matome.core.errors.exceptions import FetchException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResponse:
    """トランスポート非依存のHTTPレスポンス。

    Parameters
    ----------
    status_code : int
        HTTPステータスコード。
    content : bytes
        レスポンス本文（デコード前のバイト列）。
    url : str
        最終的なURL（リダイレクト後）。
    headers : Mapping[str, str]
        レスポンスヘッダー。

    """

    status_code: int
    content: bytes
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class HTTPTransport(Protocol):
    """パイプラインが利用するフェッチ機能のインターフェース"""

    async def fetch(
        self, url: str, *, headers: Mapping[str, str] | None = None, timeout: float | None = None
    ) -> RawResponse: ...


class AsyncHTTPClient:
    """httpx ベースの非同期HTTPクライアント。

    Parameters
    ----------
    config : BaseConfig, optional
        設定。タイムアウトの既定値に使用します。
    client : httpx.AsyncClient, optional
        テストなどで差し替える httpx クライアント。

    """

    def __init__(self, config: BaseConfig | None = None, client: httpx.AsyncClient | None = None):
        self.config = config or BaseConfig()
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=self.config.REQUEST_TIMEOUT,
            )
        return self._client

    async def fetch(
        self, url: str, *, headers: Mapping[str, str] | None = None, timeout: float | None = None
    ) -> RawResponse:
        client = self._get_client()
        try:
            response = await client.get(
                url,
                headers=dict(headers or {}),
                timeout=timeout or self.config.REQUEST_TIMEOUT,
            )
        except httpx.HTTPError as e:
            raise FetchException(f"{type(e).__name__}: {e}", url=url) from e

        logger.debug(f"GET {url} -> {response.status_code}")
        return RawResponse(
            status_code=response.status_code,
            content=response.content,
            url=str(response.url),
            headers=dict(response.headers),
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> AsyncHTTPClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


class CloudscraperClient:
    """cloudscraper を使ってCloudflareのブラウザチェックを通過するクライアント。

    cloudscraper は同期APIのため、``asyncio.to_thread`` でイベントループ外で実行します。
    """

    def __init__(self, config: BaseConfig | None = None, scraper=None):
        self.config = config or BaseConfig()
        self._scraper = scraper or cloudscraper.create_scraper(
            browser={
                "browser": "chrome",
                "platform": "windows",
                "mobile": False,
            }
        )

    async def fetch(
        self, url: str, *, headers: Mapping[str, str] | None = None, timeout: float | None = None
    ) -> RawResponse:
        try:
            response = await asyncio.to_thread(
                self._scraper.get,
                url,
                headers=dict(headers or {}),
                timeout=timeout or self.config.REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise FetchException(f"{type(e).__name__}: {e}", url=url) from e

        return RawResponse(
            status_code=response.status_code,
            content=response.content,
            url=str(response.url),
            headers=dict(response.headers),
        )

    async def close(self) -> None:
        await asyncio.to_thread(self._scraper.close)


_global_client: AsyncHTTPClient | CloudscraperClient | None = None


async def get_http_client(config: BaseConfig | None = None) -> AsyncHTTPClient | CloudscraperClient:
    """プロセス共有のHTTPクライアントを取得します（FETCH_BACKENDで実装を選択）。"""
    global _global_client

    if _global_client is None:
        config = config or BaseConfig()
        if config.FETCH_BACKEND == "cloudscraper":
            _global_client = CloudscraperClient(config)
        else:
            _global_client = AsyncHTTPClient(config)
        logger.debug(f"HTTP client created: {type(_global_client).__name__}")

    return _global_client


async def close_http_client() -> None:
    """プロセス共有のHTTPクライアントをクローズします。"""
    global _global_client

    if _global_client is not None:
        await _global_client.close()
        _global_client = None
