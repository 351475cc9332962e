"""Pytest共通設定ファイル（全テストで自動ロードされる）.

このファイルはpytestが自動的に読み込み、すべてのテストに適用される。
ネットワークには一切アクセスせず、HTTPはフェイクのトランスポートで差し替える。
"""

import os
from datetime import datetime

import pytest

from matome.core.clients.http_client import RawResponse
from matome.core.errors.exceptions import FetchException
from matome.core.utils.date_utils import JST

# 全テスト共通設定:
# 開発者の .env に依存しないよう、テストで使う設定値を固定する。
os.environ.setdefault("FETCH_BACKEND", "httpx")
os.environ.setdefault("LOG_LEVEL", "INFO")

FIXED_NOW = datetime(2024, 2, 1, 9, 0, 0, tzinfo=JST)


class FakeTransport:
    """URLごとに応答を決められるHTTPTransport。

    routes の値:
    - int: そのステータスの空レスポンス
    - bytes: 200 とその本文
    - (int, bytes): ステータスと本文
    - Exception: 送出する例外
    未登録のURLは404を返す。
    """

    def __init__(self, routes=None):
        self.routes = routes if routes is not None else {}
        self.calls: list[tuple[str, dict]] = []

    async def fetch(self, url, *, headers=None, timeout=None):
        self.calls.append((url, dict(headers or {})))
        outcome = self.routes.get(url, 404)

        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, int):
            return RawResponse(status_code=outcome, content=b"", url=url)
        if isinstance(outcome, bytes):
            return RawResponse(status_code=200, content=outcome, url=url)
        status_code, content = outcome
        return RawResponse(status_code=status_code, content=content, url=url)

    @property
    def requested_urls(self) -> list[str]:
        return [url for url, _ in self.calls]

    async def close(self):
        return None


@pytest.fixture
def fake_transport():
    """FakeTransport を生成するファクトリ"""
    return FakeTransport


@pytest.fixture
def fixed_clock():
    """常に同じ時刻を返す時計"""
    return lambda: FIXED_NOW


@pytest.fixture
def network_error():
    """通信エラーを表す例外を生成するファクトリ"""

    def _make(url: str = "https://example.invalid/"):
        return FetchException("ConnectError: connection refused", url=url)

    return _make
