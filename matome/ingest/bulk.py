"""複数スレッドの一括取り込み（呼び出し側の再試行・待機・スキップ方針）。"""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_exponential

from matome.core.config import BaseConfig
from matome.core.logging.logging_utils import log_bulk_progress, log_bulk_retry, log_bulk_summary
from matome.ingest.errors import Disposition, IngestError
from matome.ingest.pipeline import LoadResult, ThreadLoader

logger = logging.getLogger(__name__)

_THREAD_ID_RE = re.compile(r"/(\d{10,})/?$")

Sleep = Callable[[float], Awaitable[None]]
ResultCallback = Callable[[LoadResult], Any]


def parse_url_list(text: str) -> list[str]:
    """1行1URLのテキストからURL一覧を作ります。

    空行と ``#`` で始まるコメント行は無視し、重複は最初の1件だけ残します。
    """
    urls: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line not in urls:
            urls.append(line)
    return urls


def extract_thread_id(url: str) -> str | None:
    """URL末尾の10桁以上のスレッドキーを返します。"""
    match = _THREAD_ID_RE.search(url.strip())
    return match.group(1) if match else None


@dataclass
class BulkReport:
    """一括処理の結果"""

    total: int
    completed: list[str] = field(default_factory=list)
    failed: list[tuple[str, IngestError]] = field(default_factory=list)
    skipped: list[tuple[str, IngestError]] = field(default_factory=list)
    results: list[LoadResult] = field(default_factory=list)
    aborted: bool = False
    stopped: bool = False

    @property
    def processed(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "processed": self.processed,
            "completed": list(self.completed),
            "failed": [{"url": url, "error": error.to_dict()} for url, error in self.failed],
            "skipped": [{"url": url, "error": error.to_dict()} for url, error in self.skipped],
            "aborted": self.aborted,
            "stopped": self.stopped,
        }


class BulkProcessor:
    """スレッドを1件ずつ順番に取り込みます。

    - 成功後は ``BULK_INTERVAL`` 秒、失敗後は ``BULK_ERROR_INTERVAL`` 秒待ってから次へ
    - TRANSIENT は指数バックオフで ``BULK_MAX_ATTEMPTS`` 回まで再試行し、だめなら失敗として次へ
    - NOT_FOUND / PARSE_FAILURE はスキップ
    - INVALID_INPUT は一括処理を中断（``abort_on_invalid=False`` ならスキップ）

    Parameters
    ----------
    loader : ThreadLoader
        取り込みに使うローダー。
    config : BaseConfig, optional
        待機時間・再試行回数の設定。
    sleep : Callable[[float], Awaitable[None]], optional
        待機関数（テストで差し替えるため注入可能）。
    on_result : Callable[[LoadResult], Any], optional
        1件処理するごとに呼ばれるコールバック（同期・非同期どちらでも可）。
    abort_on_invalid : bool
        不正な入力で中断するかどうか。

    """

    def __init__(
        self,
        loader: ThreadLoader,
        config: BaseConfig | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        on_result: ResultCallback | None = None,
        abort_on_invalid: bool = True,
    ):
        self.loader = loader
        self.config = config or loader.config
        self._sleep = sleep
        self.on_result = on_result
        self.abort_on_invalid = abort_on_invalid
        self._stop_requested = False

    def stop(self) -> None:
        """現在処理中のスレッドが終わった時点で停止します。"""
        self._stop_requested = True

    async def load_with_retry(self, url: str) -> LoadResult:
        """TRANSIENT の結果だけを再試行し、最後の結果を返します。"""

        def _before_sleep(retry_state) -> None:
            log_bulk_retry(logger, url, retry_state.attempt_number, retry_state.next_action.sleep)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.BULK_MAX_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.config.BULK_ERROR_INTERVAL, max=self.config.BULK_BACKOFF_MAX
            ),
            retry=retry_if_result(lambda result: not result.ok and result.error.kind.retryable),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
            before_sleep=_before_sleep,
            sleep=self._sleep,
        )
        return await retrying(self.loader.load, url)

    async def _notify(self, result: LoadResult) -> None:
        if self.on_result is None:
            return
        outcome = self.on_result(result)
        if inspect.isawaitable(outcome):
            await outcome

    async def process(self, urls: Iterable[str]) -> BulkReport:
        """URLを順番に取り込み、結果の集計を返します。"""
        urls = list(urls)
        report = BulkReport(total=len(urls))
        self._stop_requested = False

        for index, url in enumerate(urls, start=1):
            if self._stop_requested:
                logger.info("⏹️ 一括処理を停止しました")
                report.stopped = True
                break

            log_bulk_progress(logger, index, len(urls), url)
            result = await self.load_with_retry(url)
            report.results.append(result)
            await self._notify(result)

            if result.ok:
                report.completed.append(url)
                interval = self.config.BULK_INTERVAL
            else:
                disposition = result.error.disposition
                if disposition is Disposition.ABORT and self.abort_on_invalid:
                    logger.error(f"   ✗ 入力が不正なため一括処理を中断します: {url}")
                    report.failed.append((url, result.error))
                    report.aborted = True
                    break
                if disposition is Disposition.RETRY:
                    report.failed.append((url, result.error))
                else:
                    report.skipped.append((url, result.error))
                logger.warning(f"   → スキップ [{result.error.kind.value}]: {url}")
                interval = self.config.BULK_ERROR_INTERVAL

            if index < len(urls) and not self._stop_requested:
                await self._sleep(interval)

        log_bulk_summary(logger, len(report.completed), len(report.failed), len(report.skipped))
        return report
