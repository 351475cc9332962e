"""取得候補URLを順番に試し、最初に成功したドキュメントを返す。"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from matome.core.clients.http_client import HTTPTransport
from matome.core.config import BaseConfig
from matome.core.errors.exceptions import FetchException
from matome.core.logging.logging_utils import (
    log_fetch_attempt,
    log_fetch_failure,
    log_fetch_rejected,
    log_fetch_success,
)
from matome.ingest.errors import ErrorKind, FetchAttempt, IngestError
from matome.ingest.models import DocumentCandidate, UserAgentProfile

logger = logging.getLogger(__name__)

_HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8"
_ACCEPT_LANGUAGE = "ja,en-US;q=0.7,en;q=0.3"


@dataclass(frozen=True)
class FetchSuccess:
    """取得に成功した候補と、それまでの試行結果"""

    content: bytes
    succeeded_url: str
    candidate: DocumentCandidate
    index: int
    attempts: tuple[FetchAttempt, ...] = ()


@dataclass(frozen=True)
class FetchFailure:
    """全候補が失敗したときの結果値"""

    kind: ErrorKind
    attempts: tuple[FetchAttempt, ...]

    @property
    def attempted_urls(self) -> list[str]:
        return [attempt.url for attempt in self.attempts]

    def to_error(self) -> IngestError:
        statuses = ", ".join(
            f"{a.status_code if a.status_code is not None else (a.error or 'error')}"
            for a in self.attempts
        )
        return IngestError.of(self.kind, detail=statuses or None, attempts=self.attempts)


def classify_failure(attempts: Sequence[FetchAttempt]) -> ErrorKind:
    """失敗した試行の一覧から、終端（NOT_FOUND）か再試行可能（TRANSIENT）かを決めます。

    すべてが404相当の場合のみ NOT_FOUND。403・5xx・通信エラーが1件でもあれば TRANSIENT。
    """
    if all(attempt.is_not_found for attempt in attempts):
        return ErrorKind.NOT_FOUND
    return ErrorKind.TRANSIENT


def build_headers(candidate: DocumentCandidate, config: BaseConfig) -> dict[str, str]:
    """候補の種類に応じたリクエストヘッダーを組み立てます。"""
    if candidate.user_agent is UserAgentProfile.API:
        headers = config.shikutoku_headers()
    elif candidate.user_agent is UserAgentProfile.BROWSER:
        headers = {
            "User-Agent": config.BROWSER_USER_AGENT,
            "Accept": _HTML_ACCEPT,
            "Accept-Language": _ACCEPT_LANGUAGE,
        }
    else:
        headers = {"User-Agent": config.LEGACY_USER_AGENT}

    headers.update(dict(candidate.extra_headers))
    return headers


async def fetch_candidates(
    transport: HTTPTransport,
    candidates: Sequence[DocumentCandidate],
    config: BaseConfig | None = None,
    *,
    total_timeout: float | None = None,
) -> FetchSuccess | FetchFailure:
    """候補URLを先頭から1件ずつ取得し、最初の2xx応答を返します。

    候補は並列ではなく順番に試します。2xx以外の応答や通信エラーでは次の候補に進み、
    内部でのリトライ・待機は行いません（再試行の方針は呼び出し側が持つ）。

    Parameters
    ----------
    transport : HTTPTransport
        注入されたHTTPクライアント。
    candidates : Sequence[DocumentCandidate]
        取得候補（優先順）。
    config : BaseConfig, optional
        User-Agent・タイムアウトの設定。
    total_timeout : float, optional
        全候補を通した制限時間（秒）。省略時は ``TOTAL_TIMEOUT``。

    Returns
    -------
    FetchSuccess | FetchFailure
        成功した候補、または全試行の結果を持つ失敗値。

    """
    config = config or BaseConfig()
    if total_timeout is None:
        total_timeout = config.TOTAL_TIMEOUT

    attempts: list[FetchAttempt] = []
    total = len(candidates)
    current: DocumentCandidate | None = None

    try:
        async with asyncio.timeout(total_timeout):
            for index, candidate in enumerate(candidates):
                current = candidate
                log_fetch_attempt(logger, index + 1, total, candidate.url)

                try:
                    response = await transport.fetch(
                        candidate.url,
                        headers=build_headers(candidate, config),
                        timeout=config.REQUEST_TIMEOUT,
                    )
                except FetchException as e:
                    attempts.append(FetchAttempt(url=candidate.url, error=str(e)))
                    log_fetch_rejected(logger, candidate.url, None, str(e))
                    continue

                if response.ok:
                    log_fetch_success(logger, candidate.url, len(response.content))
                    return FetchSuccess(
                        content=response.content,
                        succeeded_url=candidate.url,
                        candidate=candidate,
                        index=index,
                        attempts=tuple(attempts),
                    )

                attempts.append(FetchAttempt(url=candidate.url, status_code=response.status_code))
                log_fetch_rejected(logger, candidate.url, response.status_code, None)
    except TimeoutError:
        if current is not None:
            attempts.append(FetchAttempt(url=current.url, error="timeout"))
        logger.warning(f"   ✗ 制限時間（{total_timeout}秒）を超えたため取得を中断しました")
        failure = FetchFailure(kind=ErrorKind.TRANSIENT, attempts=tuple(attempts))
        log_fetch_failure(logger, failure.kind.value, failure.attempts)
        return failure

    failure = FetchFailure(kind=classify_failure(attempts), attempts=tuple(attempts))
    log_fetch_failure(logger, failure.kind.value, failure.attempts)
    return failure
