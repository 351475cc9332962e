"""スレッド取り込みの入口。

入力判定 → URL解析 → 候補URLの取得 → 文字コード変換 → パース → 正規化 を順に行い、
結果を :class:`LoadResult` として返します。想定内の失敗は例外にせずエラー値で返し、
想定外の例外も一時的エラー（TRANSIENT）に変換するため、呼び出し側はソースごとの
例外処理を書く必要がありません。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from matome.core.clients.http_client import HTTPTransport, get_http_client
from matome.core.config import BaseConfig
from matome.core.errors.exceptions import DataException, ThreadLoadError
from matome.core.logging.logging_utils import (
    log_decode_result,
    log_load_start,
    log_parse_failure,
    log_parse_result,
)
from matome.core.utils.date_utils import now_jst
from matome.core.utils.decorators import log_execution_time
from matome.ingest.classifier import classify
from matome.ingest.encoding import MojibakeThresholds, decode
from matome.ingest.errors import ErrorKind, FetchAttempt, IngestError
from matome.ingest.fetcher import FetchFailure, classify_failure, fetch_candidates
from matome.ingest.locators import (
    build_candidates,
    encoding_hint,
    html_layouts,
    load_sources,
    parse_url,
    shikutoku_comment_urls,
    thread_url,
)
from matome.ingest.models import (
    DecodedDocument,
    DocumentCandidate,
    DocumentFormat,
    LegacyBoardLocator,
    ParsedThread,
    ParseFailure,
    Post,
    ProprietaryApiLocator,
    SourceEncoding,
    Thread,
    ThreadSourceLocator,
    UserAgentProfile,
)
from matome.ingest.normalizer import Clock, normalize
from matome.ingest.parsers.dat import parse_dat
from matome.ingest.parsers.html import parse_html
from matome.ingest.parsers.shikutoku import (
    build_thread,
    is_not_found_payload,
    load_json,
    parse_comments,
    parse_talk,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadResult:
    """1スレッド分の取り込み結果。

    ``thread`` があれば成功。文字コードを特定できなかった場合は成功でも
    ``error`` に ENCODING_UNRESOLVED が入ります（低信頼の注記）。
    """

    input: str
    thread: Thread | None = None
    posts: tuple[Post, ...] = ()
    error: IngestError | None = None
    fetched_url: str | None = None
    encoding: SourceEncoding | None = None

    @property
    def ok(self) -> bool:
        return self.thread is not None

    @property
    def low_confidence(self) -> bool:
        return self.ok and self.error is not None and self.error.kind is ErrorKind.ENCODING_UNRESOLVED

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": self.input,
            "thread": self.thread.to_dict() if self.thread else None,
            "posts": [post.to_dict() for post in self.posts],
            "error": self.error.to_dict() if self.error else None,
            "fetched_url": self.fetched_url,
            "encoding": self.encoding.value if self.encoding else None,
        }


class ThreadLoader:
    """スレッドの取得・解析を行うエントリーポイント。

    Parameters
    ----------
    transport : HTTPTransport, optional
        フェッチ機能。省略時はプロセス共有のクライアントを使用します。
    config : BaseConfig, optional
        設定。
    clock : Callable[[], datetime], optional
        日時が取れない場合に使う現在時刻の取得関数。

    """

    def __init__(
        self,
        transport: HTTPTransport | None = None,
        config: BaseConfig | None = None,
        *,
        clock: Clock = now_jst,
    ):
        self.config = config or BaseConfig()
        self.transport = transport
        self.clock = clock
        self.thresholds = MojibakeThresholds.from_config(self.config)

    async def _get_transport(self) -> HTTPTransport:
        if self.transport is None:
            self.transport = await get_http_client(self.config)
        return self.transport

    @log_execution_time
    async def load(self, raw_input: str) -> LoadResult:
        """スレッドを取得して正規化します。例外は送出しません。

        Parameters
        ----------
        raw_input : str
            スレッドURL、またはShikutokuのトークID。

        Returns
        -------
        LoadResult
            取り込み結果。

        """
        raw_input = (raw_input or "").strip()
        try:
            return await self._load(raw_input)
        except Exception as e:
            logger.error(f"予期しないエラー: {raw_input}: {e}", exc_info=True)
            error = IngestError.of(ErrorKind.TRANSIENT, detail=f"{type(e).__name__}: {e}")
            return LoadResult(input=raw_input, error=error)

    async def load_or_raise(self, raw_input: str) -> LoadResult:
        """:meth:`load` と同じですが、失敗時は ThreadLoadError を送出します。"""
        result = await self.load(raw_input)
        if not result.ok:
            raise ThreadLoadError(result.error)
        return result

    async def _load(self, raw_input: str) -> LoadResult:
        locator = parse_url(raw_input)
        if locator is None:
            return LoadResult(
                input=raw_input, error=IngestError.of(ErrorKind.INVALID_INPUT, detail=raw_input)
            )

        log_load_start(logger, raw_input, classify(raw_input).value)

        if isinstance(locator, ProprietaryApiLocator):
            return await self._load_shikutoku(raw_input, locator)
        return await self._load_documents(raw_input, locator)

    def _parse(
        self, decoded: DecodedDocument, candidate: DocumentCandidate, locator: ThreadSourceLocator
    ) -> ParsedThread | ParseFailure:
        format_news = self.config.FORMAT_NEWS_BODY and isinstance(locator, LegacyBoardLocator)
        if candidate.format is DocumentFormat.DAT:
            return parse_dat(decoded.text, format_news=format_news)
        return parse_html(
            decoded.text,
            html_layouts(locator),
            format_news=format_news,
            base_url=candidate.url,
        )

    def _success(
        self,
        raw_input: str,
        locator: ThreadSourceLocator,
        parsed: ParsedThread,
        fetched_url: str,
        decoded: DecodedDocument | None = None,
    ) -> LoadResult:
        log_parse_result(logger, parsed.layout, len(parsed.posts))
        normalized = normalize(
            parsed, locator, clock=self.clock, url=thread_url(locator, self.config)
        )

        error = None
        if decoded is not None and not decoded.confidence_ok:
            error = IngestError.of(
                ErrorKind.ENCODING_UNRESOLVED, detail=decoded.source_encoding.value
            )

        return LoadResult(
            input=raw_input,
            thread=normalized.thread,
            posts=normalized.posts,
            error=error,
            fetched_url=fetched_url,
            encoding=decoded.source_encoding if decoded else SourceEncoding.UTF8,
        )

    async def _load_documents(self, raw_input: str, locator: ThreadSourceLocator) -> LoadResult:
        transport = await self._get_transport()
        candidates = build_candidates(locator, self.config)
        hint = encoding_hint(locator)

        attempts: list[FetchAttempt] = []
        parse_failures: list[tuple[str, ParseFailure]] = []

        # パースに失敗した場合は、その次の候補から取得を再開する
        start = 0
        while start < len(candidates):
            outcome = await fetch_candidates(transport, candidates[start:], self.config)
            attempts.extend(outcome.attempts)
            if isinstance(outcome, FetchFailure):
                break

            decoded = decode(outcome.content, hint=hint, thresholds=self.thresholds)
            log_decode_result(logger, decoded.source_encoding.value, decoded.confidence_ok)

            parsed = self._parse(decoded, outcome.candidate, locator)
            if isinstance(parsed, ParsedThread):
                return self._success(raw_input, locator, parsed, outcome.succeeded_url, decoded)

            log_parse_failure(logger, outcome.succeeded_url, parsed.attempted_layouts)
            parse_failures.append((outcome.succeeded_url, parsed))
            start += outcome.index + 1

        if parse_failures:
            detail = "; ".join(f"{url}: {failure.reason}" for url, failure in parse_failures)
            return LoadResult(
                input=raw_input,
                error=IngestError.of(ErrorKind.PARSE_FAILURE, detail=detail, attempts=tuple(attempts)),
            )

        failure = FetchFailure(kind=classify_failure(attempts), attempts=tuple(attempts))
        return LoadResult(input=raw_input, error=failure.to_error())

    async def _load_shikutoku(self, raw_input: str, locator: ProprietaryApiLocator) -> LoadResult:
        transport = await self._get_transport()

        outcome = await fetch_candidates(transport, build_candidates(locator, self.config), self.config)
        if isinstance(outcome, FetchFailure):
            return LoadResult(input=raw_input, error=outcome.to_error())

        try:
            payload = load_json(outcome.content)
            if is_not_found_payload(payload):
                return LoadResult(
                    input=raw_input,
                    error=IngestError.of(ErrorKind.NOT_FOUND, detail=locator.talk_id),
                )
            talk = parse_talk(payload)

            page_size = load_sources()["shikutoku"]["page_size"]
            comments = []
            for url in shikutoku_comment_urls(locator.talk_id, self.config):
                page_outcome = await fetch_candidates(
                    transport,
                    [
                        DocumentCandidate(
                            url=url,
                            format=DocumentFormat.JSON,
                            user_agent=UserAgentProfile.API,
                            label="comments",
                        )
                    ],
                    self.config,
                )
                if isinstance(page_outcome, FetchFailure):
                    return LoadResult(input=raw_input, error=page_outcome.to_error())

                page_payload = load_json(page_outcome.content)
                if is_not_found_payload(page_payload):
                    return LoadResult(
                        input=raw_input,
                        error=IngestError.of(ErrorKind.NOT_FOUND, detail=locator.talk_id),
                    )

                page = parse_comments(page_payload)
                comments.extend(page)
                if len(page) < page_size:
                    break
        except DataException as e:
            log_parse_failure(logger, outcome.succeeded_url, ["shikutoku-api"])
            return LoadResult(
                input=raw_input, error=IngestError.of(ErrorKind.PARSE_FAILURE, detail=str(e))
            )

        parsed = build_thread(talk, comments)
        if isinstance(parsed, ParseFailure):
            log_parse_failure(logger, outcome.succeeded_url, parsed.attempted_layouts)
            return LoadResult(
                input=raw_input,
                error=IngestError.of(ErrorKind.PARSE_FAILURE, detail=parsed.reason),
            )

        return self._success(raw_input, locator, parsed, outcome.succeeded_url)
