"""取り込みエラーの分類（例外ではなく結果値として扱う）。"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

# 404相当として扱うステータス
NOT_FOUND_STATUSES = frozenset({404, 410})


class Disposition(str, Enum):
    """一括処理の呼び出し側が取るべき対応"""

    ABORT = "abort"  # 中断してユーザーに入力を求める
    RETRY = "retry"  # 時間をおいて再試行し、だめならスキップ
    SKIP = "skip"  # スキップして次へ


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    ENCODING_UNRESOLVED = "encoding_unresolved"
    PARSE_FAILURE = "parse_failure"

    @property
    def message(self) -> str:
        return _MESSAGES[self]

    @property
    def disposition(self) -> Disposition:
        if self is ErrorKind.INVALID_INPUT:
            return Disposition.ABORT
        if self is ErrorKind.TRANSIENT:
            return Disposition.RETRY
        return Disposition.SKIP

    @property
    def retryable(self) -> bool:
        return self.disposition is Disposition.RETRY


_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_INPUT: (
        "対応していないURLです。5ch・open2ch・2ch.sc・Shikutoku・ガールズちゃんねるの"
        "スレッドURL（またはShikutokuのトークID）を入力してください。"
    ),
    ErrorKind.NOT_FOUND: (
        "スレッドが見つかりません。DAT落ちしているか、URLが正しくない可能性があります。"
    ),
    ErrorKind.TRANSIENT: (
        "サーバーへのアクセスが一時的に制限されています。しばらく時間をおいてから再度お試しください。"
    ),
    ErrorKind.ENCODING_UNRESOLVED: (
        "文字コードを特定できませんでした。一部の文字が正しく表示されない可能性があります。"
    ),
    ErrorKind.PARSE_FAILURE: (
        "スレッドは取得できましたが、レスを読み取れませんでした。ページの形式が変わった可能性があります。"
    ),
}


@dataclass(frozen=True)
class FetchAttempt:
    """候補URL1件分の取得結果。

    Parameters
    ----------
    url : str
        リクエストしたURL。
    status_code : int, optional
        HTTPステータス。通信エラー時は None。
    error : str, optional
        通信エラーの内容。

    """

    url: str
    status_code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300

    @property
    def is_not_found(self) -> bool:
        return self.status_code in NOT_FOUND_STATUSES

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "status_code": self.status_code, "error": self.error}


@dataclass(frozen=True)
class IngestError:
    """ユーザーに表示できるエラー値"""

    kind: ErrorKind
    message: str
    detail: str | None = None
    attempts: tuple[FetchAttempt, ...] = ()

    @classmethod
    def of(
        cls,
        kind: ErrorKind,
        detail: str | None = None,
        attempts: tuple[FetchAttempt, ...] = (),
    ) -> IngestError:
        return cls(kind=kind, message=kind.message, detail=detail, attempts=tuple(attempts))

    @property
    def disposition(self) -> Disposition:
        return self.kind.disposition

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "detail": self.detail,
            "attempts": [attempt.to_dict() for attempt in self.attempts],
        }
