"""スレッドURLの解析と、取得候補URLの生成。

URLの形式（ミラー・過去ログ倉庫・HTMLレイアウト）は ``sources.toml`` に定義しています。
"""

from __future__ import annotations

import re
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from matome.core.config import BaseConfig
from matome.ingest.classifier import classify
from matome.ingest.models import (
    CommunityTopicLocator,
    DocumentCandidate,
    DocumentFormat,
    LegacyBoardLocator,
    ProprietaryApiLocator,
    SourceEncoding,
    SourceKind,
    ThreadSourceLocator,
    UserAgentProfile,
)

SOURCES_FILE = Path(__file__).parent / "sources.toml"

# モバイル版（itest）の読み込みURL
_ITEST_RE = re.compile(
    r"https?://itest\.5ch\.net/([a-z0-9]+)/test/read\.cgi/([a-z0-9_]+)/(\d+)", re.IGNORECASE
)


def _legacy_patterns(domain: str) -> tuple[re.Pattern[str], ...]:
    host = re.escape(domain)
    return (
        # 読み込み形式: https://server.host/test/read.cgi/board/key/
        re.compile(
            rf"https?://([a-z0-9]+)\.{host}/test/read\.cgi/([a-z0-9_]+)/(\d+)/?", re.IGNORECASE
        ),
        # DAT直接: https://server.host/board/dat/key.dat
        re.compile(rf"https?://([a-z0-9]+)\.{host}/([a-z0-9_]+)/dat/(\d+)\.dat", re.IGNORECASE),
    )


_FIVECH_PATTERNS = _legacy_patterns("5ch.net")
_TWOCHSC_PATTERNS = _legacy_patterns("2ch.sc")

# open2ch はサブドメインなし（open2ch.net）のURLもある
_OPEN2CH_PATTERNS = (
    re.compile(
        r"https?://(?:([a-z0-9]+)\.)?open2ch\.net/test/read\.cgi/([a-z0-9_]+)/(\d+)/?",
        re.IGNORECASE,
    ),
    re.compile(
        r"https?://(?:([a-z0-9]+)\.)?open2ch\.net/([a-z0-9_]+)/dat/(\d+)\.dat", re.IGNORECASE
    ),
)

_SHIKUTOKU_URL_RE = re.compile(r"shikutoku\.me/talks/(\d+)", re.IGNORECASE)
_NUMERIC_ID_RE = re.compile(r"^(\d+)$")
_GIRLSCHANNEL_RE = re.compile(r"^https?://(?:www\.)?girlschannel\.net/topics/(\d+)", re.IGNORECASE)


@lru_cache(maxsize=4)
def load_sources(path: Path = SOURCES_FILE) -> dict[str, Any]:
    """取得先URLテーブル（sources.toml）を読み込みます。"""
    with open(path, "rb") as f:
        return tomllib.load(f)


def normalize_5ch_url(url: str) -> str:
    """モバイル版（itest.5ch.net）のURLをPC版の読み込みURLに変換します。

    itest.5ch.net/hayabusa9/test/read.cgi/news/123 → https://hayabusa9.5ch.net/test/read.cgi/news/123/
    """
    match = _ITEST_RE.search(url)
    if match:
        server, board, key = match.groups()
        return f"https://{server}.5ch.net/test/read.cgi/{board}/{key}/"
    return url


def _match_legacy(
    url: str, patterns: tuple[re.Pattern[str], ...], family: SourceKind
) -> LegacyBoardLocator | None:
    for pattern in patterns:
        match = pattern.search(url)
        if match:
            server, board, key = match.groups()
            return LegacyBoardLocator(
                family=family,
                server=server.lower() if server else None,
                board=board,
                thread_key=key,
            )
    return None


def parse_5ch_url(url: str) -> LegacyBoardLocator | None:
    return _match_legacy(normalize_5ch_url(url), _FIVECH_PATTERNS, SourceKind.FIVECH)


def parse_2chsc_url(url: str) -> LegacyBoardLocator | None:
    return _match_legacy(url, _TWOCHSC_PATTERNS, SourceKind.TWOCHSC)


def parse_open2ch_url(url: str) -> LegacyBoardLocator | None:
    return _match_legacy(url, _OPEN2CH_PATTERNS, SourceKind.OPEN2CH)


def parse_shikutoku_input(value: str) -> ProprietaryApiLocator | None:
    """ShikutokuのトークURL、または数字のみのトークIDを解析します。"""
    value = value.strip()
    match = _SHIKUTOKU_URL_RE.search(value) or _NUMERIC_ID_RE.match(value)
    if match:
        return ProprietaryApiLocator(talk_id=match.group(1))
    return None


def parse_girlschannel_url(url: str) -> CommunityTopicLocator | None:
    match = _GIRLSCHANNEL_RE.match(url.strip())
    if match:
        return CommunityTopicLocator(topic_id=match.group(1))
    return None


_PARSERS = {
    SourceKind.SHIKUTOKU: parse_shikutoku_input,
    SourceKind.FIVECH: parse_5ch_url,
    SourceKind.TWOCHSC: parse_2chsc_url,
    SourceKind.OPEN2CH: parse_open2ch_url,
    SourceKind.GIRLSCHANNEL: parse_girlschannel_url,
}


def parse_url(value: str) -> ThreadSourceLocator | None:
    """入力を判定し、対応するパーサーでスレッド位置を取り出します。

    どのパターンにも一致しない場合は None を返します（例外は送出しません）。
    """
    value = (value or "").strip()
    parser = _PARSERS.get(classify(value))
    if parser is None:
        return None
    return parser(value)


def encoding_hint(locator: ThreadSourceLocator) -> SourceEncoding | None:
    """ソースごとに優先して試す文字コード（sources.toml の ``encoding``）。"""
    sources = load_sources()
    if isinstance(locator, LegacyBoardLocator):
        name = sources["families"][locator.family.value].get("encoding")
    elif isinstance(locator, CommunityTopicLocator):
        name = sources["girlschannel"].get("encoding")
    else:
        return None
    return SourceEncoding(name) if name else None


def html_layouts(locator: ThreadSourceLocator) -> list[str]:
    """HTMLを解析するときに試すレイアウト名を優先順に返します。"""
    sources = load_sources()
    if isinstance(locator, LegacyBoardLocator):
        return list(sources["families"][locator.family.value]["layouts"])
    if isinstance(locator, CommunityTopicLocator):
        return list(sources["girlschannel"]["layouts"])
    return []


def _legacy_fields(locator: LegacyBoardLocator, domain: str) -> dict[str, str]:
    origin = f"{locator.server}.{domain}" if locator.server else domain
    return {
        "origin": origin,
        "server": locator.server or "",
        "board": locator.board,
        "key": locator.thread_key,
        "prefix": locator.thread_key[:4],
    }


def _legacy_candidates(locator: LegacyBoardLocator) -> list[DocumentCandidate]:
    family = load_sources()["families"][locator.family.value]
    fields = _legacy_fields(locator, family["domain"])

    candidates = [DocumentCandidate(url=family["dat"].format(**fields), format=DocumentFormat.DAT)]

    # サーバー名が必要なミラーは、サーバー名がない場合は生成しない
    for template in family.get("mirrors", []):
        if "{server}" in template and not locator.server:
            continue
        candidates.append(
            DocumentCandidate(
                url=template.format(**fields), format=DocumentFormat.DAT, label="mirror"
            )
        )

    for template in family.get("archives", []):
        candidates.append(
            DocumentCandidate(
                url=template.format(**fields), format=DocumentFormat.DAT, label="archive"
            )
        )

    candidates.append(
        DocumentCandidate(
            url=family["reader"].format(**fields),
            format=DocumentFormat.HTML,
            user_agent=UserAgentProfile.BROWSER,
            label="reader",
        )
    )

    # 同じURLが複数のテンプレートから生成された場合は先頭のみ残す
    unique: list[DocumentCandidate] = []
    seen: set[str] = set()
    for candidate in candidates:
        if candidate.url not in seen:
            seen.add(candidate.url)
            unique.append(candidate)
    return unique


def build_candidates(
    locator: ThreadSourceLocator, config: BaseConfig | None = None
) -> list[DocumentCandidate]:
    """スレッド位置から取得候補を、成功しやすい順に生成します。

    1. 元サーバーのDAT / API
    2. ミラー
    3. 過去ログ倉庫（スレッドキー先頭4文字のディレクトリ）
    4. HTMLの読み込みページ

    Parameters
    ----------
    locator : ThreadSourceLocator
        スレッド位置。
    config : BaseConfig, optional
        エンドポイントのベースURLに使用する設定。

    Returns
    -------
    list[DocumentCandidate]
        取得候補（空にはならない）。

    """
    config = config or BaseConfig()
    sources = load_sources()

    if isinstance(locator, LegacyBoardLocator):
        return _legacy_candidates(locator)

    if isinstance(locator, ProprietaryApiLocator):
        base = config.SHIKUTOKU_BASE_URL.rstrip("/")
        return [
            DocumentCandidate(
                url=sources["shikutoku"]["talk"].format(base=base, id=locator.talk_id),
                format=DocumentFormat.JSON,
                user_agent=UserAgentProfile.API,
                label="api",
            )
        ]

    if isinstance(locator, CommunityTopicLocator):
        base = config.GIRLSCHANNEL_BASE_URL.rstrip("/")
        return [
            DocumentCandidate(
                url=sources["girlschannel"]["topic"].format(base=base, id=locator.topic_id),
                format=DocumentFormat.HTML,
                user_agent=UserAgentProfile.BROWSER,
                label="topic",
            )
        ]

    raise TypeError(f"未対応のロケーター: {locator!r}")


def candidate_urls(
    locator: ThreadSourceLocator, config: BaseConfig | None = None
) -> list[str]:
    return [candidate.url for candidate in build_candidates(locator, config)]


def shikutoku_comment_urls(talk_id: str, config: BaseConfig | None = None) -> list[str]:
    """Shikutokuのコメント一覧APIのページURL（1-50, 51-100, ...）を返します。"""
    config = config or BaseConfig()
    table = load_sources()["shikutoku"]
    base = config.SHIKUTOKU_BASE_URL.rstrip("/")
    size = table["page_size"]
    return [
        table["comments"].format(base=base, id=talk_id, start=page * size + 1, end=(page + 1) * size)
        for page in range(table["max_pages"])
    ]


def thread_url(locator: ThreadSourceLocator, config: BaseConfig | None = None) -> str:
    """人が開くためのスレッドURLを返します。"""
    config = config or BaseConfig()
    if isinstance(locator, LegacyBoardLocator):
        family = load_sources()["families"][locator.family.value]
        return family["reader"].format(**_legacy_fields(locator, family["domain"]))
    if isinstance(locator, ProprietaryApiLocator):
        return f"{config.SHIKUTOKU_BASE_URL.rstrip('/')}/talks/{locator.talk_id}"
    return f"{config.GIRLSCHANNEL_BASE_URL.rstrip('/')}/topics/{locator.topic_id}/"
