"""DAT形式（5ch / 2ch.sc / open2ch 共通）のパーサー。

1行が1レスで、``名前<>メール<>日付 ID:xxx<>本文<>スレタイ`` の形式。
スレタイは1行目にのみ入っています。
"""

from __future__ import annotations

import logging

from matome.core.utils.date_utils import parse_board_datetime
from matome.ingest.body import (
    clean_body,
    clean_name,
    clean_thread_title,
    extract_image_urls,
    split_date_and_tag,
)
from matome.ingest.models import ParsedPost, ParsedThread, ParseFailure

logger = logging.getLogger(__name__)

DAT_DELIMITER = "<>"
LAYOUT_NAME = "dat"


def parse_dat_line(line: str, number: int, *, format_news: bool = True) -> ParsedPost | None:
    """DATの1行を1レスに変換します。フィールドが4つ未満の行は None。"""
    parts = line.split(DAT_DELIMITER)
    if len(parts) < 4:
        return None

    date_text, tag = split_date_and_tag(parts[2])
    body = clean_body(parts[3], format_news=format_news)

    return ParsedPost(
        number=number,
        author_name=clean_name(parts[0]),
        author_tag=tag,
        body=body,
        created_at=parse_board_datetime(date_text),
        image_urls=extract_image_urls(body),
    )


def parse_dat(text: str, *, format_news: bool = True) -> ParsedThread | ParseFailure:
    """DAT全体をパースします。

    壊れた行（フィールド不足）は読み飛ばします。レス番号は空行を除いた行位置（1始まり）のままとし、
    読み飛ばしによる欠番は正規化で振り直します（本文の ``>>N`` は板の番号を指すため）。

    Parameters
    ----------
    text : str
        デコード済みのDAT。
    format_news : bool
        本文にニュース向けの整形を行うかどうか。

    Returns
    -------
    ParsedThread | ParseFailure
        1件もレスが取れなければ ParseFailure。

    """
    posts: list[ParsedPost] = []
    title: str | None = None
    skipped = 0

    lines = [line for line in text.splitlines() if line.strip()]
    for index, line in enumerate(lines):
        post = parse_dat_line(line, index + 1, format_news=format_news)
        if post is None:
            skipped += 1
            continue

        if index == 0:
            parts = line.split(DAT_DELIMITER)
            if len(parts) >= 5:
                title = clean_thread_title(parts[4]) or None

        posts.append(post)

    if skipped:
        logger.debug(f"DATの不正な行を{skipped}件スキップしました")

    if not posts:
        return ParseFailure(reason="DAT形式の行が見つかりませんでした", attempted_layouts=(LAYOUT_NAME,))

    return ParsedThread(posts=tuple(posts), title=title, layout=LAYOUT_NAME)
