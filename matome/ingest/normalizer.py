"""パース結果を統一モデル（Thread / Post）に変換する。"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from matome.core.logging.logging_utils import log_renumbered
from matome.core.utils.date_utils import now_jst
from matome.ingest.models import (
    LegacyBoardLocator,
    ParsedThread,
    Post,
    Thread,
    ThreadSourceLocator,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class NormalizedThread:
    thread: Thread
    posts: tuple[Post, ...]

    def to_dict(self) -> dict:
        return {
            "thread": self.thread.to_dict(),
            "posts": [post.to_dict() for post in self.posts],
        }


def thread_id_for(locator: ThreadSourceLocator) -> str:
    return f"{locator.id_prefix}-{locator.key}"


def fallback_title(locator: ThreadSourceLocator) -> str:
    if isinstance(locator, LegacyBoardLocator):
        return f"{locator.board} thread"
    return f"{locator.id_prefix} {locator.key}"


def find_number_gaps(numbers: list[int]) -> list[int]:
    """連番 1..N と食い違う元レス番号（欠番による位置ずれ・重複）を出現順に1回ずつ返します。"""
    counts = Counter(numbers)
    anomalies: list[int] = []
    for index, number in enumerate(numbers, start=1):
        if (number != index or counts[number] > 1) and number not in anomalies:
            anomalies.append(number)
    return anomalies


def normalize(
    parsed: ParsedThread,
    locator: ThreadSourceLocator,
    *,
    clock: Clock = now_jst,
    url: str | None = None,
) -> NormalizedThread:
    """パース結果から Thread と Post の一覧を作ります。

    - ``sequence_number`` は出力順に 1..N を振り直し、元の番号は ``source_number`` に残す
      （本文中の ``>>N`` は元の番号を指すため）。振り直しが必要な場合は警告を出す
    - ``is_original_poster`` は1レス目と ``author_tag`` が一致するかどうか
      （ソースがスレ主フラグを返す場合はそちらを優先）
    - 日時が取れないレスと、レスのないスレッドの日時は ``clock()`` の値を使う

    Parameters
    ----------
    parsed : ParsedThread
        パーサーの出力。
    locator : ThreadSourceLocator
        スレッド位置。
    clock : Callable[[], datetime]
        現在時刻の取得関数（テストで固定するため注入可能）。
    url : str, optional
        スレッドのURL。

    Returns
    -------
    NormalizedThread
        正規化済みのスレッドとレス。

    """
    thread_id = thread_id_for(locator)
    now = clock()

    source_numbers = [
        post.number if post.number is not None else index
        for index, post in enumerate(parsed.posts, start=1)
    ]
    gaps = find_number_gaps(source_numbers)
    if gaps:
        log_renumbered(logger, thread_id, gaps)

    op_tag = parsed.posts[0].author_tag if parsed.posts else None

    posts: list[Post] = []
    for sequence, (item, source_number) in enumerate(zip(parsed.posts, source_numbers), start=1):
        if item.is_owner is not None:
            is_op = item.is_owner
        else:
            is_op = op_tag is not None and item.author_tag == op_tag

        posts.append(
            Post(
                id=f"{thread_id}-{sequence}",
                sequence_number=sequence,
                source_number=source_number,
                author_name=item.author_name,
                author_tag=item.author_tag,
                body=item.body,
                created_at=item.created_at or now,
                image_urls=item.image_urls,
                is_original_poster=is_op,
            )
        )

    thread = Thread(
        id=thread_id,
        title=parsed.title or fallback_title(locator),
        created_at=posts[0].created_at if posts else now,
        updated_at=posts[-1].created_at if posts else now,
        post_count=len(posts),
        source=locator.family,
        url=url,
    )
    return NormalizedThread(thread=thread, posts=tuple(posts))
