"""Shikutoku API（getTalk / getComments）のレスポンスを解析する。"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from matome.core.errors.exceptions import DataException
from matome.core.utils.date_utils import parse_iso_datetime
from matome.ingest.body import DEFAULT_AUTHOR_NAME, extract_image_urls
from matome.ingest.models import ParsedPost, ParsedThread, ParseFailure

LAYOUT_NAME = "shikutoku-api"


class ShikutokuTalk(BaseModel):
    """トーク（スレッド）のメタ情報"""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str = ""
    body: str = ""
    created_at: str | None = None
    updated_at: str | None = None
    comment_count: int | None = None


class ShikutokuComment(BaseModel):
    """トークへのコメント1件"""

    model_config = ConfigDict(extra="ignore")

    id: str
    res_id: str
    name: str = ""
    name_id: str | None = None
    body: str = ""
    talk_id: str | None = None
    created_at: str | None = None
    images: list[str] = Field(default_factory=list)
    is_talk_owner: bool | None = None


def _coerce_ids(item: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    # APIは数値IDを数値で返すことがある
    return {**item, **{k: str(item[k]) for k in keys if isinstance(item.get(k), int)}}


def load_json(content: bytes) -> Any:
    try:
        return json.loads(content.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DataException(f"JSONとして読み込めません: {e}") from e


def is_not_found_payload(payload: Any) -> bool:
    """``{"error": "Talk not found"}`` のような「見つからない」応答かどうか。"""
    if not isinstance(payload, dict):
        return False
    error = payload.get("error") or payload.get("message")
    return isinstance(error, str) and "not found" in error.lower()


def parse_talk(payload: Any) -> ShikutokuTalk:
    """``{"data": Talk}`` からトークを取り出します。

    Raises
    ------
    DataException
        想定した構造でない場合。
    """
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        raise DataException("getTalk の応答に data がありません")
    try:
        return ShikutokuTalk.model_validate(_coerce_ids(data, ("id",)))
    except ValidationError as e:
        raise DataException(f"getTalk の応答が不正です: {e}") from e


def parse_comments(payload: Any) -> list[ShikutokuComment]:
    """``{"data": {"comments": [...]}}`` からコメント一覧を取り出します。

    構造の崩れたコメントは読み飛ばします。
    """
    data = payload.get("data") if isinstance(payload, dict) else None
    items = data.get("comments") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return []

    comments = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            comments.append(
                ShikutokuComment.model_validate(_coerce_ids(item, ("id", "res_id", "talk_id")))
            )
        except ValidationError:
            continue
    return comments


def _to_post(comment: ShikutokuComment) -> ParsedPost:
    body = comment.body.replace("\r\n", "\n").strip()
    images = list(comment.images)
    for url in extract_image_urls(body):
        if url not in images:
            images.append(url)

    number = int(comment.res_id) if comment.res_id.isdigit() else None
    return ParsedPost(
        number=number,
        author_name=comment.name.strip() or DEFAULT_AUTHOR_NAME,
        author_tag=comment.name_id or None,
        body=body,
        created_at=parse_iso_datetime(comment.created_at),
        image_urls=tuple(images),
        is_owner=comment.is_talk_owner,
    )


def build_thread(
    talk: ShikutokuTalk, comments: list[ShikutokuComment]
) -> ParsedThread | ParseFailure:
    """トークとコメントからパース結果を組み立てます（レス番号は res_id）。"""
    if not comments:
        return ParseFailure(reason="コメントが1件もありません", attempted_layouts=(LAYOUT_NAME,))

    # ページをまたいだ重複を除く
    seen: set[str] = set()
    posts = []
    for comment in comments:
        if comment.id in seen:
            continue
        seen.add(comment.id)
        posts.append(_to_post(comment))

    return ParsedThread(posts=tuple(posts), title=talk.title.strip() or None, layout=LAYOUT_NAME)
