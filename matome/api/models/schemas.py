"""APIスキーマ。
APIレスポンスのデータモデルを定義します。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class PostSchema(BaseModel):
    """レス。

    Parameters
    ----------
    id : str
        スレッド修飾ID。
    sequence_number : int
        1始まりの連番。
    source_number : int
        掲示板上の元のレス番号。

    """

    id: str
    sequence_number: int = Field(..., ge=1)
    source_number: int
    author_name: str
    author_tag: str | None = None
    body: str
    created_at: datetime
    image_urls: list[str] = Field(default_factory=list)
    is_original_poster: bool = False


class ThreadSchema(BaseModel):
    """スレッドのメタ情報"""

    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    post_count: int
    source: str = Field(..., description="ソース（shikutoku, 5ch, 2chsc, open2ch, girlschannel）")
    url: str | None = None


class IngestErrorSchema(BaseModel):
    kind: str
    message: str
    detail: str | None = None
    attempts: list[dict[str, Any]] = Field(default_factory=list)


class ThreadResponse(BaseModel):
    """スレッド取得レスポンス。

    ``error`` は成功時でも文字コードを特定できなかった場合に入ります。
    """

    input: str
    thread: ThreadSchema
    posts: list[PostSchema]
    error: IngestErrorSchema | None = None
    fetched_url: str | None = None
    encoding: str | None = None


class ClassifyResponse(BaseModel):
    """入力判定レスポンス"""

    input: str
    source: str
    supported: bool
    thread_id: str | None = None
    candidate_urls: list[str] = Field(default_factory=list)


class TopicListResponse(BaseModel):
    """新着トピック一覧レスポンス"""

    page: int
    urls: list[str]
