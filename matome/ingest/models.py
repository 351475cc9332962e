"""スレッド取り込みの統一データモデル。"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar


class SourceKind(str, Enum):
    """対応している掲示板サービス"""

    SHIKUTOKU = "shikutoku"
    FIVECH = "5ch"
    TWOCHSC = "2chsc"
    OPEN2CH = "open2ch"
    GIRLSCHANNEL = "girlschannel"
    UNKNOWN = "unknown"

    @property
    def is_legacy_board(self) -> bool:
        return self in (SourceKind.FIVECH, SourceKind.TWOCHSC, SourceKind.OPEN2CH)


class SourceEncoding(str, Enum):
    SJIS = "SJIS"
    EUCJP = "EUCJP"
    UTF8 = "UTF8"


class DocumentFormat(str, Enum):
    """取得するドキュメントの形式（どのパーサーに渡すかを決める）"""

    DAT = "dat"
    HTML = "html"
    JSON = "json"


class UserAgentProfile(str, Enum):
    """リクエスト時に名乗るクライアントの種類"""

    LEGACY = "legacy"  # 専用ブラウザ（Monazilla）
    BROWSER = "browser"
    API = "api"


@dataclass(frozen=True)
class LegacyBoardLocator:
    """5ch / 2ch.sc / open2ch 系のスレッド位置。

    Parameters
    ----------
    family : SourceKind
        掲示板の系統（FIVECH / TWOCHSC / OPEN2CH）。
    board : str
        板ID（例: ``livegalileo``）。
    thread_key : str
        スレッドキー（数字）。
    server : str, optional
        サーバー名（例: ``nova``）。open2ch はサブドメインなしの場合 None。

    """

    family: SourceKind
    board: str
    thread_key: str
    server: str | None = None

    source: ClassVar[str] = "legacy-board"

    @property
    def key(self) -> str:
        return self.thread_key

    @property
    def id_prefix(self) -> str:
        return self.family.value


@dataclass(frozen=True)
class ProprietaryApiLocator:
    """Shikutoku のトーク位置"""

    talk_id: str

    source: ClassVar[str] = "proprietary-api"

    @property
    def key(self) -> str:
        return self.talk_id

    @property
    def id_prefix(self) -> str:
        return SourceKind.SHIKUTOKU.value

    @property
    def family(self) -> SourceKind:
        return SourceKind.SHIKUTOKU


@dataclass(frozen=True)
class CommunityTopicLocator:
    """ガールズちゃんねるのトピック位置"""

    topic_id: str

    source: ClassVar[str] = "community-topic"

    @property
    def key(self) -> str:
        return self.topic_id

    @property
    def id_prefix(self) -> str:
        return SourceKind.GIRLSCHANNEL.value

    @property
    def family(self) -> SourceKind:
        return SourceKind.GIRLSCHANNEL


ThreadSourceLocator = LegacyBoardLocator | ProprietaryApiLocator | CommunityTopicLocator


@dataclass(frozen=True)
class DecodedDocument:
    """デコード済みドキュメント（パース後は破棄される中間値）"""

    text: str
    source_encoding: SourceEncoding
    confidence_ok: bool


@dataclass(frozen=True)
class ParsedPost:
    """パーサーが抽出した1レス（正規化前）。

    ``is_owner`` はソース自身がスレ主かどうかを返す場合のみ設定される。
    """

    number: int | None
    author_name: str
    body: str
    author_tag: str | None = None
    created_at: datetime | None = None
    image_urls: tuple[str, ...] = ()
    is_owner: bool | None = None


@dataclass(frozen=True)
class ParsedThread:
    """パーサーの出力。``layout`` は抽出に成功した形式名。"""

    posts: tuple[ParsedPost, ...]
    title: str | None
    layout: str


@dataclass(frozen=True)
class ParseFailure:
    """どの形式でもレスを抽出できなかったことを表す結果値"""

    reason: str
    attempted_layouts: tuple[str, ...] = ()


@dataclass(frozen=True)
class Post:
    """スレッド内の1レス。

    Parameters
    ----------
    id : str
        スレッド修飾ID（例: ``5ch-1732936890-1``）。
    sequence_number : int
        1始まりの連番。出力順と一致する。
    source_number : int
        掲示板上の元のレス番号。本文中の ``>>N`` はこの番号を指す。
    author_name : str
        投稿者名。
    author_tag : str or None
        ID・トリップ等の投稿者識別子。
    body : str
        本文（プレーンテキスト、改行は ``\\n``）。
    created_at : datetime
        投稿日時（タイムゾーン付き）。
    image_urls : tuple[str, ...]
        本文中の画像URL。
    is_original_poster : bool
        1レス目と同じ ``author_tag`` かどうか。

    """

    id: str
    sequence_number: int
    source_number: int
    author_name: str
    author_tag: str | None
    body: str
    created_at: datetime
    image_urls: tuple[str, ...] = ()
    is_original_poster: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sequence_number": self.sequence_number,
            "source_number": self.source_number,
            "author_name": self.author_name,
            "author_tag": self.author_tag,
            "body": self.body,
            "created_at": self.created_at.isoformat(),
            "image_urls": list(self.image_urls),
            "is_original_poster": self.is_original_poster,
        }


@dataclass(frozen=True)
class Thread:
    """1スレッド。再取得すると新しい値が作られる。"""

    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    post_count: int
    source: SourceKind
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "post_count": self.post_count,
            "source": self.source.value,
            "url": self.url,
        }


@dataclass(frozen=True)
class DocumentCandidate:
    """取得候補のURLと、その取得方法"""

    url: str
    format: DocumentFormat
    user_agent: UserAgentProfile = UserAgentProfile.LEGACY
    label: str = "primary"
    extra_headers: tuple[tuple[str, str], ...] = field(default=())
