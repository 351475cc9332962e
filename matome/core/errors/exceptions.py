"""アプリケーション共通の例外クラス。"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from matome.ingest.errors import IngestError


class MatomeException(Exception):
    """matome の全例外の基底クラス"""


class FetchException(MatomeException):
    """HTTP通信ライブラリ内部の失敗（接続失敗・タイムアウトなど）"""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class ConfigurationException(MatomeException):
    """設定値の不備"""


class DataException(MatomeException):
    """取得済みデータの構造が想定と異なる"""


class ThreadLoadError(MatomeException):
    """スレッド取得結果のエラーを例外として送出するためのラッパー"""

    def __init__(self, error: IngestError):
        super().__init__(error.message)
        self.error = error

    @property
    def kind(self):
        return self.error.kind
