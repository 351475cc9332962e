from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class BaseConfig(BaseSettings):
    """基本設定クラス"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ログ関連
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_DIR: str = Field(default="var/logs", validation_alias="LOG_DIR")

    # リクエスト関連
    REQUEST_TIMEOUT: float = Field(
        default=20.0, ge=5.0, le=60.0, validation_alias="REQUEST_TIMEOUT"
    )
    TOTAL_TIMEOUT: float | None = Field(
        default=None, gt=0, validation_alias="TOTAL_TIMEOUT"
    )
    FETCH_BACKEND: Literal["httpx", "cloudscraper"] = Field(
        default="httpx", validation_alias="FETCH_BACKEND"
    )

    # User-Agent（板ごとに期待されるクライアント識別子が異なる）
    LEGACY_USER_AGENT: str = Field(
        default="Monazilla/1.00", validation_alias="LEGACY_USER_AGENT"
    )
    BROWSER_USER_AGENT: str = Field(
        default=DEFAULT_BROWSER_USER_AGENT, validation_alias="BROWSER_USER_AGENT"
    )
    API_USER_AGENT: str = Field(default="ShikuMato/1.0", validation_alias="API_USER_AGENT")

    # ソース別エンドポイント
    SHIKUTOKU_BASE_URL: str = Field(
        default="https://shikutoku.me", validation_alias="SHIKUTOKU_BASE_URL"
    )
    SHIKUTOKU_API_KEY: SecretStr | None = Field(
        default=None, validation_alias="SHIKUTOKU_API_KEY"
    )
    GIRLSCHANNEL_BASE_URL: str = Field(
        default="https://girlschannel.net", validation_alias="GIRLSCHANNEL_BASE_URL"
    )

    # 本文整形
    FORMAT_NEWS_BODY: bool = Field(default=True, validation_alias="FORMAT_NEWS_BODY")

    # 文字化け判定のしきい値（経験的に決められた値をそのまま保持）
    MOJIBAKE_MAX_REPLACEMENT: int = Field(
        default=50, ge=0, validation_alias="MOJIBAKE_MAX_REPLACEMENT"
    )
    MOJIBAKE_MAX_ARTIFACTS: int = Field(
        default=30, ge=0, validation_alias="MOJIBAKE_MAX_ARTIFACTS"
    )
    MOJIBAKE_SAMPLE_SIZE: int = Field(default=500, ge=1, validation_alias="MOJIBAKE_SAMPLE_SIZE")
    MOJIBAKE_MIN_JAPANESE: int = Field(
        default=10, ge=0, validation_alias="MOJIBAKE_MIN_JAPANESE"
    )
    MOJIBAKE_MIN_LENGTH: int = Field(default=100, ge=0, validation_alias="MOJIBAKE_MIN_LENGTH")

    # 一括処理関連
    BULK_INTERVAL: float = Field(default=3.0, ge=0.0, le=600.0, validation_alias="BULK_INTERVAL")
    BULK_ERROR_INTERVAL: float = Field(
        default=2.0, ge=0.0, le=600.0, validation_alias="BULK_ERROR_INTERVAL"
    )
    BULK_MAX_ATTEMPTS: int = Field(default=3, ge=1, le=10, validation_alias="BULK_MAX_ATTEMPTS")
    BULK_BACKOFF_MAX: float = Field(
        default=60.0, ge=0.0, le=3600.0, validation_alias="BULK_BACKOFF_MAX"
    )

    def shikutoku_headers(self) -> dict[str, str]:
        """Shikutoku API用のリクエストヘッダーを返します。"""
        headers = {"User-Agent": self.API_USER_AGENT, "Accept": "application/json"}
        if self.SHIKUTOKU_API_KEY is not None:
            headers["x-api-key"] = self.SHIKUTOKU_API_KEY.get_secret_value()
        return headers
