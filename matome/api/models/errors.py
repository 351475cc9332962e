from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorBody(BaseModel):
    """APIエラーの本体"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "not_found",
                "message": "スレッドが見つかりません。DAT落ちしているか、URLが正しくない可能性があります。",
                "error_id": "20240120123456789012",
                "timestamp": "2024-01-20T12:34:56.789012+00:00",
                "status_code": 404,
                "details": {
                    "kind": "not_found",
                    "attempts": [
                        {
                            "url": "https://nova.5ch.net/livegalileo/dat/1732936890.dat",
                            "status_code": 404,
                            "error": None,
                        }
                    ],
                },
            }
        }
    )

    type: str = Field(..., description="エラータイプ")
    message: str = Field(..., description="エラーメッセージ")
    error_id: str = Field(..., description="エラー追跡用ID")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="エラー発生時刻"
    )
    status_code: int = Field(..., description="HTTPステータスコード")
    details: dict[str, Any] | None = Field(None, description="追加の詳細情報")


class ErrorResponse(BaseModel):
    """APIエラーレスポンス"""

    error: ErrorBody
