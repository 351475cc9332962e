import logging
import traceback
from datetime import UTC, datetime
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from matome.api.exceptions import IngestHTTPException, MatomeHTTPException
from matome.core.errors.exceptions import (
    ConfigurationException,
    DataException,
    FetchException,
    MatomeException,
    ThreadLoadError,
)

logger = logging.getLogger(__name__)

# アプリケーション例外 → (HTTPステータス, エラー種別)。上から順に isinstance で照合する
_APPLICATION_ERRORS: tuple[tuple[type[MatomeException], int, str], ...] = (
    (FetchException, status.HTTP_503_SERVICE_UNAVAILABLE, "fetch_error"),
    (ConfigurationException, status.HTTP_500_INTERNAL_SERVER_ERROR, "configuration_error"),
    (DataException, status.HTTP_422_UNPROCESSABLE_CONTENT, "data_error"),
    (MatomeException, status.HTTP_500_INTERNAL_SERVER_ERROR, "application_error"),
)


async def error_handler_middleware(request: Request, call_next):
    """グローバルエラーハンドリングミドルウェア"""
    try:
        return await call_next(request)
    except Exception as exc:
        return handle_exception(exc, request)


def _new_error_id() -> str:
    return datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")


def _http_error_response(exc: MatomeHTTPException, request: Request, error_id: str) -> JSONResponse:
    # 取り込みエラーは想定内の失敗なのでスタックトレースは残さない
    logger.warning(
        f"Request failed: {exc.error_type}",
        extra={
            "error_id": error_id,
            "method": request.method,
            "url": str(request.url),
            "error_type": exc.error_type,
            "status_code": exc.status_code,
        },
    )
    response = create_error_response(
        status_code=exc.status_code,
        error_type=exc.error_type,
        message=exc.detail,
        error_id=error_id,
        details=exc.details,
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def handle_exception(exc: Exception, request: Request) -> JSONResponse:
    """例外を処理してJSONレスポンスを返す

    ``ThreadLoadError`` は取り込みエラーの種類に応じたステータス（400 / 404 / 503 / 422）に変換します。
    """
    error_id = _new_error_id()

    if isinstance(exc, ThreadLoadError):
        exc = IngestHTTPException(exc.error)
    if isinstance(exc, MatomeHTTPException):
        return _http_error_response(exc, request, error_id)

    logger.error(
        "Unhandled exception",
        extra={
            "error_id": error_id,
            "method": request.method,
            "url": str(request.url),
            "error_type": type(exc).__name__,
            "error_message": str(exc),
            "traceback": traceback.format_exc(),
        },
        exc_info=True,
    )

    for exc_type, status_code, error_type in _APPLICATION_ERRORS:
        if isinstance(exc, exc_type):
            details = None
            if isinstance(exc, FetchException) and exc.url:
                details = {"url": exc.url}
            # 設定エラーの詳細はクライアントに返さない
            message = (
                "Configuration error occurred"
                if isinstance(exc, ConfigurationException)
                else str(exc)
            )
            return create_error_response(status_code, error_type, message, error_id, details)

    if isinstance(exc, RequestValidationError):
        return create_error_response(
            status.HTTP_422_UNPROCESSABLE_CONTENT,
            "validation_error",
            "Request validation failed",
            error_id,
            {"errors": exc.errors()},
        )

    if isinstance(exc, StarletteHTTPException):
        return create_error_response(exc.status_code, "http_error", exc.detail, error_id)

    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
        error_id,
    )


def create_error_response(
    status_code: int,
    error_type: str,
    message: str,
    error_id: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """標準化されたエラーレスポンスを作成"""
    content = {
        "error": {
            "type": error_type,
            "message": message,
            "error_id": error_id,
            "timestamp": datetime.now(UTC).isoformat(),
            "status_code": status_code,
        }
    }

    if details:
        content["error"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)
