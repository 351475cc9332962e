from typing import Any

from fastapi import HTTPException, status

from matome.ingest.errors import ErrorKind, IngestError

# 取り込みエラーの種類ごとのHTTPステータス
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.TRANSIENT: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.PARSE_FAILURE: status.HTTP_422_UNPROCESSABLE_CONTENT,
    ErrorKind.ENCODING_UNRESOLVED: status.HTTP_422_UNPROCESSABLE_CONTENT,
}


class MatomeHTTPException(HTTPException):
    """matome用のHTTPException基底クラス"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_type: str,
        headers: dict[str, Any] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_type = error_type
        self.details = details


class IngestHTTPException(MatomeHTTPException):
    """取り込みエラー（IngestError）をHTTPエラーとして返す例外"""

    def __init__(self, error: IngestError):
        headers = None
        if error.kind is ErrorKind.TRANSIENT:
            headers = {"Retry-After": "60"}
        super().__init__(
            status_code=STATUS_BY_KIND[error.kind],
            detail=error.message,
            error_type=error.kind.value,
            headers=headers,
            details=error.to_dict(),
        )
        self.error = error
