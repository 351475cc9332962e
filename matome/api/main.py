"""
matome APIのメインアプリケーション。
FastAPIを使用してスレッド取り込みのエンドポイントを提供します。
"""

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from matome.api.exceptions import MatomeHTTPException
from matome.api.middleware.error_handler import error_handler_middleware, handle_exception
from matome.api.models.errors import ErrorResponse
from matome.api.routers import threads
from matome.core.errors.error_metrics import error_metrics
from matome.core.errors.exceptions import ThreadLoadError

# 環境変数の読み込み
load_dotenv()

# FastAPIアプリケーションの作成
app = FastAPI(
    title="matome API",
    description="掲示板スレッドの取り込み・正規化API",
    version="0.1.0",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)

# エラーハンドリングミドルウェアの追加
app.middleware("http")(error_handler_middleware)

# CORSミドルウェアの設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 本番環境では適切に制限すること
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# エラーハンドラーの登録
@app.exception_handler(MatomeHTTPException)
async def matome_exception_handler(request: Request, exc: MatomeHTTPException):
    error_metrics.record_error(
        exc.error_type, {"status_code": exc.status_code, "detail": exc.detail}
    )

    return handle_exception(exc, request)


@app.exception_handler(ThreadLoadError)
async def thread_load_error_handler(request: Request, exc: ThreadLoadError):
    error_metrics.record_ingest_error(exc.error)

    return handle_exception(exc, request)


# ルーターの登録
app.include_router(threads.router, prefix="/api")


@app.get("/")
async def root():
    """
    ルートエンドポイント。

    Returns
    -------
    dict
        APIの基本情報。
    """
    return {
        "name": "matome API",
        "version": "0.1.0",
        "description": "掲示板スレッドの取り込み・正規化API",
    }


@app.get("/health")
async def health():
    """
    ヘルスチェックエンドポイント。

    Returns
    -------
    dict
        ヘルスステータス。
    """
    return {"status": "healthy"}


@app.get("/api/health/errors", include_in_schema=False)
async def get_error_stats():
    """
    エラー統計を取得するエンドポイント。

    Returns
    -------
    dict
        過去60分間のエラー統計。
    """
    return error_metrics.get_error_stats()
