"""取り込みパイプライン共通のログ出力ユーティリティ関数。"""

from typing import Any, Iterable


def log_load_start(logger, raw_input: str, source: str) -> None:
    """
    スレッド取得開始のログを出力します。

    Parameters
    ----------
    logger : Logger
        ロガーインスタンス
    raw_input : str
        ユーザー入力（URLまたはID）
    source : str
        判定されたソース種別
    """
    logger.info(f"\n📡 [{source}] {raw_input} を取得中...")


def log_fetch_attempt(logger, index: int, total: int, url: str) -> None:
    """候補URLへのリクエスト開始を出力します。"""
    logger.info(f"   • ({index}/{total}) {url}")


def log_fetch_rejected(logger, url: str, status_code: int | None, error: str | None) -> None:
    """
    候補URLが失敗したことを出力します。

    Parameters
    ----------
    logger : Logger
        ロガーインスタンス
    url : str
        リクエストしたURL
    status_code : int or None
        HTTPステータス（通信エラー時はNone）
    error : str or None
        通信エラーの内容
    """
    if status_code is None:
        logger.warning(f"   ✗ 通信エラー: {url} - {error}")
    else:
        logger.warning(f"   ✗ HTTP {status_code}: {url}")


def log_fetch_success(logger, url: str, size: int) -> None:
    logger.info(f"   ✓ 取得成功: {url} ({size} bytes)")


def log_fetch_failure(logger, kind: str, attempts: Iterable[Any]) -> None:
    """全候補URLが失敗したことを出力します。"""
    attempts = list(attempts)
    summary = ", ".join(
        f"{a.url} ({a.status_code if a.status_code is not None else 'error'})" for a in attempts
    )
    logger.error(
        f"   ✗ 全候補の取得に失敗 [{kind}]: {summary or '候補なし'}",
        extra={"kind": kind, "attempted_urls": [a.url for a in attempts]},
    )


def log_decode_result(logger, encoding: str, confidence_ok: bool) -> None:
    if confidence_ok:
        logger.info(f"   🔤 文字コード: {encoding}")
    else:
        logger.warning(f"   ⚠️ 文字コードを特定できず {encoding} で強制変換しました")


def log_parse_result(logger, layout: str, post_count: int) -> None:
    logger.info(f"   📝 {layout} 形式で {post_count}件のレスを抽出")


def log_parse_failure(logger, url: str, layouts: Iterable[str]) -> None:
    logger.warning(f"   ✗ レスを抽出できませんでした: {url} (試行: {', '.join(layouts)})")


def log_renumbered(logger, thread_id: str, gaps: list[int]) -> None:
    """
    レス番号の欠番を振り直したことを警告します。

    Parameters
    ----------
    logger : Logger
        ロガーインスタンス
    thread_id : str
        スレッドID
    gaps : list[int]
        欠番・重複が見つかった元のレス番号
    """
    logger.warning(
        f"   ⚠️ {thread_id}: レス番号の欠番/重複を連番に振り直しました（元番号: {gaps[:10]}）",
        extra={"thread_id": thread_id, "gaps": gaps},
    )


def log_bulk_progress(logger, index: int, total: int, url: str) -> None:
    logger.info(f"\n📦 ({index}/{total}) {url}")


def log_bulk_retry(logger, url: str, attempt: int, wait: float) -> None:
    logger.warning(f"   ↻ 一時的なエラーのため再試行します ({attempt}回目, {wait:.1f}秒待機): {url}")


def log_bulk_summary(logger, completed: int, failed: int, skipped: int) -> None:
    logger.info(f"\n✅ 一括処理完了: 成功 {completed}件 | 失敗 {failed}件 | スキップ {skipped}件")
