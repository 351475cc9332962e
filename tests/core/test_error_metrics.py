"""エラーメトリクスのテスト"""

from matome.core.errors.error_metrics import ErrorMetrics
from matome.ingest.errors import ErrorKind, FetchAttempt, IngestError


def test_record_ingest_error_counts_by_kind():
    """Given: 種類の異なる取り込みエラー
    When: record_ingest_error()で記録する
    Then: 種類ごとに件数が集計される
    """
    metrics = ErrorMetrics(window_minutes=60)
    error = IngestError.of(
        ErrorKind.NOT_FOUND, attempts=(FetchAttempt(url="https://a.example/", status_code=404),)
    )

    metrics.record_ingest_error(error)
    metrics.record_ingest_error(error)
    metrics.record_ingest_error(IngestError.of(ErrorKind.TRANSIENT))

    stats = metrics.get_error_stats()
    assert stats["not_found"]["count"] == 2
    assert stats["transient"]["count"] == 1
    assert metrics.errors["not_found"][0][1]["attempted_urls"] == ["https://a.example/"]


def test_error_report_and_reset():
    metrics = ErrorMetrics()
    assert "エラーはありません" in metrics.get_error_report()

    metrics.record_error("parse_failure", {"message": "x"})
    assert "種別: parse_failure" in metrics.get_error_report()

    metrics.reset()
    assert metrics.get_error_stats() == {}
