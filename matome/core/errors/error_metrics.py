import threading
from collections import defaultdict
from datetime import UTC, datetime, timedelta
from typing import Any


class ErrorMetrics:
    """取り込みエラーの種類別カウンタ（スライディングウィンドウ）"""

    def __init__(self, window_minutes: int = 60):
        self.window_minutes = window_minutes
        self.errors: dict[str, list[tuple[datetime, dict[str, Any]]]] = defaultdict(list)
        self.lock = threading.Lock()

    def _prune(self, error_type: str, now: datetime) -> None:
        cutoff = now - timedelta(minutes=self.window_minutes)
        self.errors[error_type] = [(ts, d) for ts, d in self.errors[error_type] if ts > cutoff]

    def record_error(self, error_type: str, details: dict[str, Any]) -> None:
        """エラーを記録"""
        with self.lock:
            now = datetime.now(UTC)
            self.errors[error_type].append((now, details))
            self._prune(error_type, now)

    def record_ingest_error(self, error) -> None:
        """IngestError をエラー種別ごとに記録"""
        self.record_error(
            error.kind.value,
            {
                "message": error.message,
                "attempted_urls": [attempt.url for attempt in error.attempts],
            },
        )

    def get_error_stats(self) -> dict[str, dict[str, Any]]:
        """エラー統計を取得"""
        with self.lock:
            now = datetime.now(UTC)
            stats = {}
            for error_type in list(self.errors):
                self._prune(error_type, now)
                recent = self.errors[error_type]
                if not recent:
                    continue
                stats[error_type] = {
                    "count": len(recent),
                    "first_occurrence": recent[0][0].isoformat(),
                    "last_occurrence": recent[-1][0].isoformat(),
                    "rate_per_minute": len(recent) / self.window_minutes,
                }
            return stats

    def get_error_report(self) -> str:
        """エラーレポートを生成"""
        stats = self.get_error_stats()

        if not stats:
            return f"直近{self.window_minutes}分間のエラーはありません"

        report_lines = [f"エラーレポート（直近{self.window_minutes}分）", "=" * 50]
        for error_type, stat in sorted(stats.items(), key=lambda x: x[1]["count"], reverse=True):
            report_lines.extend(
                [
                    f"\n種別: {error_type}",
                    f"件数: {stat['count']}",
                    f"頻度: {stat['rate_per_minute']:.2f} 件/分",
                    f"初回: {stat['first_occurrence']}",
                    f"最終: {stat['last_occurrence']}",
                ]
            )
        return "\n".join(report_lines)

    def reset(self) -> None:
        with self.lock:
            self.errors.clear()


# グローバルインスタンス
error_metrics = ErrorMetrics()
