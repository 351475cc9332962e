import json
import logging
import logging.handlers
import os
from datetime import datetime
from typing import Any

from matome.core.utils.date_utils import JST

# LogRecord が標準で持つ属性（extra として出力しない）
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


class SimpleConsoleFormatter(logging.Formatter):
    """コンソール用のシンプルなフォーマッタ（メッセージのみ）"""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


class JSONFormatter(logging.Formatter):
    """JSON形式でログを出力するフォーマッタ

    時刻はレコードの生成時刻を日本時間で出力します。
    ``extra=`` で渡した値（thread_id・kind・url など）もそのままキーとして出力します。
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, JST).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_obj:
                log_obj[key] = value

        # Enum や datetime を含む extra は文字列にする
        return json.dumps(log_obj, ensure_ascii=False, default=str)


def setup_logger(
    name: str, level: str = "INFO", log_dir: str = "var/logs", use_json: bool = True
) -> logging.Logger:
    """
    ロガーのセットアップ

    Parameters
    ----------
    name : str
        ロガー名（ログファイル名にもなる）
    level : str
        ログレベル（大文字・小文字は問わない）
    log_dir : str
        ログファイルの保存ディレクトリ
    use_json : bool
        ファイル出力にJSON形式を使用するか

    Returns
    -------
    logging.Logger
        設定済みのロガー
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # 再設定時にハンドラーが重複しないよう、既存のものは閉じてから外す
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    os.makedirs(log_dir, exist_ok=True)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(SimpleConsoleFormatter())
    logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        filename=os.path.join(log_dir, f"{name}.log"),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        JSONFormatter()
        if use_json
        else logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(file_handler)

    return logger


def setup_logger_from_config(config, level: str | None = None) -> logging.Logger:
    """設定（LOG_LEVEL / LOG_DIR）から ``matome`` ロガーを構成します。

    ``level`` を指定するとコマンドラインの値を優先します。
    """
    return setup_logger("matome", level=level or config.LOG_LEVEL, log_dir=config.LOG_DIR)
