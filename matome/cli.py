"""matome コマンドラインツール。

    matome fetch <URL> [--json]
    matome bulk <FILE> [--json]
    matome classify <URL>
    matome new [--page N] [--limit N]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv

from matome.core.clients.http_client import close_http_client, get_http_client
from matome.core.config import BaseConfig
from matome.core.logging.logging import setup_logger_from_config
from matome.ingest.bulk import BulkProcessor, parse_url_list
from matome.ingest.classifier import classify
from matome.ingest.discovery import fetch_new_topics
from matome.ingest.locators import candidate_urls, parse_url
from matome.ingest.pipeline import LoadResult, ThreadLoader

logger = logging.getLogger("matome.cli")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="matome", description="掲示板スレッドを取得して正規化します")
    parser.add_argument("--log-level", default=None, help="ログレベル（既定値は LOG_LEVEL）")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch = subparsers.add_parser("fetch", help="スレッドを1件取得します")
    fetch.add_argument("url", help="スレッドURL、またはShikutokuのトークID")
    fetch.add_argument("--json", action="store_true", help="結果をJSONで出力します")

    bulk = subparsers.add_parser("bulk", help="URL一覧ファイルのスレッドを順番に取得します")
    bulk.add_argument("file", type=Path, help="1行1URLのテキストファイル（#はコメント）")
    bulk.add_argument("--json", action="store_true", help="集計をJSONで出力します")

    classify_cmd = subparsers.add_parser("classify", help="URLの種類と取得候補を表示します")
    classify_cmd.add_argument("url")

    new = subparsers.add_parser("new", help="ガールズちゃんねるの新着トピックURLを表示します")
    new.add_argument("--page", type=int, default=1)
    new.add_argument("--limit", type=int, default=100)

    return parser


def format_result(result: LoadResult) -> str:
    """取得結果を人が読める形式に整形します。"""
    if not result.ok:
        lines = [f"✗ {result.error.message}"]
        if result.error.detail:
            lines.append(f"  詳細: {result.error.detail}")
        for attempt in result.error.attempts:
            status = attempt.status_code if attempt.status_code is not None else attempt.error
            lines.append(f"  - {attempt.url} ({status})")
        return "\n".join(lines)

    thread = result.thread
    lines = [
        f"【{thread.title}】",
        f"{thread.id} / {thread.post_count}レス / {thread.url or result.fetched_url}",
    ]
    if result.low_confidence:
        lines.append(f"⚠️ {result.error.message}")
    lines.append("")
    for post in result.posts:
        op_mark = " [主]" if post.is_original_poster else ""
        tag = f" ID:{post.author_tag}" if post.author_tag else ""
        lines.append(
            f"{post.source_number}: {post.author_name}{op_mark} "
            f"{post.created_at.strftime('%Y/%m/%d %H:%M:%S')}{tag}"
        )
        lines.append(post.body)
        for url in post.image_urls:
            lines.append(f"  🖼 {url}")
        lines.append("")
    return "\n".join(lines).rstrip()


async def _fetch(args, config: BaseConfig) -> int:
    loader = ThreadLoader(transport=await get_http_client(config), config=config)
    result = await loader.load(args.url)
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(format_result(result))
    return EXIT_OK if result.ok else EXIT_FAILED


async def _bulk(args, config: BaseConfig) -> int:
    try:
        text = args.file.read_text(encoding="utf-8")
    except OSError as e:
        print(f"ファイルを読み込めません: {e}", file=sys.stderr)
        return EXIT_USAGE

    urls = parse_url_list(text)
    if not urls:
        print("URLが1件もありません", file=sys.stderr)
        return EXIT_USAGE

    loader = ThreadLoader(transport=await get_http_client(config), config=config)
    processor = BulkProcessor(loader, config)

    # Ctrl+C で処理中のスレッドが終わった時点で止める
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, processor.stop)
    except (NotImplementedError, RuntimeError):
        logger.debug("シグナルハンドラーを登録できない環境です")

    report = await processor.process(urls)
    if args.json:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    return EXIT_FAILED if report.aborted or report.failed else EXIT_OK


def _classify(args, config: BaseConfig) -> int:
    locator = parse_url(args.url)
    print(f"source: {classify(args.url).value}")
    if locator is None:
        print("対応していないURLです")
        return EXIT_FAILED
    for url in candidate_urls(locator, config):
        print(f"  {url}")
    return EXIT_OK


async def _new(args, config: BaseConfig) -> int:
    listing = await fetch_new_topics(
        await get_http_client(config), page=args.page, limit=args.limit, config=config
    )
    if listing.error is not None:
        print(f"✗ {listing.error.message}", file=sys.stderr)
        return EXIT_FAILED
    for url in listing.urls:
        print(url)
    return EXIT_OK


async def main(argv: list[str] | None = None) -> int:
    """メイン実行関数"""
    args = build_parser().parse_args(argv)
    config = BaseConfig()
    setup_logger_from_config(config, level=args.log_level)

    try:
        if args.command == "fetch":
            return await _fetch(args, config)
        if args.command == "bulk":
            return await _bulk(args, config)
        if args.command == "classify":
            return _classify(args, config)
        return await _new(args, config)
    finally:
        await close_http_client()


def run() -> None:
    """コンソールスクリプトのエントリーポイント"""
    load_dotenv()
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    run()
