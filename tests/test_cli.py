"""matome コマンドラインツールのテスト"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from matome import cli

THREAD_URL = "https://nova.5ch.net/test/read.cgi/livegalileo/1732936890/"
PRIMARY = "https://nova.5ch.net/livegalileo/dat/1732936890.dat"
DAT_BYTES = (
    "名無し<>sage<>24/01/15(月) 12:00:00.00 ID:abc123<>スレ立てました<>スレタイ\n"
    "名無し<><>24/01/15(月) 12:01:00.00 ID:def456<>&gt;&gt;1<br>了解<>\n"
).encode("cp932")


@pytest.fixture
def transport(fake_transport):
    return fake_transport({PRIMARY: DAT_BYTES})


@pytest.fixture(autouse=True)
def patched_io(transport, monkeypatch):
    """ネットワーク・ログファイル・待機を使わないようにする"""
    monkeypatch.setenv("BULK_INTERVAL", "0")
    monkeypatch.setenv("BULK_ERROR_INTERVAL", "0")
    with (
        patch("matome.cli.get_http_client", AsyncMock(return_value=transport)),
        patch("matome.cli.close_http_client", AsyncMock()),
        patch("matome.cli.setup_logger_from_config"),
    ):
        yield


@pytest.mark.asyncio
async def test_fetch_prints_thread(capsys):
    """Given: 取得できるスレッドURL
    When: matome fetch を実行する
    Then: タイトルとレスが表示され、終了コード0になる
    """
    code = await cli.main(["fetch", THREAD_URL])

    out = capsys.readouterr().out
    assert code == cli.EXIT_OK
    assert "【スレタイ】" in out
    assert "1: 名無し [主] 2024/01/15 12:00:00 ID:abc123" in out
    assert ">>1\n了解" in out


@pytest.mark.asyncio
async def test_fetch_json_output(capsys):
    code = await cli.main(["fetch", THREAD_URL, "--json"])

    data = json.loads(capsys.readouterr().out)
    assert code == cli.EXIT_OK
    assert data["thread"]["id"] == "5ch-1732936890"
    assert len(data["posts"]) == 2


@pytest.mark.asyncio
async def test_fetch_failure(capsys, transport):
    """Given: 見つからないスレッド
    When: matome fetch を実行する
    Then: エラーメッセージと試したURLが表示され、終了コード1になる
    """
    transport.routes.clear()

    code = await cli.main(["fetch", THREAD_URL])

    out = capsys.readouterr().out
    assert code == cli.EXIT_FAILED
    assert "スレッドが見つかりません" in out
    assert f"{PRIMARY} (404)" in out


@pytest.mark.asyncio
async def test_classify(capsys, transport):
    code = await cli.main(["classify", THREAD_URL])

    out = capsys.readouterr().out
    assert code == cli.EXIT_OK
    assert "source: 5ch" in out
    assert PRIMARY in out
    assert transport.calls == []


@pytest.mark.asyncio
async def test_classify_unsupported(capsys):
    code = await cli.main(["classify", "https://example.com/"])

    assert code == cli.EXIT_FAILED
    assert "source: unknown" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_bulk(tmp_path, capsys, transport):
    """Given: 成功するURLと見つからないURLを含むファイル
    When: matome bulk --json を実行する
    Then: 成功とスキップが集計される
    """
    missing = "https://nova.5ch.net/test/read.cgi/livegalileo/1732936891/"
    url_file = tmp_path / "urls.txt"
    url_file.write_text(f"# 今日のスレ\n{THREAD_URL}\n\n{missing}\n", encoding="utf-8")

    code = await cli.main(["bulk", str(url_file), "--json"])

    report = json.loads(capsys.readouterr().out)
    assert code == cli.EXIT_OK
    assert report["completed"] == [THREAD_URL]
    assert [item["url"] for item in report["skipped"]] == [missing]


@pytest.mark.asyncio
async def test_bulk_empty_file(tmp_path):
    url_file = tmp_path / "urls.txt"
    url_file.write_text("# なし\n", encoding="utf-8")

    assert await cli.main(["bulk", str(url_file)]) == cli.EXIT_USAGE


@pytest.mark.asyncio
async def test_bulk_missing_file(tmp_path):
    assert await cli.main(["bulk", str(tmp_path / "missing.txt")]) == cli.EXIT_USAGE


@pytest.mark.asyncio
async def test_new_topics(capsys, transport):
    transport.routes["https://girlschannel.net/topics/new/?page=2"] = (
        '<html><body><a href="/topics/5012345/">新着</a></body></html>'
    ).encode("utf-8")

    code = await cli.main(["new", "--page", "2"])

    assert code == cli.EXIT_OK
    assert capsys.readouterr().out.strip() == "https://girlschannel.net/topics/5012345/"


def test_run_exits_with_130_on_keyboard_interrupt():
    with (
        patch("matome.cli.main", MagicMock()),
        patch("matome.cli.asyncio.run", side_effect=KeyboardInterrupt),
        pytest.raises(SystemExit) as exc_info,
    ):
        cli.run()

    assert exc_info.value.code == 130


def test_missing_command_is_usage_error():
    with pytest.raises(SystemExit) as exc_info:
        cli.build_parser().parse_args([])

    assert exc_info.value.code == 2
