"""DAT形式パーサーのテスト"""

from datetime import datetime

from matome.core.utils.date_utils import JST
from matome.ingest.models import LegacyBoardLocator, ParsedThread, ParseFailure, SourceKind
from matome.ingest.normalizer import normalize
from matome.ingest.parsers.dat import parse_dat, parse_dat_line


def test_parse_single_line():
    """Given: 5フィールドのDAT1行
    When: parse_dat()を呼び出す
    Then: 1レス・スレタイ・投稿日時が取り出される
    """
    # Setup
    text = "名無し<><>24/01/15(月) 12:00:00<>テスト本文<>スレタイ"

    # Execute
    parsed = parse_dat(text)

    # Verify
    assert isinstance(parsed, ParsedThread)
    assert parsed.title == "スレタイ"
    assert parsed.layout == "dat"
    assert len(parsed.posts) == 1
    post = parsed.posts[0]
    assert post.number == 1
    assert post.author_name == "名無し"
    assert post.body == "テスト本文"
    assert post.author_tag is None
    assert post.created_at == datetime(2024, 1, 15, 12, 0, 0, tzinfo=JST)


def test_parse_keeps_board_numbers_when_skipping_lines():
    """Given: 途中に壊れた行を含むDAT
    When: parse_dat()を呼び出す
    Then: 壊れた行は読み飛ばされ、残った行は板の番号（空行を除いた行位置）を保つ
    """
    text = "\n".join(
        [
            "名無し<>sage<>24/01/15(月) 12:00:00.12 ID:abc123<>一つ目<>スレタイ [無断転載禁止]",
            "壊れた行<>フィールド不足",
            "",
            "名無し<><>24/01/15(月) 12:01:00.34 ID:def456<>&gt;&gt;1<br>了解<>",
        ]
    )

    parsed = parse_dat(text)

    assert [post.number for post in parsed.posts] == [1, 3]
    assert parsed.title == "スレタイ"
    assert parsed.posts[0].author_tag == "abc123"
    assert parsed.posts[1].body == ">>1\n了解"


def test_anchor_target_survives_renumbering(fixed_clock):
    """Given: 2行目が壊れたDATと、3番へのアンカーを含むレス
    When: parse_dat()の結果をnormalize()する
    Then: 連番は1..Nに振り直され、アンカー先のレスの source_number は板の番号のまま
    """
    # Setup
    text = "\n".join(
        [
            "名無し<><>24/01/15(月) 12:00:00<>一<>スレタイ",
            "壊れた行<>フィールド不足",
            "名無し<><>24/01/15(月) 12:01:00<>三<>",
            "名無し<><>24/01/15(月) 12:02:00<>&gt;&gt;3 に同意<>",
        ]
    )
    locator = LegacyBoardLocator(
        family=SourceKind.FIVECH, server="nova", board="livegalileo", thread_key="1732936890"
    )

    # Execute
    normalized = normalize(parse_dat(text), locator, clock=fixed_clock)

    # Verify
    assert [post.sequence_number for post in normalized.posts] == [1, 2, 3]
    assert [post.source_number for post in normalized.posts] == [1, 3, 4]
    target = next(post for post in normalized.posts if post.body == "三")
    assert target.source_number == 3
    assert normalized.posts[2].body == ">>3 に同意"


def test_parse_dat_extracts_images():
    line = "名無し<><>24/01/15(月) 12:00:00<>見て https://i.imgur.com/x.png <>"

    post = parse_dat_line(line, 1)

    assert post.image_urls == ("https://i.imgur.com/x.png",)


def test_parse_dat_line_with_missing_fields():
    assert parse_dat_line("名無し<><>24/01/15", 1) is None


def test_parse_dat_invalid_date_is_none():
    post = parse_dat_line("名無し<><>あぼーん<>あぼーん<>", 1)

    assert post.created_at is None
    assert post.body == "あぼーん"


def test_parse_dat_without_posts_is_failure():
    """Given: DAT形式ではない本文（HTMLのエラーページなど）
    When: parse_dat()を呼び出す
    Then: ParseFailure が返される
    """
    parsed = parse_dat("<html><body>Not Found</body></html>")

    assert isinstance(parsed, ParseFailure)
    assert parsed.attempted_layouts == ("dat",)


def test_parse_dat_keeps_news_body_unformatted_when_disabled():
    text = "名無し<><>24/01/15(月) 12:00:00<>一文目。二文目。<>タイトル"

    assert parse_dat(text, format_news=False).posts[0].body == "一文目。二文目。"
    assert parse_dat(text).posts[0].body == "一文目。\n二文目。"
