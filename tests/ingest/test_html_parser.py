"""HTMLパーサー（レイアウト定義による抽出）のテスト"""

from datetime import datetime

from matome.core.utils.date_utils import JST
from matome.ingest.models import ParsedThread, ParseFailure
from matome.ingest.parsers.html import parse_html

ARTICLE_HTML = """
<html><head><title>テストスレ - 5ちゃんねる掲示板</title></head><body>
<h1 class="title">テストスレ</h1>
<article class="post" data-id="1" data-userid="ID:abc123">
  <details class="post-header">
    <span class="postid">1</span>
    <span class="postusername"><b>名無しさん</b></span>
    <span class="date">2024/01/15(月) 12:00:00.00</span>
  </details>
  <section class="post-content">本文1<br>https://i.imgur.com/a.jpg</section>
</article>
<article class="post" data-id="2" data-userid="ID:def456">
  <details class="post-header">
    <span class="postid">2</span>
    <span class="postusername">風吹けば名無し</span>
    <span class="date">2024/01/15(月) 12:01:00.00</span>
  </details>
  <section class="post-content">&gt;&gt;1<br>了解</section>
</article>
<article class="post" data-id="3">
  <details class="post-header">広告</details>
</article>
</body></html>
"""

DTDD_HTML = """
<html><head><title>旧形式スレ</title></head><body>
<h1>旧形式スレ</h1>
<dl class="thread">
<dt>1 ：<a href="mailto:sage"><b>名無しさん</b></a>：2010/01/15(金) 12:00:00 ID:abc123</dt><dd> 本文1 <br> 二行目 </dd>
<dt>2 ：<b>風吹けば名無し</b>：2010/01/15(金) 12:01:00 ID:???</dt><dd> &gt;&gt;1 <br> 了解 </dd>
</dl>
</body></html>
"""

GIRLSCHANNEL_HTML = """
<html><body>
<h1>ガルちゃんのトピック</h1>
<ul class="topic-comment">
<li class="comment-item" id="comment1">
  <div class="info"><span class="res-no">1.</span> <span class="name">匿名</span> 2024/01/15(月) 12:00:00</div>
  <div class="body">トピ本文です</div>
  <div class="comment-img"><img src="/img/a.jpg"></div>
</li>
<li class="comment-item" id="comment2">
  <div class="info"><span class="res-no">2.</span> <span class="name">匿名</span> 2024/01/15(月) 12:05:00</div>
  <div class="body">わかる</div>
</li>
</ul>
</body></html>
"""


def test_parse_article_layout():
    """Given: <article class="post"> 形式の5ch HTML
    When: parse_html()を呼び出す
    Then: 本文のない要素を除いたレスが抽出される
    """
    # Execute
    parsed = parse_html(ARTICLE_HTML, ["article", "dtdd"])

    # Verify
    assert isinstance(parsed, ParsedThread)
    assert parsed.layout == "article"
    assert parsed.title == "テストスレ"
    assert [post.number for post in parsed.posts] == [1, 2]

    first, second = parsed.posts
    assert first.author_name == "名無しさん"
    assert first.author_tag == "abc123"
    assert first.body == "本文1\nhttps://i.imgur.com/a.jpg"
    assert first.image_urls == ("https://i.imgur.com/a.jpg",)
    assert first.created_at == datetime(2024, 1, 15, 12, 0, 0, tzinfo=JST)
    assert second.author_tag == "def456"
    assert second.body == ">>1\n了解"


def test_falls_back_to_dtdd_layout():
    """Given: 旧来の <dt>/<dd> 形式のHTML
    When: article → dtdd の順でparse_html()を呼び出す
    Then: dtdd レイアウトで抽出される
    """
    parsed = parse_html(DTDD_HTML, ["article", "dtdd"])

    assert parsed.layout == "dtdd"
    assert parsed.title == "旧形式スレ"
    assert [post.number for post in parsed.posts] == [1, 2]
    assert parsed.posts[0].author_name == "名無しさん"
    assert parsed.posts[0].author_tag == "abc123"
    assert parsed.posts[0].body == "本文1\n二行目"
    assert parsed.posts[0].created_at == datetime(2010, 1, 15, 12, 0, 0, tzinfo=JST)
    assert parsed.posts[1].author_name == "風吹けば名無し"
    assert parsed.posts[1].author_tag is None
    assert parsed.posts[1].body == ">>1\n了解"


def test_parse_girlschannel_layout():
    """Given: ガールズちゃんねるのトピックHTML
    When: parse_html()を呼び出す
    Then: コメント番号・本文・画像URL（絶対URL）が抽出される
    """
    parsed = parse_html(
        GIRLSCHANNEL_HTML,
        ["girlschannel"],
        format_news=False,
        base_url="https://girlschannel.net/topics/5012345/",
    )

    assert parsed.layout == "girlschannel"
    assert parsed.title == "ガルちゃんのトピック"
    assert [post.number for post in parsed.posts] == [1, 2]
    assert parsed.posts[0].author_name == "匿名"
    assert parsed.posts[0].body == "トピ本文です"
    assert parsed.posts[0].image_urls == ("https://girlschannel.net/img/a.jpg",)
    assert parsed.posts[1].created_at == datetime(2024, 1, 15, 12, 5, 0, tzinfo=JST)


def test_unknown_markup_is_parse_failure():
    """Given: どのレイアウトにも当てはまらないHTML
    When: parse_html()を呼び出す
    Then: 試したレイアウト名を持つ ParseFailure が返される
    """
    parsed = parse_html("<html><body><p>メンテナンス中</p></body></html>", ["article", "dtdd"])

    assert isinstance(parsed, ParseFailure)
    assert parsed.attempted_layouts == ("article", "dtdd")


def test_undefined_layout_is_skipped():
    parsed = parse_html(DTDD_HTML, ["no-such-layout", "dtdd"])

    assert parsed.layout == "dtdd"
