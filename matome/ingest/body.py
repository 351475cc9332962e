"""レス本文・投稿者名・スレッドタイトルの整形（DAT / HTML 共通）。"""

import re

DEFAULT_AUTHOR_NAME = "名無しさん"

# 掲示板が使う限られたエンティティのみ扱う。"&amp;" は二重に戻さないよう最後に置換する
_NAMED_ENTITIES = (
    ("&quot;", '"'),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&#39;", "'"),
    ("&nbsp;", " "),
)
_DEC_ENTITY_RE = re.compile(r"&#(\d+);")
_HEX_ENTITY_RE = re.compile(r"&#x([0-9a-fA-F]+);")

_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_ANCHOR_ESCAPE_RE = re.compile(r"&gt;&gt;(\d+)")
_LINK_RE = re.compile(r"<a\b[^>]*>(.*?)</a>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")

_IMAGE_URL_RE = re.compile(
    r"https?://[^\s<>\"]+\.(?:jpg|jpeg|png|gif|webp)(?:\?[^\s<>\"]*)?", re.IGNORECASE
)
_ID_RE = re.compile(r"\s*ID:(\S+)")

_TITLE_PATTERNS = (
    re.compile(r"\s*\[\d+\]\s*$"),
    re.compile(r"\s*\[無断転載禁止\]\s*"),
    re.compile(r"\s*\[転載禁止\]\s*"),
    re.compile(r"\s*\[[^\]]*[★☆][^\]]*\]\s*"),
    re.compile(r"\s*©[a-z0-9.]+\s*", re.IGNORECASE),
)


def _char_or_original(code: int, original: str) -> str:
    try:
        return chr(code)
    except (ValueError, OverflowError):
        return original


def decode_entities(text: str) -> str:
    for entity, char in _NAMED_ENTITIES:
        text = text.replace(entity, char)
    text = _DEC_ENTITY_RE.sub(lambda m: _char_or_original(int(m.group(1)), m.group(0)), text)
    text = _HEX_ENTITY_RE.sub(lambda m: _char_or_original(int(m.group(1), 16), m.group(0)), text)
    return text.replace("&amp;", "&")


def strip_tags(text: str) -> str:
    return _TAG_RE.sub("", text)


def format_news_body(text: str) -> str:
    """ニュース記事の転載本文を読みやすく整えます。

    全角スペースを半角に統一し、連続するスペース・3行以上の空行をまとめ、
    閉じ括弧が続かない「。」の後ろで改行します。
    """
    text = text.replace("　", " ")
    text = re.sub(r"^ +", "", text, flags=re.MULTILINE)
    text = re.sub(r" +$", "", text, flags=re.MULTILINE)
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"。(?=[^\n」』）】)\"])", "。\n", text)
    text = re.sub(r" {2,}", " ", text)
    return text.strip()


def clean_body(raw: str, *, format_news: bool = True) -> str:
    """DAT・HTMLの本文をプレーンテキストに変換します。

    ``<br>`` は改行に、``&gt;&gt;12`` は ``>>12`` に戻し、リンクは中身のテキストだけ残します。
    アンカーはリンクにせず文字列のまま残します。

    Parameters
    ----------
    raw : str
        本文フィールド（HTML断片）。
    format_news : bool
        ニュース本文向けの整形（:func:`format_news_body`）を行うかどうか。

    Returns
    -------
    str
        改行が ``\\n`` に統一された本文。

    """
    text = _BR_RE.sub("\n", raw)
    text = _ANCHOR_ESCAPE_RE.sub(r">>\1", text)
    text = _LINK_RE.sub(r"\1", text)
    # タグを先に除去してから実体参照を戻す（本文中の "&lt;" をタグと誤認しないため）
    text = strip_tags(text)
    text = decode_entities(text)

    # sssp:// で始まる行は板のアイコン指定
    lines = [line.strip(" ") for line in text.replace("\r\n", "\n").split("\n")]
    text = "\n".join(line for line in lines if not line.strip().startswith("sssp://")).strip()

    if format_news:
        text = format_news_body(text)
    return text


def clean_name(raw: str | None) -> str:
    name = decode_entities(strip_tags(raw or "")).strip()
    return name or DEFAULT_AUTHOR_NAME


def clean_thread_title(raw: str | None) -> str:
    """スレッドタイトルから [転載禁止]・[記者名★]・©2ch.net などの付加情報を取り除きます。"""
    title = decode_entities(strip_tags(raw or ""))
    for pattern in _TITLE_PATTERNS:
        title = pattern.sub("", title)
    return title.strip()


def extract_image_urls(text: str) -> tuple[str, ...]:
    """本文中の画像URL（jpg/jpeg/png/gif/webp）を出現順に返します。"""
    urls: list[str] = []
    for url in _IMAGE_URL_RE.findall(text):
        if url not in urls:
            urls.append(url)
    return tuple(urls)


def split_date_and_tag(field: str | None) -> tuple[str, str | None]:
    """``"24/01/15(月) 12:00:00.00 ID:abc123"`` を日付部分とIDに分けます。

    IDが ``???`` のように伏せられている場合は None を返します。
    """
    text = decode_entities(strip_tags(field or "")).strip()
    match = _ID_RE.search(text)
    if not match:
        return text, None

    tag = match.group(1)
    if not tag.strip("?"):
        tag = None
    return text[: match.start()].strip(), tag
