"""HTMLページのパーサー。

掲示板のHTMLは時期によって形式が変わっているため、``sources.toml`` の
レイアウト定義を優先順に試し、最初にレスが取れたレイアウトを採用します。
どのレイアウトでも取れない場合は ParseFailure を返します。
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from matome.core.utils.date_utils import parse_board_datetime
from matome.ingest.body import (
    DEFAULT_AUTHOR_NAME,
    clean_body,
    clean_name,
    clean_thread_title,
    extract_image_urls,
    split_date_and_tag,
)
from matome.ingest.locators import load_sources
from matome.ingest.models import ParsedPost, ParsedThread, ParseFailure

logger = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"\d+")
# "1 ：名無し：2024/01/15(月) 12:00:00.00 ID:abc"
_PAIR_HEADER_RE = re.compile(r"^\s*(\d+)\s*[：:]\s*(.*?)\s*[：:]\s*(\d{2,4}/.*)$", re.DOTALL)
# "スレタイ - 5ちゃんねる掲示板" のようなサイト名の接尾辞
_SITE_SUFFIX_RE = re.compile(r"\s+[-|｜]\s+[^-|｜]*(?:ちゃんねる|2ch\.sc)[^-|｜]*$")


def _first(element: Tag, selector: str | None) -> Tag | None:
    if not selector:
        return None
    return element.select_one(selector)


def _text(element: Tag | None) -> str | None:
    if element is None:
        return None
    return element.get_text(" ", strip=True)


def _number(element: Tag, layout: dict[str, Any]) -> int | None:
    candidates = []
    if layout.get("number_attr"):
        candidates.append(element.get(layout["number_attr"]))
    candidates.append(_text(_first(element, layout.get("number"))))

    for value in candidates:
        if isinstance(value, str):
            match = _DIGITS_RE.search(value)
            if match:
                return int(match.group(0))
    return None


def _author_tag(element: Tag, layout: dict[str, Any], date_text: str) -> tuple[str, str | None]:
    tag = None
    if layout.get("tag_attr"):
        tag = element.get(layout["tag_attr"])
    if not tag:
        tag = _text(_first(element, layout.get("tag")))

    date_part, date_tag = split_date_and_tag(date_text)
    if tag:
        tag = tag.strip()
        tag = tag[3:] if tag.startswith("ID:") else tag
        if not tag.strip("?"):
            tag = None
    else:
        tag = date_tag
    return date_part, tag


def _image_urls(
    element: Tag, layout: dict[str, Any], body: str, base_url: str | None
) -> tuple[str, ...]:
    urls = list(extract_image_urls(body))
    if layout.get("images"):
        for img in element.select(layout["images"]):
            src = img.get("src")
            if not src:
                continue
            src = urljoin(base_url, src) if base_url else src
            if src not in urls:
                urls.append(src)
    return tuple(urls)


def parse_container_layout(
    soup: BeautifulSoup,
    layout: dict[str, Any],
    *,
    format_news: bool = True,
    base_url: str | None = None,
) -> list[ParsedPost]:
    """レスごとの要素（<article class="post"> など）を探す形式。

    本文要素が見つからないコンテナは読み飛ばします。
    """
    posts: list[ParsedPost] = []
    for element in soup.select(layout["container"]):
        body_element = _first(element, layout.get("body"))
        if body_element is None:
            continue

        name_element = _first(element, layout.get("name"))
        name = clean_name(name_element.decode_contents()) if name_element else DEFAULT_AUTHOR_NAME

        date_text = _text(_first(element, layout.get("date"))) or ""
        date_part, tag = _author_tag(element, layout, date_text)
        body = clean_body(body_element.decode_contents(), format_news=format_news)

        posts.append(
            ParsedPost(
                number=_number(element, layout),
                author_name=name,
                author_tag=tag,
                body=body,
                created_at=parse_board_datetime(date_part),
                image_urls=_image_urls(element, layout, body, base_url),
            )
        )
    return posts


def _header_children(dt: Tag) -> list:
    # </dt> がないと<dd>が<dt>の子になるため、<dd>より前だけを見出しとする
    children = []
    for child in dt.children:
        if isinstance(child, Tag) and child.name == "dd":
            break
        children.append(child)
    return children


def _plain(node) -> str:
    return node.get_text() if isinstance(node, Tag) else str(node)


def _bold_tags(nodes: list):
    for node in nodes:
        if isinstance(node, Tag):
            if node.name == "b":
                yield node
            yield from node.find_all("b")


def _dd_body_html(dd: Tag) -> str:
    # 閉じタグのない古いHTMLでは後続の<dt>が<dd>の中に入るため、そこで打ち切る
    parts = []
    for child in dd.children:
        if isinstance(child, Tag) and child.name in ("dt", "dd"):
            break
        parts.append(str(child))
    return "".join(parts)


def parse_pair_layout(
    soup: BeautifulSoup,
    layout: dict[str, Any],
    *,
    format_news: bool = True,
    base_url: str | None = None,
) -> list[ParsedPost]:
    """``<dt>番号 ：名前：日付 ID</dt><dd>本文</dd>`` の組を探す旧形式。"""
    posts: list[ParsedPost] = []
    for dt in soup.select(layout["container"]):
        dd = dt.find_next_sibling("dd")
        if dd is None:
            dd = dt.find_next("dd")
        if dd is None:
            continue

        header = _header_children(dt)
        match = _PAIR_HEADER_RE.match("".join(_plain(child) for child in header))
        if not match:
            continue

        number, raw_name, date_field = match.groups()
        bold = next((b for b in _bold_tags(header)), None)
        name = clean_name(bold.decode_contents() if bold else raw_name)
        date_part, tag = split_date_and_tag(date_field)
        body = clean_body(_dd_body_html(dd), format_news=format_news)

        posts.append(
            ParsedPost(
                number=int(number),
                author_name=name,
                author_tag=tag,
                body=body,
                created_at=parse_board_datetime(date_part),
                image_urls=extract_image_urls(body),
            )
        )
    return posts


_STRATEGIES = {
    "container": parse_container_layout,
    "pair": parse_pair_layout,
}


def extract_title(soup: BeautifulSoup, layout: dict[str, Any]) -> str | None:
    element = _first(soup, layout.get("title"))
    text = _text(element)
    if not text:
        return None
    text = _SITE_SUFFIX_RE.sub("", text)
    return clean_thread_title(text) or None


def parse_html(
    text: str,
    layouts: Sequence[str],
    *,
    format_news: bool = True,
    base_url: str | None = None,
) -> ParsedThread | ParseFailure:
    """HTMLページからレスを抽出します。

    Parameters
    ----------
    text : str
        デコード済みのHTML。
    layouts : Sequence[str]
        試すレイアウト名（sources.toml の ``[layouts.*]``）を優先順に。
    format_news : bool
        本文にニュース向けの整形を行うかどうか。
    base_url : str, optional
        相対パスの画像URLを解決するためのページURL。

    Returns
    -------
    ParsedThread | ParseFailure
        最初にレスが取れたレイアウトの結果。どれもだめなら ParseFailure。

    """
    soup = BeautifulSoup(text, "html.parser")
    table = load_sources()["layouts"]

    attempted: list[str] = []
    for name in layouts:
        layout = table.get(name)
        if layout is None:
            logger.warning(f"未定義のHTMLレイアウト: {name}")
            continue

        attempted.append(name)
        strategy = _STRATEGIES[layout["kind"]]
        posts = strategy(soup, layout, format_news=format_news, base_url=base_url)
        if posts:
            return ParsedThread(posts=tuple(posts), title=extract_title(soup, layout), layout=name)

        logger.debug(f"HTMLレイアウト {name} ではレスが見つかりませんでした")

    return ParseFailure(
        reason="既知のHTMLレイアウトでレスを抽出できませんでした",
        attempted_layouts=tuple(attempted),
    )
