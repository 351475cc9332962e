"""レガシー文字コード（Shift_JIS / EUC-JP / UTF-8）の判定と変換。

掲示板サーバーは Content-Type と実際の文字コードが食い違うことがあるため、
統計的な判定結果を鵜呑みにせず、変換結果を文字化けヒューリスティックで検証します。
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from charset_normalizer import from_bytes

from matome.ingest.models import DecodedDocument, SourceEncoding

logger = logging.getLogger(__name__)

# 判定候補の順序
CANDIDATE_ORDER: tuple[SourceEncoding, ...] = (
    SourceEncoding.SJIS,
    SourceEncoding.EUCJP,
    SourceEncoding.UTF8,
)

# Shift_JIS は機種依存文字（①など）を含む cp932 として扱う
_CODECS: dict[SourceEncoding, str] = {
    SourceEncoding.SJIS: "cp932",
    SourceEncoding.EUCJP: "euc_jp",
    SourceEncoding.UTF8: "utf-8-sig",
}

_DETECTOR_ALIASES: dict[str, SourceEncoding] = {
    "cp932": SourceEncoding.SJIS,
    "ms932": SourceEncoding.SJIS,
    "shift_jis": SourceEncoding.SJIS,
    "shift_jis_2004": SourceEncoding.SJIS,
    "shift_jisx0213": SourceEncoding.SJIS,
    "euc_jp": SourceEncoding.EUCJP,
    "euc_jis_2004": SourceEncoding.EUCJP,
    "euc_jisx0213": SourceEncoding.EUCJP,
    "utf_8": SourceEncoding.UTF8,
    "utf_8_sig": SourceEncoding.UTF8,
    "ascii": SourceEncoding.UTF8,
}

# UTF-8 のバイト列を Shift_JIS として読んだときに頻出する文字
MOJIBAKE_ARTIFACTS = frozenset("縺繧繝譁蜿荳逕遘髢莉蠑謖鬮")

_REPLACEMENT_CHAR = "\ufffd"
_JAPANESE_RE = re.compile(r"[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FFF]")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_TAG_RE = re.compile(r"<[^>]*>")


@dataclass(frozen=True)
class MojibakeThresholds:
    """文字化け判定のしきい値。

    値は元ツールで経験的に決められたもので、根拠となる導出はありません。

    Parameters
    ----------
    max_replacement : int
        置換文字（U+FFFD）の許容数。
    max_artifacts : int
        誤変換特有の文字の許容数。
    sample_size : int
        日本語率を調べる先頭文字数。
    min_japanese : int
        サンプル中に必要な日本語文字数。
    min_length : int
        日本語率の検査を行う最小テキスト長。

    """

    max_replacement: int = 50
    max_artifacts: int = 30
    sample_size: int = 500
    min_japanese: int = 10
    min_length: int = 100

    @classmethod
    def from_config(cls, config) -> MojibakeThresholds:
        return cls(
            max_replacement=config.MOJIBAKE_MAX_REPLACEMENT,
            max_artifacts=config.MOJIBAKE_MAX_ARTIFACTS,
            sample_size=config.MOJIBAKE_SAMPLE_SIZE,
            min_japanese=config.MOJIBAKE_MIN_JAPANESE,
            min_length=config.MOJIBAKE_MIN_LENGTH,
        )


DEFAULT_THRESHOLDS = MojibakeThresholds()


def looks_like_mojibake(
    text: str,
    thresholds: MojibakeThresholds = DEFAULT_THRESHOLDS,
    *,
    reject_control: bool = False,
) -> bool:
    """変換結果が文字化けしているとみなすかどうかを判定します。

    Parameters
    ----------
    text : str
        変換後のテキスト。
    thresholds : MojibakeThresholds
        判定しきい値。
    reject_control : bool
        C0制御文字を含む場合も文字化けとみなすかどうか。
        UTF-8 優先のソース（open2ch）で、別の文字コードのDATを UTF-8 として読んだ結果を弾くために使う。

    Returns
    -------
    bool
        文字化けとみなす場合 True。

    """
    if text.count(_REPLACEMENT_CHAR) > thresholds.max_replacement:
        return True

    if sum(1 for ch in text if ch in MOJIBAKE_ARTIFACTS) > thresholds.max_artifacts:
        return True

    if reject_control and _CONTROL_RE.search(text):
        return True

    if len(text) > thresholds.min_length:
        # HTMLの場合は先頭がマークアップで埋まるため、タグを除いた本文部分を見る
        head = text[: thresholds.sample_size * 8]
        sample = _TAG_RE.sub("", head)[: thresholds.sample_size]
        if len(_JAPANESE_RE.findall(sample)) < thresholds.min_japanese:
            return True

    return False


def detect_encoding(data: bytes) -> SourceEncoding | None:
    """統計的判定で候補の文字コードを1つ返します（対応外なら None）。"""
    if not data:
        return None

    best = from_bytes(data).best()
    if best is None:
        return None

    return _DETECTOR_ALIASES.get(best.encoding.lower())


def _candidate_order(
    detected: SourceEncoding | None, hint: SourceEncoding | None
) -> list[SourceEncoding]:
    candidates: list[SourceEncoding] = []
    for encoding in (hint, detected, *CANDIDATE_ORDER):
        if encoding is not None and encoding not in candidates:
            candidates.append(encoding)
    return candidates


def decode(
    data: bytes,
    *,
    hint: SourceEncoding | None = None,
    thresholds: MojibakeThresholds = DEFAULT_THRESHOLDS,
) -> DecodedDocument:
    """バイト列を文字列に変換します。例外は送出しません。

    1. ``hint``（指定時）→ 判定結果 → Shift_JIS → EUC-JP → UTF-8 の順に、
       不正バイトなしで変換できて文字化け判定を通る候補を探す
    2. 見つからなければ同じ順で、不正バイトを置換文字にして再度試す
    3. それでもだめなら Shift_JIS で強制変換し、``confidence_ok=False`` を返す

    Parameters
    ----------
    data : bytes
        取得したままのバイト列。
    hint : SourceEncoding, optional
        ソースごとに優先したい文字コード（open2ch は UTF-8 など）。
    thresholds : MojibakeThresholds
        文字化け判定のしきい値。

    Returns
    -------
    DecodedDocument
        変換結果。

    """
    if not data:
        return DecodedDocument(text="", source_encoding=hint or SourceEncoding.UTF8, confidence_ok=True)

    candidates = _candidate_order(detect_encoding(data), hint)

    for errors in ("strict", "replace"):
        for encoding in candidates:
            try:
                text = data.decode(_CODECS[encoding], errors=errors)
            except UnicodeDecodeError:
                continue

            reject_control = hint is SourceEncoding.UTF8 and encoding is hint
            if looks_like_mojibake(text, thresholds, reject_control=reject_control):
                logger.debug(f"文字化け判定で除外: {encoding.value} ({errors})")
                continue

            return DecodedDocument(text=text, source_encoding=encoding, confidence_ok=True)

    text = data.decode(_CODECS[SourceEncoding.SJIS], errors="replace")
    return DecodedDocument(text=text, source_encoding=SourceEncoding.SJIS, confidence_ok=False)
