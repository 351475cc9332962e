"""入力文字列（URLまたはID）がどの掲示板のものかを判定する。"""

import re
from urllib.parse import urlsplit

from matome.ingest.models import SourceKind

_NUMERIC_ID_RE = re.compile(r"^\d+$")


def _hostname(value: str) -> str:
    if "://" not in value:
        value = f"https://{value}"
    try:
        return (urlsplit(value).hostname or "").lower()
    except ValueError:
        return ""


def _matches_host(host: str, domain: str) -> bool:
    return host == domain or host.endswith(f".{domain}")


def classify(value: str) -> SourceKind:
    """入力がどのソースに属するかを返します。

    判定順は Shikutoku（ホスト名または数字のみのID）→ 5ch → 2ch.sc →
    open2ch → ガールズちゃんねる。どれにも当たらなければ ``UNKNOWN``。
    ネットワークにはアクセスしません。

    Parameters
    ----------
    value : str
        ユーザーが入力した文字列。

    Returns
    -------
    SourceKind
        判定結果。

    """
    value = (value or "").strip()
    if not value:
        return SourceKind.UNKNOWN

    if _NUMERIC_ID_RE.match(value):
        return SourceKind.SHIKUTOKU

    host = _hostname(value)
    if not host:
        return SourceKind.UNKNOWN

    if _matches_host(host, "shikutoku.me"):
        return SourceKind.SHIKUTOKU
    if _matches_host(host, "5ch.net"):
        return SourceKind.FIVECH
    if _matches_host(host, "2ch.sc"):
        return SourceKind.TWOCHSC
    if _matches_host(host, "open2ch.net"):
        return SourceKind.OPEN2CH
    if _matches_host(host, "girlschannel.net"):
        return SourceKind.GIRLSCHANNEL

    return SourceKind.UNKNOWN
