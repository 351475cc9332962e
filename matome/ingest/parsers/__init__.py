from matome.ingest.parsers.dat import parse_dat, parse_dat_line
from matome.ingest.parsers.html import parse_container_layout, parse_html, parse_pair_layout
from matome.ingest.parsers.shikutoku import (
    ShikutokuComment,
    ShikutokuTalk,
    build_thread,
    parse_comments,
    parse_talk,
)

__all__ = [
    "parse_dat",
    "parse_dat_line",
    "parse_html",
    "parse_container_layout",
    "parse_pair_layout",
    "ShikutokuTalk",
    "ShikutokuComment",
    "parse_talk",
    "parse_comments",
    "build_thread",
]
