"""掲示板スレッドの取り込み・正規化パイプライン。"""

from matome.ingest.bulk import BulkProcessor, BulkReport, extract_thread_id, parse_url_list
from matome.ingest.classifier import classify
from matome.ingest.discovery import TopicListing, fetch_new_topics
from matome.ingest.encoding import MojibakeThresholds, decode, looks_like_mojibake
from matome.ingest.errors import Disposition, ErrorKind, FetchAttempt, IngestError
from matome.ingest.fetcher import FetchFailure, FetchSuccess, fetch_candidates
from matome.ingest.locators import build_candidates, candidate_urls, parse_url
from matome.ingest.models import (
    CommunityTopicLocator,
    DecodedDocument,
    LegacyBoardLocator,
    Post,
    ProprietaryApiLocator,
    SourceEncoding,
    SourceKind,
    Thread,
    ThreadSourceLocator,
)
from matome.ingest.normalizer import NormalizedThread, normalize
from matome.ingest.pipeline import LoadResult, ThreadLoader

__all__ = [
    "BulkProcessor",
    "BulkReport",
    "CommunityTopicLocator",
    "DecodedDocument",
    "Disposition",
    "ErrorKind",
    "FetchAttempt",
    "FetchFailure",
    "FetchSuccess",
    "IngestError",
    "LegacyBoardLocator",
    "LoadResult",
    "MojibakeThresholds",
    "NormalizedThread",
    "Post",
    "ProprietaryApiLocator",
    "SourceEncoding",
    "SourceKind",
    "Thread",
    "ThreadLoader",
    "ThreadSourceLocator",
    "TopicListing",
    "build_candidates",
    "candidate_urls",
    "classify",
    "decode",
    "extract_thread_id",
    "fetch_candidates",
    "fetch_new_topics",
    "looks_like_mojibake",
    "normalize",
    "parse_url",
    "parse_url_list",
]
