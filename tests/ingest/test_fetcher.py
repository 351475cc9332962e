"""候補URLの順次取得とエラー分類のテスト"""

import asyncio

import pytest

from matome.core.config import BaseConfig
from matome.ingest.errors import ErrorKind, FetchAttempt
from matome.ingest.fetcher import (
    FetchFailure,
    FetchSuccess,
    build_headers,
    classify_failure,
    fetch_candidates,
)
from matome.ingest.models import DocumentCandidate, DocumentFormat, UserAgentProfile

URL_A = "https://nova.5ch.net/livegalileo/dat/1732936890.dat"
URL_B = "https://nova.5ch.sc/livegalileo/dat/1732936890.dat"
URL_C = "https://tomcat.2ch.sc/livegalileo/dat/1732936890.dat"


def _candidates(*urls):
    return [DocumentCandidate(url=url, format=DocumentFormat.DAT) for url in urls]


@pytest.mark.asyncio
async def test_all_not_found_is_terminal(fake_transport):
    """Given: すべての候補が404
    When: fetch_candidates()を呼び出す
    Then: NOT_FOUND となり、試したURLがすべて記録される
    """
    # Setup
    transport = fake_transport({URL_A: 404, URL_B: 404, URL_C: 404})

    # Execute
    outcome = await fetch_candidates(transport, _candidates(URL_A, URL_B, URL_C), BaseConfig())

    # Verify
    assert isinstance(outcome, FetchFailure)
    assert outcome.kind is ErrorKind.NOT_FOUND
    assert outcome.attempted_urls == [URL_A, URL_B, URL_C]
    assert outcome.to_error().detail == "404, 404, 404"


@pytest.mark.asyncio
async def test_gone_counts_as_not_found(fake_transport):
    transport = fake_transport({URL_A: 410, URL_B: 404})

    outcome = await fetch_candidates(transport, _candidates(URL_A, URL_B), BaseConfig())

    assert outcome.kind is ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_forbidden_then_success(fake_transport):
    """Given: 1件目が403、2件目が200
    When: fetch_candidates()を呼び出す
    Then: 2件目で成功し、403の試行も記録される
    """
    transport = fake_transport({URL_A: 403, URL_B: b"dat"})

    outcome = await fetch_candidates(transport, _candidates(URL_A, URL_B, URL_C), BaseConfig())

    assert isinstance(outcome, FetchSuccess)
    assert outcome.content == b"dat"
    assert outcome.succeeded_url == URL_B
    assert outcome.index == 1
    assert outcome.attempts == (FetchAttempt(url=URL_A, status_code=403),)


@pytest.mark.asyncio
async def test_stops_after_first_success(fake_transport):
    transport = fake_transport({URL_A: b"dat", URL_B: b"other"})

    await fetch_candidates(transport, _candidates(URL_A, URL_B, URL_C), BaseConfig())

    assert transport.requested_urls == [URL_A]


@pytest.mark.asyncio
async def test_forbidden_with_not_found_is_transient(fake_transport):
    """Given: 403と404が混在
    When: fetch_candidates()を呼び出す
    Then: 再試行可能な TRANSIENT と分類される
    """
    transport = fake_transport({URL_A: 403, URL_B: 404, URL_C: 404})

    outcome = await fetch_candidates(transport, _candidates(URL_A, URL_B, URL_C), BaseConfig())

    assert outcome.kind is ErrorKind.TRANSIENT
    assert outcome.kind.retryable is True


@pytest.mark.asyncio
async def test_network_error_is_transient(fake_transport, network_error):
    transport = fake_transport({URL_A: network_error(URL_A), URL_B: 404})

    outcome = await fetch_candidates(transport, _candidates(URL_A, URL_B), BaseConfig())

    assert outcome.kind is ErrorKind.TRANSIENT
    assert outcome.attempts[0].status_code is None
    assert "ConnectError" in outcome.attempts[0].error


@pytest.mark.asyncio
async def test_total_timeout_is_transient():
    """Given: 応答が遅いトランスポートと短い制限時間
    When: fetch_candidates()を呼び出す
    Then: 制限時間で打ち切られ TRANSIENT となる
    """

    class SlowTransport:
        async def fetch(self, url, *, headers=None, timeout=None):
            await asyncio.sleep(5)

    outcome = await fetch_candidates(
        SlowTransport(), _candidates(URL_A, URL_B), BaseConfig(), total_timeout=0.05
    )

    assert outcome.kind is ErrorKind.TRANSIENT
    assert outcome.attempts == (FetchAttempt(url=URL_A, error="timeout"),)


def test_classify_failure():
    assert classify_failure([FetchAttempt(url=URL_A, status_code=404)]) is ErrorKind.NOT_FOUND
    assert classify_failure([FetchAttempt(url=URL_A, status_code=500)]) is ErrorKind.TRANSIENT
    assert classify_failure([FetchAttempt(url=URL_A, error="boom")]) is ErrorKind.TRANSIENT


@pytest.mark.parametrize(
    "profile, expected_user_agent",
    [
        (UserAgentProfile.LEGACY, "Monazilla/1.00"),
        (UserAgentProfile.API, "ShikuMato/1.0"),
    ],
)
def test_build_headers_user_agent(profile, expected_user_agent):
    config = BaseConfig(LEGACY_USER_AGENT="Monazilla/1.00", API_USER_AGENT="ShikuMato/1.0")
    candidate = DocumentCandidate(url=URL_A, format=DocumentFormat.DAT, user_agent=profile)

    assert build_headers(candidate, config)["User-Agent"] == expected_user_agent


def test_build_headers_browser_profile():
    """Given: ブラウザ用の候補
    When: build_headers()を呼び出す
    Then: ブラウザのUser-Agentと日本語優先のAccept-Languageが付く
    """
    config = BaseConfig(BROWSER_USER_AGENT="Mozilla/5.0 test")
    candidate = DocumentCandidate(
        url=URL_A, format=DocumentFormat.HTML, user_agent=UserAgentProfile.BROWSER
    )

    headers = build_headers(candidate, config)

    assert headers["User-Agent"] == "Mozilla/5.0 test"
    assert headers["Accept-Language"].startswith("ja")


def test_build_headers_api_key_and_extra_headers():
    config = BaseConfig(SHIKUTOKU_API_KEY="secret-key")
    candidate = DocumentCandidate(
        url=URL_A,
        format=DocumentFormat.JSON,
        user_agent=UserAgentProfile.API,
        extra_headers=(("Referer", "https://shikutoku.me/"),),
    )

    headers = build_headers(candidate, config)

    assert headers["x-api-key"] == "secret-key"
    assert headers["Accept"] == "application/json"
    assert headers["Referer"] == "https://shikutoku.me/"


@pytest.mark.asyncio
async def test_headers_are_sent_per_candidate(fake_transport):
    transport = fake_transport({URL_A: b"ok"})

    await fetch_candidates(transport, _candidates(URL_A), BaseConfig(LEGACY_USER_AGENT="UA/1"))

    assert transport.calls[0][1]["User-Agent"] == "UA/1"
