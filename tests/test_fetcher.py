"""Tests for the requests-backed fetcher and its error classification."""

from __future__ import annotations

import pytest
import requests

from sitecrawl.crawler import CrawlConfig, ErrorKind, Fetcher
from sitecrawl.crawler.constants import DEFAULT_USER_AGENT

URL = "https://example.com/docs/intro"


@pytest.fixture
def fetcher():
    client = Fetcher(CrawlConfig(rate_limit_ms=0, retry_backoff_seconds=0))
    yield client
    client.close()


class TestFetch:
    def test_success(self, fetcher, requests_mock):
        requests_mock.get(URL, text="<html>ok</html>", headers={"Content-Type": "text/html"})

        result = fetcher.fetch(URL)

        assert result.ok
        assert result.status_code == 200
        assert result.body == b"<html>ok</html>"
        assert result.content_type == "text/html"
        assert result.error_kind is None
        assert requests_mock.last_request.headers["User-Agent"] == DEFAULT_USER_AGENT
        assert requests_mock.last_request.timeout == pytest.approx(8.0)

    def test_extra_headers_override_defaults(self, fetcher, requests_mock):
        requests_mock.get(URL, text="ok")

        fetcher.fetch(URL, headers={"User-Agent": "Custom/2.0"}, timeout_seconds=2.5)

        assert requests_mock.last_request.headers["User-Agent"] == "Custom/2.0"
        assert requests_mock.last_request.timeout == pytest.approx(2.5)

    def test_http_error_status(self, fetcher, requests_mock):
        requests_mock.get(URL, status_code=404, text="missing")

        result = fetcher.fetch(URL)

        assert not result.ok
        assert result.status_code == 404
        assert result.error_kind == ErrorKind.HTTP_STATUS
        assert result.error == "HTTP status 404"

    @pytest.mark.parametrize(
        ("exc", "kind"),
        [
            (requests.exceptions.ConnectTimeout, ErrorKind.TIMEOUT),
            (requests.exceptions.ReadTimeout, ErrorKind.TIMEOUT),
            (requests.exceptions.TooManyRedirects, ErrorKind.TOO_MANY_REDIRECTS),
            (requests.exceptions.ConnectionError("connection refused"), ErrorKind.CONNECTION_ERROR),
            (
                requests.exceptions.ConnectionError("Failed to resolve 'nowhere.invalid' (Name or service not known)"),
                ErrorKind.DNS_FAILURE,
            ),
            (requests.exceptions.ChunkedEncodingError, ErrorKind.UNKNOWN),
        ],
    )
    def test_request_exceptions(self, fetcher, requests_mock, exc, kind):
        requests_mock.get(URL, exc=exc)

        result = fetcher.fetch(URL)

        assert not result.ok
        assert result.status_code is None
        assert result.error_kind == kind

    @pytest.mark.parametrize("url", ["", "ftp://example.com/", "https://exa mple.com/"])
    def test_invalid_url_is_not_requested(self, fetcher, requests_mock, url):
        result = fetcher.fetch(url)

        assert result.error_kind == ErrorKind.INVALID_URL
        assert requests_mock.call_count == 0

    def test_closed_fetcher(self, requests_mock):
        fetcher = Fetcher()
        fetcher.close()

        result = fetcher.fetch(URL)

        assert not result.ok
        assert requests_mock.call_count == 0


class TestRetries:
    def test_retries_transient_status(self, requests_mock):
        requests_mock.get(URL, [{"status_code": 503}, {"status_code": 200, "text": "ok"}])

        with Fetcher(CrawlConfig(retries=1, retry_backoff_seconds=0)) as fetcher:
            result = fetcher.fetch(URL)

        assert result.ok
        assert requests_mock.call_count == 2

    def test_does_not_retry_client_errors(self, requests_mock):
        requests_mock.get(URL, status_code=404)

        with Fetcher(CrawlConfig(retries=3, retry_backoff_seconds=0)) as fetcher:
            result = fetcher.fetch(URL)

        assert result.error_kind == ErrorKind.HTTP_STATUS
        assert requests_mock.call_count == 1

    def test_does_not_retry_dns_failures(self, requests_mock):
        requests_mock.get(URL, exc=requests.exceptions.ConnectionError("Name or service not known"))

        with Fetcher(CrawlConfig(retries=3, retry_backoff_seconds=0)) as fetcher:
            result = fetcher.fetch(URL)

        assert result.error_kind == ErrorKind.DNS_FAILURE
        assert requests_mock.call_count == 1

    def test_exhausted_retries_return_last_result(self, requests_mock, monkeypatch):
        sleeps: list[float] = []
        monkeypatch.setattr("sitecrawl.crawler.fetcher.time.sleep", sleeps.append)
        requests_mock.get(URL, [{"status_code": 503}, {"status_code": 502}, {"status_code": 500}])

        with Fetcher(CrawlConfig(retries=2, retry_backoff_seconds=0.5)) as fetcher:
            result = fetcher.fetch(URL)

        assert result.status_code == 500
        assert result.error_kind == ErrorKind.HTTP_STATUS
        assert requests_mock.call_count == 3
        assert sleeps == [0.5, 1.0]

    def test_single_attempt_without_retries(self, requests_mock):
        requests_mock.get(URL, status_code=503)

        with Fetcher(CrawlConfig(retries=0)) as fetcher:
            result = fetcher.fetch(URL)

        assert not result.ok
        assert requests_mock.call_count == 1
