"""
Unit Tests for Request and Response Models

Tests URL normalization, request identity and snapshot behaviour.
"""

import pytest

from src.core.config.constants import RequestMode, ResponseSource, RouteKind
from src.core.exceptions import InvalidRequestError
from src.offline_proxy.models.http import (
    CacheEntry,
    ProxyRequest,
    RequestIdentity,
    ResponseSnapshot,
    ServedResponse,
    normalize_url,
    origin_of,
)


@pytest.mark.unit
class TestNormalizeUrl:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("HTTPS://API.Quran.com/api/v4/chapters", "https://api.quran.com/api/v4/chapters"),
            ("https://api.quran.com:443/x", "https://api.quran.com/x"),
            ("http://localhost:80/", "http://localhost/"),
            ("http://localhost:8000", "http://localhost:8000/"),
            ("https://x.test/page#section", "https://x.test/page"),
            ("https://x.test/search?q=a&page=2", "https://x.test/search?q=a&page=2"),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_url(raw) == expected

    @pytest.mark.parametrize("raw", ["/relative/path", "ftp://x.test/file", "not a url"])
    def test_rejects_non_absolute_http(self, raw):
        with pytest.raises(InvalidRequestError):
            normalize_url(raw)

    def test_origin_of(self):
        assert origin_of("https://API.quran.com:443/v4?x=1") == "https://api.quran.com"
        assert origin_of("http://localhost:8000/index.html") == "http://localhost:8000"


@pytest.mark.unit
class TestProxyRequest:
    def test_method_upper_cased_and_url_normalized(self):
        request = ProxyRequest(method="get", url="HTTP://LOCALHOST:8000/index.html")

        assert request.method == "GET"
        assert request.url == "http://localhost:8000/index.html"

    def test_identity_key(self):
        request = ProxyRequest.get("https://api.quran.com/api/v4/chapters")

        assert request.identity == RequestIdentity("GET", "https://api.quran.com/api/v4/chapters")
        assert request.identity.key == "GET https://api.quran.com/api/v4/chapters"
        assert request.identity.is_cacheable is True

    def test_post_identity_is_not_cacheable(self):
        request = ProxyRequest(method="POST", url="https://api.quran.com/")

        assert request.identity.is_cacheable is False

    def test_mode_is_coerced(self):
        request = ProxyRequest(method="GET", url="http://localhost:8000/", mode="navigate")

        assert request.mode is RequestMode.NAVIGATE
        assert request.is_navigation is True

    def test_hostname_and_origin(self):
        request = ProxyRequest.get("https://Fonts.GoogleAPIs.com/css2?family=Amiri")

        assert request.hostname == "fonts.googleapis.com"
        assert request.origin == "https://fonts.googleapis.com"

    def test_identity_from_key_round_trip(self):
        identity = RequestIdentity.from_key("GET https://x.test/a b")

        assert identity.method == "GET"
        assert identity.url == "https://x.test/a b"


@pytest.mark.unit
class TestResponseSnapshot:
    def test_ok_only_for_200(self):
        assert ResponseSnapshot(status_code=200).ok is True
        assert ResponseSnapshot(status_code=204).ok is False

    def test_clone_is_independent_for_headers(self):
        original = ResponseSnapshot(status_code=200, headers={"etag": "1"}, body=b"x")

        copy = original.clone()
        copy.headers["etag"] = "2"

        assert original.headers["etag"] == "1"
        assert copy.body == original.body
        assert copy.captured_at == original.captured_at

    def test_body_is_bytes(self):
        snapshot = ResponseSnapshot(status_code=200, body=bytearray(b"abc"))

        assert isinstance(snapshot.body, bytes)

    def test_entry_dict_form_carries_binary_body(self):
        entry = CacheEntry(
            identity=RequestIdentity("GET", "https://x.test/logo.png"),
            snapshot=ResponseSnapshot(status_code=200, headers={"content-type": "image/png"}, body=b"\x89PNG\x00"),
        )

        restored = CacheEntry.from_dict(entry.to_dict())

        assert restored.identity == entry.identity
        assert restored.snapshot.body == b"\x89PNG\x00"
        assert restored.snapshot.headers == {"content-type": "image/png"}

    def test_served_response_exposes_snapshot(self):
        served = ServedResponse(
            snapshot=ResponseSnapshot(status_code=200, body=b"hi"),
            source=ResponseSource.CACHE,
            route=RouteKind.CACHE_FIRST,
            generation="app-static-v1",
        )

        assert served.status_code == 200
        assert served.body == b"hi"
