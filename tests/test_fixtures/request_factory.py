"""
Request Factory for Test Data

Creates consistent ProxyRequest and ResponseSnapshot objects for testing.
"""

from src.core.config.constants import RequestMode
from src.offline_proxy.models.http import ProxyRequest, ResponseSnapshot

ORIGIN = "http://localhost:8000"
API_URL = "https://api.quran.com/api/v4/chapters"
CDN_URL = "https://fonts.googleapis.com/css2?family=Amiri"


class RequestFactory:
    """Factory for creating ProxyRequest objects."""

    @staticmethod
    def asset(path: str = "/index.html") -> ProxyRequest:
        """Same-origin GET for a static asset."""
        return ProxyRequest.get(f"{ORIGIN}{path}", mode=RequestMode.SAME_ORIGIN)

    @staticmethod
    def navigation(path: str = "/index.html") -> ProxyRequest:
        """Top-level page load."""
        return ProxyRequest.get(f"{ORIGIN}{path}", mode=RequestMode.NAVIGATE)

    @staticmethod
    def api(url: str = API_URL) -> ProxyRequest:
        """Cross-origin GET to a live API host."""
        return ProxyRequest.get(url, mode=RequestMode.CORS)

    @staticmethod
    def external(url: str = CDN_URL) -> ProxyRequest:
        return ProxyRequest.get(url, mode=RequestMode.NO_CORS)

    @staticmethod
    def post(url: str = API_URL, body: bytes = b'{"q": 1}') -> ProxyRequest:
        return ProxyRequest(
            method="POST", url=url, headers={"content-type": "application/json"}, body=body
        )


class SnapshotFactory:
    """Factory for creating ResponseSnapshot objects."""

    @staticmethod
    def ok(body: bytes = b"ok", content_type: str = "text/plain") -> ResponseSnapshot:
        return ResponseSnapshot(status_code=200, headers={"content-type": content_type}, body=body)

    @staticmethod
    def html(body: bytes = b"<html>page</html>") -> ResponseSnapshot:
        return SnapshotFactory.ok(body, "text/html")

    @staticmethod
    def json(body: bytes = b'{"chapters": []}') -> ResponseSnapshot:
        return SnapshotFactory.ok(body, "application/json")

    @staticmethod
    def status(status_code: int, body: bytes = b"") -> ResponseSnapshot:
        return ResponseSnapshot(status_code=status_code, headers={}, body=body)
