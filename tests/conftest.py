"""
Pytest fixtures for the tool synchronizer tests.

Provides a fake HTTP session that serves canned ``requests.Response``
objects (no network access), a ZIP archive builder, and a SyncConfig
pointed at a temporary destination.
"""

import io
import sys
import zipfile
from pathlib import Path

import pytest
import requests
from requests.structures import CaseInsensitiveDict

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.config import SyncConfig  # noqa: E402

CANONICAL = "https://download.ericzimmermanstools.com/"
STORAGE = "https://f001.backblazeb2.com/file/EricZimmermanTools/"
INDEX_URL = "https://example.test/EricZimmermanTools/index.md"


# ── Helpers ───────────────────────────────────────────────────────────────────

def make_response(status: int = 200, body: bytes | str = b"",
                  headers: dict | None = None, url: str = "") -> requests.Response:
    """Build a fully-read requests.Response with the given status, body and headers."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    resp = requests.Response()
    resp.status_code = status
    resp.url = url
    resp.headers = CaseInsensitiveDict(headers or {})
    resp.encoding = "utf-8"
    resp._content = body
    resp._content_consumed = True
    return resp


def make_zip(files: dict[str, bytes | str], compression: int = zipfile.ZIP_STORED) -> bytes:
    """Return the bytes of a ZIP archive holding ``files``."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=compression) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buf.getvalue()


class FakeSession:
    """Stands in for requests.Session.

    ``add(url, ...)`` registers the body and headers served for ``url``:
    HEAD returns the headers, GET returns headers and body. Registering an
    exception (via ``fail``) makes that method raise it instead.
    Every call is recorded in ``calls`` as ``(method, url)``.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], object] = {}
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    def add(self, url: str, body: bytes | str = b"", etag: str | None = None,
            size: int | None = None, status: int = 200) -> None:
        headers = {}
        if etag is not None:
            headers["ETag"] = etag
        if size is not None:
            headers["Content-Length"] = str(size)
        self.routes[("HEAD", url)] = make_response(status, b"", headers, url)
        self.routes[("GET", url)] = make_response(status, body, headers, url)

    def fail(self, method: str, url: str, exc: Exception | None = None) -> None:
        self.routes[(method, url)] = exc or requests.ConnectionError(f"connection reset: {url}")

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        self.calls.append((method, url))
        route = self.routes.get((method, url))
        if route is None:
            return make_response(404, b"not found", {}, url)
        if isinstance(route, Exception):
            raise route
        return route

    def get(self, url: str, **kwargs) -> requests.Response:
        return self.request("GET", url, **kwargs)

    def head(self, url: str, **kwargs) -> requests.Response:
        return self.request("HEAD", url, **kwargs)

    def count(self, method: str, url: str | None = None) -> int:
        return sum(1 for m, u in self.calls if m == method and (url is None or u == url))

    def close(self) -> None:
        self.closed = True


def index_page(*urls: str) -> str:
    """Minimal HTML index page linking to ``urls``."""
    links = "\n".join(f'  <li><a href="{u}">{u.rsplit("/", 1)[-1]}</a></li>' for u in urls)
    return f"<html><body><ul>\n{links}\n</ul></body></html>"


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture()
def fake_session():
    """Empty FakeSession; tests register the URLs they need."""
    return FakeSession()


@pytest.fixture()
def sync_config(tmp_path):
    """SyncConfig writing into a temporary destination with a test index URL."""
    config = SyncConfig()
    config.dest_dir = tmp_path / "tools"
    config.index_url = INDEX_URL
    return config
