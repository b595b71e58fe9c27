from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import requests

ENV_VARS = (
    "DOCS_FETCH_TIMEOUT",
    "DOCS_FETCH_WORKERS",
    "DOCS_FETCH_USER_AGENT",
    "DOCS_FETCH_MIN_TEXT_LENGTH",
)

DOCS_PAGE = """<!DOCTYPE html>
<html>
<head><title>Widget Guide</title></head>
<body>
<header class="site-header"><a href="/">Home</a> <a href="/docs">Docs</a></header>
<nav><ul>
  <li><a href="/start">Getting started with widgets and gadgets</a></li>
  <li><a href="/api">API reference for every widget method</a></li>
</ul></nav>
<div class="sidebar"><p>Sponsored: buy the premium widget bundle today, limited offer, act now.</p></div>
<main>
<article class="doc-content">
<h1>Widget Guide</h1>
<p>Widgets are configured through a single file, which lives next to your project, and is read at startup.</p>
<p>Each widget declares a name, a version, and a list of handlers, which are called in order.</p>
<pre><code class="language-python">import widgets
widgets.load("config.toml")
</code></pre>
<table>
<tr><th>Option</th><th>Default</th></tr>
<tr><td>debug</td><td>false</td></tr>
</table>
</article>
</main>
<footer><p>Copyright 2026 Example Corp, all rights reserved, see terms and privacy policy.</p></footer>
<script>console.log("tracking, analytics, and more tracking code here");</script>
</body>
</html>
"""

REDIRECT_STUB = """<html><head><title>Moved</title>
<script>window.location = "/new-home";</script></head>
<body><p>Redirecting...</p></body></html>
"""


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    # load_dotenv writes straight to os.environ
    for var in ENV_VARS:
        os.environ.pop(var, None)


def make_response(
    url: str,
    body: str | bytes,
    status: int = 200,
    content_type: str | None = "text/html; charset=utf-8",
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = body.encode("utf-8") if isinstance(body, str) else body
    resp.url = url
    resp.reason = {200: "OK", 300: "Multiple Choices", 304: "Not Modified"}.get(status, "Not Found")
    if content_type:
        resp.headers["Content-Type"] = content_type
    resp.encoding = requests.utils.get_encoding_from_headers(resp.headers)
    return resp


class FakeWeb:
    """Stands in for requests.get with a fixed url -> response table."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple] = {}
        self.calls: list[dict] = []

    def add(self, url: str, body: str | bytes, status: int = 200, content_type: str | None = None) -> None:
        if content_type is None:
            content_type = "text/markdown; charset=utf-8" if url.endswith(".md") else "text/html; charset=utf-8"
        self.routes[url] = (body, status, content_type)

    def get(self, url: str, **kwargs) -> requests.Response:
        self.calls.append({"url": url, **kwargs})
        if url not in self.routes:
            raise requests.ConnectionError(f"no route to {url}")
        body, status, content_type = self.routes[url]
        return make_response(url, body, status, content_type)

    @property
    def urls(self) -> list[str]:
        return [call["url"] for call in self.calls]


@pytest.fixture
def web(monkeypatch: pytest.MonkeyPatch) -> FakeWeb:
    fake = FakeWeb()
    monkeypatch.setattr(requests, "get", fake.get)
    return fake


@pytest.fixture
def write_inventory(tmp_path: Path):
    def write(document: dict, name: str = "reference-inventory.json") -> Path:
        skill_dir = tmp_path / "skill"
        skill_dir.mkdir(exist_ok=True)
        path = skill_dir / name
        path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        return path

    return write


@pytest.fixture
def docs_page() -> str:
    return DOCS_PAGE


@pytest.fixture
def redirect_stub() -> str:
    return REDIRECT_STUB
