"""
Pytest configuration and fixtures for the blog client library.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import pytest
from hypothesis import settings, Verbosity

from blogwire.interfaces.transport import HttpResponse, HttpTransport, XmlRpcTransport
from blogwire.managers.category_cache import CategoryCache
from blogwire.models.category import CategoryEntry

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.load_profile("default")

BLOG_URL = "https://blog.example.com/xmlrpc.php"


@dataclass
class RecordedCall:
    method: str
    args: List[Any]
    on_result: Callable
    on_error: Callable


class RecordingXmlRpcTransport(XmlRpcTransport):
    """Records calls; tests deliver the completions by hand."""

    def __init__(self):
        self.calls: List[RecordedCall] = []

    def call(self, method, args, on_result, on_error):
        self.calls.append(RecordedCall(method, list(args), on_result, on_error))

    @property
    def methods(self) -> List[str]:
        return [call.method for call in self.calls]

    def respond(self, index: int, result: Any) -> None:
        self.calls[index].on_result(result)

    def fail(self, index: int, error: Exception) -> None:
        self.calls[index].on_error(error)


@dataclass
class RecordedRequest:
    verb: str
    url: str
    on_result: Callable
    on_error: Callable
    body: bytes
    headers: Dict[str, str]


class RecordingHttpTransport(HttpTransport):
    """Records HTTP requests; tests deliver the responses by hand."""

    def __init__(self):
        self.requests: List[RecordedRequest] = []

    def request(self, verb, url, on_result, on_error, body=b"", headers=None):
        self.requests.append(
            RecordedRequest(verb, url, on_result, on_error, body, dict(headers or {}))
        )

    def respond(self, index: int, body: str, status: int = 200) -> None:
        self.requests[index].on_result(HttpResponse(status=status, body=body.encode("utf-8")))

    def fail(self, index: int, error: Exception) -> None:
        self.requests[index].on_error(error)


class StaticAuthenticator:
    """Hands out a fixed token, or raises the configured error."""

    def __init__(self, token: str = "secret-token", error: Optional[Exception] = None):
        self._token = token
        self.error = error

    def token(self) -> str:
        if self.error is not None:
            raise self.error
        return self._token


class SignalRecorder:
    """Connects to a client's signals and keeps what they emitted."""

    def __init__(self, client, *names: str):
        self.emitted: Dict[str, List[tuple]] = {name: [] for name in names}
        for name in names:
            getattr(client, name).connect(self._recorder(name))

    def _recorder(self, name: str):
        def record(*args):
            self.emitted[name].append(args)
        return record

    def __getitem__(self, name: str) -> List[tuple]:
        return self.emitted[name]


@pytest.fixture
def xmlrpc_transport():
    return RecordingXmlRpcTransport()


@pytest.fixture
def http_transport():
    return RecordingHttpTransport()


@pytest.fixture
def category_cache(tmp_path):
    return CategoryCache(tmp_path / "cache")


@pytest.fixture
def seeded_cache(category_cache):
    """A cache that already knows the blog's categories."""
    category_cache.save(
        "blog.example.com",
        "1",
        "user",
        [
            CategoryEntry(name="Funny", category_id="7"),
            CategoryEntry(name="Serious", category_id="9"),
        ],
    )
    return category_cache


@pytest.fixture
def record_signals():
    return SignalRecorder


@pytest.fixture
def authenticator():
    return StaticAuthenticator()


@pytest.fixture
def sample_frontmatter_document():
    """Markdown post with front matter."""
    return """---
title: Test Article
slug: test-article
summary: A test article for unit testing
tags: python,testing,blog
categories:
  - Funny
  - Serious
private: false
date: 2006-03-30T18:36:28Z
---
# Test Article

This is a test article with some **bold** text.

<!--more-->

More content here with a [link](https://example.com).
"""
