"""Shared test fixtures for tokenbroker.

Provides settings and credential fixtures, a recording fake transport for
the token endpoint, and isolation of the global output manager and the
``tokenbroker`` logger between tests.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from tokenbroker.models import BrokerSettings, Credentials
from tokenbroker.output import reset_output

TOKEN_URL = "https://auth.example.com/token"


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the package logger after every test.

    The CLI callback installs a RichHandler bound to whatever stderr was
    active at the time (CliRunner's capture buffer). Leaving it in place
    would write to a closed stream and hide records from ``caplog``.
    """
    yield
    reset_output()
    logger = logging.getLogger("tokenbroker")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty directory with no tokenbroker or Zakeke variables set."""
    for var in [
        "ZAKEKE_CLIENT_ID",
        "ZAKEKE_CLIENT_SECRET",
        "TOKENBROKER_CONFIG",
        "TOKENBROKER_TOKEN_URL",
        "TOKENBROKER_TIMEOUT",
        "TOKENBROKER_STRATEGIES",
        "TOKENBROKER_ACCESS_TYPE",
        "TOKENBROKER_ALLOW_ORIGIN",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Settings / credentials
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> BrokerSettings:
    return BrokerSettings(token_url=TOKEN_URL, timeout=5)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(client_id="my-client-id", client_secret="my-client-secret")


# ---------------------------------------------------------------------------
# Fake token endpoint
# ---------------------------------------------------------------------------


Reply = Callable[[httpx.Request], httpx.Response]


def json_reply(data: Any, status_code: int = 200) -> Reply:
    """Reply with a JSON body."""
    return lambda request: httpx.Response(status_code, json=data)


def text_reply(text: str, status_code: int = 200, content_type: str = "text/plain") -> Reply:
    """Reply with a text body and an explicit content type."""
    return lambda request: httpx.Response(
        status_code, content=text.encode("utf-8"), headers={"content-type": content_type}
    )


def corrupt_gzip_reply(status_code: int = 200) -> Reply:
    """Reply claiming gzip encoding with a body that does not decompress."""

    def _reply(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code,
            headers={"content-encoding": "gzip", "content-type": "application/json"},
            stream=httpx.ByteStream(b"not-gzip-at-all"),
        )

    return _reply


def raise_reply(exc_type: type[httpx.RequestError] = httpx.ConnectError) -> Reply:
    """Fail the request at the transport level."""

    def _reply(request: httpx.Request) -> httpx.Response:
        raise exc_type("connection refused", request=request)

    return _reply


class FakeTokenEndpoint:
    """Scripted token endpoint that records every request it receives.

    Replies are consumed in order, one per request. Requests beyond the
    script fail the test.
    """

    def __init__(self, *replies: Reply) -> None:
        self._replies = list(replies)
        self.requests: list[httpx.Request] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        assert self._replies, f"unexpected extra request #{len(self.requests)}"
        return self._replies.pop(0)(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def async_transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def form(self, index: int) -> dict[str, str]:
        """Decode the form body of request *index*."""
        from urllib.parse import parse_qs

        body = self.requests[index].content.decode("utf-8")
        return {k: v[0] for k, v in parse_qs(body).items()}
