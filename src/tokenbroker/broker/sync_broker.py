"""Blocking token broker backed by :class:`httpx.Client`.

:class:`TokenBroker` owns the ordered strategy list and runs the fallback
loop: each strategy is tried in turn, the first attempt that yields a
usable access token wins, and otherwise the last upstream reply becomes the
failure diagnostic. A request that fails before a reply is read (network error, undecodable
body) only ends the current attempt.

See Also:
    :class:`~tokenbroker.broker.async_broker.AsyncTokenBroker` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

from typing import Optional, Sequence

import httpx

from tokenbroker.broker.base import Strategy
from tokenbroker.broker.outcome import (
    Acquisition,
    AttemptOutcome,
    classify_response,
    transport_outcome,
)
from tokenbroker.broker.strategies import create_default_registry
from tokenbroker.exceptions import ConfigurationError
from tokenbroker.models import BrokerSettings, Credentials, RawResponse, TokenResult


def require_credentials(credentials: Credentials) -> None:
    """Raise :class:`ConfigurationError` unless both credentials are non-empty."""
    if not credentials.is_complete():
        raise ConfigurationError(
            "Client credentials are incomplete: client_id and client_secret "
            "must both be non-empty"
        )


def capture(response: httpx.Response) -> RawResponse:
    """Freeze status, content type and body text of *response*."""
    return RawResponse(
        http_status=response.status_code,
        content_type=response.headers.get("content-type", ""),
        body_text=response.text,
    )


class TokenBroker:
    """Acquire client-credentials tokens with strategy fallback.

    The broker holds no per-call state: every :meth:`acquire` opens its own
    :class:`httpx.Client` and closes it before returning, so one instance can
    serve concurrent callers.

    Args:
        settings: Endpoint, timeout and strategy configuration.
        transport: Optional httpx transport, mainly for tests
            (:class:`httpx.MockTransport`).
        strategies: Explicit strategy instances. When ``None`` they are built
            from ``settings.strategies`` via the default registry.

    Example::

        broker = TokenBroker(BrokerSettings())
        result = broker.acquire(Credentials(client_id="id", client_secret="s"))
        if result.ok:
            print(result.access_token)
    """

    def __init__(
        self,
        settings: BrokerSettings,
        transport: Optional[httpx.BaseTransport] = None,
        strategies: Optional[Sequence[Strategy]] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        if strategies is None:
            strategies = create_default_registry().build(
                settings.strategies, access_type=settings.access_type
            )
        self._strategies = list(strategies)

    @property
    def strategies(self) -> list[Strategy]:
        return list(self._strategies)

    def acquire(
        self,
        credentials: Credentials,
        strategies: Optional[Sequence[Strategy]] = None,
    ) -> TokenResult:
        """Exchange *credentials* for a token, trying strategies in order.

        Args:
            credentials: Client id and secret; both must be non-empty.
            strategies: Overrides the broker's strategy list for this call.

        Returns:
            :class:`~tokenbroker.models.TokenSuccess` from the first
            strategy that produced a token, or
            :class:`~tokenbroker.models.TokenFailure` describing the last
            upstream reply once all strategies are exhausted.

        Raises:
            ConfigurationError: If the credentials are incomplete or the
                strategy list is empty. No request is sent in that case.
        """
        require_credentials(credentials)
        ordered = list(strategies) if strategies is not None else self._strategies
        if not ordered:
            raise ConfigurationError("At least one strategy must be configured")

        acquisition = Acquisition(credentials)
        with httpx.Client(timeout=self._settings.timeout, transport=self._transport) as client:
            for strategy in ordered:
                success = acquisition.record(self._attempt(client, strategy, credentials))
                if success is not None:
                    return success
        return acquisition.result()

    def _attempt(
        self,
        client: httpx.Client,
        strategy: Strategy,
        credentials: Credentials,
    ) -> AttemptOutcome:
        request = strategy.build(credentials)
        try:
            response = client.post(
                self._settings.token_url,
                headers=request.headers,
                data=request.form,
            )
        except httpx.RequestError as exc:
            return transport_outcome(strategy.name, exc)
        return classify_response(strategy.name, capture(response))
