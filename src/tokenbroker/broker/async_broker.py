"""Asynchronous token broker -- mirrors :class:`~tokenbroker.broker.sync_broker.TokenBroker`.

:class:`AsyncTokenBroker` wraps :class:`httpx.AsyncClient` with the same
contract as the blocking broker, for callers that already run inside an
event loop. Strategies are still attempted one after another: the second
is only sent once the first has failed.
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
from tokenbroker.broker.sync_broker import capture, require_credentials
from tokenbroker.exceptions import ConfigurationError
from tokenbroker.models import BrokerSettings, Credentials, TokenResult


class AsyncTokenBroker:
    """Non-blocking token broker with strategy fallback.

    Args:
        settings: Endpoint, timeout and strategy configuration.
        transport: Optional async httpx transport, mainly for tests.
        strategies: Explicit strategy instances; defaults to
            ``settings.strategies``.
    """

    def __init__(
        self,
        settings: BrokerSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        strategies: Optional[Sequence[Strategy]] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        if strategies is None:
            strategies = create_default_registry().build(
                settings.strategies, access_type=settings.access_type
            )
        self._strategies = list(strategies)

    async def acquire(
        self,
        credentials: Credentials,
        strategies: Optional[Sequence[Strategy]] = None,
    ) -> TokenResult:
        """Async version of :meth:`TokenBroker.acquire <tokenbroker.broker.sync_broker.TokenBroker.acquire>`."""
        require_credentials(credentials)
        ordered = list(strategies) if strategies is not None else self._strategies
        if not ordered:
            raise ConfigurationError("At least one strategy must be configured")

        acquisition = Acquisition(credentials)
        async with httpx.AsyncClient(
            timeout=self._settings.timeout, transport=self._transport
        ) as client:
            for strategy in ordered:
                outcome = await self._attempt(client, strategy, credentials)
                success = acquisition.record(outcome)
                if success is not None:
                    return success
        return acquisition.result()

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        strategy: Strategy,
        credentials: Credentials,
    ) -> AttemptOutcome:
        request = strategy.build(credentials)
        try:
            response = await client.post(
                self._settings.token_url,
                headers=request.headers,
                data=request.form,
            )
        except httpx.RequestError as exc:
            return transport_outcome(strategy.name, exc)
        return classify_response(strategy.name, capture(response))
