"""Token acquisition core.

This package holds the only decision logic of tokenbroker: building the
candidate requests, attempting them in a fixed order, interpreting replies
whose shape is not reliably predictable, and normalising the outcome.

The main entry points are:

- :class:`TokenBroker` / :class:`AsyncTokenBroker` -- run the fallback loop.
- :class:`Strategy` -- base class for credential-transmission methods.
- :func:`create_default_registry` -- registry of the built-in ``basic`` and
  ``body`` strategies.

Typical usage::

    from tokenbroker.broker import TokenBroker

    broker = TokenBroker(settings)
    result = broker.acquire(credentials)
"""

from tokenbroker.broker.async_broker import AsyncTokenBroker
from tokenbroker.broker.base import PreparedRequest, Strategy
from tokenbroker.broker.payload import Opaque, ParsedPayload, Structured, parse_payload
from tokenbroker.broker.strategies import (
    BasicAuthStrategy,
    BodyCredentialsStrategy,
    StrategyRegistry,
    create_default_registry,
)
from tokenbroker.broker.sync_broker import TokenBroker

__all__ = [
    "AsyncTokenBroker",
    "BasicAuthStrategy",
    "BodyCredentialsStrategy",
    "Opaque",
    "ParsedPayload",
    "PreparedRequest",
    "Strategy",
    "StrategyRegistry",
    "Structured",
    "TokenBroker",
    "create_default_registry",
    "parse_payload",
]
