"""Built-in strategies and the name registry that orders them.

Two transmission methods are provided:

- :class:`BasicAuthStrategy` (``basic``) -- credentials in an
  ``Authorization: Basic <base64(id:secret)>`` header per :rfc:`7617`.
- :class:`BodyCredentialsStrategy` (``body``) -- credentials as
  ``client_id`` / ``client_secret`` form fields per :rfc:`6749` section 2.3.1.

:class:`StrategyRegistry` maps names to strategy classes and turns a
configured list of names into an ordered list of instances. The default
order is Basic first, body second.
"""

from __future__ import annotations

import base64
from typing import Optional

from tokenbroker.broker.base import PreparedRequest, Strategy
from tokenbroker.exceptions import ConfigurationError
from tokenbroker.models import Credentials

DEFAULT_ORDER = ("basic", "body")


def basic_auth_value(credentials: Credentials) -> str:
    """Return the ``Authorization`` header value for *credentials*."""
    raw = f"{credentials.client_id}:{credentials.client_secret.get_secret_value()}"
    encoded = base64.b64encode(raw.encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


class BasicAuthStrategy(Strategy):
    """Send the credentials in an HTTP Basic ``Authorization`` header.

    The form body carries only ``grant_type`` (and ``access_type`` when
    configured).
    """

    @property
    def name(self) -> str:
        return "basic"

    def prepare(self, credentials: Credentials, request: PreparedRequest) -> None:
        request.headers["Authorization"] = basic_auth_value(credentials)


class BodyCredentialsStrategy(Strategy):
    """Send the credentials as ``client_id`` / ``client_secret`` form fields."""

    @property
    def name(self) -> str:
        return "body"

    def prepare(self, credentials: Credentials, request: PreparedRequest) -> None:
        request.form["client_id"] = credentials.client_id
        request.form["client_secret"] = credentials.client_secret.get_secret_value()


class StrategyRegistry:
    """Registry of strategy classes keyed by name.

    Example::

        registry = create_default_registry()
        strategies = registry.build(["body", "basic"], access_type="S2S")
    """

    def __init__(self) -> None:
        self._strategies: dict[str, type[Strategy]] = {}

    def register(self, name: str, strategy_cls: type[Strategy]) -> None:
        """Register *strategy_cls* under *name*, replacing any previous entry."""
        self._strategies[name] = strategy_cls

    def get(self, name: str) -> type[Strategy]:
        """Look up a strategy class by name.

        Raises:
            ConfigurationError: If no strategy is registered under *name*.
        """
        strategy_cls = self._strategies.get(name)
        if strategy_cls is None:
            available = ", ".join(sorted(self._strategies)) or "(none)"
            raise ConfigurationError(
                f"Unknown strategy '{name}'. Available strategies: {available}"
            )
        return strategy_cls

    def build(
        self,
        names: list[str] | tuple[str, ...] = DEFAULT_ORDER,
        access_type: Optional[str] = None,
    ) -> list[Strategy]:
        """Instantiate the strategies named in *names*, preserving order.

        Duplicate names are dropped after their first occurrence so that no
        transmission method is attempted twice within one acquisition.

        Raises:
            ConfigurationError: If a name is unknown or *names* is empty.
        """
        seen: set[str] = set()
        strategies: list[Strategy] = []
        for name in names:
            if name in seen:
                continue
            seen.add(name)
            strategies.append(self.get(name)(access_type=access_type))
        if not strategies:
            raise ConfigurationError("At least one strategy must be configured")
        return strategies

    def list_names(self) -> list[str]:
        """Return the registered names, sorted."""
        return sorted(self._strategies)


def create_default_registry() -> StrategyRegistry:
    """Create a :class:`StrategyRegistry` holding ``basic`` and ``body``."""
    registry = StrategyRegistry()
    registry.register("basic", BasicAuthStrategy)
    registry.register("body", BodyCredentialsStrategy)
    return registry
