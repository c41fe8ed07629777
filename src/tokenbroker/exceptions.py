"""Exception hierarchy for tokenbroker.

All exceptions inherit from :class:`BrokerError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`tokenbroker.exit_codes`. The CLI entry point catches ``BrokerError``
and exits with the matching code.

Only :class:`ConfigurationError` is ever raised out of
:meth:`~tokenbroker.broker.TokenBroker.acquire`. The per-attempt kinds are
recorded on the returned :class:`~tokenbroker.models.TokenFailure` and can
be turned back into an exception with
:meth:`~tokenbroker.models.TokenFailure.to_exception`.

Subclass hierarchy::

    BrokerError (exit 1)
    +-- ConfigurationError  (exit 2)
    +-- UpstreamRejection   (exit 3)
    +-- MalformedResponse   (exit 4)
    +-- TransportError      (exit 6)
"""

from tokenbroker.exit_codes import (
    EXIT_CONFIGURATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_MALFORMED_RESPONSE,
    EXIT_TRANSPORT_ERROR,
    EXIT_UPSTREAM_REJECTION,
)


class BrokerError(Exception):
    """Base exception for all tokenbroker errors.

    Args:
        message: Human-readable error description. Must never contain the
            client secret.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(BrokerError):
    """Raised when credentials or settings are missing, empty, or invalid."""

    exit_code = EXIT_CONFIGURATION_ERROR


class TransportError(BrokerError):
    """Network-level failure (timeout, DNS resolution, connection refused) on an attempt."""

    exit_code = EXIT_TRANSPORT_ERROR


class UpstreamRejection(BrokerError):
    """The token endpoint returned a non-success HTTP status."""

    exit_code = EXIT_UPSTREAM_REJECTION


class MalformedResponse(BrokerError):
    """Success status, but the body is unparsable or lacks an access token."""

    exit_code = EXIT_MALFORMED_RESPONSE
