"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~tokenbroker.exceptions.BrokerError` subclass.
Shell wrappers can inspect the exit code to tell a misconfigured broker
apart from an upstream outage without parsing stderr.

Example::

    $ tokenbroker token
    $ echo $?
    3   # EXIT_UPSTREAM_REJECTION -- the token endpoint said no
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIGURATION_ERROR = 2
"""Credentials or settings are missing or invalid; no request was sent."""

EXIT_UPSTREAM_REJECTION = 3
"""The token endpoint answered every strategy with a non-success status."""

EXIT_MALFORMED_RESPONSE = 4
"""The token endpoint answered with a success status but no usable token."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
