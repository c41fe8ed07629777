"""Caller-facing contract: one token request in, one status code and JSON body out.

:func:`issue_token` is what the HTTP entry point and the ``token`` CLI
command call. It reads the credentials once per call, runs the broker, and
maps the outcome onto the body shapes a browser caller understands:

=====================  ======================  =====================================
Outcome                Status                  Body
=====================  ======================  =====================================
success                200                     ``{"access-token", "expires_in"}``
configuration error    500                     ``{"error"}``
upstream rejection     upstream status         ``{"error", "status", "contentType",
                                               "detail"}``
malformed response     500                     same as upstream rejection
transport error        502                     ``{"error", "detail"}``
unexpected exception   500                     ``{"error", "message"}``
=====================  ======================  =====================================
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from tokenbroker.broker import TokenBroker
from tokenbroker.config import load_credentials
from tokenbroker.exceptions import BrokerError, ConfigurationError
from tokenbroker.models import BrokerSettings, ErrorKind, TokenFailure, TokenResult

logger = logging.getLogger(__name__)

_FAILURE_MESSAGES = {
    ErrorKind.UPSTREAM_REJECTION: "Token request failed",
    ErrorKind.MALFORMED_RESPONSE: "Token response missing access_token",
    ErrorKind.TRANSPORT: "Token endpoint unreachable",
}


class CallerResponse:
    """Status code and JSON body for the untrusted caller.

    ``error`` keeps the original :class:`~tokenbroker.exceptions.BrokerError`
    (if any) so the CLI can map it to an exit code.
    """

    def __init__(
        self,
        status_code: int,
        body: dict[str, Any],
        error: Optional[BrokerError] = None,
    ):
        self.status_code = status_code
        self.body = body
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None


def failure_response(failure: TokenFailure) -> CallerResponse:
    """Map a :class:`~tokenbroker.models.TokenFailure` to a caller response."""
    body: dict[str, Any] = {"error": _FAILURE_MESSAGES[failure.kind]}
    if failure.kind is ErrorKind.TRANSPORT:
        body["detail"] = failure.detail
        return CallerResponse(502, body, failure.to_exception())

    body["status"] = failure.http_status
    body["contentType"] = failure.content_type
    body["detail"] = failure.detail
    if failure.kind is ErrorKind.UPSTREAM_REJECTION and failure.http_status:
        status_code = failure.http_status
    else:
        status_code = 500
    return CallerResponse(status_code, body, failure.to_exception())


def result_response(result: TokenResult) -> CallerResponse:
    if isinstance(result, TokenFailure):
        return failure_response(result)
    return CallerResponse(200, result.to_payload())


def issue_token(
    settings: BrokerSettings,
    broker: Optional[TokenBroker] = None,
    env: Optional[Mapping[str, str]] = None,
) -> CallerResponse:
    """Acquire a token for the caller.

    Args:
        settings: Resolved broker settings, including credential sources.
        broker: Broker to use; a fresh :class:`TokenBroker` is built from
            *settings* when ``None``.
        env: Environment mapping for credential sources; defaults to
            ``os.environ``.

    Returns:
        A :class:`CallerResponse`. This function does not raise.
    """
    try:
        credentials = load_credentials(settings, env)
        if broker is None:
            broker = TokenBroker(settings)
        return result_response(broker.acquire(credentials))
    except ConfigurationError as exc:
        logger.error("Broker misconfigured: %s", exc)
        return CallerResponse(500, {"error": str(exc)}, exc)
    except Exception as exc:
        logger.exception("Token acquisition crashed")
        return CallerResponse(
            500,
            {"error": "Function error", "message": str(exc)},
            BrokerError(str(exc)),
        )
