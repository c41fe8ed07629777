"""Per-attempt classification and final result assembly.

:func:`classify_response` turns one :class:`~tokenbroker.models.RawResponse`
into an :class:`AttemptOutcome`. :class:`Acquisition` accumulates outcomes
for one ``acquire`` call, keeps the most recent upstream reply as the
diagnostic, and builds the final :data:`~tokenbroker.models.TokenResult`.
Both broker flavours drive the same :class:`Acquisition`, so the sync and
async loops only differ in how they send requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from tokenbroker.broker.payload import (
    Opaque,
    ParsedPayload,
    Structured,
    coerce_expires_in,
    find_access_token,
    parse_payload,
)
from tokenbroker.broker.strategies import basic_auth_value
from tokenbroker.models import (
    NO_RESPONSE_BODY,
    Credentials,
    ErrorKind,
    RawResponse,
    TokenFailure,
    TokenResult,
    TokenSuccess,
)

logger = logging.getLogger(__name__)

REDACTED = "***"
_LOG_TEXT_LIMIT = 300


@dataclass(frozen=True)
class AttemptOutcome:
    """What one strategy attempt produced.

    ``kind`` is ``None`` for a successful attempt. ``raw`` and ``parsed``
    are ``None`` when the attempt never reached the upstream endpoint.
    """

    strategy: str
    kind: Optional[ErrorKind]
    raw: Optional[RawResponse] = None
    parsed: Optional[ParsedPayload] = None
    success: Optional[TokenSuccess] = None
    error: str = ""


def classify_response(strategy: str, raw: RawResponse) -> AttemptOutcome:
    """Parse and classify one upstream reply."""
    parsed = parse_payload(raw.content_type, raw.body_text)
    if not raw.is_success:
        return AttemptOutcome(strategy, ErrorKind.UPSTREAM_REJECTION, raw, parsed)
    if isinstance(parsed, Structured):
        token = find_access_token(parsed.payload)
        if token is not None:
            success = TokenSuccess(
                access_token=token,
                expires_in=coerce_expires_in(parsed.payload.get("expires_in")),
            )
            return AttemptOutcome(strategy, None, raw, parsed, success=success)
    return AttemptOutcome(strategy, ErrorKind.MALFORMED_RESPONSE, raw, parsed)


def scrub_secrets(value: Any, credentials: Credentials) -> Any:
    """Replace the secret (and the Basic value carrying it) anywhere in *value*."""
    secret = credentials.client_secret.get_secret_value()
    needles = [basic_auth_value(credentials).split(" ", 1)[1]]
    if secret:
        needles.append(secret)
    return _replace_all(value, needles)


def transport_outcome(strategy: str, exc: Exception) -> AttemptOutcome:
    """Record a network-level failure for *strategy*."""
    return AttemptOutcome(
        strategy, ErrorKind.TRANSPORT, error=f"{type(exc).__name__}: {exc}"
    )


def log_outcome(outcome: AttemptOutcome, credentials: Credentials) -> None:
    """Log a summary of an attempt with the credentials scrubbed out."""
    if outcome.raw is None:
        logger.warning(
            "Token request via %s failed: %s",
            outcome.strategy,
            scrub_secrets(outcome.error, credentials),
        )
        return
    raw = outcome.raw
    has_json = isinstance(outcome.parsed, Structured)
    logger.info(
        "Token response via %s: status=%s content_type=%r has_json=%s",
        outcome.strategy,
        raw.http_status,
        raw.content_type,
        has_json,
    )
    if not has_json and raw.body_text:
        logger.info(
            "Non-JSON body: %s",
            scrub_secrets(raw.body_text, credentials)[:_LOG_TEXT_LIMIT],
        )


class Acquisition:
    """State of a single ``acquire`` call.

    Args:
        credentials: The credentials being exchanged; only used to scrub
            them out of log lines and the final diagnostic.
    """

    def __init__(self, credentials: Credentials) -> None:
        self._credentials = credentials
        self.attempts = 0
        self._last_response: Optional[AttemptOutcome] = None
        self._last_transport: Optional[AttemptOutcome] = None

    def record(self, outcome: AttemptOutcome) -> Optional[TokenSuccess]:
        """Register *outcome*; return the success when the loop should stop."""
        self.attempts += 1
        log_outcome(outcome, self._credentials)
        if outcome.success is not None:
            return outcome.success
        if outcome.raw is None:
            self._last_transport = outcome
        else:
            self._last_response = outcome
        return None

    def result(self) -> TokenResult:
        """Build the failure from the most relevant attempt."""
        outcome = self._last_response
        if outcome is not None and outcome.raw is not None and outcome.kind is not None:
            return TokenFailure(
                kind=outcome.kind,
                http_status=outcome.raw.http_status,
                content_type=outcome.raw.content_type,
                detail=scrub_secrets(_detail(outcome), self._credentials),
                attempts=self.attempts,
            )
        message = self._last_transport.error if self._last_transport else NO_RESPONSE_BODY
        return TokenFailure(
            kind=ErrorKind.TRANSPORT,
            detail=scrub_secrets(message, self._credentials),
            attempts=self.attempts,
        )


def _detail(outcome: AttemptOutcome) -> Any:
    if isinstance(outcome.parsed, Structured):
        return outcome.parsed.payload
    if isinstance(outcome.parsed, Opaque) and outcome.parsed.text:
        return outcome.parsed.text
    return NO_RESPONSE_BODY


def _replace_all(value: Any, needles: list[str]) -> Any:
    if isinstance(value, str):
        for needle in needles:
            value = value.replace(needle, REDACTED)
        return value
    if isinstance(value, dict):
        return {
            _replace_all(k, needles): _replace_all(v, needles) for k, v in value.items()
        }
    if isinstance(value, list):
        return [_replace_all(item, needles) for item in value]
    return value
