"""Canonical Pydantic models shared across all tokenbroker modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration** -- :class:`BrokerSettings` and :class:`Credentials`,
resolved by :mod:`tokenbroker.config` and handed to the broker explicitly so
that nothing in the acquisition path reads process-wide state.

**Wire capture** -- :class:`RawResponse`, the status / content type / body
text of one upstream reply, captured before any interpretation and frozen.

**Results** -- :class:`TokenSuccess` and :class:`TokenFailure`, the two
variants of :data:`TokenResult`. Exactly one is produced per acquisition.
"""

from __future__ import annotations

import enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from tokenbroker.exceptions import (
    BrokerError,
    MalformedResponse,
    TransportError,
    UpstreamRejection,
)

DEFAULT_TOKEN_URL = "https://api.zakeke.com/token"
DEFAULT_TIMEOUT = 15.0
NO_RESPONSE_BODY = "no response body"


# --- Configuration ---


class Credentials(BaseModel):
    """Confidential client identifier and secret.

    Empty values are accepted at construction time so that the broker itself
    can reject them as a configuration error before any network call.
    The secret is held as a :class:`~pydantic.SecretStr` and therefore never
    appears in ``repr()`` output or log lines.

    Example::

        creds = Credentials(client_id="my-id", client_secret="my-secret")
        creds.client_secret.get_secret_value()  # "my-secret"
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = ""
    client_secret: SecretStr = SecretStr("")

    def is_complete(self) -> bool:
        """Return ``True`` when both the identifier and the secret are non-empty."""
        return bool(self.client_id) and bool(self.client_secret.get_secret_value())


class BrokerSettings(BaseModel):
    """Everything the broker and its HTTP entry point need besides the secrets."""

    token_url: str = Field(
        default=DEFAULT_TOKEN_URL, description="Upstream token endpoint"
    )
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, description="Per-attempt timeout in seconds"
    )
    strategies: list[str] = Field(
        default_factory=lambda: ["basic", "body"],
        description="Ordered strategy names: basic, body",
    )
    access_type: Optional[str] = Field(
        default=None,
        description="Fixed access_type marker sent with the grant (e.g. S2S)",
    )
    allow_origin: str = Field(
        default="*", description="Access-Control-Allow-Origin for browser callers"
    )
    route: str = Field(default="/token", description="Path served by the HTTP entry point")
    client_id_source: str = Field(
        default="env:ZAKEKE_CLIENT_ID",
        description="Credential source for the client id: env:VAR or file:/path",
    )
    client_secret_source: str = Field(
        default="env:ZAKEKE_CLIENT_SECRET",
        description="Credential source for the client secret: env:VAR or file:/path",
    )

    @field_validator("strategies")
    @classmethod
    def _strategies_not_empty(cls, value: list[str]) -> list[str]:
        names = [name.strip() for name in value if name.strip()]
        if not names:
            raise ValueError("at least one strategy is required")
        return names


# --- Wire capture ---


class RawResponse(BaseModel):
    """One upstream reply exactly as read off the wire."""

    model_config = ConfigDict(frozen=True)

    http_status: int
    content_type: str = ""
    body_text: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.http_status < 300


# --- Results ---


class ErrorKind(str, enum.Enum):
    """Per-attempt failure classification."""

    TRANSPORT = "transport_error"
    UPSTREAM_REJECTION = "upstream_rejection"
    MALFORMED_RESPONSE = "malformed_response"


_KIND_EXCEPTIONS: dict[ErrorKind, type[BrokerError]] = {
    ErrorKind.TRANSPORT: TransportError,
    ErrorKind.UPSTREAM_REJECTION: UpstreamRejection,
    ErrorKind.MALFORMED_RESPONSE: MalformedResponse,
}


class TokenSuccess(BaseModel):
    """Normalised success: the token and its lifetime, nothing else."""

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(min_length=1)
    expires_in: Optional[int] = None

    @property
    def ok(self) -> bool:
        return True

    def to_payload(self) -> dict[str, Any]:
        """Return the exact body published to the untrusted caller."""
        return {"access-token": self.access_token, "expires_in": self.expires_in}


class TokenFailure(BaseModel):
    """Diagnostic of the last relevant attempt once every strategy failed.

    ``http_status`` is ``None`` only when no attempt reached the upstream
    endpoint. ``detail`` holds the parsed JSON object when one was received,
    otherwise the raw body text, otherwise :data:`NO_RESPONSE_BODY` (or the
    transport error message).
    """

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    http_status: Optional[int] = None
    content_type: str = ""
    detail: Any = NO_RESPONSE_BODY
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return False

    def to_exception(self) -> BrokerError:
        """Build the exception matching :attr:`kind`, for exit-code mapping."""
        exc_cls = _KIND_EXCEPTIONS[self.kind]
        status = f" (HTTP {self.http_status})" if self.http_status is not None else ""
        return exc_cls(
            f"No token obtained after {self.attempts} attempt(s): "
            f"{self.kind.value}{status}"
        )


TokenResult = Union[TokenSuccess, TokenFailure]
