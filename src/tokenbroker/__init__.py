"""tokenbroker -- Republish short-lived bearer tokens without exposing the secret.

The package exchanges a confidential ``client_id`` / ``client_secret`` pair
for an access token at a third-party token endpoint (OAuth2 client
credentials grant) and hands an untrusted caller, typically a browser page,
only the normalised ``{"access-token": ..., "expires_in": ...}`` payload.

Typical workflow::

    tokenbroker token             # acquire once and print the payload
    tokenbroker serve --port 8888 # expose GET /token with CORS

Modules:
    app: Typer application and CLI entry point.
    broker: Strategy list, acquisition loop, and outcome classification.
    models: Pydantic models shared across the package.
    config: Settings and credential resolution.
    service: Caller-facing contract (status code + JSON body).
    server: HTTP entry point with CORS preflight handling.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
