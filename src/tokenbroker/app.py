"""Typer application and CLI entry point for tokenbroker.

Commands:

- ``token`` -- acquire one token and print the caller payload.
- ``serve`` -- run the HTTP entry point (``GET /token`` with CORS).
- ``strategies`` -- list the transmission strategies in attempt order.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~tokenbroker.exceptions.BrokerError` instances
that escape a command exit with the error's ``exit_code``.

See Also:
    :mod:`tokenbroker.config`: Settings and credential resolution.
    :mod:`tokenbroker.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
from typing import Any, List, Optional

import typer

from tokenbroker import __version__
from tokenbroker.exceptions import BrokerError
from tokenbroker.exit_codes import EXIT_GENERIC_FAILURE
from tokenbroker.models import BrokerSettings

app = typer.Typer(
    name="tokenbroker",
    help="Broker short-lived client-credentials tokens for browser callers.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"tokenbroker {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~tokenbroker.output.OutputManager` and
    routes ``tokenbroker`` log records to stderr.
    """
    from tokenbroker.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    output.configure_logging()

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _settings_from_options(
    token_url: Optional[str],
    timeout: Optional[float],
    strategy: Optional[List[str]],
    access_type: Optional[str],
    **extra: Any,
) -> BrokerSettings:
    """Resolve settings, exiting with the configuration exit code on failure."""
    from tokenbroker.config import resolve_settings
    from tokenbroker.output import error

    try:
        return resolve_settings(
            token_url=token_url,
            timeout=timeout,
            strategies=strategy or None,
            access_type=access_type,
            **extra,
        )
    except BrokerError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _token_url_option() -> Any:
    return typer.Option(None, "--token-url", help="Upstream token endpoint.")


def _timeout_option() -> Any:
    return typer.Option(None, "--timeout", help="Per-attempt timeout in seconds.")


def _strategy_option() -> Any:
    return typer.Option(
        None,
        "--strategy",
        "-s",
        help="Strategy to attempt, repeatable and ordered (basic, body).",
    )


def _access_type_option() -> Any:
    return typer.Option(
        None, "--access-type", help="Fixed access_type marker sent with the grant."
    )


@app.command("token")
def token_command(
    token_url: Optional[str] = _token_url_option(),
    timeout: Optional[float] = _timeout_option(),
    strategy: Optional[List[str]] = _strategy_option(),
    access_type: Optional[str] = _access_type_option(),
) -> None:
    """Acquire a token once and print the caller payload to stdout.

    Credentials are read from the configured sources (by default the
    ``ZAKEKE_CLIENT_ID`` and ``ZAKEKE_CLIENT_SECRET`` environment variables).
    On failure the error descriptor is still printed, and the exit code
    tells configuration, rejection, malformed and transport failures apart.

    Example::

        tokenbroker --json token --strategy body --strategy basic
    """
    from tokenbroker.exceptions import ConfigurationError
    from tokenbroker.output import error, format_response, suggest
    from tokenbroker.service import issue_token

    settings = _settings_from_options(token_url, timeout, strategy, access_type)
    response = issue_token(settings)
    format_response(response.body)
    if response.error is not None:
        error(str(response.error))
        if isinstance(response.error, ConfigurationError):
            suggest(
                f"Check {settings.client_id_source} and {settings.client_secret_source}"
            )
        raise typer.Exit(code=response.error.exit_code)


@app.command("serve")
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8888, "--port", "-p", help="TCP port to listen on."),
    route: Optional[str] = typer.Option(None, "--route", help="Path that serves tokens."),
    allow_origin: Optional[str] = typer.Option(
        None, "--allow-origin", help="Access-Control-Allow-Origin value."
    ),
    token_url: Optional[str] = _token_url_option(),
    timeout: Optional[float] = _timeout_option(),
    strategy: Optional[List[str]] = _strategy_option(),
    access_type: Optional[str] = _access_type_option(),
) -> None:
    """Serve tokens over HTTP to browser callers until interrupted."""
    from tokenbroker.output import info
    from tokenbroker.server import serve

    settings = _settings_from_options(
        token_url,
        timeout,
        strategy,
        access_type,
        route=route,
        allow_origin=allow_origin,
    )
    info(f"Listening on http://{host}:{port}{settings.route}")
    serve(settings, host=host, port=port)


@app.command("strategies")
def strategies_command(
    strategy: Optional[List[str]] = _strategy_option(),
    access_type: Optional[str] = _access_type_option(),
) -> None:
    """List the strategies that ``token`` and ``serve`` will attempt, in order."""
    from tokenbroker.broker import create_default_registry
    from tokenbroker.output import error, get_output

    settings = _settings_from_options(None, None, strategy, access_type)
    registry = create_default_registry()
    try:
        strategies = registry.build(settings.strategies, access_type=settings.access_type)
    except BrokerError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows = [
        [str(position), s.name, type(s).__name__]
        for position, s in enumerate(strategies, 1)
    ]
    get_output().print_table(["order", "name", "class"], rows, title="Strategies")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``tokenbroker`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except BrokerError as exc:
        from tokenbroker.output import error

        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        sys.stderr.write(f"Unexpected error: {exc}\n")
        sys.exit(EXIT_GENERIC_FAILURE)


if __name__ == "__main__":
    main()
