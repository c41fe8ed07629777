"""Settings and credential resolution with precedence handling.

Nothing in the acquisition path reads process-wide state. This module is
the one place that does, and it hands explicit values to the broker:

* **Settings** -- :func:`resolve_settings` merges explicit overrides,
  ``TOKENBROKER_*`` environment variables, the project config file
  (``./tokenbroker.json`` or ``$TOKENBROKER_CONFIG``) and defaults into a
  validated :class:`~tokenbroker.models.BrokerSettings`.
* **Credentials** -- :func:`load_credentials` resolves the configured
  ``client_id_source`` / ``client_secret_source`` descriptors (``env:VAR``
  or ``file:/path``), trims surrounding whitespace, and rejects empty
  values.

The config file only ever names credential *sources*; the secrets
themselves stay in the environment or in separate files.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from tokenbroker.exceptions import ConfigurationError
from tokenbroker.models import BrokerSettings, Credentials

_PROJECT_CONFIG_FILENAME = "tokenbroker.json"
_CONFIG_ENV = "TOKENBROKER_CONFIG"

_ENV_FIELDS = {
    "TOKENBROKER_TOKEN_URL": "token_url",
    "TOKENBROKER_TIMEOUT": "timeout",
    "TOKENBROKER_STRATEGIES": "strategies",
    "TOKENBROKER_ACCESS_TYPE": "access_type",
    "TOKENBROKER_ALLOW_ORIGIN": "allow_origin",
}


# --- Project config file ---


def load_project_config(env: Optional[Mapping[str, str]] = None) -> Optional[dict[str, Any]]:
    """Load the project config file.

    ``$TOKENBROKER_CONFIG`` names the file explicitly; otherwise
    ``./tokenbroker.json`` is used when present.

    Returns:
        The parsed JSON object, or ``None`` when no file is configured or
        found.

    Raises:
        ConfigurationError: If the file is missing (explicit path only),
            unreadable, not valid JSON, or not a JSON object.
    """
    env = os.environ if env is None else env
    explicit = env.get(_CONFIG_ENV)
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")
    else:
        path = Path.cwd() / _PROJECT_CONFIG_FILENAME
        if not path.is_file():
            return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid config file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file at {path} must contain a JSON object")
    return data


# --- Precedence resolution ---


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for var, field in _ENV_FIELDS.items():
        value = env.get(var)
        if not value:
            continue
        if field == "strategies":
            overrides[field] = [name.strip() for name in value.split(",")]
        else:
            overrides[field] = value.strip()
    return overrides


def resolve_settings(
    env: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> BrokerSettings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. Keyword *overrides* whose value is not ``None`` (CLI flags)
        2. Environment variables (``TOKENBROKER_TOKEN_URL`` etc.)
        3. Project config file
        4. Defaults

    Args:
        env: Environment mapping; defaults to ``os.environ``.
        **overrides: Field values that take precedence over everything else.

    Raises:
        ConfigurationError: If the merged values fail validation.
    """
    env = os.environ if env is None else env
    merged: dict[str, Any] = {}
    project = load_project_config(env)
    if project is not None:
        merged.update(project)
    merged.update(_env_overrides(env))
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return BrokerSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid broker settings: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str, env: Optional[Mapping[str, str]] = None) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``VAR_NAME`` from *env*
        - ``"file:/path/to/file"`` -- reads file content

    The value is returned stripped of surrounding whitespace.

    Raises:
        ConfigurationError: If the variable is unset, the file is missing or
            unreadable, or the format is unknown.
    """
    env = os.environ if env is None else env
    if source.startswith("env:"):
        var_name = source[4:]
        value = env.get(var_name)
        if value is None:
            raise ConfigurationError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value.strip()

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigurationError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigurationError(f"Unknown credential source format: {source}")


def load_credentials(
    settings: BrokerSettings,
    env: Optional[Mapping[str, str]] = None,
) -> Credentials:
    """Resolve both credentials named by *settings*.

    Raises:
        ConfigurationError: If either source cannot be resolved or resolves
            to an empty string.
    """
    client_id = resolve_credential(settings.client_id_source, env)
    client_secret = resolve_credential(settings.client_secret_source, env)
    if not client_id or not client_secret:
        raise ConfigurationError(
            f"Missing credentials: {settings.client_id_source} and "
            f"{settings.client_secret_source} must both be non-empty"
        )
    return Credentials(client_id=client_id, client_secret=client_secret)
