"""Authentication helpers for Databricks.

This module centralizes creation of a Databricks WorkspaceClient from the
indexer settings and applies small but important normalization rules
(such as sanitizing the host URL) to avoid subtle SDK and API issues.
"""

import re

from databricks.sdk import WorkspaceClient
from databricks.sdk.core import Config

from ucindex.core.config import IndexerSettings
from ucindex.core.errors import AuthError


def _format_auth_error(
    message: str, profile: str | None, *, has_token: bool = False
) -> str:
    """Return an auth error message with a hint matching how credentials were given."""
    if has_token:
        hint = "Check that DATABRICKS_TOKEN is a valid, unexpired token for DATABRICKS_HOST."
    elif profile:
        hint = (
            f"Check profile '{profile}' in ~/.databrickscfg, or log in again with:\n"
            f"  $ databricks auth login --profile {profile}"
        )
    elif re.search(r"databricks auth login", message):
        hint = "Log in again with:\n  $ databricks auth login"
    else:
        hint = "Set DATABRICKS_HOST and DATABRICKS_TOKEN, or DATABRICKS_CONFIG_PROFILE."
    return f"Databricks authentication failed: {message}\n{hint}"


def _sanitize_host(host: str | None) -> str | None:
    """
    Normalize a Databricks host URL.

    - Removes query strings (e.g. '?o=123456789')
    - Removes trailing slashes

    This ensures the host value is compatible with the Databricks SDK
    and avoids malformed API URLs.
    """
    if not host:
        return host
    host = host.split("?", 1)[0]
    return host.rstrip("/")


def get_client(settings: IndexerSettings) -> WorkspaceClient:
    """
    Create and return a configured Databricks WorkspaceClient.

    Explicit host/token settings are passed to the SDK as a bearer-token
    configuration. Anything left unset is resolved by Databricks unified
    authentication (profile in ~/.databrickscfg or environment variables).

    Raises:
        AuthError: If the SDK cannot resolve a usable configuration.
    """
    kwargs: dict[str, str] = {}
    host = _sanitize_host(settings.databricks_host)
    if host:
        kwargs["host"] = host
    if settings.databricks_token:
        kwargs["token"] = settings.databricks_token
    if settings.databricks_profile:
        kwargs["profile"] = settings.databricks_profile

    try:
        cfg = Config(**kwargs)
    except ValueError as exc:
        raise AuthError(
            _format_auth_error(
                str(exc),
                settings.databricks_profile,
                has_token=bool(settings.databricks_token),
            )
        ) from exc
    cfg.host = _sanitize_host(cfg.host)
    return WorkspaceClient(config=cfg)
