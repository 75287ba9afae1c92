"""Runtime configuration and the local SharePoint credential file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import dotenv_values

from sharepoint_files.exceptions import ConfigIncompleteError, ConfigMissingError

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIALS_PATH = Path.home() / ".config" / "bobby" / "sharepoint.env"
DEFAULT_GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_AUTHORITY_BASE_URL = "https://login.microsoftonline.com"
DEFAULT_HTTP_TIMEOUT = 60.0
DEFAULT_SHAREPOINT_DOMAIN = "sharepoint.com"

TENANT_SUFFIX = ".onmicrosoft.com"

# Credential file keys, in lookup order. Later entries are legacy aliases.
TENANT_KEYS = ("TEAMS_TENANT_ID", "TENANT", "SHAREPOINT_TENANT")
CLIENT_ID_KEYS = ("TEAMS_CLIENT_ID", "CLIENT_ID")
CLIENT_SECRET_KEYS = ("TEAMS_CLIENT_SECRET", "CLIENT_SECRET")
DOMAIN_KEY = "SHAREPOINT_DOMAIN"


@dataclass(frozen=True)
class AppConfig:
    """Process-wide settings, passed explicitly through the pipeline.

    Every field has a default; environment variables only override them.
    """

    credentials_path: Path = DEFAULT_CREDENTIALS_PATH
    graph_base_url: str = DEFAULT_GRAPH_BASE_URL
    authority_base_url: str = DEFAULT_AUTHORITY_BASE_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT


@dataclass(frozen=True)
class CredentialRecord:
    """App registration credentials for the client-credentials grant."""

    tenant_id: str
    client_id: str
    client_secret: str = field(repr=False)
    sharepoint_domain: str = DEFAULT_SHAREPOINT_DOMAIN

    @property
    def tenant_name(self) -> str:
        """Tenant without the ``.onmicrosoft.com`` suffix (e.g. ``contoso``)."""
        return self.tenant_id.replace(TENANT_SUFFIX, "")

    @property
    def site_hostname(self) -> str:
        """SharePoint host that the tenant's sites live under."""
        return f"{self.tenant_name}.{self.sharepoint_domain}"


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Optional environment variables (with defaults):
        SHAREPOINT_ENV_FILE: Credential file path (default: ~/.config/bobby/sharepoint.env).
        SHAREPOINT_HTTP_TIMEOUT: Per-request timeout in seconds (default: 60).
        SHAREPOINT_GRAPH_URL: Graph API base URL.
        SHAREPOINT_AUTHORITY_URL: Identity platform base URL.

    Returns:
        Configured AppConfig instance.

    Raises:
        ValueError: If SHAREPOINT_HTTP_TIMEOUT is not a positive number.
    """
    timeout = float(os.environ.get("SHAREPOINT_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT)))
    if timeout <= 0:
        raise ValueError(f"SHAREPOINT_HTTP_TIMEOUT must be positive, got {timeout}")

    return AppConfig(
        credentials_path=Path(
            os.environ.get("SHAREPOINT_ENV_FILE", str(DEFAULT_CREDENTIALS_PATH))
        ).expanduser(),
        graph_base_url=os.environ.get("SHAREPOINT_GRAPH_URL", DEFAULT_GRAPH_BASE_URL).rstrip("/"),
        authority_base_url=os.environ.get(
            "SHAREPOINT_AUTHORITY_URL", DEFAULT_AUTHORITY_BASE_URL
        ).rstrip("/"),
        http_timeout=timeout,
    )


def _first(values: dict[str, str | None], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = values.get(key)
        if value:
            return value
    return None


def load_credentials(path: Path | str = DEFAULT_CREDENTIALS_PATH) -> CredentialRecord:
    """Read tenant and app registration credentials from a KEY=VALUE file.

    Args:
        path: Location of the credential file.

    Returns:
        Immutable CredentialRecord.

    Raises:
        ConfigMissingError: If the file does not exist.
        ConfigIncompleteError: If tenant, client id or client secret is absent.
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise ConfigMissingError(path)

    values = dotenv_values(path)
    tenant = _first(values, TENANT_KEYS)
    client_id = _first(values, CLIENT_ID_KEYS)
    client_secret = _first(values, CLIENT_SECRET_KEYS)

    missing = [
        "/".join(keys)
        for keys, value in (
            (TENANT_KEYS[:2], tenant),
            (CLIENT_ID_KEYS, client_id),
            (CLIENT_SECRET_KEYS, client_secret),
        )
        if not value
    ]
    if missing:
        raise ConfigIncompleteError(path, missing)

    logger.info("[load_credentials] loaded credentials; path:%s", path)
    return CredentialRecord(
        tenant_id=tenant,  # type: ignore[arg-type]
        client_id=client_id,  # type: ignore[arg-type]
        client_secret=client_secret,  # type: ignore[arg-type]
        sharepoint_domain=values.get(DOMAIN_KEY) or DEFAULT_SHAREPOINT_DOMAIN,
    )
