"""Exception hierarchy for credential loading and Graph API calls."""

from __future__ import annotations

import json
from pathlib import Path


class SharePointError(Exception):
    """Base class for all sharepoint-files errors."""


class ConfigError(SharePointError):
    """Raised when the local credential file cannot be used."""


class ConfigMissingError(ConfigError):
    """Raised when the credential file does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"SharePoint credentials not found; expected: {path}")
        self.path = path


class ConfigIncompleteError(ConfigError):
    """Raised when required credential keys are absent after parsing."""

    def __init__(self, path: Path, missing: list[str]) -> None:
        super().__init__(f"Missing {', '.join(missing)} in {path}")
        self.path = path
        self.missing = missing


class TransportError(SharePointError):
    """Raised when a request or its response body failed at the network level."""


class GraphApiError(SharePointError):
    """Raised when the Graph API returns a non-2xx or unusable response."""

    def __init__(self, status_code: int | None, message: str, body: str = "") -> None:
        super().__init__(f"Graph API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.body = body


class AuthRejectedError(GraphApiError):
    """Raised when the identity endpoint refuses the client credentials."""

    def __init__(
        self,
        status_code: int | None,
        message: str,
        body: str = "",
        error: str | None = None,
    ) -> None:
        super().__init__(status_code, message, body)
        self.error = error


class ResourceNotFoundError(GraphApiError):
    """Raised when a site or drive lookup does not yield an ``id``."""

    def __init__(self, resource: str, name: str, status_code: int | None, body: str = "") -> None:
        super().__init__(status_code, f"{resource} not found: {name}", body)
        self.resource = resource
        self.name = name


class DownloadFailedError(GraphApiError):
    """Raised when file content could not be fetched."""


class UploadFailedError(GraphApiError):
    """Raised when the content PUT is rejected."""


def error_detail(raw: bytes | str, default: str) -> str:
    """Extract ``error.message`` from a Graph error envelope, or return ``default``."""
    try:
        payload = json.loads(raw)
    except ValueError:
        return default
    if not isinstance(payload, dict):
        return default
    error = payload.get("error")
    if isinstance(error, dict):
        return str(error.get("message") or error.get("code") or default)
    if isinstance(error, str):
        return str(payload.get("error_description") or error)
    return default
