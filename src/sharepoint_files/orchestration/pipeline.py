"""Credential → token → site → drive pipeline shared by every command."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from sharepoint_files.config import CredentialRecord, load_credentials
from sharepoint_files.graph.auth import token_provider_from_config
from sharepoint_files.graph.client import graph_client_from_config
from sharepoint_files.graph.models import (
    SIMPLE_UPLOAD_LIMIT,
    AccessToken,
    DownloadResult,
    FileEntry,
    LargeUploadUnsupported,
    ResolvedDrive,
    UploadResult,
)
from sharepoint_files.graph.resolver import ResourceResolver
from sharepoint_files.operations.files import FileOperations

if TYPE_CHECKING:
    from sharepoint_files.config import AppConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriveSession:
    """A resolved drive together with the operations bound to its token."""

    drive: ResolvedDrive
    files: FileOperations


def _credentials(config: AppConfig, credentials: CredentialRecord | None) -> CredentialRecord:
    return credentials if credentials is not None else load_credentials(config.credentials_path)


def acquire_token(config: AppConfig, credentials: CredentialRecord | None = None) -> AccessToken:
    """Load credentials (unless given) and acquire a fresh bearer token."""
    creds = _credentials(config, credentials)
    return token_provider_from_config(config).acquire(creds)


def open_drive(
    config: AppConfig,
    site_name: str,
    credentials: CredentialRecord | None = None,
) -> DriveSession:
    """Run the resolution chain for a site.

    Steps:
        1. Load credentials; a missing file fails before any network call.
        2. Acquire a bearer token.
        3. Resolve the site name to a site id.
        4. Resolve the site id to its default drive id.

    Any failure aborts the chain and propagates unchanged.

    Args:
        config: Application configuration instance.
        site_name: SharePoint site name (the part after /sites/).
        credentials: Pre-loaded credentials; read from config.credentials_path if None.

    Returns:
        DriveSession for the site's default drive.
    """
    creds = _credentials(config, credentials)
    token = token_provider_from_config(config).acquire(creds)
    client = graph_client_from_config(token, config)
    drive = ResourceResolver(client, creds.site_hostname).resolve(site_name)
    logger.info(
        "[open_drive] drive ready; site_name:%s;drive_id:%s", site_name, drive.drive_id
    )
    return DriveSession(drive=drive, files=FileOperations(client))


def check_site(config: AppConfig, site_name: str) -> ResolvedDrive:
    """Verify that the credentials can authenticate and reach a site's drive."""
    return open_drive(config, site_name).drive


def list_site_files(config: AppConfig, site_name: str, folder_path: str = "") -> list[FileEntry]:
    session = open_drive(config, site_name)
    return session.files.list_files(session.drive.drive_id, folder_path)


def download_site_file(
    config: AppConfig,
    site_name: str,
    file_path: str,
    output_path: Path | str | None = None,
) -> DownloadResult:
    """Download a file from a site; output defaults to its basename in the cwd."""
    output = Path(output_path) if output_path else Path(Path(file_path).name)
    session = open_drive(config, site_name)
    return session.files.download(session.drive.drive_id, file_path, output)


def upload_site_file(
    config: AppConfig,
    site_name: str,
    local_file: Path | str,
    remote_path: str,
) -> UploadResult | LargeUploadUnsupported:
    """Upload a local file to a site.

    The local file and the simple-upload size limit are checked before
    credentials are loaded, so an unsupported upload makes no request.

    Raises:
        FileNotFoundError: If local_file does not exist.
    """
    local = Path(local_file)
    if not local.is_file():
        raise FileNotFoundError(f"Local file not found: {local}")
    size = local.stat().st_size
    if size >= SIMPLE_UPLOAD_LIMIT:
        return LargeUploadUnsupported(local_path=local, size=size)

    session = open_drive(config, site_name)
    return session.files.upload(session.drive.drive_id, remote_path, local)
