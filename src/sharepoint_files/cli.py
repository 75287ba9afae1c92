"""CLI for sharepoint-files.

Usage:
    sharepoint-files list <site> [folder]              # JSON listing on stdout
    sharepoint-files download <site> <path> [output]   # Save a file locally
    sharepoint-files upload <site> <local> <remote>    # Upload a file (< 4 MiB)
    sharepoint-files token                             # Print a fresh access token
    sharepoint-files tenant                            # Print the tenant name
    sharepoint-files check <site>                      # Verify auth and site access

Credentials are read from ~/.config/bobby/sharepoint.env unless
--credentials or SHAREPOINT_ENV_FILE points elsewhere.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

from sharepoint_files import __version__
from sharepoint_files.config import AppConfig, load_config, load_credentials
from sharepoint_files.exceptions import GraphApiError, SharePointError
from sharepoint_files.graph.models import LargeUploadUnsupported
from sharepoint_files.orchestration.pipeline import (
    acquire_token,
    check_site,
    download_site_file,
    list_site_files,
    upload_site_file,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _status(message: str) -> None:
    print(message, file=sys.stderr)


def cmd_list(config: AppConfig, site: str, folder: str) -> int:
    """List files in a folder of a site's default drive."""
    entries = list_site_files(config, site, folder)
    print(json.dumps([entry.to_dict() for entry in entries], indent=2))
    return 0


def cmd_download(config: AppConfig, site: str, path: str, output: str | None) -> int:
    """Download a file from a site's default drive."""
    result = download_site_file(config, site, path, output)
    print(f"✓ Downloaded: {result.path}")
    print(f"  Size: {result.size} bytes")
    return 0


def cmd_upload(config: AppConfig, site: str, local: str, remote: str) -> int:
    """Upload a local file to a site's default drive."""
    local_path = Path(local)
    if local_path.is_file():
        _status(f"Uploading: {local_path} → {remote}")
        _status(f"Size: {local_path.stat().st_size} bytes")

    result = upload_site_file(config, site, local_path, remote)
    if isinstance(result, LargeUploadUnsupported):
        _status(f"ERROR: {result.message}")
        _status("Split the file or upload it through the SharePoint web interface")
        return 1

    print(f"✓ Uploaded: {result.name}")
    print(f"  URL: {result.web_url}")
    print(f"  Size: {result.size} bytes")
    return 0


def cmd_token(config: AppConfig) -> int:
    """Print a freshly acquired access token."""
    print(acquire_token(config).value)
    return 0


def cmd_tenant(config: AppConfig) -> int:
    """Print the tenant name used to build site URLs."""
    print(load_credentials(config.credentials_path).tenant_name)
    return 0


def cmd_check(config: AppConfig, site: str) -> int:
    """Authenticate and resolve a site's drive, reporting each step."""
    _status(f"Checking access to site: {site}")
    drive = check_site(config, site)
    _status(f"✓ Successfully accessed site: {site}")
    print(f"Site ID:  {drive.site_id}")
    print(f"Drive ID: {drive.drive_id}")
    return 0


def _report(exc: BaseException) -> None:
    _status(f"ERROR: {exc}")
    if isinstance(exc, GraphApiError) and exc.body:
        _status(exc.body)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sharepoint-files",
        description="List, download and upload files in SharePoint sites via Microsoft Graph",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--credentials",
        type=Path,
        default=None,
        help="Credential file (default: $SHAREPOINT_ENV_FILE or ~/.config/bobby/sharepoint.env)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-vv for debug output)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    list_parser = subparsers.add_parser("list", help="List files in a folder")
    list_parser.add_argument("site", help="Site name, e.g. TeamSite")
    list_parser.add_argument("folder", nargs="?", default="", help="Folder path (default: root)")

    download_parser = subparsers.add_parser("download", help="Download a file")
    download_parser.add_argument("site", help="Site name, e.g. TeamSite")
    download_parser.add_argument("path", help='File path, e.g. "General/document.docx"')
    download_parser.add_argument(
        "output", nargs="?", default=None, help="Output path (default: ./<file name>)"
    )

    upload_parser = subparsers.add_parser("upload", help="Upload a file smaller than 4 MiB")
    upload_parser.add_argument("site", help="Site name, e.g. TeamSite")
    upload_parser.add_argument("local", help="Local file to upload")
    upload_parser.add_argument("remote", help='Destination path, e.g. "General/document.pdf"')

    subparsers.add_parser("token", help="Print a fresh access token")
    subparsers.add_parser("tenant", help="Print the configured tenant name")

    check_parser = subparsers.add_parser("check", help="Verify authentication and site access")
    check_parser.add_argument("site", help="Site name, e.g. TeamSite")

    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help(sys.stderr)
        return 2

    _configure_logging(args.verbose)

    try:
        config = load_config()
        if args.credentials is not None:
            config = dataclasses.replace(config, credentials_path=args.credentials.expanduser())

        if args.command == "list":
            return cmd_list(config, args.site, args.folder)
        if args.command == "download":
            return cmd_download(config, args.site, args.path, args.output)
        if args.command == "upload":
            return cmd_upload(config, args.site, args.local, args.remote)
        if args.command == "token":
            return cmd_token(config)
        if args.command == "tenant":
            return cmd_tenant(config)
        if args.command == "check":
            return cmd_check(config, args.site)
    except (SharePointError, OSError, ValueError) as exc:
        logger.debug("[main] command failed; command:%s", args.command, exc_info=True)
        _report(exc)
        return 1

    parser.print_help(sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main())
