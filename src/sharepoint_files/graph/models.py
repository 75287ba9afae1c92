"""Data models for Graph API tokens, resolved drives and drive items."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Graph API JSON field names
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_SIZE = "size"
FIELD_WEB_URL = "webUrl"
FIELD_DOWNLOAD_URL = "@microsoft.graph.downloadUrl"
FIELD_LAST_MODIFIED = "lastModifiedDateTime"
FIELD_FOLDER = "folder"
FIELD_FILE = "file"
FIELD_MIME_TYPE = "mimeType"

# OData response keys
ODATA_NEXT_LINK = "@odata.nextLink"
ODATA_VALUE = "value"

TYPE_FOLDER = "folder"
TYPE_FILE = "file"

# Simple PUT uploads are limited to files below this size.
SIMPLE_UPLOAD_LIMIT = 4 * 1024 * 1024


@dataclass(frozen=True)
class AccessToken:
    """Opaque bearer token for the default Graph scope."""

    value: str = field(repr=False)


@dataclass(frozen=True)
class ResolvedDrive:
    """Result of resolving a site name down to its default document library."""

    site_name: str
    site_id: str
    drive_id: str


@dataclass(frozen=True)
class FileEntry:
    """Read-only projection of a drive item returned by a children listing."""

    name: str
    size: int | None
    url: str | None
    download_url: str | None
    last_modified: str | None
    is_folder: bool
    mime_type: str

    @classmethod
    def from_graph(cls, raw: dict[str, Any]) -> FileEntry:
        """Map a raw Graph driveItem dict to a FileEntry."""
        is_folder = FIELD_FOLDER in raw
        if is_folder:
            mime_type = TYPE_FOLDER
        else:
            mime_type = (raw.get(FIELD_FILE) or {}).get(FIELD_MIME_TYPE) or TYPE_FILE
        return cls(
            name=raw.get(FIELD_NAME, ""),
            size=raw.get(FIELD_SIZE),
            url=raw.get(FIELD_WEB_URL),
            download_url=raw.get(FIELD_DOWNLOAD_URL),
            last_modified=raw.get(FIELD_LAST_MODIFIED),
            is_folder=is_folder,
            mime_type=mime_type,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise using the camelCase keys printed by ``list``."""
        return {
            "name": self.name,
            "size": self.size,
            "webUrl": self.url,
            "downloadUrl": self.download_url,
            "lastModified": self.last_modified,
            "isFolder": self.is_folder,
            "type": self.mime_type,
        }


@dataclass(frozen=True)
class DownloadResult:
    path: Path
    size: int


@dataclass(frozen=True)
class UploadResult:
    name: str
    web_url: str | None
    size: int | None


@dataclass(frozen=True)
class LargeUploadUnsupported:
    """Returned instead of uploading when a file needs an upload session.

    Resumable upload sessions are not implemented, so files at or above
    ``threshold`` bytes are refused without touching the network.
    """

    local_path: Path
    size: int
    threshold: int = SIMPLE_UPLOAD_LIMIT

    @property
    def message(self) -> str:
        return (
            f"Large file upload (>= {self.threshold} bytes) is not supported: "
            f"{self.local_path} is {self.size} bytes"
        )
