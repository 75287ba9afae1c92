"""List, download and upload operations on a resolved drive."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from urllib.parse import quote

from sharepoint_files.exceptions import DownloadFailedError, GraphApiError, UploadFailedError
from sharepoint_files.graph.client import GraphClient, RawResponse, read_body
from sharepoint_files.graph.models import (
    FIELD_NAME,
    FIELD_SIZE,
    FIELD_WEB_URL,
    ODATA_NEXT_LINK,
    ODATA_VALUE,
    SIMPLE_UPLOAD_LIMIT,
    DownloadResult,
    FileEntry,
    LargeUploadUnsupported,
    UploadResult,
)

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = (301, 302)
STREAM_CHUNK_SIZE = 64 * 1024

# Characters JavaScript's encodeURIComponent leaves unescaped, beyond quote()'s defaults.
_COMPONENT_SAFE = "!*'()"


def encode_path(path: str) -> str:
    """Encode a drive path as a single URL component (slashes included)."""
    return quote(path, safe=_COMPONENT_SAFE)


def children_path(drive_id: str, folder_path: str = "") -> str:
    if folder_path:
        return f"/drives/{drive_id}/root:/{encode_path(folder_path)}:/children"
    return f"/drives/{drive_id}/root/children"


def content_path(drive_id: str, file_path: str) -> str:
    return f"/drives/{drive_id}/root:/{encode_path(file_path)}:/content"


class FileOperations:
    """Terminal file operations against a drive of an authenticated GraphClient."""

    def __init__(self, graph_client: GraphClient) -> None:
        self._graph = graph_client

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    def list_files(self, drive_id: str, folder_path: str = "") -> list[FileEntry]:
        """List the children of a folder (the drive root when folder_path is empty).

        Follows @odata.nextLink pagination; entries keep the order returned
        by the API.

        Args:
            drive_id: Id of the drive to list.
            folder_path: Folder path relative to the drive root.

        Returns:
            FileEntry objects for files and folders alike.

        Raises:
            GraphApiError: If the API returns an error or a body without ``value``.
        """
        entries: list[FileEntry] = []
        next_path: str | None = children_path(drive_id, folder_path)
        while next_path is not None:
            response = self._graph.get(next_path)
            if ODATA_VALUE not in response:
                raise GraphApiError(200, "Unexpected response", json.dumps(response, indent=2))
            entries.extend(FileEntry.from_graph(raw) for raw in response[ODATA_VALUE])
            next_path = response.get(ODATA_NEXT_LINK)

        logger.info(
            "[list_files] listed folder; folder_path:%s;entry_count:%d",
            folder_path or "/",
            len(entries),
        )
        return entries

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    def download(self, drive_id: str, file_path: str, output_path: Path | str) -> DownloadResult:
        """Download a file's content to output_path.

        A 301/302 from Graph is followed with an unauthenticated GET, since
        the redirect target is a pre-signed URL. The output file is only
        created once a 200 body is streaming, and is removed if streaming fails.

        Raises:
            DownloadFailedError: On any status other than 200 (or a followed redirect).
            TransportError: If a request could not be sent or the stream broke.
            OSError: If the output could not be written.
        """
        output = Path(output_path)
        response = self._graph.get_raw(content_path(drive_id, file_path))
        with response:
            status = response.getcode()
            if status in REDIRECT_STATUSES:
                location = response.headers.get("Location")
                if not location:
                    raise DownloadFailedError(status, "Redirect without Location header")
                logger.info("[download] following redirect; status:%d", status)
                return self._download_presigned(location, output)
            return self._save(response, output)

    def _download_presigned(self, url: str, output: Path) -> DownloadResult:
        response = self._graph.fetch_unauthenticated(url)
        with response:
            return self._save(response, output)

    def _save(self, response: RawResponse, output: Path) -> DownloadResult:
        status = response.getcode()
        if status != 200:
            body = read_body(response).decode("utf-8", errors="replace")
            logger.error("[_save] download failed; status:%d", status)
            raise DownloadFailedError(status, "Download failed", body)

        try:
            with output.open("wb") as fh:
                while True:
                    chunk = read_body(response, STREAM_CHUNK_SIZE)
                    if not chunk:
                        break
                    fh.write(chunk)
        except BaseException:
            output.unlink(missing_ok=True)
            logger.error("[_save] stream interrupted; removed partial file; path:%s", output)
            raise

        size = output.stat().st_size
        logger.info("[_save] downloaded; path:%s;size:%d", output, size)
        return DownloadResult(path=output, size=size)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload(
        self, drive_id: str, remote_path: str, local_file: Path | str
    ) -> UploadResult | LargeUploadUnsupported:
        """Upload a local file with a single PUT.

        Files of SIMPLE_UPLOAD_LIMIT bytes or more need a resumable upload
        session, which is not implemented; those return LargeUploadUnsupported
        without any request being made.

        Raises:
            FileNotFoundError: If local_file does not exist.
            UploadFailedError: If the API rejects the PUT.
        """
        local = Path(local_file)
        size = local.stat().st_size
        if size >= SIMPLE_UPLOAD_LIMIT:
            logger.warning("[upload] file too large for simple upload; size:%d", size)
            return LargeUploadUnsupported(local_path=local, size=size)

        content = local.read_bytes()
        try:
            payload = self._graph.put_content(content_path(drive_id, remote_path), content)
        except GraphApiError as exc:
            logger.error("[upload] upload rejected; status:%s", exc.status_code)
            raise UploadFailedError(exc.status_code, exc.message, exc.body) from exc

        if payload is None:
            result = UploadResult(name=Path(remote_path).name, web_url=None, size=len(content))
        else:
            result = UploadResult(
                name=payload.get(FIELD_NAME, Path(remote_path).name),
                web_url=payload.get(FIELD_WEB_URL),
                size=payload.get(FIELD_SIZE),
            )
        logger.info("[upload] uploaded; name:%s;size:%s", result.name, result.size)
        return result
