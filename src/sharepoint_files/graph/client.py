"""Microsoft Graph API client bound to a single bearer token."""

from __future__ import annotations

import json
import logging
from http.client import HTTPException
from typing import TYPE_CHECKING, Any, Union
from urllib import request as urllib_request
from urllib.error import HTTPError, URLError

from sharepoint_files.config import DEFAULT_GRAPH_BASE_URL, DEFAULT_HTTP_TIMEOUT
from sharepoint_files.exceptions import GraphApiError, TransportError, error_detail

if TYPE_CHECKING:
    from http.client import HTTPResponse

    from sharepoint_files.config import AppConfig
    from sharepoint_files.graph.models import AccessToken

logger = logging.getLogger(__name__)

# Either a successful response or an HTTPError; both are readable file-likes
# exposing getcode() and headers.
RawResponse = Union["HTTPResponse", HTTPError]


class _NoRedirectHandler(urllib_request.HTTPRedirectHandler):
    """Surface 3xx responses as HTTPError instead of following them.

    urllib forwards the Authorization header on redirect, which must not
    reach pre-signed download URLs.
    """

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[no-untyped-def]
        return None


def is_success(status: int) -> bool:
    return 200 <= status < 300


def read_body(response: RawResponse, size: int | None = None) -> bytes:
    """Read from a response, mapping a broken or truncated body to TransportError."""
    try:
        return response.read() if size is None else response.read(size)
    except (HTTPException, OSError) as exc:
        logger.error("[read_body] response body interrupted; error:%s", exc)
        raise TransportError(f"Reading response body failed: {exc}") from exc


class GraphClient:
    """Authenticated client for Microsoft Graph API.

    The client cannot be built without an AccessToken, so every request it
    issues carries an ``Authorization: Bearer`` header.
    """

    def __init__(
        self,
        token: AccessToken,
        base_url: str = DEFAULT_GRAPH_BASE_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        opener: urllib_request.OpenerDirector | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            token: Bearer token acquired by TokenProvider.
            base_url: Graph API root, without trailing slash.
            timeout: Socket timeout in seconds applied to every request.
            opener: urllib opener; defaults to one that does not follow redirects.
        """
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._opener = opener or urllib_request.build_opener(_NoRedirectHandler)

    def url(self, path: str) -> str:
        """Return an absolute URL for a Graph path (absolute URLs pass through)."""
        if path.startswith(("https://", "http://")):
            return path
        return f"{self._base_url}{path}"

    def _request(
        self,
        path: str,
        method: str = "GET",
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> urllib_request.Request:
        all_headers = {"Authorization": f"Bearer {self._token.value}"}
        all_headers.update(headers or {})
        return urllib_request.Request(self.url(path), data=data, headers=all_headers, method=method)

    def _send(self, req: urllib_request.Request) -> RawResponse:
        """Send a request, returning error responses instead of raising them.

        Raises:
            TransportError: If no HTTP response was received.
        """
        logger.debug("[_send] request; method:%s;url:%s", req.get_method(), req.full_url)
        try:
            return self._opener.open(req, timeout=self._timeout)  # type: ignore[no-any-return]
        except HTTPError as exc:
            return exc
        except (URLError, OSError) as exc:
            logger.error("[_send] transport failure; url:%s;error:%s", req.full_url, exc)
            raise TransportError(f"{req.get_method()} {req.full_url} failed: {exc}") from exc

    def get(self, path: str) -> dict[str, Any]:
        """Perform an authenticated GET request and decode the JSON body.

        Args:
            path: URL path relative to the base URL (must start with '/'),
                or an absolute ``@odata.nextLink`` URL.

        Returns:
            Parsed JSON response body as a dict.

        Raises:
            TransportError: If the request could not be sent or its body was cut off.
            GraphApiError: On a non-2xx status or a body that is not a JSON object.
        """
        response = self._send(self._request(path, headers={"Accept": "application/json"}))
        with response:
            status = response.getcode()
            raw = read_body(response)
        body = raw.decode("utf-8", errors="replace")

        if not is_success(status):
            raise GraphApiError(status, error_detail(raw, f"HTTP {status}"), body)
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise GraphApiError(status, "Invalid JSON response", body) from exc
        if not isinstance(payload, dict):
            raise GraphApiError(status, "Invalid JSON response", body)
        return payload

    def get_raw(self, path: str) -> RawResponse:
        """Perform an authenticated GET without following redirects.

        The caller owns the returned response and must close it.
        """
        return self._send(self._request(path))

    def fetch_unauthenticated(self, url: str) -> RawResponse:
        """GET an absolute URL with no Authorization header (pre-signed URLs).

        The caller owns the returned response and must close it.
        """
        req = urllib_request.Request(url, method="GET")
        logger.debug("[fetch_unauthenticated] request; host:%s", req.host)
        try:
            return urllib_request.urlopen(req, timeout=self._timeout)  # type: ignore[no-any-return]
        except HTTPError as exc:
            return exc
        except (URLError, OSError) as exc:
            logger.error("[fetch_unauthenticated] transport failure; error:%s", exc)
            raise TransportError(f"GET {req.host} failed: {exc}") from exc

    def put_content(
        self,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> dict[str, Any] | None:
        """Perform an authenticated PUT request to upload raw content.

        Args:
            path: URL path relative to the base URL (must start with '/').
            content: Raw bytes to upload.
            content_type: MIME type for the Content-Type header.

        Returns:
            Parsed JSON response body, or None if the body is not a JSON object.

        Raises:
            TransportError: If the request could not be sent or its body was cut off.
            GraphApiError: If the API returns a non-2xx status code.
        """
        req = self._request(
            path,
            method="PUT",
            data=content,
            headers={"Content-Type": content_type, "Content-Length": str(len(content))},
        )
        response = self._send(req)
        with response:
            status = response.getcode()
            raw = read_body(response)

        if not is_success(status):
            raise GraphApiError(
                status,
                error_detail(raw, f"HTTP {status}"),
                raw.decode("utf-8", errors="replace"),
            )
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("[put_content] response body is not JSON; status:%d", status)
            return None
        return payload if isinstance(payload, dict) else None


def graph_client_from_config(token: AccessToken, config: AppConfig) -> GraphClient:
    """Construct a GraphClient from application configuration.

    Args:
        token: Bearer token for the current invocation.
        config: Application configuration instance.

    Returns:
        Configured GraphClient instance.
    """
    return GraphClient(token, base_url=config.graph_base_url, timeout=config.http_timeout)
