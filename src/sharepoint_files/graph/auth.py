"""Client-credentials token acquisition with MSAL."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import msal
import requests
from msal.exceptions import MsalServiceError

from sharepoint_files.config import DEFAULT_AUTHORITY_BASE_URL, DEFAULT_HTTP_TIMEOUT
from sharepoint_files.exceptions import AuthRejectedError, TransportError
from sharepoint_files.graph.models import AccessToken

if TYPE_CHECKING:
    from sharepoint_files.config import AppConfig, CredentialRecord

logger = logging.getLogger(__name__)

GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]


class RecordingHttpClient:
    """requests-backed HTTP client for MSAL that keeps the raw responses.

    MSAL parses 4xx token-endpoint replies into a dict and drops the HTTP
    status, so the last POST (token endpoint) and GET (authority discovery)
    responses are kept for error reporting.
    """

    def __init__(self, timeout: float = DEFAULT_HTTP_TIMEOUT) -> None:
        self.timeout = timeout
        self.token_response: requests.Response | None = None
        self.discovery_response: requests.Response | None = None
        self._session = requests.Session()

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        self.token_response = self._session.post(url, **kwargs)
        return self.token_response

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        self.discovery_response = self._session.get(url, **kwargs)
        return self.discovery_response

    @property
    def last_response(self) -> requests.Response | None:
        """The token-endpoint response if one was received, else the discovery one."""
        if self.token_response is not None:
            return self.token_response
        return self.discovery_response

    def close(self) -> None:
        self._session.close()


class TokenProvider:
    """Exchanges app registration credentials for a Graph bearer token.

    A new MSAL application is built for every acquisition, so tokens are
    never cached between calls.
    """

    def __init__(
        self,
        authority_base_url: str = DEFAULT_AUTHORITY_BASE_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self._authority_base_url = authority_base_url.rstrip("/")
        self._timeout = timeout

    def authority(self, tenant_id: str) -> str:
        return f"{self._authority_base_url}/{tenant_id}"

    def acquire(self, credentials: CredentialRecord) -> AccessToken:
        """Acquire a Bearer token using the client credentials flow.

        Args:
            credentials: Tenant, client id and client secret.

        Returns:
            AccessToken for the default Graph scope.

        Raises:
            TransportError: If the identity endpoint could not be reached.
            AuthRejectedError: If the identity platform refused the request,
                with the status code and raw body of its response.
        """
        logger.info("[acquire] requesting token; tenant:%s", credentials.tenant_id)
        http_client = RecordingHttpClient(self._timeout)
        try:
            app = msal.ConfidentialClientApplication(
                client_id=credentials.client_id,
                client_credential=credentials.client_secret,
                authority=self.authority(credentials.tenant_id),
                http_client=http_client,
            )
            result: dict[str, Any] = app.acquire_token_for_client(scopes=GRAPH_SCOPES) or {}
        except (MsalServiceError, requests.HTTPError) as exc:
            response = getattr(exc, "response", None)
            if response is None:
                response = http_client.last_response
            raise _rejected(response, "Token request failed", str(exc)) from exc
        except requests.RequestException as exc:
            logger.error("[acquire] token endpoint unreachable; error:%s", exc)
            raise TransportError(f"Token request failed: {exc}") from exc
        except ValueError as exc:
            # MSAL raises ValueError when the authority (tenant) cannot be validated.
            logger.error("[acquire] authority rejected; tenant:%s", credentials.tenant_id)
            raise _rejected(http_client.last_response, str(exc), str(exc)) from exc
        finally:
            http_client.close()

        if "access_token" not in result:
            error = result.get("error", "unknown_error")
            description = result.get("error_description", "No description provided")
            raise _rejected(
                http_client.token_response,
                f"Token acquisition failed: {error} - {description}",
                json.dumps(result),
                error=error,
            )
        logger.info("[acquire] token acquired; tenant:%s", credentials.tenant_id)
        return AccessToken(str(result["access_token"]))


def _rejected(
    response: requests.Response | None,
    message: str,
    fallback_body: str,
    error: str | None = None,
) -> AuthRejectedError:
    status = response.status_code if response is not None else None
    body = response.text if response is not None else fallback_body
    logger.error("[acquire] token request rejected; status:%s;error:%s", status, error)
    return AuthRejectedError(status, message, body, error=error)


def token_provider_from_config(config: AppConfig) -> TokenProvider:
    """Construct a TokenProvider from application configuration."""
    return TokenProvider(authority_base_url=config.authority_base_url, timeout=config.http_timeout)
