"""Unit tests for config.py — AppConfig, load_config() and load_credentials()."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from sharepoint_files.config import (
    DEFAULT_CREDENTIALS_PATH,
    AppConfig,
    CredentialRecord,
    load_config,
    load_credentials,
)
from sharepoint_files.exceptions import ConfigIncompleteError, ConfigMissingError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_CONFIG_ENV_VARS = (
    "SHAREPOINT_ENV_FILE",
    "SHAREPOINT_HTTP_TIMEOUT",
    "SHAREPOINT_GRAPH_URL",
    "SHAREPOINT_AUTHORITY_URL",
)


def _clean_env(**overrides: str) -> dict[str, str]:
    env = {k: v for k, v in os.environ.items() if k not in _CONFIG_ENV_VARS}
    env.update(overrides)
    return env


def _write_env(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "sharepoint.env"
    path.write_text(content)
    return path


# ---------------------------------------------------------------------------
# AppConfig / load_config tests
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_defaults_when_env_is_empty(self) -> None:
        with patch.dict(os.environ, _clean_env(), clear=True):
            config = load_config()
        assert config == AppConfig()
        assert config.credentials_path == DEFAULT_CREDENTIALS_PATH
        assert config.http_timeout == 60.0

    def test_reads_overrides_from_env(self) -> None:
        env = _clean_env(
            SHAREPOINT_ENV_FILE="/tmp/creds.env",
            SHAREPOINT_HTTP_TIMEOUT="12.5",
            SHAREPOINT_GRAPH_URL="https://graph.example.test/v1.0/",
            SHAREPOINT_AUTHORITY_URL="https://login.example.test/",
        )
        with patch.dict(os.environ, env, clear=True):
            config = load_config()
        assert config.credentials_path == Path("/tmp/creds.env")
        assert config.http_timeout == 12.5
        assert config.graph_base_url == "https://graph.example.test/v1.0"
        assert config.authority_base_url == "https://login.example.test"

    def test_rejects_non_positive_timeout(self) -> None:
        with (
            patch.dict(os.environ, _clean_env(SHAREPOINT_HTTP_TIMEOUT="0"), clear=True),
            pytest.raises(ValueError, match="SHAREPOINT_HTTP_TIMEOUT"),
        ):
            load_config()

    def test_rejects_non_numeric_timeout(self) -> None:
        with (
            patch.dict(os.environ, _clean_env(SHAREPOINT_HTTP_TIMEOUT="soon"), clear=True),
            pytest.raises(ValueError),
        ):
            load_config()

    def test_config_is_frozen(self) -> None:
        config = AppConfig()
        with pytest.raises(AttributeError):
            config.http_timeout = 1.0  # type: ignore[misc]


# ---------------------------------------------------------------------------
# CredentialRecord tests
# ---------------------------------------------------------------------------


class TestCredentialRecord:
    def test_tenant_name_strips_onmicrosoft_suffix(self) -> None:
        creds = CredentialRecord("contoso.onmicrosoft.com", "cid", "secret")
        assert creds.tenant_name == "contoso"
        assert creds.site_hostname == "contoso.sharepoint.com"

    def test_custom_domain(self) -> None:
        creds = CredentialRecord("contoso", "cid", "secret", sharepoint_domain="sharepoint.us")
        assert creds.site_hostname == "contoso.sharepoint.us"

    def test_repr_hides_secret(self) -> None:
        creds = CredentialRecord("contoso", "cid", "super-secret-value")
        assert "super-secret-value" not in repr(creds)


# ---------------------------------------------------------------------------
# load_credentials tests
# ---------------------------------------------------------------------------


class TestLoadCredentials:
    def test_reads_primary_keys(self, tmp_path: Path) -> None:
        path = _write_env(
            tmp_path,
            "TEAMS_TENANT_ID=contoso.onmicrosoft.com\n"
            "TEAMS_CLIENT_ID=client-123\n"
            "TEAMS_CLIENT_SECRET=secret-456\n",
        )
        creds = load_credentials(path)
        assert creds.tenant_id == "contoso.onmicrosoft.com"
        assert creds.client_id == "client-123"
        assert creds.client_secret == "secret-456"
        assert creds.sharepoint_domain == "sharepoint.com"

    def test_accepts_legacy_aliases(self, tmp_path: Path) -> None:
        path = _write_env(tmp_path, "TENANT=fabrikam\nCLIENT_ID=cid\nCLIENT_SECRET=cs\n")
        creds = load_credentials(path)
        assert (creds.tenant_id, creds.client_id, creds.client_secret) == ("fabrikam", "cid", "cs")

    def test_sharepoint_tenant_is_last_resort_for_tenant(self, tmp_path: Path) -> None:
        path = _write_env(tmp_path, "SHAREPOINT_TENANT=northwind\nCLIENT_ID=c\nCLIENT_SECRET=s\n")
        assert load_credentials(path).tenant_id == "northwind"

    def test_primary_key_wins_over_alias(self, tmp_path: Path) -> None:
        path = _write_env(
            tmp_path,
            "TENANT=legacy\nTEAMS_TENANT_ID=primary\nCLIENT_ID=c\nCLIENT_SECRET=s\n",
        )
        assert load_credentials(path).tenant_id == "primary"

    def test_trims_surrounding_quotes(self, tmp_path: Path) -> None:
        path = _write_env(
            tmp_path,
            "TENANT=\"contoso\"\nCLIENT_ID='cid'\nCLIENT_SECRET=\"s3cr=t\"\n",
        )
        creds = load_credentials(path)
        assert creds.tenant_id == "contoso"
        assert creds.client_id == "cid"
        assert creds.client_secret == "s3cr=t"

    def test_ignores_comments_and_non_matching_lines(self, tmp_path: Path) -> None:
        path = _write_env(
            tmp_path,
            "# SharePoint app registration\n"
            "\n"
            "TENANT=contoso\n"
            "CLIENT_ID=cid\n"
            "CLIENT_SECRET=cs\n",
        )
        assert load_credentials(path).tenant_id == "contoso"

    def test_reads_optional_domain(self, tmp_path: Path) -> None:
        path = _write_env(
            tmp_path,
            "TENANT=contoso\nCLIENT_ID=c\nCLIENT_SECRET=s\nSHAREPOINT_DOMAIN=sharepoint.de\n",
        )
        assert load_credentials(path).site_hostname == "contoso.sharepoint.de"

    def test_missing_file_raises_config_missing(self, tmp_path: Path) -> None:
        path = tmp_path / "absent.env"
        with pytest.raises(ConfigMissingError) as exc_info:
            load_credentials(path)
        assert exc_info.value.path == path

    def test_missing_tenant_raises_config_incomplete(self, tmp_path: Path) -> None:
        path = _write_env(tmp_path, "CLIENT_ID=c\nCLIENT_SECRET=s\n")
        with pytest.raises(ConfigIncompleteError) as exc_info:
            load_credentials(path)
        assert exc_info.value.missing == ["TEAMS_TENANT_ID/TENANT"]

    def test_missing_secret_raises_config_incomplete(self, tmp_path: Path) -> None:
        path = _write_env(tmp_path, "TENANT=contoso\nCLIENT_ID=c\nCLIENT_SECRET=\n")
        with pytest.raises(ConfigIncompleteError) as exc_info:
            load_credentials(path)
        assert exc_info.value.missing == ["TEAMS_CLIENT_SECRET/CLIENT_SECRET"]

    def test_reports_every_missing_field(self, tmp_path: Path) -> None:
        path = _write_env(tmp_path, "UNRELATED=1\n")
        with pytest.raises(ConfigIncompleteError) as exc_info:
            load_credentials(path)
        assert len(exc_info.value.missing) == 3
