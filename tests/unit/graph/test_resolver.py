"""Unit tests for graph/resolver.py — site and drive id lookups."""

import json
from unittest.mock import MagicMock, call

import pytest

from sharepoint_files.exceptions import GraphApiError, ResourceNotFoundError, TransportError
from sharepoint_files.graph.models import ResolvedDrive
from sharepoint_files.graph.resolver import ResourceResolver


def _make_resolver() -> tuple[ResourceResolver, MagicMock]:
    mock_graph = MagicMock()
    return ResourceResolver(mock_graph, "contoso.sharepoint.com"), mock_graph


class TestResolveSite:
    def test_requests_site_by_hostname_and_name(self) -> None:
        resolver, mock_graph = _make_resolver()
        mock_graph.get.return_value = {"id": "contoso.sharepoint.com,abc,def"}

        site_id = resolver.resolve_site("TeamSite")

        assert site_id == "contoso.sharepoint.com,abc,def"
        mock_graph.get.assert_called_once_with("/sites/contoso.sharepoint.com:/sites/TeamSite")

    def test_site_name_is_url_encoded(self) -> None:
        resolver, mock_graph = _make_resolver()
        mock_graph.get.return_value = {"id": "s"}
        resolver.resolve_site("Team Site")
        mock_graph.get.assert_called_once_with("/sites/contoso.sharepoint.com:/sites/Team%20Site")

    def test_missing_id_raises_resource_not_found_with_body(self) -> None:
        resolver, mock_graph = _make_resolver()
        mock_graph.get.return_value = {"displayName": "no id here"}

        with pytest.raises(ResourceNotFoundError) as exc_info:
            resolver.resolve_site("TeamSite")

        assert exc_info.value.resource == "Site"
        assert exc_info.value.name == "TeamSite"
        assert json.loads(exc_info.value.body) == {"displayName": "no id here"}

    def test_graph_error_becomes_resource_not_found(self) -> None:
        resolver, mock_graph = _make_resolver()
        body = '{"error": {"code": "itemNotFound", "message": "Requested site could not be found"}}'
        mock_graph.get.side_effect = GraphApiError(404, "Requested site could not be found", body)

        with pytest.raises(ResourceNotFoundError) as exc_info:
            resolver.resolve_site("Missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.body == body

    def test_transport_error_propagates(self) -> None:
        resolver, mock_graph = _make_resolver()
        mock_graph.get.side_effect = TransportError("down")
        with pytest.raises(TransportError):
            resolver.resolve_site("TeamSite")


class TestResolveDrive:
    def test_requests_default_drive_of_site(self) -> None:
        resolver, mock_graph = _make_resolver()
        mock_graph.get.return_value = {"id": "b!drive"}

        assert resolver.resolve_drive("site-1") == "b!drive"
        mock_graph.get.assert_called_once_with("/sites/site-1/drive")

    def test_missing_id_raises_resource_not_found(self) -> None:
        resolver, mock_graph = _make_resolver()
        mock_graph.get.return_value = {}
        with pytest.raises(ResourceNotFoundError, match="Drive not found"):
            resolver.resolve_drive("site-1")


class TestResolve:
    def test_drive_lookup_uses_resolved_site_id(self) -> None:
        resolver, mock_graph = _make_resolver()
        mock_graph.get.side_effect = [{"id": "site-1"}, {"id": "drive-1"}]

        drive = resolver.resolve("TeamSite")

        assert drive == ResolvedDrive(site_name="TeamSite", site_id="site-1", drive_id="drive-1")
        assert mock_graph.get.call_args_list == [
            call("/sites/contoso.sharepoint.com:/sites/TeamSite"),
            call("/sites/site-1/drive"),
        ]

    def test_site_failure_skips_drive_lookup(self) -> None:
        resolver, mock_graph = _make_resolver()
        mock_graph.get.return_value = {}

        with pytest.raises(ResourceNotFoundError):
            resolver.resolve("TeamSite")

        assert mock_graph.get.call_count == 1
