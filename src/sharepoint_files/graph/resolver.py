"""Site name to site id to drive id resolution."""

from __future__ import annotations

import json
import logging
from urllib.parse import quote

from sharepoint_files.exceptions import GraphApiError, ResourceNotFoundError
from sharepoint_files.graph.client import GraphClient
from sharepoint_files.graph.models import FIELD_ID, ResolvedDrive

logger = logging.getLogger(__name__)

RESOURCE_SITE = "Site"
RESOURCE_DRIVE = "Drive"


class ResourceResolver:
    """Resolves a SharePoint site name to the id of its default drive."""

    def __init__(self, graph_client: GraphClient, site_hostname: str) -> None:
        """Initialise the resolver.

        Args:
            graph_client: Authenticated GraphClient instance.
            site_hostname: SharePoint host of the tenant (e.g. "contoso.sharepoint.com").
        """
        self._graph = graph_client
        self._site_hostname = site_hostname

    def _lookup_id(self, resource: str, name: str, path: str) -> str:
        try:
            payload = self._graph.get(path)
        except GraphApiError as exc:
            logger.error(
                "[_lookup_id] lookup failed; resource:%s;name:%s;status:%s",
                resource,
                name,
                exc.status_code,
            )
            raise ResourceNotFoundError(resource, name, exc.status_code, exc.body) from exc

        resource_id = payload.get(FIELD_ID)
        if not resource_id:
            logger.error("[_lookup_id] response has no id; resource:%s;name:%s", resource, name)
            raise ResourceNotFoundError(resource, name, 200, json.dumps(payload, indent=2))
        return str(resource_id)

    def resolve_site(self, site_name: str) -> str:
        """Return the Graph site id for a site name under the tenant host."""
        path = f"/sites/{self._site_hostname}:/sites/{quote(site_name, safe='')}"
        site_id = self._lookup_id(RESOURCE_SITE, site_name, path)
        logger.info("[resolve_site] site resolved; site_name:%s;site_id:%s", site_name, site_id)
        return site_id

    def resolve_drive(self, site_id: str) -> str:
        """Return the id of the default document library of a site."""
        drive_id = self._lookup_id(RESOURCE_DRIVE, site_id, f"/sites/{site_id}/drive")
        logger.info("[resolve_drive] drive resolved; site_id:%s;drive_id:%s", site_id, drive_id)
        return drive_id

    def resolve(self, site_name: str) -> ResolvedDrive:
        """Resolve site then drive; the drive lookup needs the site id."""
        site_id = self.resolve_site(site_name)
        drive_id = self.resolve_drive(site_id)
        return ResolvedDrive(site_name=site_name, site_id=site_id, drive_id=drive_id)
