"""Resource group management operations."""

from __future__ import annotations

from .core import BaseClient, handle_status
from .entities import ResourceGroup


class ResourceGroupOperations(BaseClient):
    """List, create, describe and drop resource groups and move nodes and replicas."""

    def list_resource_groups(self) -> list[str]:
        """Return the names of all resource groups."""
        response = self._require_service().list_resource_groups()
        handle_status(getattr(response, "status", None))
        return list(response.resource_groups or [])

    def create_resource_group(self, name: str) -> None:
        """Create a resource group."""
        handle_status(self._require_service().create_resource_group(resource_group=name))

    def describe_resource_group(self, name: str) -> ResourceGroup:
        """Return the description of a resource group."""
        response = self._require_service().describe_resource_group(resource_group=name)
        handle_status(getattr(response, "status", None))
        group = getattr(response, "resource_group", None)
        if group is None:
            return ResourceGroup()
        return ResourceGroup(
            name=group.name,
            capacity=group.capacity,
            available_nodes_number=group.num_available_node,
            loaded_replica=dict(group.num_loaded_replica or {}),
            outgoing_node_num=dict(group.num_outgoing_node or {}),
            incoming_node_num=dict(group.num_incoming_node or {}),
        )

    def drop_resource_group(self, name: str) -> None:
        """Drop a resource group."""
        handle_status(self._require_service().drop_resource_group(resource_group=name))

    def transfer_node(self, source: str, target: str, num_nodes: int) -> None:
        """Move query nodes from one resource group to another."""
        handle_status(
            self._require_service().transfer_node(
                source_resource_group=source,
                target_resource_group=target,
                num_node=num_nodes,
            )
        )

    def transfer_replica(
        self, source: str, target: str, collection_name: str, num_replicas: int
    ) -> None:
        """Move replicas of a collection from one resource group to another."""
        handle_status(
            self._require_service().transfer_replica(
                source_resource_group=source,
                target_resource_group=target,
                collection_name=collection_name,
                num_replica=num_replicas,
            )
        )