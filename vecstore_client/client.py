"""The complete client, combining every group of operations."""

from __future__ import annotations

from typing import Any

from .insert import InsertOperations
from .maintenance import MaintenanceOperations
from .rbac import RbacOperations
from .resource_group import ResourceGroupOperations


class Client(
    InsertOperations,
    RbacOperations,
    ResourceGroupOperations,
    MaintenanceOperations,
):
    """Client for partitions, data, access control, resource groups and compaction.

    ``service`` is the stub that carries out the calls; a client without one
    raises ClientNotReadyError on every operation.
    """

    def __init__(self, service: Any) -> None:
        super().__init__(service)