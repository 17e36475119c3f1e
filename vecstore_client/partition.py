"""Partition management operations."""

from __future__ import annotations

import time
from typing import Iterable

from .core import BaseClient, ErrorCode, ServiceError, handle_status
from .entities import Partition

_POLL_INTERVAL = 0.1


class PartitionOperations(BaseClient):
    """Create, drop, inspect, load and release partitions of a collection."""

    def _check_partition_exists(self, collection_name: str, partition_name: str) -> None:
        if not self.has_partition(collection_name, partition_name):
            raise ValueError(
                f"partition {partition_name} of collection {collection_name} does not exist"
            )

    def create_partition(self, collection_name: str, partition_name: str) -> None:
        """Create a partition; it must not exist yet."""
        service = self._require_service()
        self._check_collection_exists(collection_name)
        if self.has_partition(collection_name, partition_name):
            raise ValueError(
                f"partition {partition_name} of collection {collection_name} already exists"
            )
        handle_status(
            service.create_partition(
                db_name="", collection_name=collection_name, partition_name=partition_name
            )
        )

    def drop_partition(self, collection_name: str, partition_name: str) -> None:
        """Drop an existing partition."""
        service = self._require_service()
        self._check_collection_exists(collection_name)
        self._check_partition_exists(collection_name, partition_name)
        handle_status(
            service.drop_partition(
                db_name="", collection_name=collection_name, partition_name=partition_name
            )
        )

    def has_partition(self, collection_name: str, partition_name: str) -> bool:
        """Tell whether the partition exists."""
        service = self._require_service()
        response = service.has_partition(
            db_name="", collection_name=collection_name, partition_name=partition_name
        )
        status = getattr(response, "status", None)
        if status is not None and status.error_code != ErrorCode.SUCCESS:
            raise ServiceError(status.error_code, "request failed")
        return bool(response.value)

    def show_partitions(self, collection_name: str) -> list[Partition]:
        """List the partitions of a collection with their load state."""
        service = self._require_service()
        response = service.show_partitions(db_name="", collection_name=collection_name)
        handle_status(getattr(response, "status", None))
        names = list(response.partition_names or [])
        if not names:
            raise ValueError("response holds no partition names")
        percentages = list(getattr(response, "in_memory_percentages", None) or [])
        partitions = []
        for idx, (partition_id, name) in enumerate(zip(response.partition_ids, names)):
            loaded = idx < len(percentages) and percentages[idx] == 100
            partitions.append(Partition(id=partition_id, name=name, loaded=loaded))
        return partitions

    def load_partitions(
        self,
        collection_name: str,
        partition_names: Iterable[str],
        asynchronous: bool = False,
        timeout: float | None = None,
    ) -> None:
        """Load partitions into memory, waiting for them unless asynchronous.

        ``timeout`` in seconds bounds the whole call; TimeoutError is raised
        when it passes while waiting.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        service = self._require_service()
        self._check_collection_exists(collection_name)
        names = list(partition_names)
        for name in names:
            self._check_partition_exists(collection_name, name)

        ids_by_name = {p.name: p.id for p in self.show_partitions(collection_name)}
        wanted = set()
        for name in names:
            if name not in ids_by_name:
                raise ValueError(f"collection {collection_name} does not has partitions {name}")
            wanted.add(ids_by_name[name])

        handle_status(
            service.load_partitions(
                db_name="", collection_name=collection_name, partition_names=names
            )
        )
        if asynchronous:
            return

        while True:
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError("context deadline exceeded")
            targets = [p for p in self.show_partitions(collection_name) if p.id in wanted]
            if all(p.loaded for p in targets) and len(targets) >= len(names):
                return
            time.sleep(_POLL_INTERVAL)

    def release_partitions(self, collection_name: str, partition_names: Iterable[str]) -> None:
        """Release loaded partitions from memory."""
        service = self._require_service()
        self._check_collection_exists(collection_name)
        names = list(partition_names)
        for name in names:
            self._check_partition_exists(collection_name, name)
        handle_status(
            service.release_partitions(
                db_name="", collection_name=collection_name, partition_names=names
            )
        )