"""Insert, upsert, delete, flush and bulk import operations."""

from __future__ import annotations

import enum
import json
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from .entities import (
    TYPE_PARAM_DIM,
    BinaryVector,
    BulkInsertState,
    BulkInsertTaskState,
    Column,
    FieldData,
    FieldType,
    FloatVector,
    Schema,
    id_column,
)
from .core import handle_status
from .options import BulkInsertOption, ImportRequest
from .partition import PartitionOperations

DEFAULT_PARTITION = "_default"
_FLUSH_POLL_INTERVAL = 0.2
_VECTOR_TYPES = (FieldType.FLOAT_VECTOR, FieldType.BINARY_VECTOR)


class PlaceholderType(enum.IntEnum):
    """Kinds of search target placeholders, numbered as on the wire."""

    NONE = 0
    BINARY_VECTOR = 100
    FLOAT_VECTOR = 101


@dataclass
class PlaceholderValue:
    """Serialized search targets sent with a search request."""

    tag: str = "$0"
    type: PlaceholderType = PlaceholderType.NONE
    values: list[bytes] = field(default_factory=list)


def vectors_to_placeholder(vectors: Sequence[FloatVector | BinaryVector]) -> PlaceholderValue:
    """Serialize search vectors into a placeholder; the first vector decides its type."""
    placeholder = PlaceholderValue()
    if not vectors:
        return placeholder
    first = vectors[0]
    if isinstance(first, FloatVector):
        placeholder.type = PlaceholderType.FLOAT_VECTOR
    elif isinstance(first, BinaryVector):
        placeholder.type = PlaceholderType.BINARY_VECTOR
    placeholder.values = [vector.serialize() for vector in vectors]
    return placeholder


def _kv_map(pairs: Any) -> dict[str, str]:
    if pairs is None:
        return {}
    if isinstance(pairs, dict):
        return dict(pairs)
    return {pair.key: pair.value for pair in pairs}


def _task_state(task: Any) -> BulkInsertTaskState:
    return BulkInsertTaskState(
        id=task.id,
        state=BulkInsertState(task.state),
        row_count=task.row_count,
        id_list=list(task.id_list or []),
        infos=_kv_map(task.infos),
        collection_id=task.collection_id,
        segment_ids=list(task.segment_ids or []),
        create_ts=task.create_ts,
    )


def _pks_to_expr(pk_name: str, ids: Column) -> str:
    if ids.field_type == FieldType.VARCHAR:
        items = ",".join(json.dumps(str(value)) for value in ids.values)
    else:
        items = ",".join(str(int(value)) for value in ids.values)
    return f"{pk_name} in [{items}]"


def _check_vector_dim(column: Column, schema_field: Any) -> None:
    if schema_field.data_type not in _VECTOR_TYPES:
        return
    expected = schema_field.type_params.get(TYPE_PARAM_DIM)
    if str(column.dim) != expected:
        raise ValueError(
            f"params column {schema_field.name} vector dim {column.dim} not match "
            f"collection definition, which has dim of {expected}"
        )


def _accumulate_rows(row_size: int, column: Column) -> int:
    length = len(column)
    if row_size == 0:
        return length
    if row_size != length:
        raise ValueError("column size not match")
    return row_size


class InsertOperations(PartitionOperations):
    """Write data into collections and manage bulk import tasks."""

    def _schema_of(self, collection_name: str) -> Schema:
        return self._describe_collection(collection_name).schema

    def _validate_target(self, collection_name: str, partition_name: str) -> None:
        self._check_collection_exists(collection_name)
        if partition_name:
            self._check_partition_exists(collection_name, partition_name)

    def _process_insert_columns(
        self, schema: Schema, columns: Sequence[Column]
    ) -> tuple[list[FieldData], int]:
        fields_by_name = {f.name: f for f in schema.fields}
        fixed: dict[str, Column] = {}
        dynamic: list[Column] = []
        row_size = 0
        for column in columns:
            if column.name in fixed:
                raise ValueError(f"duplicated column {column.name} found")
            row_size = _accumulate_rows(row_size, column)
            schema_field = fields_by_name.get(column.name)
            if schema_field is None:
                if not schema.enable_dynamic_field:
                    raise ValueError(
                        f"field {column.name} does not exist in collection "
                        f"{schema.collection_name}"
                    )
                dynamic.append(column)
                continue
            fixed[column.name] = column
            if column.field_type != schema_field.data_type:
                raise ValueError(
                    f"param column {column.name} has type {column.field_type!r} but "
                    f"collection field definition is {schema_field.data_type!r}"
                )
            _check_vector_dim(column, schema_field)

        for schema_field in schema.fields:
            if (
                schema_field.name not in fixed
                and not schema_field.auto_id
                and not schema_field.is_dynamic
            ):
                raise ValueError(f"field {schema_field.name} not passed")

        fields_data = [column.field_data() for column in fixed.values()]
        if dynamic:
            fields_data.append(self._merge_dynamic_columns("", row_size, dynamic))
        return fields_data, row_size

    @staticmethod
    def _merge_dynamic_columns(
        dynamic_name: str, row_size: int, columns: Sequence[Column]
    ) -> FieldData:
        rows = [
            json.dumps(
                {column.name: column.get(i) for column in columns},
                sort_keys=True,
                separators=(",", ":"),
            ).encode()
            for i in range(row_size)
        ]
        return FieldData(
            field_name=dynamic_name, type=FieldType.JSON, json_data=rows, is_dynamic=True
        )

    def _send_mutation(
        self,
        method: str,
        collection_name: str,
        partition_name: str,
        fields_data: list[FieldData],
        row_size: int,
    ) -> Column:
        response = getattr(self._require_service(), method)(
            db_name="",
            collection_name=collection_name,
            partition_name=partition_name or DEFAULT_PARTITION,
            fields_data=fields_data,
            num_rows=row_size,
        )
        handle_status(getattr(response, "status", None))
        self.meta_cache.set_session_ts(collection_name, response.timestamp)
        return id_column(response.ids, 0, -1)

    def insert(self, collection_name: str, partition_name: str, *columns: Column) -> Column:
        """Insert column-based data; returns the primary keys of the new rows.

        An empty partition name means the default partition.
        """
        self._require_service()
        self._validate_target(collection_name, partition_name)
        schema = self._schema_of(collection_name)
        fields_data, row_size = self._process_insert_columns(schema, columns)
        return self._send_mutation("insert", collection_name, partition_name, fields_data, row_size)

    def upsert(self, collection_name: str, partition_name: str, *columns: Column) -> Column:
        """Insert or replace column-based data; returns the primary keys."""
        self._require_service()
        self._validate_target(collection_name, partition_name)
        schema = self._schema_of(collection_name)
        fields_by_name = {f.name: f for f in schema.fields}
        passed: set[str] = set()
        row_size = 0
        for column in columns:
            passed.add(column.name)
            row_size = _accumulate_rows(row_size, column)
            schema_field = fields_by_name.get(column.name)
            if schema_field is None:
                raise ValueError(
                    f"field {column.name} does not exist in collection {collection_name}"
                )
            if column.field_type != schema_field.data_type:
                raise ValueError(
                    f"param column {column.name} has type {column.field_type!r} but "
                    f"collection field definition is {schema_field.data_type!r}"
                )
            _check_vector_dim(column, schema_field)
        for schema_field in schema.fields:
            if schema_field.name not in passed and not schema_field.auto_id:
                raise ValueError(f"field {schema_field.name} not passed")
        fields_data = [column.field_data() for column in columns]
        return self._send_mutation("upsert", collection_name, partition_name, fields_data, row_size)

    def flush(
        self, collection_name: str, asynchronous: bool = False, timeout: float | None = None
    ) -> None:
        """Flush in-memory records to storage, waiting for it unless asynchronous.

        ``timeout`` in seconds bounds the wait; TimeoutError is raised when it passes.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        service = self._require_service()
        self._check_collection_exists(collection_name)
        response = service.flush(db_name="", collection_names=[collection_name])
        handle_status(getattr(response, "status", None))
        if asynchronous:
            return
        segment_ids = list((response.coll_seg_ids or {}).get(collection_name) or [])
        if not segment_ids:
            return

        def flushed() -> bool:
            try:
                return bool(service.get_flush_state(segment_ids=segment_ids).flushed)
            except Exception:
                return False

        while not flushed():
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError("deadline exceeded")
            time.sleep(_FLUSH_POLL_INTERVAL)

    def delete_by_pks(self, collection_name: str, partition_name: str, ids: Column) -> None:
        """Delete the rows whose primary keys are listed in the column."""
        service = self._require_service()
        self._check_collection_exists(collection_name)
        schema = self._schema_of(collection_name)
        if partition_name:
            self._check_partition_exists(collection_name, partition_name)
        if len(ids) == 0:
            raise ValueError("ids len must not be zero")
        if ids.field_type not in (FieldType.INT64, FieldType.VARCHAR):
            raise ValueError("only int64 and varchar column can be primary key for now")
        pk_field = next((f for f in schema.fields if f.primary_key), None)
        if pk_field is None:
            raise ValueError("collection has no primary key field")
        if ids.name and pk_field.name != ids.name:
            raise ValueError("only delete by primary key is supported now")
        response = service.delete(
            db_name="",
            collection_name=collection_name,
            partition_name=partition_name,
            expr=_pks_to_expr(pk_field.name, ids),
        )
        handle_status(getattr(response, "status", None))
        self.meta_cache.set_session_ts(collection_name, response.timestamp)

    def bulk_insert(
        self,
        collection_name: str,
        partition_name: str,
        files: Iterable[str],
        *options: BulkInsertOption,
    ) -> int:
        """Start importing data files held in object storage; returns the task id."""
        service = self._require_service()
        request = ImportRequest(
            collection_name=collection_name, partition_name=partition_name, files=list(files)
        )
        for apply in options:
            apply(request)
        response = service.import_(
            collection_name=request.collection_name,
            partition_name=request.partition_name,
            files=request.files,
            options=request.options,
        )
        handle_status(getattr(response, "status", None))
        return response.tasks[0]

    def get_bulk_insert_state(self, task_id: int) -> BulkInsertTaskState:
        """Return the state of an import task."""
        response = self._require_service().get_import_state(task=task_id)
        handle_status(getattr(response, "status", None))
        return _task_state(response)

    def list_bulk_insert_tasks(self, collection_name: str, limit: int) -> list[BulkInsertTaskState]:
        """Return the states of import tasks of a collection."""
        response = self._require_service().list_import_tasks(
            collection_name=collection_name, limit=limit
        )
        handle_status(getattr(response, "status", None))
        return [_task_state(task) for task in (response.tasks or [])]