"""Conversion of search results into user-defined row objects."""

from __future__ import annotations

import typing
from dataclasses import dataclass, field
from typing import Any, Iterable

from .entities import Field, FieldData, FieldType, Schema


class FieldTypeMismatchError(TypeError):
    """A row attribute cannot hold the data of the schema field."""

    def __init__(self, message: str = "field type not matched") -> None:
        super().__init__(message)


@dataclass
class SearchResultData:
    """Raw search results: ids, scores and field data of every query's hits."""

    num_queries: int = 0
    top_k: int = 0
    fields_data: list[FieldData] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)
    int_ids: list[int] | None = None
    str_ids: list[str] | None = None
    topks: list[int] = field(default_factory=list)


@dataclass
class SearchResultByRows:
    """Hits of one query turned into row objects."""

    result_count: int = 0
    scores: list[float] = field(default_factory=list)
    rows: list[Any] = field(default_factory=list)
    err: Exception | None = None


_SCALAR_TARGETS: dict[FieldType, tuple[type, str]] = {
    FieldType.BOOL: (bool, "bool_data"),
    FieldType.INT8: (int, "int_data"),
    FieldType.INT16: (int, "int_data"),
    FieldType.INT32: (int, "int_data"),
    FieldType.INT64: (int, "long_data"),
    FieldType.FLOAT: (float, "float_data"),
    FieldType.DOUBLE: (float, "double_data"),
    FieldType.STRING: (str, "string_data"),
}

_NAMED_KINDS: dict[str, type] = {
    "bool": bool,
    "int": int,
    "float": float,
    "str": str,
    "bytes": bytes,
    "bytearray": bytearray,
    "list": list,
    "tuple": tuple,
    "List": list,
    "Tuple": tuple,
    "Sequence": list,
}


def _annotations(row_type: type) -> dict[str, Any]:
    """Collect declared annotations of a class and its bases, nearest last."""
    collected: dict[str, Any] = {}
    for klass in reversed(row_type.__mro__):
        collected.update(klass.__dict__.get("__annotations__", {}))
    return collected


def _kind_from_string(annotation: str) -> Any:
    head = annotation.strip().split("[", 1)[0].split("|", 1)[0].strip()
    head = head.rsplit(".", 1)[-1]
    return _NAMED_KINDS.get(head, head)


def _attribute_kind(row: Any, attribute: str) -> Any:
    """Return the container or scalar type an attribute is declared to hold."""
    annotation = _annotations(type(row)).get(attribute)
    if annotation is None:
        current = getattr(row, attribute, None)
        return None if current is None else type(current)
    if isinstance(annotation, str):
        return _kind_from_string(annotation)
    return typing.get_origin(annotation) or annotation


def _has_attribute(row: Any, attribute: str) -> bool:
    return attribute in _annotations(type(row)) or hasattr(row, attribute)


def set_field_value(
    field: Field, row: Any, attribute: str, field_data: FieldData, index: int
) -> None:
    """Set ``row.attribute`` to the index-th value of the field data.

    Raises FieldTypeMismatchError when the attribute's declared type does not
    suit the field type or the field data holds no data of that type.
    """
    kind = _attribute_kind(row, attribute)

    scalar = _SCALAR_TARGETS.get(field.data_type)
    if scalar is not None:
        expected, slot = scalar
        if kind is not expected:
            raise FieldTypeMismatchError()
        data = getattr(field_data, slot)
        if data is None:
            raise FieldTypeMismatchError()
        setattr(row, attribute, expected(data[index]))
        return

    if field.data_type == FieldType.FLOAT_VECTOR:
        data = field_data.float_vector
        if data is None:
            raise FieldTypeMismatchError()
        dim = field_data.dim
        vector = [float(x) for x in data[index * dim : (index + 1) * dim]]
        if kind is list:
            setattr(row, attribute, vector)
        elif kind is tuple:
            setattr(row, attribute, tuple(vector))
        else:
            raise FieldTypeMismatchError()
        return

    if field.data_type == FieldType.BINARY_VECTOR:
        data = field_data.binary_vector
        if data is None:
            raise FieldTypeMismatchError()
        width = field_data.dim // 8
        chunk = bytes(data[index * width : (index + 1) * width])
        if kind is bytes:
            setattr(row, attribute, chunk)
        elif kind is bytearray:
            setattr(row, attribute, bytearray(chunk))
        elif kind is list:
            setattr(row, attribute, list(chunk))
        elif kind is tuple:
            setattr(row, attribute, tuple(chunk))
        else:
            raise FieldTypeMismatchError()
        return

    raise FieldTypeMismatchError()


def _set_primary_key(
    field: Field, row: Any, results: SearchResultData, position: int
) -> Exception | None:
    kind = _attribute_kind(row, field.name)
    if kind is int:
        if results.int_ids is None:
            return FieldTypeMismatchError(f"field {field.name} is int64, but id column is not")
        setattr(row, field.name, int(results.int_ids[position]))
    elif kind is str:
        if results.str_ids is None:
            return FieldTypeMismatchError(f"field {field.name} is string ,but id column is not")
        setattr(row, field.name, str(results.str_ids[position]))
    else:
        return FieldTypeMismatchError(f"field {field.name} is not valid primary key")
    return None


def search_result_to_rows(
    schema: Schema,
    results: SearchResultData,
    row_type: type,
    output_fields: Iterable[str],
) -> list[SearchResultByRows]:
    """Build one SearchResultByRows per query, each hit as a new ``row_type()`` object.

    Schema fields that the row type does not declare, or that the results carry
    no data for, are left at the row's defaults. Conversion problems are stored
    in the entry's ``err`` rather than raised. ``output_fields`` names the
    fields that were requested.
    """
    requested = set(output_fields)
    data_by_name = {fd.field_name: fd for fd in results.fields_data}
    entries: list[SearchResultByRows] = []
    offset = 0
    for count in results.topks[: results.num_queries]:
        count = int(count)
        entry = SearchResultByRows(
            result_count=count, scores=list(results.scores[offset : offset + count])
        )
        for j in range(count):
            row = row_type()
            for schema_field in schema.fields:
                if not _has_attribute(row, schema_field.name):
                    continue
                if schema_field.primary_key:
                    err = _set_primary_key(schema_field, row, results, offset + j)
                    if err is not None:
                        entry.err = err
                    continue
                field_data = data_by_name.get(schema_field.name)
                if field_data is None and schema_field.name not in requested:
                    continue
                if field_data is None:
                    continue
                try:
                    set_field_value(schema_field, row, schema_field.name, field_data, offset + j)
                except FieldTypeMismatchError as exc:
                    entry.err = exc
                    break
            entry.rows.append(row)
        entries.append(entry)
        offset += count
    return entries