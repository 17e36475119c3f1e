"""Schema, column and result entities exchanged with the server."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

TYPE_PARAM_DIM = "dim"


class FieldType(enum.IntEnum):
    """Data types of collection fields, numbered as on the wire."""

    NONE = 0
    BOOL = 1
    INT8 = 2
    INT16 = 3
    INT32 = 4
    INT64 = 5
    FLOAT = 10
    DOUBLE = 11
    STRING = 20
    VARCHAR = 21
    JSON = 23
    BINARY_VECTOR = 100
    FLOAT_VECTOR = 101


@dataclass
class Field:
    """Definition of one collection field."""

    name: str = ""
    data_type: FieldType = FieldType.NONE
    primary_key: bool = False
    auto_id: bool = False
    is_dynamic: bool = False
    description: str = ""
    type_params: dict[str, str] = field(default_factory=dict)
    id: int = 0


@dataclass
class Schema:
    """Definition of a collection."""

    collection_name: str = ""
    description: str = ""
    auto_id: bool = False
    fields: list[Field] = field(default_factory=list)
    enable_dynamic_field: bool = False


@dataclass
class FieldData:
    """Column data in wire layout: exactly one of the data slots is normally set."""

    field_name: str = ""
    type: FieldType = FieldType.NONE
    bool_data: list[bool] | None = None
    int_data: list[int] | None = None
    long_data: list[int] | None = None
    float_data: list[float] | None = None
    double_data: list[float] | None = None
    string_data: list[str] | None = None
    json_data: list[bytes] | None = None
    float_vector: list[float] | None = None
    binary_vector: bytes | None = None
    dim: int = 0
    is_dynamic: bool = False


_SCALAR_SLOTS = {
    FieldType.BOOL: "bool_data",
    FieldType.INT8: "int_data",
    FieldType.INT16: "int_data",
    FieldType.INT32: "int_data",
    FieldType.INT64: "long_data",
    FieldType.FLOAT: "float_data",
    FieldType.DOUBLE: "double_data",
    FieldType.STRING: "string_data",
    FieldType.VARCHAR: "string_data",
    FieldType.JSON: "json_data",
}


@dataclass
class Column:
    """Named column of values of one field type; vector columns hold one vector per row."""

    name: str
    field_type: FieldType
    values: list[Any] = field(default_factory=list)
    dim: int = 0

    def __len__(self) -> int:
        return len(self.values)

    def get(self, index: int) -> Any:
        """Return the value at a row index."""
        if not 0 <= index < len(self.values):
            raise IndexError(f"index {index} out of range [0, {len(self.values)})")
        return self.values[index]

    def field_data(self) -> FieldData:
        """Return the column in wire layout."""
        slot = _SCALAR_SLOTS.get(self.field_type)
        if slot is not None:
            return FieldData(
                field_name=self.name, type=self.field_type, **{slot: list(self.values)}
            )
        if self.field_type == FieldType.FLOAT_VECTOR:
            flat = [float(x) for vector in self.values for x in vector]
            return FieldData(
                field_name=self.name, type=self.field_type, float_vector=flat, dim=self.dim
            )
        if self.field_type == FieldType.BINARY_VECTOR:
            packed = b"".join(bytes(vector) for vector in self.values)
            return FieldData(
                field_name=self.name, type=self.field_type, binary_vector=packed, dim=self.dim
            )
        raise ValueError(f"unsupported column type {self.field_type!r}")


@dataclass(frozen=True)
class FloatVector:
    """A float vector used as a search target."""

    values: tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(float(v) for v in self.values))

    def __len__(self) -> int:
        return len(self.values)

    def serialize(self) -> bytes:
        """Little-endian float32 encoding."""
        return struct.pack(f"<{len(self.values)}f", *self.values)


@dataclass(frozen=True)
class BinaryVector:
    """A packed binary vector used as a search target."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    def serialize(self) -> bytes:
        return self.data


def id_column(ids: Iterable[int] | Iterable[str] | None, begin: int = 0, end: int = -1) -> Column:
    """Build an unnamed primary key column from returned ids; a negative end means to the end."""
    if ids is None:
        raise ValueError("nil ids from response")
    values: Sequence[Any] = list(ids)
    selected = list(values[begin:]) if end < 0 else list(values[begin:end])
    if values and all(isinstance(v, str) for v in values):
        return Column("", FieldType.VARCHAR, selected)
    if all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return Column("", FieldType.INT64, selected)
    raise TypeError("unsupported id type")


@dataclass
class Partition:
    id: int = 0
    name: str = ""
    loaded: bool = False


@dataclass
class Role:
    name: str = ""


@dataclass
class User:
    name: str = ""


class PrivilegeObjectType(enum.IntEnum):
    COLLECTION = 0
    GLOBAL = 1
    USER = 2


@dataclass
class ResourceGroup:
    name: str = ""
    capacity: int = 0
    available_nodes_number: int = 0
    loaded_replica: dict[str, int] = field(default_factory=dict)
    outgoing_node_num: dict[str, int] = field(default_factory=dict)
    incoming_node_num: dict[str, int] = field(default_factory=dict)


class CompactionState(enum.IntEnum):
    UNDEFINED = 0
    EXECUTING = 1
    COMPLETED = 2


class CompactionPlanType(enum.IntEnum):
    UNDEFINED = 0
    MERGE_SEGMENTS = 1


@dataclass
class CompactionPlan:
    source: list[int] = field(default_factory=list)
    target: int = 0
    plan_type: CompactionPlanType = CompactionPlanType.UNDEFINED


class BulkInsertState(enum.IntEnum):
    PENDING = 0
    FAILED = 1
    STARTED = 2
    PERSISTED = 5
    COMPLETED = 6
    FAILED_AND_CLEANED = 7
    FLUSHED = 8


@dataclass
class BulkInsertTaskState:
    id: int = 0
    state: BulkInsertState = BulkInsertState.PENDING
    row_count: int = 0
    id_list: list[int] = field(default_factory=list)
    infos: dict[str, str] = field(default_factory=dict)
    collection_id: int = 0
    segment_ids: list[int] = field(default_factory=list)
    create_ts: int = 0