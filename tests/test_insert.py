import json
import struct
from types import SimpleNamespace

import pytest

from vecstore_client.core import ClientNotReadyError, ErrorCode, ServiceError, Status
from vecstore_client.entities import (
    BinaryVector,
    BulkInsertState,
    Column,
    Field,
    FieldType,
    FloatVector,
    Schema,
)
from vecstore_client.insert import (
    InsertOperations,
    PlaceholderType,
    vectors_to_placeholder,
)
from vecstore_client.meta_cache import MetaCache
from vecstore_client.options import with_end_ts, with_start_ts

COLLECTION = "test_collection"


def _schema(dynamic=False):
    return Schema(
        collection_name=COLLECTION,
        enable_dynamic_field=dynamic,
        fields=[
            Field(name="ID", data_type=FieldType.INT64, primary_key=True, auto_id=True),
            Field(
                name="vector",
                data_type=FieldType.FLOAT_VECTOR,
                type_params={"dim": "128"},
            ),
        ],
    )


class FakeService:
    def __init__(self, collections=(COLLECTION,), partitions=("partition_1",), schema=None):
        self.collections = set(collections)
        self.partitions = set(partitions)
        self.schema = schema or _schema()
        self.calls = []
        self.mutation_status = Status()
        self.mutation_error = None
        self.flush_states = []
        self.flush_state_calls = 0

    def has_collection(self, db_name, collection_name):
        return SimpleNamespace(status=Status(), value=collection_name in self.collections)

    def has_partition(self, db_name, collection_name, partition_name):
        return SimpleNamespace(status=Status(), value=partition_name in self.partitions)

    def describe_collection(self, db_name, collection_name):
        return SimpleNamespace(status=Status(), collection_id=1, schema=self.schema)

    def _mutation(self, name, kwargs):
        self.calls.append((name, kwargs))
        if self.mutation_error is not None:
            raise self.mutation_error
        return SimpleNamespace(status=self.mutation_status, ids=[1], timestamp=42)

    def insert(self, **kwargs):
        return self._mutation("insert", kwargs)

    def upsert(self, **kwargs):
        return self._mutation("upsert", kwargs)

    def delete(self, **kwargs):
        return self._mutation("delete", kwargs)

    def flush(self, db_name, collection_names):
        self.calls.append(("flush", collection_names))
        return SimpleNamespace(status=Status(), coll_seg_ids={COLLECTION: [7, 8]})

    def get_flush_state(self, segment_ids):
        self.flush_state_calls += 1
        flushed = self.flush_states.pop(0) if self.flush_states else False
        return SimpleNamespace(flushed=flushed)

    def import_(self, **kwargs):
        self.calls.append(("import", kwargs))
        return SimpleNamespace(status=Status(), tasks=[555, 556])

    def get_import_state(self, task):
        return SimpleNamespace(
            status=Status(),
            id=task,
            state=6,
            row_count=10,
            id_list=[1, 2],
            infos={"progress": "100"},
            collection_id=3,
            segment_ids=[4],
            create_ts=99,
        )

    def list_import_tasks(self, collection_name, limit):
        task = SimpleNamespace(
            id=1, state=0, row_count=0, id_list=[], infos=None,
            collection_id=3, segment_ids=[], create_ts=5,
        )
        return SimpleNamespace(status=Status(), tasks=[task])


def _client(service):
    client = InsertOperations(service)
    client.meta_cache = MetaCache()
    return client


def _vectors(rows, dim=128):
    return Column("vector", FieldType.FLOAT_VECTOR, [[0.5] * dim for _ in range(rows)], dim)


def test_insert_collection_not_exist():
    client = _client(FakeService(collections=()))
    with pytest.raises(ValueError, match="does not exist"):
        client.insert(COLLECTION, "")


def test_insert_partition_not_exist():
    client = _client(FakeService(partitions=()))
    with pytest.raises(ValueError, match="partition_name"):
        client.insert(COLLECTION, "partition_name")


def test_insert_field_not_exist():
    client = _client(FakeService())
    with pytest.raises(ValueError, match="field extra does not exist"):
        client.insert(COLLECTION, "partition_1", Column("extra", FieldType.INT64, [1]))


def test_insert_missing_field():
    client = _client(FakeService())
    with pytest.raises(ValueError, match="field vector not passed"):
        client.insert(COLLECTION, "partition_1", Column("ID", FieldType.INT64, [1]))


def test_insert_column_len_not_match():
    client = _client(FakeService())
    with pytest.raises(ValueError, match="column size not match"):
        client.insert(
            COLLECTION,
            "partition_1",
            Column("ID", FieldType.INT64, [1, 2]),
            Column("vector", FieldType.FLOAT_VECTOR, [], 128),
        )


def test_insert_duplicated_column():
    service = FakeService()
    client = _client(service)
    with pytest.raises(ValueError, match="duplicated column vector"):
        client.insert(COLLECTION, "partition_1", _vectors(1), _vectors(1))
    assert service.calls == []


def test_insert_dim_not_match():
    client = _client(FakeService())
    with pytest.raises(ValueError, match="dim"):
        client.insert(
            COLLECTION,
            "partition_1",
            Column("ID", FieldType.INT64, [1]),
            Column("vector", FieldType.FLOAT_VECTOR, [[0.1] * 8], 8),
        )


def test_insert_server_fail():
    service = FakeService()
    service.mutation_status = Status(error_code=ErrorCode.UNEXPECTED_ERROR)
    client = _client(service)
    with pytest.raises(ServiceError):
        client.insert(COLLECTION, "partition_1", _vectors(1))


def test_insert_server_connection_error():
    service = FakeService()
    service.mutation_error = ConnectionError("mocked error")
    client = _client(service)
    with pytest.raises(ConnectionError, match="mocked error"):
        client.insert(COLLECTION, "partition_1", _vectors(1))


def test_insert_client_not_ready():
    with pytest.raises(ClientNotReadyError):
        InsertOperations(None).insert(COLLECTION, "")


def test_insert_success_non_dynamic():
    service = FakeService()
    client = _client(service)
    ids = client.insert(COLLECTION, "partition_1", _vectors(1))
    assert len(ids) == 1
    assert ids.values == [1]
    name, request = service.calls[0]
    assert name == "insert"
    assert len(request["fields_data"]) == 1
    assert request["num_rows"] == 1
    assert request["partition_name"] == "partition_1"
    assert client.meta_cache.get_session_ts(COLLECTION) == 42


def test_insert_default_partition():
    service = FakeService()
    client = _client(service)
    client.insert(COLLECTION, "", _vectors(1))
    assert service.calls[0][1]["partition_name"] == "_default"


def test_insert_success_dynamic():
    service = FakeService(schema=_schema(dynamic=True))
    client = _client(service)
    ids = client.insert(
        COLLECTION,
        "partition_1",
        Column("extra", FieldType.INT64, [1]),
        _vectors(1),
    )
    assert len(ids) == 1
    fields_data = service.calls[0][1]["fields_data"]
    assert len(fields_data) == 2
    dynamic = [fd for fd in fields_data if fd.field_name == "" and fd.is_dynamic]
    assert len(dynamic) == 1
    assert dynamic[0].type == FieldType.JSON
    assert json.loads(dynamic[0].json_data[0]) == {"extra": 1}


def test_upsert_success_and_errors():
    service = FakeService()
    client = _client(service)
    ids = client.upsert(COLLECTION, "partition_1", _vectors(2))
    assert len(ids) == 1
    assert service.calls[0][0] == "upsert"
    assert service.calls[0][1]["num_rows"] == 2
    with pytest.raises(ValueError, match="does not exist"):
        client.upsert(COLLECTION, "partition_1", Column("extra", FieldType.INT64, [1]))
    with pytest.raises(ValueError, match="not passed"):
        client.upsert(COLLECTION, "partition_1", Column("ID", FieldType.INT64, [1]))


def test_flush_async_does_not_poll():
    service = FakeService()
    _client(service).flush(COLLECTION, asynchronous=True)
    assert service.flush_state_calls == 0
    assert service.calls == [("flush", [COLLECTION])]


def test_flush_waits_until_flushed():
    service = FakeService()
    service.flush_states = [False, True]
    _client(service).flush(COLLECTION)
    assert service.flush_state_calls == 2


def test_flush_times_out():
    service = FakeService()
    with pytest.raises(TimeoutError):
        _client(service).flush(COLLECTION, timeout=0.05)


def test_delete_by_pks_int_expression():
    service = FakeService(schema=Schema(
        collection_name=COLLECTION,
        fields=[Field(name="ID", data_type=FieldType.INT64, primary_key=True)],
    ))
    client = _client(service)
    client.delete_by_pks(COLLECTION, "", Column("ID", FieldType.INT64, [1, 2]))
    name, request = service.calls[0]
    assert name == "delete"
    assert request["expr"] == "ID in [1,2]"
    assert client.meta_cache.get_session_ts(COLLECTION) == 42


def test_delete_by_pks_varchar_expression():
    service = FakeService(schema=Schema(
        collection_name=COLLECTION,
        fields=[Field(name="pk", data_type=FieldType.VARCHAR, primary_key=True)],
    ))
    _client(service).delete_by_pks(COLLECTION, "", Column("", FieldType.VARCHAR, ["a", "b"]))
    assert service.calls[0][1]["expr"] == 'pk in ["a","b"]'


def test_delete_by_pks_errors():
    client = _client(FakeService())
    with pytest.raises(ValueError, match="must not be zero"):
        client.delete_by_pks(COLLECTION, "", Column("ID", FieldType.INT64, []))
    with pytest.raises(ValueError, match="only int64 and varchar"):
        client.delete_by_pks(COLLECTION, "", Column("ID", FieldType.FLOAT, [0.0]))
    with pytest.raises(ValueError, match="only delete by primary key"):
        client.delete_by_pks(COLLECTION, "", Column("other", FieldType.INT64, [1]))
    with pytest.raises(ValueError, match="partition p1"):
        client.delete_by_pks(COLLECTION, "p1", Column("ID", FieldType.INT64, [1]))


def test_bulk_insert_with_options():
    service = FakeService()
    task = _client(service).bulk_insert(
        COLLECTION, "", ["a.json"], with_start_ts(10), with_end_ts(20)
    )
    assert task == 555
    request = service.calls[0][1]
    assert request["files"] == ["a.json"]
    assert {p.key: p.value for p in request["options"]} == {"start_ts": "10", "end_ts": "20"}


def test_get_bulk_insert_state():
    state = _client(FakeService()).get_bulk_insert_state(12)
    assert state.id == 12
    assert state.state == BulkInsertState.COMPLETED
    assert state.row_count == 10
    assert state.infos == {"progress": "100"}
    assert state.segment_ids == [4]


def test_list_bulk_insert_tasks():
    tasks = _client(FakeService()).list_bulk_insert_tasks(COLLECTION, 5)
    assert len(tasks) == 1
    assert tasks[0].state == BulkInsertState.PENDING
    assert tasks[0].infos == {}
    assert tasks[0].create_ts == 5


def test_vectors_to_placeholder_empty():
    placeholder = vectors_to_placeholder([])
    assert placeholder.tag == "$0"
    assert placeholder.type == PlaceholderType.NONE
    assert placeholder.values == []


def test_vectors_to_placeholder_float_and_binary():
    floats = vectors_to_placeholder([FloatVector((1.0, 2.0))])
    assert floats.type == PlaceholderType.FLOAT_VECTOR
    assert floats.values == [struct.pack("<2f", 1.0, 2.0)]
    binary = vectors_to_placeholder([BinaryVector(b"\x01"), BinaryVector(b"\x02")])
    assert binary.type == PlaceholderType.BINARY_VECTOR
    assert binary.values == [b"\x01", b"\x02"]