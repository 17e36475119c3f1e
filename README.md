# vecstore-client

A client layer for a vector database service. It checks requests before they
are sent, turns server status codes into exceptions, and converts between
column data, row objects and the structures the service works with.

The package opens no connections. You give the client a *service* object, and
the client calls its methods with keyword arguments. Examples are
`service.has_collection(db_name=..., collection_name=...)`,
`service.insert(...)`, `service.show_partitions(...)`,
`service.create_role(role_name=...)` and `service.import_(...)`. Each method
returns a response object whose `status` (with `error_code` and `reason`) and
other attributes the client reads. That keeps the client independent of any
transport, and a small fake service is enough to test against it.

## Installation

From a checkout of the project:

```
pip install .
```

## Modules

- `vecstore_client.client`: `Client(service)` brings every group of
  operations below together in one class.
- `vecstore_client.insert`: `InsertOperations` has the methods below.
  - `insert(collection_name, partition_name, *columns)` and
    `upsert(...)` check the columns against the collection schema. They
    reject unknown fields, duplicated columns, mismatched lengths, wrong types
    and wrong vector dimensions. They return the primary keys as a `Column`.
    An empty partition name sends the data to `_default`. When the schema has
    `enable_dynamic_field`, `insert` merges columns that the schema does not
    name into one JSON field.
  - `delete_by_pks(collection_name, partition_name, ids)` deletes rows by an
    `INT64` or `VARCHAR` primary key column.
  - `flush(collection_name, asynchronous=False, timeout=None)` polls the
    flush state until the segments are flushed.
  - `bulk_insert(collection_name, partition_name, files, *options)` returns
    the id of the import task. `get_bulk_insert_state(task_id)` and
    `list_bulk_insert_tasks(collection_name, limit)` report on import tasks.
  - `vectors_to_placeholder(vectors)` serializes `FloatVector` or
    `BinaryVector` search targets.
- `vecstore_client.partition`: `PartitionOperations` has `create_partition`,
  `drop_partition`, `has_partition`, `show_partitions`, `load_partitions` and
  `release_partitions`. `load_partitions` waits until the partitions are
  loaded unless `asynchronous=True`, and `timeout` is given in seconds.
- `vecstore_client.rbac`: `RbacOperations` has `create_role`, `drop_role`,
  `add_user_role`, `remove_user_role`, `list_roles`, `list_users`, `grant`
  and `revoke`.
- `vecstore_client.resource_group`: `ResourceGroupOperations` has
  `list_resource_groups`, `create_resource_group`, `describe_resource_group`,
  `drop_resource_group`, `transfer_node` and `transfer_replica`.
- `vecstore_client.maintenance`: `MaintenanceOperations` has
  `manual_compaction(collection_name, tolerance=0)`, `get_compaction_state`
  and `get_compaction_state_with_plans`.
- `vecstore_client.rows`: `search_result_to_rows(schema, results, row_type,
  output_fields)` turns a `SearchResultData` into one `SearchResultByRows`
  per query, and each hit becomes a new `row_type()` object.
  `set_field_value(field, row, attribute, field_data, index)` sets a single
  attribute. The declared type of the attribute must suit the field type.
- `vecstore_client.options`: option factories such as `with_consistency_level`,
  `with_partition_num`, `with_replica_number`, `with_limit`, `with_offset`,
  `with_ignore_growing`, `with_guarantee_timestamp`, `with_start_ts` and
  `with_end_ts`. It also has `make_search_query_option(collection_name,
  *options, cache=None)`, which picks the guarantee timestamp from the
  `ConsistencyLevel`.
- `vecstore_client.meta_cache`: `MetaCache` keeps cached `CollectionInfo` and
  per-collection session write timestamps. Those timestamps only increase.
  The process-wide instance is `META_CACHE`.
- `vecstore_client.interceptors`: `create_authentication_interceptor(username,
  password)` adds a base64 `authorization` entry to call metadata.
  `retry_on_rate_limit_interceptor(max_retry, backoff)` repeats a call while
  the reply carries a rate-limit status. Each wait is capped at 60 seconds.
- `vecstore_client.entities`: the schema and data types `FieldType`, `Field`,
  `Schema`, `Column`, `FieldData`, `Partition`, `Role`, `User`,
  `ResourceGroup`, `CompactionPlan`, `BulkInsertTaskState` and related enums.
- `vecstore_client.core`: `Status`, `ErrorCode`, `handle_status`,
  `ServiceError`, `ClientNotReadyError` and `BaseClient`.

## Example

```python
from vecstore_client.client import Client
from vecstore_client.entities import Column, FieldType

client = Client(service)  # service: your object that reaches the server

ids = client.insert(
    "books",
    "",
    Column("vector", FieldType.FLOAT_VECTOR, [[0.1, 0.2, 0.3, 0.4]], dim=4),
)
client.flush("books", asynchronous=False, timeout=30)
print(client.show_partitions("books"))
```

## Errors

- `ServiceError` means the server returned a status other than success. It
  carries `code` and `reason`.
- `ClientNotReadyError` means the client was created without a service.
- `ValueError` means the input failed validation, for example an unknown
  field or a collection or partition that does not exist.
- `TimeoutError` means `flush` or `load_partitions` ran past its timeout.
- `FieldTypeMismatchError` comes from `set_field_value`. Inside
  `search_result_to_rows` it is stored in the entry's `err` instead of being
  raised.

## What it does not do

- It has no transport. It cannot connect to a server on its own.
- It has no operations to create, drop or describe collections.
- It has no operations to search, query or build indexes.
- It has no command-line program.

## Running the tests

```
pip install -e .[test]
pytest
```