"""Request options for collection creation, loading, search/query and bulk insert."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable

from .meta_cache import (
    BOUNDED_TIMESTAMP,
    EVENTUALLY_TIMESTAMP,
    META_CACHE,
    STRONG_TIMESTAMP,
    MetaCache,
)


class ConsistencyLevel(enum.IntEnum):
    """Read consistency levels, numbered as on the wire."""

    STRONG = 0
    SESSION = 1
    BOUNDED = 2
    EVENTUALLY = 3
    CUSTOMIZED = 4


@dataclass
class KeyValuePair:
    key: str
    value: str


@dataclass
class CreateCollectionRequest:
    db_name: str = ""
    collection_name: str = ""
    schema: bytes = b""
    shards_num: int = 0
    consistency_level: ConsistencyLevel = ConsistencyLevel.STRONG
    properties: list[KeyValuePair] = field(default_factory=list)
    num_partitions: int = 0


@dataclass
class LoadCollectionRequest:
    db_name: str = ""
    collection_name: str = ""
    replica_number: int = 0


@dataclass
class ImportRequest:
    collection_name: str = ""
    partition_name: str = ""
    files: list[str] = field(default_factory=list)
    options: list[KeyValuePair] = field(default_factory=list)


@dataclass
class SearchQueryOption:
    """Resolved options of a search or query request."""

    consistency_level: ConsistencyLevel = ConsistencyLevel.BOUNDED
    guarantee_timestamp: int = 0
    travel_timestamp: int = 0
    limit: int = 0
    offset: int = 0
    ignore_growing: bool = False


CreateCollectionOption = Callable[[CreateCollectionRequest], None]
LoadCollectionOption = Callable[[LoadCollectionRequest], None]
SearchQueryOptionFunc = Callable[[SearchQueryOption], None]
BulkInsertOption = Callable[[ImportRequest], None]


def with_consistency_level(level: ConsistencyLevel) -> CreateCollectionOption:
    def apply(req: CreateCollectionRequest) -> None:
        req.consistency_level = ConsistencyLevel(level)

    return apply


def with_collection_property(key: str, value: str) -> CreateCollectionOption:
    def apply(req: CreateCollectionRequest) -> None:
        req.properties.append(KeyValuePair(key, value))

    return apply


def with_partition_num(num: int) -> CreateCollectionOption:
    def apply(req: CreateCollectionRequest) -> None:
        req.num_partitions = num

    return apply


def with_replica_number(num: int) -> LoadCollectionOption:
    def apply(req: LoadCollectionRequest) -> None:
        req.replica_number = num

    return apply


def with_ignore_growing() -> SearchQueryOptionFunc:
    def apply(opt: SearchQueryOption) -> None:
        opt.ignore_growing = True

    return apply


def with_offset(offset: int) -> SearchQueryOptionFunc:
    def apply(opt: SearchQueryOption) -> None:
        opt.offset = offset

    return apply


def with_limit(limit: int) -> SearchQueryOptionFunc:
    def apply(opt: SearchQueryOption) -> None:
        opt.limit = limit

    return apply


def with_search_query_consistency_level(level: ConsistencyLevel) -> SearchQueryOptionFunc:
    def apply(opt: SearchQueryOption) -> None:
        opt.consistency_level = ConsistencyLevel(level)

    return apply


def with_guarantee_timestamp(ts: int) -> SearchQueryOptionFunc:
    def apply(opt: SearchQueryOption) -> None:
        opt.guarantee_timestamp = ts

    return apply


def with_travel_timestamp(ts: int) -> SearchQueryOptionFunc:
    def apply(opt: SearchQueryOption) -> None:
        opt.travel_timestamp = ts

    return apply


def make_search_query_option(
    collection_name: str,
    *options: SearchQueryOptionFunc,
    cache: MetaCache | None = None,
) -> SearchQueryOption:
    """Build search/query options and resolve the guarantee timestamp.

    The consistency level defaults to the cached level of the collection,
    or bounded when nothing is cached.
    """
    cache = META_CACHE if cache is None else cache
    opt = SearchQueryOption(consistency_level=ConsistencyLevel.BOUNDED)
    info = cache.get_collection_info(collection_name)
    if info is not None and info.consistency_level is not None:
        opt.consistency_level = ConsistencyLevel(info.consistency_level)
    for apply in options:
        apply(opt)

    if opt.consistency_level != ConsistencyLevel.CUSTOMIZED and opt.guarantee_timestamp != 0:
        raise ValueError(
            "user can only specify guarantee timestamp under customized consistency level"
        )

    level = opt.consistency_level
    if level == ConsistencyLevel.STRONG:
        opt.guarantee_timestamp = STRONG_TIMESTAMP
    elif level == ConsistencyLevel.SESSION:
        ts = cache.get_session_ts(collection_name)
        opt.guarantee_timestamp = EVENTUALLY_TIMESTAMP if ts is None else ts
    elif level == ConsistencyLevel.BOUNDED:
        opt.guarantee_timestamp = BOUNDED_TIMESTAMP
    elif level == ConsistencyLevel.EVENTUALLY:
        opt.guarantee_timestamp = EVENTUALLY_TIMESTAMP
    return opt


def _set_import_option(req: ImportRequest, key: str, value: str) -> None:
    merged = {pair.key: pair.value for pair in req.options}
    merged[key] = value
    req.options = [KeyValuePair(k, v) for k, v in merged.items()]


def with_start_ts(start_ts: int) -> BulkInsertOption:
    def apply(req: ImportRequest) -> None:
        _set_import_option(req, "start_ts", str(start_ts))

    return apply


def with_end_ts(end_ts: int) -> BulkInsertOption:
    def apply(req: ImportRequest) -> None:
        _set_import_option(req, "end_ts", str(end_ts))

    return apply