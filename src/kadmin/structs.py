"""
kadmin - request and response value types

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from kadmin.protocol import (
    AclOperationType,
    AclPermissionType,
    AclResourcePatternType,
    AclResourceType,
    ConfigResourceType,
)
from typing import TypeVar
from typing_extensions import dataclass_transform

__all__ = (
    "AclEntry",
    "AclFilter",
    "BrokerDescription",
    "BrokerMetadata",
    "ClusterDescription",
    "ClusterMetadata",
    "ConfigEntry",
    "DeleteGroupResult",
    "GroupDescription",
    "GroupOverview",
    "ListedOffset",
    "NewPartitions",
    "NewTopic",
    "OffsetFetchPartition",
    "OffsetFetchResponse",
    "OffsetFetchTopic",
    "OffsetQuery",
    "PartitionMetadata",
    "PartitionOffset",
    "ReplicaAssignment",
    "ResourceConfig",
    "ResourceConfigQuery",
    "SeekEntry",
    "TopicMetadata",
    "TopicOffsets",
    "TopicPartitionOffsets",
    "TopicPartitions",
)

T = TypeVar("T")


@dataclass_transform(frozen_default=True, kw_only_default=True)
def default_dataclass(cls: type[T]) -> type[T]:
    return dataclass(frozen=True, slots=True, kw_only=True)(cls)


# Requests


@default_dataclass
class ConfigEntry:
    name: str
    value: str


@default_dataclass
class ReplicaAssignment:
    partition: int
    replicas: Sequence[int]


@default_dataclass
class NewTopic:
    topic: str
    num_partitions: int = -1
    replication_factor: int = -1
    replica_assignment: Sequence[ReplicaAssignment] = ()
    config_entries: Sequence[ConfigEntry] = ()


@default_dataclass
class NewPartitions:
    topic: str
    count: int
    assignments: Sequence[Sequence[int]] = ()


@default_dataclass
class ResourceConfigQuery:
    type: ConfigResourceType
    name: str
    config_names: Sequence[str] | None = None


@default_dataclass
class ResourceConfig:
    type: ConfigResourceType
    name: str
    config_entries: Sequence[ConfigEntry]


@default_dataclass
class AclEntry:
    resource_type: AclResourceType
    resource_name: str
    resource_pattern_type: AclResourcePatternType
    principal: str
    host: str
    operation: AclOperationType
    permission_type: AclPermissionType


@default_dataclass
class AclFilter:
    """ACL filter, a `None` principal, host or resource name matches any value."""

    resource_type: AclResourceType
    resource_pattern_type: AclResourcePatternType
    operation: AclOperationType
    permission_type: AclPermissionType
    resource_name: str | None = None
    principal: str | None = None
    host: str | None = None


@default_dataclass
class SeekEntry:
    partition: int
    offset: int


@default_dataclass
class TopicPartitions:
    topic: str
    partitions: Sequence[int]


@default_dataclass
class OffsetQuery:
    topic: str
    partitions: Sequence[int]
    from_beginning: bool


# Responses


@default_dataclass
class BrokerMetadata:
    node_id: int
    host: str
    port: int
    rack: str | None = None


@default_dataclass
class PartitionMetadata:
    partition_id: int
    leader: int
    replicas: Sequence[int] = ()
    isr: Sequence[int] = ()
    offline_replicas: Sequence[int] = ()
    partition_error_code: int = 0


@default_dataclass
class TopicMetadata:
    topic: str
    partitions: Sequence[PartitionMetadata]
    topic_error_code: int = 0
    is_internal: bool = False


@default_dataclass
class ClusterMetadata:
    brokers: Sequence[BrokerMetadata]
    topic_metadata: Sequence[TopicMetadata]
    controller_id: int | None = None
    cluster_id: str | None = None


@default_dataclass
class BrokerDescription:
    node_id: int
    host: str
    port: int


@default_dataclass
class ClusterDescription:
    brokers: list[BrokerDescription]
    controller: int | None
    cluster_id: str | None


@default_dataclass
class ListedOffset:
    partition: int
    offset: int


@default_dataclass
class TopicOffsets:
    topic: str
    partitions: Sequence[ListedOffset]


@default_dataclass
class TopicPartitionOffsets:
    partition: int
    offset: int
    high: int
    low: int


@default_dataclass
class OffsetFetchPartition:
    partition: int
    offset: int
    metadata: str | None = None
    error_code: int = 0


@default_dataclass
class OffsetFetchTopic:
    topic: str
    partitions: Sequence[OffsetFetchPartition]


@default_dataclass
class OffsetFetchResponse:
    responses: Sequence[OffsetFetchTopic]


@default_dataclass
class PartitionOffset:
    partition: int
    offset: int
    metadata: str | None


@default_dataclass
class GroupOverview:
    group_id: str
    protocol_type: str


@default_dataclass
class GroupDescription:
    group_id: str
    state: str
    protocol_type: str = ""
    protocol: str = ""


@default_dataclass
class DeleteGroupResult:
    group_id: str
    error_code: int
    error: Exception | None = None
