"""
kadmin - cluster collaborator interfaces

The transport, wire codec and metadata cache live behind these protocols. A
broker handle raises the `aiokafka.errors` class matching the error code of a
failed response.

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Mapping, MutableSet, Sequence
from kadmin.structs import (
    AclEntry,
    AclFilter,
    ClusterMetadata,
    DeleteGroupResult,
    GroupOverview,
    NewPartitions,
    NewTopic,
    OffsetFetchResponse,
    OffsetQuery,
    PartitionMetadata,
    ResourceConfig,
    ResourceConfigQuery,
    TopicOffsets,
    TopicPartitions,
)
from typing import Any, Protocol

__all__ = ("Broker", "BrokerPool", "Cluster")


class Broker(Protocol):
    node_id: int

    async def create_topics(self, *, topics: Sequence[NewTopic], validate_only: bool, timeout: int) -> Any: ...

    async def delete_topics(self, *, topics: Sequence[str], timeout: int) -> Any: ...

    async def create_partitions(
        self, *, topic_partitions: Sequence[NewPartitions], validate_only: bool, timeout: int
    ) -> Any: ...

    async def describe_configs(self, *, resources: Sequence[ResourceConfigQuery], include_synonyms: bool) -> Any: ...

    async def alter_configs(self, *, resources: Sequence[ResourceConfig], validate_only: bool) -> Any: ...

    async def create_acls(self, *, acl: Sequence[AclEntry]) -> Any: ...

    async def describe_acls(self, *, acl_filter: AclFilter) -> Any: ...

    async def delete_acls(self, *, filters: Sequence[AclFilter]) -> Any: ...

    async def list_groups(self) -> Sequence[GroupOverview]: ...

    async def delete_groups(self, group_ids: Sequence[str]) -> Sequence[DeleteGroupResult]: ...

    async def metadata(self, topics: Sequence[str]) -> ClusterMetadata: ...

    async def offset_fetch(self, *, group_id: str, topics: Sequence[TopicPartitions]) -> OffsetFetchResponse: ...


class BrokerPool(Protocol):
    brokers: Mapping[int, Broker]


class Cluster(Protocol):
    broker_pool: BrokerPool
    # Topics tracked by this handle; change it through add/remove_target_topic only.
    target_topics: MutableSet[str]

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def metadata(self, topics: Sequence[str] | None = None) -> ClusterMetadata: ...

    async def refresh_metadata(self) -> None: ...

    async def refresh_metadata_if_necessary(self) -> None: ...

    async def add_target_topic(self, topic: str) -> None: ...

    def remove_target_topic(self, topic: str) -> None: ...

    def find_topic_partition_metadata(self, topic: str) -> Sequence[PartitionMetadata]: ...

    async def find_controller_broker(self) -> Broker: ...

    async def find_group_coordinator(self, group_id: str) -> Broker: ...

    async def find_broker(self, node_id: int) -> Broker: ...

    def default_offset(self, *, from_beginning: bool) -> int: ...

    async def fetch_topics_offset(self, queries: Sequence[OffsetQuery]) -> Sequence[TopicOffsets]: ...
