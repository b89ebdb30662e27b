"""
kadmin - admin client

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Callable, Sequence
from kadmin.admin.acls import AclAdministration
from kadmin.admin.configs import ConfigAdministration
from kadmin.admin.groups import GroupAdministration
from kadmin.admin.offsets import OffsetCoordinator
from kadmin.admin.topics import TopicAdministration
from kadmin.cluster import Cluster
from kadmin.config import Config
from kadmin.consumer import ConsumerFactory
from kadmin.errors import NonRetriableError
from kadmin.events import AdminEvents, InstrumentationEventEmitter, Listener
from kadmin.retry import RetryOrchestrator
from kadmin.structs import (
    AclEntry,
    AclFilter,
    ClusterDescription,
    DeleteGroupResult,
    GroupOverview,
    NewPartitions,
    NewTopic,
    PartitionOffset,
    ResourceConfig,
    ResourceConfigQuery,
    SeekEntry,
    TopicMetadata,
    TopicPartitionOffsets,
)
from typing import Any

import logging

LOG = logging.getLogger(__name__)


class KafkaAdmin:
    """Administrative client of a Kafka cluster.

    Requests are validated locally before anything is sent. Controller and group
    coordinator lookups are repeated on every attempt, so leadership changes in
    the middle of an operation are retried transparently.
    """

    def __init__(
        self,
        cluster: Cluster,
        consumer_factory: ConsumerFactory,
        config: Config | None = None,
        emitter: InstrumentationEventEmitter | None = None,
        retry: RetryOrchestrator | None = None,
    ) -> None:
        self.config = config if config is not None else Config()
        self.cluster = cluster
        self.emitter = emitter if emitter is not None else InstrumentationEventEmitter()
        self.retry = retry if retry is not None else RetryOrchestrator(self.config.retry_policy())

        self._topics = TopicAdministration(cluster=cluster, retry=self.retry, config=self.config)
        self._configs = ConfigAdministration(cluster=cluster, retry=self.retry)
        self._acls = AclAdministration(cluster=cluster, retry=self.retry)
        self._groups = GroupAdministration(cluster=cluster, retry=self.retry)
        self._offsets = OffsetCoordinator(
            cluster=cluster,
            retry=self.retry,
            consumer_factory=consumer_factory,
            config=self.config,
        )

    async def connect(self) -> None:
        await self.cluster.connect()
        self.emitter.emit(AdminEvents.CONNECT)

    async def disconnect(self) -> None:
        await self.cluster.disconnect()
        self.emitter.emit(AdminEvents.DISCONNECT)

    def on(self, event_name: str, listener: Listener) -> Callable[[], None]:
        """Register `listener` for one of the `AdminEvents`, returns a function removing it."""
        event_names = [str(event) for event in AdminEvents]
        if event_name not in event_names:
            raise NonRetriableError(f"Event name should be one of {', '.join(event_names)}")
        return self.emitter.add_listener(str(event_name), listener)

    # Topics

    async def list_topics(self) -> list[str]:
        return await self._topics.list_topics()

    async def create_topics(
        self,
        topics: Sequence[NewTopic],
        *,
        validate_only: bool = False,
        timeout: int | None = None,
        wait_for_leaders: bool = True,
    ) -> bool:
        return await self._topics.create_topics(
            topics,
            validate_only=validate_only,
            timeout=timeout,
            wait_for_leaders=wait_for_leaders,
        )

    async def delete_topics(self, topics: Sequence[str], *, timeout: int | None = None) -> None:
        await self._topics.delete_topics(topics, timeout=timeout)

    async def create_partitions(
        self,
        topic_partitions: Sequence[NewPartitions],
        *,
        validate_only: bool = False,
        timeout: int | None = None,
    ) -> None:
        await self._topics.create_partitions(topic_partitions, validate_only=validate_only, timeout=timeout)

    async def get_topic_metadata(self, topics: Sequence[str] | None = None) -> list[TopicMetadata]:
        return await self._topics.get_topic_metadata(topics)

    async def fetch_topic_metadata(self, topics: Sequence[str] | None = None) -> list[TopicMetadata]:
        return await self._topics.fetch_topic_metadata(topics)

    async def describe_cluster(self) -> ClusterDescription:
        return await self._topics.describe_cluster()

    # Offsets

    async def fetch_offsets(self, group_id: str, topic: str) -> list[PartitionOffset]:
        return await self._offsets.fetch_offsets(group_id, topic)

    async def fetch_topic_offsets(self, topic: str) -> list[TopicPartitionOffsets]:
        return await self._offsets.fetch_topic_offsets(topic)

    async def set_offsets(self, group_id: str, topic: str, partitions: Sequence[SeekEntry]) -> None:
        await self._offsets.set_offsets(group_id, topic, partitions)

    async def reset_offsets(self, group_id: str, topic: str, *, earliest: bool = False) -> None:
        await self._offsets.reset_offsets(group_id, topic, earliest=earliest)

    # Configs

    async def describe_configs(self, resources: Sequence[ResourceConfigQuery], *, include_synonyms: bool = False) -> Any:
        return await self._configs.describe_configs(resources, include_synonyms=include_synonyms)

    async def alter_configs(self, resources: Sequence[ResourceConfig], *, validate_only: bool = False) -> Any:
        return await self._configs.alter_configs(resources, validate_only=validate_only)

    # Groups

    async def list_groups(self) -> list[GroupOverview]:
        return await self._groups.list_groups()

    async def delete_groups(self, group_ids: Sequence[str]) -> list[DeleteGroupResult]:
        return await self._groups.delete_groups(group_ids)

    # ACLs

    async def describe_acls(self, acl_filter: AclFilter) -> Any:
        return await self._acls.describe_acls(acl_filter)

    async def delete_acls(self, filters: Sequence[AclFilter]) -> Any:
        return await self._acls.delete_acls(filters)

    async def create_acls(self, acl: Sequence[AclEntry]) -> bool:
        return await self._acls.create_acls(acl)
