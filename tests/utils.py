"""
In-memory cluster, broker and consumer used by the unit tests

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from kadmin.constants import EARLIEST_OFFSET, LATEST_OFFSET, NO_ERROR, NO_LEADER_ID
from kadmin.consumer import ConsumerEvents
from kadmin.events import InstrumentationEventEmitter
from kadmin.protocol import AclOperationType, AclPermissionType, AclResourcePatternType, AclResourceType, GroupState
from kadmin.structs import (
    AclEntry,
    AclFilter,
    BrokerMetadata,
    ClusterMetadata,
    DeleteGroupResult,
    GroupDescription,
    GroupOverview,
    ListedOffset,
    NewPartitions,
    NewTopic,
    OffsetFetchPartition,
    OffsetFetchResponse,
    OffsetFetchTopic,
    OffsetQuery,
    PartitionMetadata,
    ResourceConfig,
    ResourceConfigQuery,
    TopicMetadata,
    TopicOffsets,
    TopicPartitions,
)
from typing import Any

import aiokafka.errors as Errors
import asyncio


class _Failures:
    """Errors queued per method name, raised one per call."""

    def __init__(self) -> None:
        self._queued: defaultdict[str, list[BaseException]] = defaultdict(list)

    def queue(self, method: str, *errors: BaseException) -> None:
        self._queued[method].extend(errors)

    def raise_next(self, method: str) -> None:
        queued = self._queued.get(method)
        if queued:
            raise queued.pop(0)


def _acl_matches(acl_filter: AclFilter, entry: AclEntry) -> bool:
    def _enum_matches(wanted: int, actual: int, any_value: int) -> bool:
        return wanted == any_value or wanted == actual

    return (
        _enum_matches(acl_filter.resource_type, entry.resource_type, AclResourceType.ANY)
        and _enum_matches(acl_filter.resource_pattern_type, entry.resource_pattern_type, AclResourcePatternType.ANY)
        and _enum_matches(acl_filter.operation, entry.operation, AclOperationType.ANY)
        and _enum_matches(acl_filter.permission_type, entry.permission_type, AclPermissionType.ANY)
        and acl_filter.resource_name in (None, entry.resource_name)
        and acl_filter.principal in (None, entry.principal)
        and acl_filter.host in (None, entry.host)
    )


class FakeBroker:
    def __init__(self, cluster: FakeCluster, node_id: int) -> None:
        self.cluster = cluster
        self.node_id = node_id
        self.calls: list[tuple[str, Any]] = []
        self.failures = _Failures()

    def _call(self, method: str, argument: Any) -> None:
        self.calls.append((method, argument))
        self.failures.raise_next(method)

    def calls_to(self, method: str) -> list[Any]:
        return [argument for name, argument in self.calls if name == method]

    async def create_topics(self, *, topics: Sequence[NewTopic], validate_only: bool, timeout: int) -> None:
        self._call("create_topics", (topics, validate_only, timeout))
        for new_topic in topics:
            if new_topic.topic in self.cluster.topics:
                raise Errors.TopicAlreadyExistsError(f"Topic '{new_topic.topic}' already exists.")
        if validate_only:
            return
        for new_topic in topics:
            self.cluster.add_topic(new_topic.topic, max(new_topic.num_partitions, 1))
        self.cluster.pending_leader_polls = self.cluster.leader_election_polls

    async def delete_topics(self, *, topics: Sequence[str], timeout: int) -> None:
        self._call("delete_topics", (topics, timeout))
        for topic in topics:
            if topic not in self.cluster.topics:
                raise Errors.UnknownTopicOrPartitionError(f"This server does not host this topic: {topic}")
        for topic in topics:
            del self.cluster.topics[topic]

    async def create_partitions(
        self, *, topic_partitions: Sequence[NewPartitions], validate_only: bool, timeout: int
    ) -> None:
        self._call("create_partitions", (topic_partitions, validate_only, timeout))
        if validate_only:
            return
        for entry in topic_partitions:
            if entry.topic not in self.cluster.topics:
                raise Errors.UnknownTopicOrPartitionError(f"This server does not host this topic: {entry.topic}")
            self.cluster.add_topic(entry.topic, entry.count)

    async def describe_configs(
        self, *, resources: Sequence[ResourceConfigQuery], include_synonyms: bool
    ) -> dict[str, dict[str, str]]:
        self._call("describe_configs", (resources, include_synonyms))
        described = {}
        for resource in resources:
            configs = self.cluster.configs.get(resource.name, {})
            if resource.config_names is not None:
                configs = {name: value for name, value in configs.items() if name in resource.config_names}
            described[resource.name] = dict(configs)
        return described

    async def alter_configs(self, *, resources: Sequence[ResourceConfig], validate_only: bool) -> list[str]:
        self._call("alter_configs", (resources, validate_only))
        if not validate_only:
            for resource in resources:
                configs = self.cluster.configs.setdefault(resource.name, {})
                configs.update({entry.name: entry.value for entry in resource.config_entries})
        return [resource.name for resource in resources]

    async def create_acls(self, *, acl: Sequence[AclEntry]) -> None:
        self._call("create_acls", acl)
        self.cluster.acls.extend(acl)

    async def describe_acls(self, *, acl_filter: AclFilter) -> list[AclEntry]:
        self._call("describe_acls", acl_filter)
        return [entry for entry in self.cluster.acls if _acl_matches(acl_filter, entry)]

    async def delete_acls(self, *, filters: Sequence[AclFilter]) -> list[list[AclEntry]]:
        self._call("delete_acls", filters)
        responses = []
        for acl_filter in filters:
            matching = [entry for entry in self.cluster.acls if _acl_matches(acl_filter, entry)]
            self.cluster.acls = [entry for entry in self.cluster.acls if entry not in matching]
            responses.append(matching)
        return responses

    async def list_groups(self) -> list[GroupOverview]:
        self._call("list_groups", None)
        return [
            GroupOverview(group_id=group_id, protocol_type="consumer")
            for group_id in self.cluster.groups
            if self.cluster.coordinator_id(group_id) == self.node_id
        ]

    async def delete_groups(self, group_ids: Sequence[str]) -> list[DeleteGroupResult]:
        self._call("delete_groups", list(group_ids))
        results = []
        for group_id in group_ids:
            queued_codes = self.cluster.group_deletion_errors.get(group_id)
            if queued_codes:
                error_code = queued_codes.pop(0)
                error = Errors.for_code(error_code)()
                results.append(DeleteGroupResult(group_id=group_id, error_code=error_code, error=error))
                continue
            self.cluster.groups.pop(group_id, None)
            results.append(DeleteGroupResult(group_id=group_id, error_code=NO_ERROR))
        return results

    async def metadata(self, topics: Sequence[str]) -> ClusterMetadata:
        self._call("metadata", list(topics))
        leaderless = self.cluster.pending_leader_polls > 0
        if leaderless:
            self.cluster.pending_leader_polls -= 1
        return self.cluster.cluster_metadata(topics, leaderless=leaderless)

    async def offset_fetch(self, *, group_id: str, topics: Sequence[TopicPartitions]) -> OffsetFetchResponse:
        self._call("offset_fetch", (group_id, topics))
        return OffsetFetchResponse(
            responses=[
                OffsetFetchTopic(
                    topic=request.topic,
                    partitions=[
                        OffsetFetchPartition(
                            partition=partition,
                            offset=self.cluster.committed.get((group_id, request.topic, partition), -1),
                            metadata="",
                        )
                        for partition in request.partitions
                    ],
                )
                for request in topics
            ]
        )


@dataclass
class FakeBrokerPool:
    brokers: dict[int, FakeBroker] = field(default_factory=dict)


class FakeCluster:
    def __init__(self, broker_count: int = 3) -> None:
        self.broker_pool = FakeBrokerPool()
        self.broker_pool.brokers.update({node_id: FakeBroker(self, node_id) for node_id in range(broker_count)})
        self.controller_id = 0
        self.cluster_id = "kadmin-test-cluster"
        self.connected = False
        self.target_topics: set[str] = set()
        self.topics: dict[str, int] = {}
        # (low, high) watermarks per topic and partition
        self.watermarks: dict[str, dict[int, tuple[int, int]]] = {}
        self.groups: dict[str, GroupState] = {}
        self.coordinators: dict[str, int] = {}
        self.committed: dict[tuple[str, str, int], int] = {}
        self.configs: dict[str, dict[str, str]] = {}
        self.acls: list[AclEntry] = []
        self.group_deletion_errors: dict[str, list[int]] = {}
        self.leader_election_polls = 0
        self.pending_leader_polls = 0
        self.refresh_count = 0
        self.failures = _Failures()

    @property
    def brokers(self) -> dict[int, FakeBroker]:
        return self.broker_pool.brokers

    @property
    def controller(self) -> FakeBroker:
        return self.brokers[self.controller_id]

    def add_topic(self, topic: str, partitions: int, watermarks: tuple[int, int] = (0, 0)) -> None:
        self.topics[topic] = partitions
        offsets = self.watermarks.setdefault(topic, {})
        for partition in range(partitions):
            offsets.setdefault(partition, watermarks)

    def add_group(self, group_id: str, state: GroupState = GroupState.EMPTY, coordinator: int | None = None) -> None:
        self.groups[group_id] = state
        if coordinator is not None:
            self.coordinators[group_id] = coordinator

    def coordinator_id(self, group_id: str) -> int:
        if group_id in self.coordinators:
            return self.coordinators[group_id]
        return sorted(self.brokers)[sum(map(ord, group_id)) % len(self.brokers)]

    def _partitions(self, topic: str, *, leaderless: bool = False) -> list[PartitionMetadata]:
        node_ids = sorted(self.brokers)
        return [
            PartitionMetadata(
                partition_id=partition,
                leader=NO_LEADER_ID if leaderless else node_ids[partition % len(node_ids)],
                replicas=node_ids,
                isr=node_ids,
            )
            for partition in range(self.topics[topic])
        ]

    def cluster_metadata(self, topics: Sequence[str] | None, *, leaderless: bool = False) -> ClusterMetadata:
        names = list(self.topics) if topics is None else list(topics)
        topic_metadata = []
        for topic in names:
            if topic not in self.topics:
                raise Errors.UnknownTopicOrPartitionError(f"This server does not host this topic: {topic}")
            topic_metadata.append(TopicMetadata(topic=topic, partitions=self._partitions(topic, leaderless=leaderless)))
        return ClusterMetadata(
            brokers=[
                BrokerMetadata(node_id=node_id, host=f"broker-{node_id}.kafka", port=9092) for node_id in sorted(self.brokers)
            ],
            topic_metadata=topic_metadata,
            controller_id=self.controller_id,
            cluster_id=self.cluster_id,
        )

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def metadata(self, topics: Sequence[str] | None = None) -> ClusterMetadata:
        return self.cluster_metadata(topics)

    async def refresh_metadata(self) -> None:
        self.refresh_count += 1
        self.failures.raise_next("refresh_metadata")

    async def refresh_metadata_if_necessary(self) -> None:
        self.failures.raise_next("refresh_metadata_if_necessary")

    async def add_target_topic(self, topic: str) -> None:
        self.failures.raise_next("add_target_topic")
        self.target_topics.add(topic)

    def remove_target_topic(self, topic: str) -> None:
        self.target_topics.discard(topic)

    def find_topic_partition_metadata(self, topic: str) -> list[PartitionMetadata]:
        if topic not in self.topics:
            return []
        return self._partitions(topic)

    async def find_controller_broker(self) -> FakeBroker:
        self.failures.raise_next("find_controller_broker")
        return self.controller

    async def find_group_coordinator(self, group_id: str) -> FakeBroker:
        self.failures.raise_next("find_group_coordinator")
        return self.brokers[self.coordinator_id(group_id)]

    async def find_broker(self, node_id: int) -> FakeBroker:
        return self.brokers[node_id]

    def default_offset(self, *, from_beginning: bool) -> int:
        return EARLIEST_OFFSET if from_beginning else LATEST_OFFSET

    async def fetch_topics_offset(self, queries: Sequence[OffsetQuery]) -> list[TopicOffsets]:
        self.failures.raise_next("fetch_topics_offset")
        results = []
        for query in queries:
            if query.topic not in self.topics:
                raise Errors.UnknownTopicOrPartitionError(f"This server does not host this topic: {query.topic}")
            watermarks = self.watermarks[query.topic]
            results.append(
                TopicOffsets(
                    topic=query.topic,
                    partitions=[
                        ListedOffset(partition=partition, offset=watermarks[partition][0 if query.from_beginning else 1])
                        for partition in query.partitions
                    ],
                )
            )
        return results


class FakeConsumer:
    """Group consumer committing its seek positions when stopped.

    `fetch` controls whether the run loop completes a fetch cycle, `run_error`
    makes the run loop fail before fetching.
    """

    def __init__(self, cluster: FakeCluster, group_id: str, *, fetch: bool = True, run_error: Exception | None = None) -> None:
        self.cluster = cluster
        self.group_id = group_id
        self.fetch = fetch
        self.run_error = run_error
        self.emitter = InstrumentationEventEmitter()
        self.subscriptions: list[tuple[str, bool]] = []
        self.paused: list[str] = []
        self.seeks: list[tuple[str, int, int]] = []
        self.stop_count = 0
        self.running = False
        self._stopped = asyncio.Event()

    async def subscribe(self, *, topic: str, from_beginning: bool) -> None:
        self.subscriptions.append((topic, from_beginning))

    async def describe_group(self) -> GroupDescription:
        state = self.cluster.groups.get(self.group_id, GroupState.DEAD)
        return GroupDescription(group_id=self.group_id, state=str(state), protocol_type="consumer")

    def pause(self, topics: Sequence[str]) -> None:
        self.paused.extend(topics)

    def seek(self, *, topic: str, partition: int, offset: int) -> None:
        self.seeks.append((topic, partition, offset))

    async def run(self, *, each_batch_auto_resolve: bool, each_batch: Any) -> None:
        self.running = True
        try:
            await asyncio.sleep(0)
            if self.run_error is not None:
                raise self.run_error
            if self.fetch:
                self.emitter.emit(ConsumerEvents.FETCH)
            await self._stopped.wait()
        finally:
            self.running = False

    async def stop(self) -> None:
        self.stop_count += 1
        for topic, partition, offset in self.seeks:
            low, high = self.cluster.watermarks[topic][partition]
            if offset == EARLIEST_OFFSET:
                offset = low
            elif offset == LATEST_OFFSET:
                offset = high
            self.cluster.committed[(self.group_id, topic, partition)] = offset
        self._stopped.set()

    def on(self, event_name: str, listener: Any) -> Any:
        return self.emitter.add_listener(str(event_name), listener)


class FakeConsumerFactory:
    def __init__(self, cluster: FakeCluster) -> None:
        self.cluster = cluster
        self.created: list[FakeConsumer] = []
        self.fetch = True
        self.run_error: Exception | None = None

    def __call__(self, group_id: str) -> FakeConsumer:
        consumer = FakeConsumer(self.cluster, group_id, fetch=self.fetch, run_error=self.run_error)
        self.created.append(consumer)
        return consumer
