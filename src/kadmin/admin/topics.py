"""
kadmin - topic administration

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Sequence
from kadmin.cluster import Broker, Cluster
from kadmin.config import Config
from kadmin.constants import LEADER_WAIT_TIMEOUT_MESSAGE, NO_CONTROLLER_ID, NO_LEADER_ID
from kadmin.retry import RetryContext, RetryOrchestrator, RetryStrategy, wait_for
from kadmin.structs import (
    BrokerDescription,
    ClusterDescription,
    NewPartitions,
    NewTopic,
    PartitionMetadata,
    TopicMetadata,
)
from kadmin.validation import (
    validate_delete_topics,
    validate_new_partitions,
    validate_new_topics,
    validate_topic,
    validate_topic_names,
)

import aiokafka.errors as Errors
import logging
import warnings

LOG = logging.getLogger(__name__)

DELETE_TOPICS_TIMEOUT_HINT = (
    'Could not delete topics, check if "delete.topic.enable" is set to "true" '
    '(the default value is "false") or increase the timeout'
)

CREATE_TOPICS = RetryStrategy(
    action="create topics",
    tolerated=(Errors.TopicAlreadyExistsError,),
    tolerated_result=False,
)
CREATE_PARTITIONS = RetryStrategy(action="create partitions")
DELETE_TOPICS = RetryStrategy(
    action="delete topics",
    retriable=(Errors.NotControllerError, Errors.UnknownTopicOrPartitionError),
    fatal_hints=((Errors.RequestTimedOutError, DELETE_TOPICS_TIMEOUT_HINT),),
)


class TopicAdministration:
    def __init__(self, *, cluster: Cluster, retry: RetryOrchestrator, config: Config) -> None:
        self.cluster = cluster
        self.retry = retry
        self.config = config

    def _timeout(self, timeout: int | None) -> int:
        return self.config.request_timeout_ms if timeout is None else timeout

    async def _controller(self) -> Broker:
        await self.cluster.refresh_metadata()
        return await self.cluster.find_controller_broker()

    async def list_topics(self) -> list[str]:
        metadata = await self.cluster.metadata()
        return [topic.topic for topic in metadata.topic_metadata]

    async def create_topics(
        self,
        topics: Sequence[NewTopic],
        *,
        validate_only: bool = False,
        timeout: int | None = None,
        wait_for_leaders: bool = True,
    ) -> bool:
        """Create topics on the controller.

        Returns False when one of the topics already exists. With `wait_for_leaders`
        the call returns only after every partition of the new topics has a leader.
        """
        validate_new_topics(topics)
        topic_names = list(dict.fromkeys(topic.topic for topic in topics))
        request_timeout = self._timeout(timeout)

        async def _create(_: RetryContext) -> bool:
            broker = await self._controller()
            await broker.create_topics(topics=topics, validate_only=validate_only, timeout=request_timeout)
            if wait_for_leaders:
                await self._wait_for_leaders(broker, topic_names)
            return True

        return await self.retry.execute(_create, CREATE_TOPICS)

    async def _wait_for_leaders(self, broker: Broker, topic_names: list[str]) -> None:
        async def _leaders_elected() -> bool:
            try:
                metadata = await broker.metadata(topic_names)
            except Errors.LeaderNotAvailableError:
                return False
            return all(
                partition.leader != NO_LEADER_ID
                for topic in metadata.topic_metadata
                for partition in topic.partitions
            )

        await wait_for(
            _leaders_elected,
            delay_ms=self.config.leader_wait_delay_ms,
            timeout_ms=self.config.leader_wait_timeout_ms,
            timeout_message=LEADER_WAIT_TIMEOUT_MESSAGE,
        )

    async def create_partitions(
        self,
        topic_partitions: Sequence[NewPartitions],
        *,
        validate_only: bool = False,
        timeout: int | None = None,
    ) -> None:
        validate_new_partitions(topic_partitions)
        request_timeout = self._timeout(timeout)

        async def _create(_: RetryContext) -> None:
            broker = await self._controller()
            await broker.create_partitions(
                topic_partitions=topic_partitions,
                validate_only=validate_only,
                timeout=request_timeout,
            )

        await self.retry.execute(_create, CREATE_PARTITIONS)

    async def delete_topics(self, topics: Sequence[str], *, timeout: int | None = None) -> None:
        validate_delete_topics(topics)
        request_timeout = self._timeout(timeout)

        async def _delete(_: RetryContext) -> None:
            broker = await self._controller()
            await broker.delete_topics(topics=topics, timeout=request_timeout)
            for topic in topics:
                self.cluster.remove_target_topic(topic)
            await self.cluster.refresh_metadata()

        await self.retry.execute(_delete, DELETE_TOPICS)
        LOG.info("Deleted topics %s", ", ".join(topics))

    async def fetch_topic_metadata(self, topics: Sequence[str] | None = None) -> list[TopicMetadata]:
        """Metadata of the given topics, or of every topic in the cluster when none are given."""
        validate_topic_names(topics)
        metadata = await self.cluster.metadata(list(topics) if topics else None)
        return list(metadata.topic_metadata)

    async def get_topic_metadata(self, topics: Sequence[str] | None = None) -> list[TopicMetadata]:
        """Deprecated, use `fetch_topic_metadata`.

        Only topics tracked by the cluster handle are visible here, topics given as
        argument are added to the tracked set first.
        """
        warnings.warn(
            "get_topic_metadata is deprecated, use fetch_topic_metadata instead",
            DeprecationWarning,
            stacklevel=2,
        )
        if topics:
            for topic in topics:
                validate_topic(topic)
                try:
                    await self.cluster.add_target_topic(topic)
                except Exception as exc:
                    raise type(exc)(f"Failed to add target topic {topic}: {exc}") from exc

        await self.cluster.refresh_metadata_if_necessary()
        target_topics = list(topics) if topics else sorted(self.cluster.target_topics)
        return [
            TopicMetadata(topic=topic, partitions=self._partitions(topic))
            for topic in target_topics
        ]

    def _partitions(self, topic: str) -> list[PartitionMetadata]:
        return list(self.cluster.find_topic_partition_metadata(topic))

    async def describe_cluster(self) -> ClusterDescription:
        metadata = await self.cluster.metadata([])
        controller = metadata.controller_id
        if controller == NO_CONTROLLER_ID:
            controller = None
        return ClusterDescription(
            brokers=[
                BrokerDescription(node_id=broker.node_id, host=broker.host, port=broker.port)
                for broker in metadata.brokers
            ],
            controller=controller,
            cluster_id=metadata.cluster_id,
        )
