"""
kadmin - topic and consumer group offsets

Committed offsets of a group are rewritten through a short lived consumer of
that group: it seeks every partition to the target offset and is stopped as soon
as its first fetch cycle completes, stopping commits the seek positions. No
record is consumed on the way.

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Sequence
from kadmin.cluster import Cluster
from kadmin.config import Config
from kadmin.consumer import Consumer, ConsumerEvents, ConsumerFactory
from kadmin.errors import ConsumerGroupActiveError, NonRetriableError, OffsetCommitTimeoutError
from kadmin.events import InstrumentationEvent
from kadmin.protocol import TERMINAL_GROUP_STATES
from kadmin.retry import RetryContext, RetryOrchestrator, RetryStrategy
from kadmin.structs import OffsetQuery, PartitionOffset, SeekEntry, TopicPartitionOffsets, TopicPartitions
from kadmin.validation import validate_group_id, validate_seek_entries, validate_topic
from typing import Any

import aiokafka.errors as Errors
import asyncio
import logging

LOG = logging.getLogger(__name__)

FETCH_TOPIC_OFFSETS = RetryStrategy(
    action="fetch topic offsets",
    retriable=(Errors.UnknownTopicOrPartitionError,),
)


async def _ignore_batch(*args: Any, **kwargs: Any) -> bool:
    return True


class OffsetCoordinator:
    def __init__(
        self,
        *,
        cluster: Cluster,
        retry: RetryOrchestrator,
        consumer_factory: ConsumerFactory,
        config: Config,
    ) -> None:
        self.cluster = cluster
        self.retry = retry
        self.consumer_factory = consumer_factory
        self.config = config

    async def _topic_partitions(self, topic: str) -> list[int]:
        await self.cluster.add_target_topic(topic)
        await self.cluster.refresh_metadata_if_necessary()
        return sorted(partition.partition_id for partition in self.cluster.find_topic_partition_metadata(topic))

    async def fetch_topic_offsets(self, topic: str) -> list[TopicPartitionOffsets]:
        """Latest offset and watermarks of every partition of `topic`."""
        validate_topic(topic)

        async def _fetch(_: RetryContext) -> list[TopicPartitionOffsets]:
            try:
                partitions = await self._topic_partitions(topic)
                high = await self.cluster.fetch_topics_offset(
                    [OffsetQuery(topic=topic, partitions=partitions, from_beginning=False)]
                )
                low = await self.cluster.fetch_topics_offset(
                    [OffsetQuery(topic=topic, partitions=partitions, from_beginning=True)]
                )
            except Errors.UnknownTopicOrPartitionError:
                await self.cluster.refresh_metadata()
                raise

            low_offsets = {listed.partition: listed.offset for listed in low[-1].partitions}
            return [
                TopicPartitionOffsets(
                    partition=listed.partition,
                    offset=listed.offset,
                    high=listed.offset,
                    low=low_offsets[listed.partition],
                )
                for listed in high[-1].partitions
            ]

        return await self.retry.execute(_fetch, FETCH_TOPIC_OFFSETS)

    async def fetch_offsets(self, group_id: str, topic: str) -> list[PartitionOffset]:
        validate_group_id(group_id)
        validate_topic(topic)

        partitions = await self._topic_partitions(topic)
        coordinator = await self.cluster.find_group_coordinator(group_id)
        response = await coordinator.offset_fetch(
            group_id=group_id,
            topics=[TopicPartitions(topic=topic, partitions=partitions)],
        )

        matching = [response_topic for response_topic in response.responses if response_topic.topic == topic]
        if not matching:
            return []
        return [
            PartitionOffset(partition=fetched.partition, offset=fetched.offset, metadata=fetched.metadata or None)
            for fetched in matching[-1].partitions
        ]

    async def reset_offsets(self, group_id: str, topic: str, *, earliest: bool = False) -> None:
        validate_group_id(group_id)
        validate_topic(topic)

        partitions = await self._topic_partitions(topic)
        offset = self.cluster.default_offset(from_beginning=earliest)
        await self.set_offsets(
            group_id,
            topic,
            [SeekEntry(partition=partition, offset=offset) for partition in partitions],
        )

    async def set_offsets(self, group_id: str, topic: str, partitions: Sequence[SeekEntry]) -> None:
        validate_group_id(group_id)
        validate_topic(topic)
        validate_seek_entries(partitions)

        consumer = self.consumer_factory(group_id)
        remove_listener = None
        run_task: asyncio.Task | None = None
        stopped = False
        try:
            await consumer.subscribe(topic=topic, from_beginning=True)
            description = await consumer.describe_group()
            if description.state not in TERMINAL_GROUP_STATES:
                raise ConsumerGroupActiveError(group_id, description.state)

            fetched: asyncio.Future[None] = asyncio.get_running_loop().create_future()

            def _on_fetch(_: InstrumentationEvent) -> None:
                if not fetched.done():
                    fetched.set_result(None)

            remove_listener = consumer.on(ConsumerEvents.FETCH, _on_fetch)
            run_task = asyncio.create_task(consumer.run(each_batch_auto_resolve=False, each_batch=_ignore_batch))

            consumer.pause([topic])
            for entry in partitions:
                consumer.seek(topic=topic, partition=entry.partition, offset=entry.offset)

            await self._wait_for_first_fetch(fetched, run_task)
            await consumer.stop()
            stopped = True
            await run_task
        finally:
            if remove_listener is not None:
                remove_listener()
            await self._shutdown(consumer, run_task, stopped)

        LOG.info("Committed offsets of group %s for topic %s", group_id, topic)

    async def _wait_for_first_fetch(self, fetched: asyncio.Future[None], run_task: asyncio.Task) -> None:
        done, _ = await asyncio.wait(
            {fetched, run_task},
            timeout=self.config.offset_commit_timeout_ms / 1000,
            return_when=asyncio.FIRST_COMPLETED,
        )
        if fetched in done:
            return
        if run_task in done:
            # Raises the failure of the run loop, if any
            run_task.result()
            raise NonRetriableError("Consumer stopped before the first fetch, offsets were not committed")
        raise OffsetCommitTimeoutError(
            f"No fetch completed within {self.config.offset_commit_timeout_ms}ms, offsets were not committed"
        )

    @staticmethod
    async def _shutdown(consumer: Consumer, run_task: asyncio.Task | None, stopped: bool) -> None:
        # A consumer refused before running has no positions to commit
        if run_task is None:
            return
        if not stopped:
            await consumer.stop()
        if not run_task.done():
            run_task.cancel()
            await asyncio.wait({run_task})
