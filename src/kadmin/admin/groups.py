"""
kadmin - consumer group administration

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from kadmin.cluster import Broker, Cluster
from kadmin.constants import NO_ERROR
from kadmin.errors import DeleteGroupsError
from kadmin.retry import RetryContext, RetryOrchestrator, RetryStrategy
from kadmin.structs import DeleteGroupResult, GroupOverview
from kadmin.validation import validate_group_ids

import aiokafka.errors as Errors
import asyncio
import itertools
import logging

LOG = logging.getLogger(__name__)

DELETE_GROUPS = RetryStrategy(
    action="delete groups",
    retriable=(
        Errors.NotControllerError,
        Errors.GroupCoordinatorNotAvailableError,
        DeleteGroupsError,
    ),
)


@dataclass
class _GroupDeletion:
    """Progress of one delete-groups call across attempts.

    `pending` keeps the request order. A group moves to `deleted` the first time a
    coordinator reports it gone and is never sent again.
    """

    pending: list[str]
    deleted: dict[str, DeleteGroupResult] = field(default_factory=dict)

    def record(self, results: Sequence[DeleteGroupResult]) -> list[DeleteGroupResult]:
        failed: list[DeleteGroupResult] = []
        for result in results:
            if result.error_code == NO_ERROR:
                self.deleted[result.group_id] = result
            else:
                failed.append(result)
        reported = {result.group_id for result in results}
        for group_id in self.pending:
            if group_id not in reported:
                error = Errors.UnknownError(f"No result for group {group_id}")
                failed.append(DeleteGroupResult(group_id=group_id, error_code=error.errno, error=error))
        self.pending = [group_id for group_id in self.pending if group_id not in self.deleted]
        return failed


class GroupAdministration:
    def __init__(self, *, cluster: Cluster, retry: RetryOrchestrator) -> None:
        self.cluster = cluster
        self.retry = retry

    async def list_groups(self) -> list[GroupOverview]:
        await self.cluster.refresh_metadata()
        brokers = [await self.cluster.find_broker(node_id) for node_id in self.cluster.broker_pool.brokers]
        responses = await asyncio.gather(*(broker.list_groups() for broker in brokers))
        return list(itertools.chain.from_iterable(responses))

    async def delete_groups(self, group_ids: Sequence[str]) -> list[DeleteGroupResult]:
        validate_group_ids(group_ids)
        requested = list(dict.fromkeys(group_ids))
        deletion = _GroupDeletion(pending=list(requested))

        async def _delete(_: RetryContext) -> list[DeleteGroupResult]:
            if deletion.pending:
                await self._delete_pending(deletion)
            return [deletion.deleted[group_id] for group_id in group_ids]

        results = await self.retry.execute(_delete, DELETE_GROUPS)
        LOG.info("Deleted consumer groups %s", ", ".join(requested))
        return results

    async def _delete_pending(self, deletion: _GroupDeletion) -> None:
        await self.cluster.refresh_metadata()

        coordinators: dict[int, Broker] = {}
        groups_per_node: dict[int, list[str]] = {}
        for group_id in deletion.pending:
            coordinator = await self.cluster.find_group_coordinator(group_id)
            coordinators.setdefault(coordinator.node_id, coordinator)
            groups_per_node.setdefault(coordinator.node_id, []).append(group_id)

        responses = await asyncio.gather(
            *(coordinators[node_id].delete_groups(group_ids) for node_id, group_ids in groups_per_node.items()),
            return_exceptions=True,
        )
        call_errors = [response for response in responses if isinstance(response, BaseException)]
        results = [response for response in responses if not isinstance(response, BaseException)]
        # Groups deleted by healthy coordinators are kept even when another coordinator failed
        failed = deletion.record(list(itertools.chain.from_iterable(results)))
        if call_errors:
            raise call_errors[0]
        if failed:
            raise DeleteGroupsError("Error in DeleteGroups", failed)
