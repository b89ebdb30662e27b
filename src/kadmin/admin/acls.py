"""
kadmin - access control list administration

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Sequence
from kadmin.cluster import Broker, Cluster
from kadmin.retry import RetryContext, RetryOrchestrator, RetryStrategy
from kadmin.structs import AclEntry, AclFilter
from kadmin.validation import validate_acl_entries, validate_acl_filter, validate_acl_filters
from typing import Any

import logging

LOG = logging.getLogger(__name__)

CREATE_ACLS = RetryStrategy(action="create ACL")
DESCRIBE_ACLS = RetryStrategy(action="describe ACL")
DELETE_ACLS = RetryStrategy(action="delete ACL")


class AclAdministration:
    def __init__(self, *, cluster: Cluster, retry: RetryOrchestrator) -> None:
        self.cluster = cluster
        self.retry = retry

    async def _controller(self) -> Broker:
        await self.cluster.refresh_metadata()
        return await self.cluster.find_controller_broker()

    async def create_acls(self, acl: Sequence[AclEntry]) -> bool:
        validate_acl_entries(acl)

        async def _create(_: RetryContext) -> bool:
            broker = await self._controller()
            await broker.create_acls(acl=acl)
            return True

        result = await self.retry.execute(_create, CREATE_ACLS)
        LOG.info("Created %s ACL entries", len(acl))
        return result

    async def describe_acls(self, acl_filter: AclFilter) -> Any:
        validate_acl_filter(acl_filter)

        async def _describe(_: RetryContext) -> Any:
            broker = await self._controller()
            return await broker.describe_acls(acl_filter=acl_filter)

        return await self.retry.execute(_describe, DESCRIBE_ACLS)

    async def delete_acls(self, filters: Sequence[AclFilter]) -> Any:
        validate_acl_filters(filters)

        async def _delete(_: RetryContext) -> Any:
            broker = await self._controller()
            return await broker.delete_acls(filters=filters)

        return await self.retry.execute(_delete, DELETE_ACLS)
