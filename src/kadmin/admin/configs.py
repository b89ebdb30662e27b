"""
kadmin - resource config administration

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Sequence
from kadmin.cluster import Cluster
from kadmin.retry import RetryContext, RetryOrchestrator, RetryStrategy
from kadmin.structs import ResourceConfig, ResourceConfigQuery
from kadmin.validation import validate_alter_configs, validate_describe_configs
from typing import Any

DESCRIBE_CONFIGS = RetryStrategy(action="describe configs")
ALTER_CONFIGS = RetryStrategy(action="alter configs")


class ConfigAdministration:
    def __init__(self, *, cluster: Cluster, retry: RetryOrchestrator) -> None:
        self.cluster = cluster
        self.retry = retry

    async def describe_configs(self, resources: Sequence[ResourceConfigQuery], *, include_synonyms: bool = False) -> Any:
        validate_describe_configs(resources)

        async def _describe(_: RetryContext) -> Any:
            await self.cluster.refresh_metadata()
            broker = await self.cluster.find_controller_broker()
            return await broker.describe_configs(resources=resources, include_synonyms=include_synonyms)

        return await self.retry.execute(_describe, DESCRIBE_CONFIGS)

    async def alter_configs(self, resources: Sequence[ResourceConfig], *, validate_only: bool = False) -> Any:
        validate_alter_configs(resources)

        async def _alter(_: RetryContext) -> Any:
            await self.cluster.refresh_metadata()
            broker = await self.cluster.find_controller_broker()
            return await broker.alter_configs(resources=resources, validate_only=bool(validate_only))

        return await self.retry.execute(_alter, ALTER_CONFIGS)
