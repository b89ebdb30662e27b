"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""

from dependency_injector import containers, providers
from kadmin.admin.client import KafkaAdmin
from kadmin.config import Config
from kadmin.events import InstrumentationEventEmitter
from kadmin.logging_setup import configure_logging
from kadmin.retry import RetryOrchestrator


class KadminContainer(containers.DeclarativeContainer):
    config = providers.Singleton(Config)

    log_setup = providers.Callable(configure_logging, config=config)

    cluster = providers.Dependency()

    consumer_factory = providers.Dependency()

    emitter = providers.Singleton(InstrumentationEventEmitter)

    retry_orchestrator = providers.Factory(RetryOrchestrator, policy=config.provided.retry_policy.call())

    admin = providers.Factory(
        KafkaAdmin,
        cluster=cluster,
        consumer_factory=consumer_factory,
        config=config,
        emitter=emitter,
        retry=retry_orchestrator,
    )
