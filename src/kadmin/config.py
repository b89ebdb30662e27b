"""
kadmin - configuration

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from kadmin.constants import (
    DEFAULT_REQUEST_TIMEOUT_MS,
    LEADER_WAIT_DELAY_MS,
    LEADER_WAIT_TIMEOUT_MS,
    OFFSET_COMMIT_TIMEOUT_MS,
)
from kadmin.retry import RetryPolicy
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

import logging

LOG = logging.getLogger(__name__)


class InvalidConfiguration(Exception):
    pass


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="kadmin_", env_ignore_empty=True, env_nested_delimiter="__")

    client_id: str = "kadmin"
    log_handler: str | None = "stdout"
    log_level: str = "INFO"
    log_format: str = "%(name)-20s\t%(threadName)s\t%(levelname)-8s\t%(message)s"

    retries: int = 5
    initial_retry_time_ms: int = 300
    max_retry_time_ms: int = 30000
    retry_factor: float = 0.2
    retry_multiplier: float = 2
    max_elapsed_time_ms: int | None = None

    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    leader_wait_delay_ms: int = LEADER_WAIT_DELAY_MS
    leader_wait_timeout_ms: int = LEADER_WAIT_TIMEOUT_MS
    offset_commit_timeout_ms: int = OFFSET_COMMIT_TIMEOUT_MS

    @field_validator("retries", "initial_retry_time_ms", "max_retry_time_ms", "leader_wait_delay_ms")
    @classmethod
    def _not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            retries=self.retries,
            initial_retry_time_ms=self.initial_retry_time_ms,
            max_retry_time_ms=self.max_retry_time_ms,
            factor=self.retry_factor,
            multiplier=self.retry_multiplier,
            max_elapsed_time_ms=self.max_elapsed_time_ms,
        )

    def set_config_defaults(self, new_config: Mapping[str, object] | None = None) -> Config:
        config = deepcopy(self)
        if new_config:
            for key, value in new_config.items():
                setattr(config, key, value)
        validate_config(config)
        return config


def validate_config(config: Config) -> None:
    if config.initial_retry_time_ms > config.max_retry_time_ms:
        raise InvalidConfiguration(
            f"Config initial_retry_time_ms ({config.initial_retry_time_ms}) cannot be larger "
            f"than max_retry_time_ms ({config.max_retry_time_ms})"
        )
    if config.leader_wait_timeout_ms <= 0:
        raise InvalidConfiguration("Config leader_wait_timeout_ms must be positive")
    if config.offset_commit_timeout_ms <= 0:
        raise InvalidConfiguration("Config offset_commit_timeout_ms must be positive")
