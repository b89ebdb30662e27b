"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kadmin.structs import DeleteGroupResult


class KafkaAdminError(Exception):
    pass


class NonRetriableError(KafkaAdminError):
    """Raised for invalid requests and other failures that retrying cannot fix."""


class LeaderWaitTimeoutError(NonRetriableError):
    pass


class ConsumerGroupActiveError(NonRetriableError):
    def __init__(self, group_id: str, state: str) -> None:
        super().__init__(f"The consumer group must have no running instances, current state: {state}")
        self.group_id = group_id
        self.state = state


class OffsetCommitTimeoutError(NonRetriableError):
    pass


class DeleteGroupsError(KafkaAdminError):
    def __init__(self, message: str, groups: list[DeleteGroupResult]) -> None:
        super().__init__(message)
        self.groups = groups

    @property
    def group_ids(self) -> list[str]:
        return [result.group_id for result in self.groups]
