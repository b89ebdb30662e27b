"""
kadmin - request validation

Every validator checks a whole request before any network call is made and
raises `NonRetriableError` for the first rule that is violated.

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from kadmin.errors import NonRetriableError
from kadmin.protocol import (
    AclOperationType,
    AclPermissionType,
    AclResourcePatternType,
    AclResourceType,
    ConfigResourceType,
)
from kadmin.structs import AclEntry, AclFilter, NewPartitions, NewTopic, ResourceConfig, ResourceConfigQuery, SeekEntry
from typing import Any

__all__ = (
    "is_array",
    "is_enum_member",
    "validate_acl_entries",
    "validate_acl_filter",
    "validate_acl_filters",
    "validate_alter_configs",
    "validate_delete_topics",
    "validate_describe_configs",
    "validate_group_id",
    "validate_group_ids",
    "validate_new_partitions",
    "validate_new_topics",
    "validate_seek_entries",
    "validate_topic",
    "validate_topic_names",
)


def is_array(value: object) -> bool:
    """Strings and mappings are iterable but are not accepted as arrays."""
    return isinstance(value, (list, tuple))


def is_enum_member(enum_type: type[Enum], value: object) -> bool:
    if isinstance(value, bool):
        return False
    try:
        enum_type(value)
    except ValueError:
        return False
    return True


def _is_optional_str(value: object) -> bool:
    return value is None or isinstance(value, str)


def _is_optional_array(value: object) -> bool:
    return value is None or is_array(value)


def _first(records: Iterable[Any], predicate: Callable[[Any], bool]) -> Any | None:
    return next((record for record in records if predicate(record)), None)


def validate_topic(topic: object) -> None:
    if not topic or not isinstance(topic, str):
        raise NonRetriableError(f"Invalid topic {topic}")


def validate_group_id(group_id: object) -> None:
    if not group_id or not isinstance(group_id, str):
        raise NonRetriableError(f"Invalid groupId {group_id}")


def validate_topic_names(topics: Sequence[str] | None) -> None:
    if topics is None:
        return
    if not is_array(topics):
        raise NonRetriableError(f"Invalid topics array {topics}")
    for topic in topics:
        validate_topic(topic)


def validate_new_topics(topics: Sequence[NewTopic]) -> None:
    if not is_array(topics):
        raise NonRetriableError(f"Invalid topics array {topics}")
    if any(not isinstance(getattr(topic, "topic", None), str) for topic in topics):
        raise NonRetriableError("Invalid topics array, the topic names have to be a valid string")
    if len({topic.topic for topic in topics}) < len(topics):
        raise NonRetriableError("Invalid topics array, it cannot have multiple entries for the same topic")


def validate_delete_topics(topics: Sequence[str]) -> None:
    if not is_array(topics):
        raise NonRetriableError(f"Invalid topics array {topics}")
    if any(not isinstance(topic, str) for topic in topics):
        raise NonRetriableError("Invalid topics array, the names must be a valid string")


def validate_new_partitions(topic_partitions: Sequence[NewPartitions]) -> None:
    if not is_array(topic_partitions):
        raise NonRetriableError(f"Invalid topic partitions array {topic_partitions}")
    if not topic_partitions:
        raise NonRetriableError("Empty topic partitions array")
    if any(not isinstance(getattr(entry, "topic", None), str) for entry in topic_partitions):
        raise NonRetriableError("Invalid topic partitions array, the topic names have to be a valid string")
    if len({entry.topic for entry in topic_partitions}) < len(topic_partitions):
        raise NonRetriableError("Invalid topic partitions array, it cannot have multiple entries for the same topic")


def _validate_resources(resources: Sequence[ResourceConfigQuery] | Sequence[ResourceConfig]) -> None:
    if not is_array(resources):
        raise NonRetriableError(f"Invalid resources array {resources}")
    if not resources:
        raise NonRetriableError("Resources array cannot be empty")

    invalid = _first(resources, lambda r: not is_enum_member(ConfigResourceType, getattr(r, "type", None)))
    if invalid is not None:
        raise NonRetriableError(f"Invalid resource type {getattr(invalid, 'type', None)}: {invalid!r}")

    invalid = _first(resources, lambda r: not getattr(r, "name", None) or not isinstance(r.name, str))
    if invalid is not None:
        raise NonRetriableError(f"Invalid resource name {getattr(invalid, 'name', None)}: {invalid!r}")


def validate_describe_configs(resources: Sequence[ResourceConfigQuery]) -> None:
    _validate_resources(resources)
    invalid = _first(resources, lambda r: not _is_optional_array(getattr(r, "config_names", None)))
    if invalid is not None:
        raise NonRetriableError(f"Invalid resource configNames {invalid.config_names}: {invalid!r}")


def validate_alter_configs(resources: Sequence[ResourceConfig]) -> None:
    _validate_resources(resources)
    invalid = _first(resources, lambda r: not is_array(getattr(r, "config_entries", None)))
    if invalid is not None:
        raise NonRetriableError(
            f"Invalid resource configEntries {getattr(invalid, 'config_entries', None)}: {invalid!r}"
        )

    invalid = _first(
        resources,
        lambda r: any(
            not isinstance(getattr(entry, "name", None), str) or not isinstance(getattr(entry, "value", None), str)
            for entry in r.config_entries
        ),
    )
    if invalid is not None:
        raise NonRetriableError(f"Invalid resource config value: {invalid!r}")


def _validate_acl_enums(records: Sequence[AclEntry] | Sequence[AclFilter]) -> None:
    invalid = _first(records, lambda r: not is_enum_member(AclOperationType, getattr(r, "operation", None)))
    if invalid is not None:
        raise NonRetriableError(f"Invalid operation type {getattr(invalid, 'operation', None)}: {invalid!r}")

    invalid = _first(
        records, lambda r: not is_enum_member(AclResourcePatternType, getattr(r, "resource_pattern_type", None))
    )
    if invalid is not None:
        raise NonRetriableError(
            f"Invalid resource pattern type {getattr(invalid, 'resource_pattern_type', None)}: {invalid!r}"
        )

    invalid = _first(records, lambda r: not is_enum_member(AclPermissionType, getattr(r, "permission_type", None)))
    if invalid is not None:
        raise NonRetriableError(f"Invalid permission type {getattr(invalid, 'permission_type', None)}: {invalid!r}")

    invalid = _first(records, lambda r: not is_enum_member(AclResourceType, getattr(r, "resource_type", None)))
    if invalid is not None:
        raise NonRetriableError(f"Invalid resource type {getattr(invalid, 'resource_type', None)}: {invalid!r}")


def validate_acl_entries(acl: Sequence[AclEntry]) -> None:
    if not is_array(acl):
        raise NonRetriableError(f"Invalid ACL array {acl}")
    if not acl:
        raise NonRetriableError("Empty ACL array")
    if any(not isinstance(getattr(entry, "principal", None), str) for entry in acl):
        raise NonRetriableError("Invalid ACL array, the principals have to be a valid string")
    if any(not isinstance(getattr(entry, "host", None), str) for entry in acl):
        raise NonRetriableError("Invalid ACL array, the hosts have to be a valid string")
    if any(not isinstance(getattr(entry, "resource_name", None), str) for entry in acl):
        raise NonRetriableError("Invalid ACL array, the resourceNames have to be a valid string")
    _validate_acl_enums(acl)


def validate_acl_filters(filters: Sequence[AclFilter]) -> None:
    if not is_array(filters):
        raise NonRetriableError(f"Invalid ACL Filter array {filters}")
    if not filters:
        raise NonRetriableError("Empty ACL Filter array")
    if any(not _is_optional_str(getattr(entry, "principal", None)) for entry in filters):
        raise NonRetriableError("Invalid ACL Filter array, the principals have to be a valid string")
    if any(not _is_optional_str(getattr(entry, "host", None)) for entry in filters):
        raise NonRetriableError("Invalid ACL Filter array, the hosts have to be a valid string")
    if any(not _is_optional_str(getattr(entry, "resource_name", None)) for entry in filters):
        raise NonRetriableError("Invalid ACL Filter array, the resourceNames have to be a valid string")
    _validate_acl_enums(filters)


def validate_acl_filter(acl_filter: AclFilter) -> None:
    if not _is_optional_str(acl_filter.principal):
        raise NonRetriableError("Invalid principal, the principal have to be a valid string")
    if not _is_optional_str(acl_filter.host):
        raise NonRetriableError("Invalid host, the host have to be a valid string")
    if not _is_optional_str(acl_filter.resource_name):
        raise NonRetriableError("Invalid resourceName, the resourceName have to be a valid string")
    if not is_enum_member(AclOperationType, acl_filter.operation):
        raise NonRetriableError(f"Invalid operation type {acl_filter.operation}")
    if not is_enum_member(AclResourcePatternType, acl_filter.resource_pattern_type):
        raise NonRetriableError(f"Invalid resource pattern filter type {acl_filter.resource_pattern_type}")
    if not is_enum_member(AclPermissionType, acl_filter.permission_type):
        raise NonRetriableError(f"Invalid permission type {acl_filter.permission_type}")
    if not is_enum_member(AclResourceType, acl_filter.resource_type):
        raise NonRetriableError(f"Invalid resource type {acl_filter.resource_type}")


def validate_group_ids(group_ids: Sequence[str]) -> None:
    if not is_array(group_ids) or not group_ids:
        raise NonRetriableError(f"Invalid groupIds array {group_ids}")
    invalid = _first(group_ids, lambda group_id: not isinstance(group_id, str))
    if invalid is not None:
        raise NonRetriableError(f"Invalid groupId name: {invalid!r}")


def validate_seek_entries(partitions: Sequence[SeekEntry]) -> None:
    if not is_array(partitions) or not partitions:
        raise NonRetriableError("Invalid partitions")
    for entry in partitions:
        partition = getattr(entry, "partition", None)
        offset = getattr(entry, "offset", None)
        if not isinstance(partition, int) or isinstance(partition, bool) or partition < 0:
            raise NonRetriableError(f"Invalid partition in seek entry: {entry!r}")
        if not isinstance(offset, int) or isinstance(offset, bool):
            raise NonRetriableError(f"Invalid offset in seek entry: {entry!r}")
