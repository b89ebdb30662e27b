"""
kadmin - consumer collaborator interface

Only the part of a group consumer needed to rewrite committed offsets is
described here.

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from kadmin.events import Listener
from kadmin.structs import GroupDescription
from kadmin.typing import StrEnum
from typing import Any, Protocol
from typing_extensions import TypeAlias

__all__ = ("BatchHandler", "Consumer", "ConsumerEvents", "ConsumerFactory")

BatchHandler: TypeAlias = Callable[..., Awaitable[Any]]


class ConsumerEvents(StrEnum):
    # Emitted every time the consumer completes a fetch cycle
    FETCH = "consumer.fetch"


class Consumer(Protocol):
    async def subscribe(self, *, topic: str, from_beginning: bool) -> None: ...

    async def describe_group(self) -> GroupDescription: ...

    def pause(self, topics: Sequence[str]) -> None: ...

    def seek(self, *, topic: str, partition: int, offset: int) -> None: ...

    async def run(self, *, each_batch_auto_resolve: bool, each_batch: BatchHandler) -> None:
        """Join the group and run the fetch loop.

        Returns once the loop exits after `stop`, raises if joining or fetching fails.
        """

    async def stop(self) -> None:
        """Stop the fetch loop, committing the current positions of the group."""

    def on(self, event_name: str, listener: Listener) -> Callable[[], None]: ...


ConsumerFactory: TypeAlias = Callable[[str], Consumer]
