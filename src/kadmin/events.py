"""
kadmin - instrumentation events

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Awaitable, Callable, Mapping
from kadmin.structs import default_dataclass
from kadmin.typing import StrEnum
from typing import Any, Union
from typing_extensions import TypeAlias

import asyncio
import inspect
import itertools
import logging
import time

__all__ = ("AdminEvents", "InstrumentationEvent", "InstrumentationEventEmitter", "Listener")

LOG = logging.getLogger(__name__)


class AdminEvents(StrEnum):
    CONNECT = "admin.connect"
    DISCONNECT = "admin.disconnect"


@default_dataclass
class InstrumentationEvent:
    id: int
    type: str
    timestamp: float
    payload: Mapping[str, Any] | None = None


Listener: TypeAlias = Callable[[InstrumentationEvent], Union[Awaitable[None], None]]


class InstrumentationEventEmitter:
    """Dispatches events to listeners registered per event type.

    Listeners may be plain functions or coroutine functions. A listener failure
    is logged and does not reach the code emitting the event nor the other
    listeners.
    """

    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[Listener]] = defaultdict(list)
        self._ids = itertools.count()
        self._pending: set[asyncio.Task] = set()

    def add_listener(self, event_name: str, listener: Listener) -> Callable[[], None]:
        # Enum members and their string values must share one key
        event_name = str(event_name)
        self._listeners[event_name].append(listener)

        def remove_listener() -> None:
            listeners = self._listeners[event_name]
            if listener in listeners:
                listeners.remove(listener)

        return remove_listener

    def listener_count(self, event_name: str) -> int:
        return len(self._listeners.get(str(event_name), ()))

    def emit(self, event_name: str, payload: Mapping[str, Any] | None = None) -> InstrumentationEvent:
        event_name = str(event_name)
        event = InstrumentationEvent(
            id=next(self._ids),
            type=event_name,
            timestamp=time.time(),
            payload=payload,
        )
        for listener in list(self._listeners.get(event_name, ())):
            try:
                result = listener(event)
            except Exception:  # pylint: disable=broad-except
                LOG.exception("Failed to execute listener for event %s", event_name)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._listener_done)
        return event

    def _listener_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            LOG.error("Failed to execute listener: %s", error, exc_info=error)
