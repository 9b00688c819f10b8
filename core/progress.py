"""
Per-slot progress events.

One event is emitted right before each slot's materialization starts,
so an event may describe a step that later falls back.
"""
from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_LOG = logging.getLogger(__name__)


class ProgressEvent(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    day: int
    day_label: str
    slot_label: str
    recipe_name: str
    running_index: int  # 1-based
    total: int
    completed_days: int


ProgressSink = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


class ProgressEmitter:
    def __init__(self, sink: ProgressSink | None = None) -> None:
        self._sink = sink
        self._last = 0

    async def emit(self, event: ProgressEvent) -> None:
        if event.running_index <= self._last:
            raise ValueError(
                f"progress index went backwards: {event.running_index} after {self._last}"
            )
        self._last = event.running_index
        if self._sink is None:
            return
        try:
            result = self._sink(event)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            # sink errors never reach the pipeline
            _LOG.warning("progress sink failed: %s", exc)
