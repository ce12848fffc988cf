# src/pipeline/events.py — v2
"""Events emitted by the streaming pipeline, and their SSE wire form.

Wire format per event (camelCase payload keys)::

    event: chunk
    data: {"index": 0, "text": "...", "progressPercent": 50}

"""

from __future__ import annotations

from typing import Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict, Field


class _Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event: ClassVar[str]

    def to_sse(self) -> str:
        return f"event: {self.event}\ndata: {self.model_dump_json(by_alias=True)}\n\n"


class StartEvent(_Event):
    """Translation started; ``cached`` is true when served from cache."""

    event: ClassVar[str] = "start"

    fragment_count: int = Field(alias="fragmentCount")
    cached: bool = False


class ChunkEvent(_Event):
    """One fragment translated, in document order."""

    event: ClassVar[str] = "chunk"

    index: int
    text: str
    progress_percent: int = Field(alias="progressPercent")


class DoneEvent(_Event):
    event: ClassVar[str] = "done"

    success: bool = True
    document: Any = None


class ErrorEvent(_Event):
    event: ClassVar[str] = "error"

    message: str


PipelineEvent = Union[StartEvent, ChunkEvent, DoneEvent, ErrorEvent]
