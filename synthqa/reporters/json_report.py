"""JSON reporter for structured, line-delimited run output.

Writes one JSON document per line (NDJSON) as events arrive, suitable for
shipping to a log pipeline. Every document carries a ``type`` such as
``journey/start``, ``step/end`` or ``journey/end`` and a microsecond
``@timestamp``.

Example:
    >>> reporter = JSONReporter(runner, stream=open("run.ndjson", "w"))
    >>> # ... run ...
    >>> [json.loads(line)["type"] for line in open("run.ndjson")]
    ['journey/start', 'step/end', 'journey/end']
"""

from __future__ import annotations

import json
import traceback
from dataclasses import asdict, is_dataclass
from typing import Any

from synthqa.core.events import (
    JourneyEndEvent,
    JourneyRegisterEvent,
    JourneyStartEvent,
    StepEndEvent,
    StepStartEvent,
)
from synthqa.errors import SynthQAError
from synthqa.helpers import get_timestamp
from synthqa.reporters.base import BaseReporter


def serialize_error(error: BaseException | None) -> dict[str, Any] | None:
    """Convert an exception into a JSON-friendly dictionary."""
    if error is None:
        return None
    data: dict[str, Any] = {
        "name": type(error).__name__,
        "message": str(error),
        "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
    }
    if isinstance(error, SynthQAError):
        data["code"] = error.error_code.value
    return data


class JSONReporter(BaseReporter):
    """Emit one NDJSON document per journey and step event.

    Step and journey documents are numbered with a per-journey step index,
    starting at 1.
    """

    _step_index = 0

    def _json_serializer(self, obj: Any) -> Any:
        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        if hasattr(obj, "value"):
            return obj.value
        return str(obj)

    def emit_document(self, doc_type: str, journey_name: str, **fields: Any) -> None:
        document = {
            "@timestamp": get_timestamp(),
            "type": doc_type,
            "journey": {"name": journey_name},
        }
        document.update({k: v for k, v in fields.items() if v is not None})
        self.write(json.dumps(document, default=self._json_serializer, ensure_ascii=False))

    def on_journey_register(self, event: JourneyRegisterEvent) -> None:
        self.emit_document("journey/register", event.journey.name)

    def on_journey_start(self, event: JourneyStartEvent) -> None:
        self._step_index = 0
        self.emit_document(
            "journey/start",
            event.journey.name,
            params=dict(event.params) or None,
        )

    def on_step_start(self, event: StepStartEvent) -> None:
        self._step_index += 1

    def on_step_end(self, event: StepEndEvent) -> None:
        self.emit_document(
            "step/end",
            event.journey.name,
            step={
                "name": event.step.name,
                "index": self._step_index,
                "status": event.status.value,
                "duration": {"us": int((event.end - event.start) * 1_000_000)},
            },
            url=event.url,
            error=serialize_error(event.error),
            metrics=dict(event.metrics) if event.metrics is not None else None,
        )
        if event.screenshot is not None:
            self.emit_document(
                "step/screenshot",
                event.journey.name,
                step={"name": event.step.name, "index": self._step_index},
                blob=event.screenshot,
                blob_mime="image/jpeg",
            )

    def on_journey_end(self, event: JourneyEndEvent) -> None:
        name = event.journey.name
        for entry in event.filmstrips or ():
            self.emit_document("journey/filmstrips", name, payload=entry)
        for entry in event.networkinfo or ():
            self.emit_document("journey/network_info", name, payload=entry)
        for entry in event.browserconsole or ():
            self.emit_document("journey/browserconsole", name, payload=entry)
        self.emit_document(
            "journey/end",
            name,
            status=event.status.value,
            duration={"us": int((event.end - event.start) * 1_000_000)},
            error=serialize_error(event.error),
        )
