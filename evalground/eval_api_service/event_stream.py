# -*- coding: utf-8 -*-
"""
event_stream

SSE framing for one /test request: progress frames, then exactly one
terminal frame.
"""

import json
import logging
from typing import Any, Dict

from fastapi.encoders import jsonable_encoder

LOGGER = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}
SSE_MEDIA_TYPE = "text/event-stream"

NAVIGATING_MESSAGE = "Navigating to page"
EXECUTING_MESSAGE = "Executing command"
SERIALIZE_ERROR_MESSAGE = "Failed to serialize result"


class StreamClosedError(RuntimeError):
    pass


def format_event(data: Dict[str, Any]) -> str:
    return "data: " + json.dumps(data, ensure_ascii=False) + "\n\n"


class EventStream:
    def __init__(self):
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise StreamClosedError("event stream already terminated")

    def progress(self, message: str) -> str:
        self._ensure_open()
        return format_event({"message": message})

    def answer(self, result: Any) -> str:
        self._ensure_open()
        try:
            frame = format_event({"type": "answer", "message": jsonable_encoder(result)})
        except (TypeError, ValueError, RecursionError) as e:
            LOGGER.exception("serialize result error: %s", e)
            return self.error(SERIALIZE_ERROR_MESSAGE)
        self._closed = True
        return frame

    def error(self, message: str) -> str:
        self._ensure_open()
        self._closed = True
        try:
            return format_event({"message": "Error", "error": {"message": message}})
        except (TypeError, ValueError) as e:
            LOGGER.exception("serialize error message error: %s", e)
            return format_event({"message": "Error", "error": {"message": SERIALIZE_ERROR_MESSAGE}})
