import dataclasses
import json

import pytest
from pydantic import BaseModel

from evalground.eval_api_service.event_stream import (
    SERIALIZE_ERROR_MESSAGE,
    EventStream,
    StreamClosedError,
    format_event,
)


def _decode(frame: str):
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    return json.loads(frame[len("data: "):-2])


class ActResult(BaseModel):
    success: bool
    message: str


@dataclasses.dataclass
class Extracted:
    title: str


def test_progress_then_answer() -> None:
    stream = EventStream()
    assert _decode(stream.progress("Navigating to page")) == {"message": "Navigating to page"}
    frame = stream.answer(ActResult(success=True, message="done"))
    assert _decode(frame) == {"type": "answer", "message": {"success": True, "message": "done"}}
    assert stream.closed


def test_dataclass_results_are_encoded() -> None:
    assert _decode(EventStream().answer(Extracted(title="t")))["message"] == {"title": "t"}


def test_error_frame_shape() -> None:
    stream = EventStream()
    assert _decode(stream.error("boom")) == {"message": "Error", "error": {"message": "boom"}}
    assert stream.closed


def test_no_frames_after_terminal_event() -> None:
    stream = EventStream()
    stream.answer("ok")
    with pytest.raises(StreamClosedError):
        stream.progress("late")
    with pytest.raises(StreamClosedError):
        stream.error("late")


def test_unserializable_result_falls_back_to_error() -> None:
    payload = {}
    payload["self"] = payload
    stream = EventStream()
    frame = stream.answer(payload)
    assert _decode(frame) == {"message": "Error", "error": {"message": SERIALIZE_ERROR_MESSAGE}}
    assert stream.closed


def test_non_ascii_is_kept() -> None:
    assert "données" in format_event({"message": "données"})
