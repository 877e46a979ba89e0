"""Tests for SSE serialisation of derived events."""

import json

from src.core.errors import InvalidPatchPath
from src.document import Document
from src.stream import SSEFormatter


def test_document_events_are_serialised_as_json() -> None:
    formatter = SSEFormatter()
    event = {"type": "document-updated", "document": Document(root="r", state={"n": 1})}
    line = formatter.format_sse_event(event)
    assert line.startswith("data: ")
    assert line.endswith("\n\n")
    assert json.loads(line[len("data: "):]) == {
        "type": "document-updated",
        "document": {"root": "r", "elements": {}, "state": {"n": 1}},
    }


def test_non_ascii_text_is_kept() -> None:
    line = SSEFormatter().format_sse_event({"type": "text-segment", "segmentIndex": 0, "text": "你好\n"})
    assert "你好" in line


def test_error_event_for_patch_error() -> None:
    error = InvalidPatchPath("bad path", {"op": "add", "path": "/x"})
    payload = json.loads(SSEFormatter().create_error_event(error)[len("data: "):])
    assert payload == {"type": "error", "error": "InvalidPatchPath", "message": "bad path", "patch": {"op": "add", "path": "/x"}}


def test_error_event_for_other_exceptions() -> None:
    payload = json.loads(SSEFormatter().create_error_event(RuntimeError("down"))[len("data: "):])
    assert payload == {"type": "error", "error": "RuntimeError", "message": "down"}
