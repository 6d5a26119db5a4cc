"""Tests for JSON/text export and session summaries."""

import json
from datetime import datetime, timezone

from termreel.export import export_json, export_text, summarize
from termreel.format import loads
from termreel.session import Dimensions, Frame, FrameKind, Session, TerminalInfo


def _session() -> Session:
    return Session(
        frames=(
            Frame(0, "l", FrameKind.INPUT),
            Frame(50, "s", FrameKind.INPUT),
            Frame(100, "\r\n", FrameKind.INPUT),
            Frame(150, "a.txt\r\n", FrameKind.OUTPUT),
            Frame(900, "\r\n", FrameKind.INPUT),
        ),
        start_time=1_700_000_000_000,
        end_time=1_700_000_004_500,
        terminal_info=TerminalInfo(name="bash"),
    )


def test_export_json_adds_export_info():
    when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    doc = json.loads(export_json(_session(), exported_at=when))
    assert doc["exportInfo"] == {
        "exportedAt": "2024-01-02T03:04:05+00:00",
        "exportedBy": "termreel",
        "formatVersion": "1.0",
    }
    assert len(doc["frames"]) == 5


def test_exported_json_loads_back():
    assert loads(export_json(_session())) == _session()


def test_export_text_transcript():
    assert export_text(_session()) == "ls\r\na.txt\r\n\r\n"


def test_export_text_output_only():
    assert export_text(_session(), kinds=[FrameKind.OUTPUT]) == "a.txt\r\n"


def test_summarize():
    summary = summarize(_session())
    assert summary.duration_ms == 4500
    assert summary.duration_seconds == 4.5
    assert summary.frame_count == 5
    assert summary.input_frames == 4
    assert summary.output_frames == 1
    assert summary.commands == 2
    assert summary.dimensions == Dimensions(80, 24)
    assert summary.terminal_name == "bash"


def test_summarize_empty():
    summary = summarize(Session())
    assert summary.duration_ms == 0
    assert summary.commands == 0
