"""Tests for dead-time compression."""

from termreel.deadtime import DeadTimeConfig, compress_dead_time, compress_frames
from termreel.session import Frame, FrameKind, Session


def _frames(*stamps: int) -> tuple[Frame, ...]:
    return tuple(Frame(ts, str(i), FrameKind.OUTPUT) for i, ts in enumerate(stamps))


def _stamps(frames) -> list[int]:
    return [f.timestamp for f in frames]


def test_single_long_gap():
    assert _stamps(compress_frames(_frames(0, 500, 5500))) == [0, 500, 1500]


def test_gaps_compound():
    assert _stamps(compress_frames(_frames(0, 4000, 4100, 14100))) == [0, 1000, 1100, 2100]


def test_gap_at_threshold_untouched():
    assert _stamps(compress_frames(_frames(0, 3000, 6001))) == [0, 3000, 4000]


def test_short_sessions_unchanged():
    assert compress_frames(()) == ()
    assert compress_frames(_frames(42)) == _frames(42)


def test_content_and_kind_preserved():
    frames = (Frame(0, "$ sleep 10", FrameKind.INPUT), Frame(10000, "done", FrameKind.OUTPUT))
    out = compress_frames(frames)
    assert out == (Frame(0, "$ sleep 10", FrameKind.INPUT), Frame(1000, "done", FrameKind.OUTPUT))


def test_custom_config():
    config = DeadTimeConfig(threshold_ms=1000, cap_ms=200)
    assert _stamps(compress_frames(_frames(0, 1000, 3000), config)) == [0, 1000, 1200]


def test_cap_above_gap_never_stretches():
    config = DeadTimeConfig(threshold_ms=100, cap_ms=5000)
    assert _stamps(compress_frames(_frames(0, 200, 400), config)) == [0, 200, 400]


def test_ordering_restored_before_compressing():
    frames = (Frame(5500, "c"), Frame(0, "a"), Frame(500, "b"))
    assert [(f.timestamp, f.content) for f in compress_frames(frames)] == [
        (0, "a"),
        (500, "b"),
        (1500, "c"),
    ]


def test_session_not_mutated():
    session = Session(frames=_frames(0, 500, 5500), start_time=7, end_time=6000)
    compressed = compress_dead_time(session)
    assert _stamps(session.frames) == [0, 500, 5500]
    assert _stamps(compressed.frames) == [0, 500, 1500]
    assert compressed.start_time == 7
    assert compressed.end_time == 6000
