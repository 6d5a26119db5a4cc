"""Tests for timeline edits."""

from termreel.editor import Edits, apply_edits, rescale, resize, trim
from termreel.session import Dimensions, Frame, FrameKind, Session, TerminalInfo


def _session(end_time: int | None = 1_000_010_000) -> Session:
    return Session(
        frames=tuple(
            Frame(ts, f"f{ts}", FrameKind.OUTPUT if i % 2 else FrameKind.INPUT)
            for i, ts in enumerate([0, 500, 1500, 2500, 4000, 8000])
        ),
        start_time=1_000_000_000,
        end_time=end_time,
        terminal_info=TerminalInfo(name="bash"),
    )


def _stamps(session: Session) -> list[int]:
    return [f.timestamp for f in session.frames]


def test_resize():
    edited = resize(_session(), 120, 40)
    assert edited.dimensions == Dimensions(120, 40)


def test_resize_never_errors():
    assert resize(_session(), "abc", "xyz").dimensions == Dimensions(80, 24)
    assert resize(_session(), "100", None).dimensions == Dimensions(100, 24)


def test_resize_leaves_original_alone():
    original = _session()
    resize(original, 120, 40)
    assert original.dimensions is None


def test_trim_rebases_to_first_kept_frame():
    edited = trim(_session(), 1000, 4000)
    assert _stamps(edited) == [0, 1000, 2500]
    assert [f.content for f in edited.frames] == ["f1500", "f2500", "f4000"]


def test_trim_bounds_are_inclusive():
    assert _stamps(trim(_session(), 500, 2500)) == [0, 1000, 2000]


def test_trim_unbounded_end():
    assert _stamps(trim(_session(), 2500)) == [0, 1500, 5500]


def test_trim_moves_wall_clock_anchors():
    edited = trim(_session(), 1000, 4000)
    assert edited.start_time == 1_000_001_000
    assert edited.end_time == 1_000_004_000


def test_trim_end_time_not_extended():
    edited = trim(_session(end_time=1_000_003_000), 0, 9000)
    assert edited.end_time == 1_000_003_000


def test_trim_without_end_time():
    edited = trim(_session(end_time=None), 0, 2000)
    assert edited.end_time is None


def test_trim_empty_result():
    edited = trim(_session(), 9000, 10000)
    assert edited.frames == ()
    assert edited.terminal_info.name == "bash"


def test_trim_is_idempotent_on_its_output():
    a, b = 500, 4000
    once = trim(_session(), a, b)
    twice = trim(once, 0, b - a)
    assert twice.frames == once.frames


def test_trim_malformed_bounds():
    assert _stamps(trim(_session(), "soon", "never")) == _stamps(_session())
    assert _stamps(trim(_session(), -300, None)) == _stamps(_session())
    assert _stamps(trim(_session(), -10**400, 10**400)) == _stamps(_session())
    assert _stamps(trim(_session(), float("nan"), float("inf"))) == _stamps(_session())


def test_trim_unbounded_start_keeps_nothing():
    for start in (float("inf"), 10**400):
        edited = trim(_session(), start)
        assert edited.frames == ()
        assert edited.start_time == edited.end_time == 1_000_010_000


def test_trim_sorts_out_of_order_frames():
    session = Session(frames=(Frame(300, "c"), Frame(100, "a"), Frame(200, "b")))
    edited = trim(session, 150)
    assert [(f.timestamp, f.content) for f in edited.frames] == [(0, "b"), (100, "c")]


def test_trim_leaves_original_alone():
    original = _session()
    trim(original, 1000, 2000)
    assert _stamps(original) == [0, 500, 1500, 2500, 4000, 8000]


def test_rescale():
    edited = rescale(_session(), 0.5)
    assert _stamps(edited) == [0, 250, 750, 1250, 2000, 4000]
    assert edited.end_time == 1_000_005_000


def test_rescale_rejects_bad_factors():
    original = _session()
    assert rescale(original, 0) == original
    assert rescale(original, -2) == original
    assert rescale(original, "fast") == original
    assert rescale(original, 10**400) == original
    assert rescale(original, float("inf")) == original


def test_apply_edits_combines():
    edited = apply_edits(_session(), Edits(width="100", height=30, start_ms=1000, end_ms=4000))
    assert edited.dimensions == Dimensions(100, 30)
    assert _stamps(edited) == [0, 1000, 2500]


def test_resize_and_trim_commute():
    session = _session()
    a = trim(resize(session, 100, 30), 500, 2500)
    b = resize(trim(session, 500, 2500), 100, 30)
    assert a == b


def test_apply_edits_empty_request():
    session = _session()
    assert apply_edits(session, Edits()) == session


def test_apply_edits_with_speed():
    edited = apply_edits(_session(), Edits(start_ms=2500, speed=2))
    assert _stamps(edited) == [0, 3000, 11000]
