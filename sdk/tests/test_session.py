"""Tests for the Frame and Session values."""

import pytest

from termreel.errors import IncompatibleFormatError, MalformedDocumentError
from termreel.session import (
    DEFAULT_DIMENSIONS,
    Dimensions,
    Frame,
    FrameKind,
    Session,
    check_compatible,
    major_version,
    ordered,
)


def test_frame_is_immutable():
    frame = Frame(10, "x", FrameKind.INPUT)
    with pytest.raises(AttributeError):
        frame.timestamp = 20


def test_frame_clamps_negative_timestamp():
    assert Frame(-30, "x").timestamp == 0


def test_frame_kind_from_string():
    assert Frame(0, "x", "input").kind is FrameKind.INPUT


def test_duration_prefers_wall_clock():
    session = Session(frames=(Frame(0, "a"), Frame(900, "b")), start_time=1000, end_time=3500)
    assert session.duration() == 2500


def test_duration_falls_back_to_last_frame():
    session = Session(frames=(Frame(0, "a"), Frame(900, "b")), start_time=1000)
    assert session.duration() == 900


def test_duration_of_empty_session():
    assert Session(start_time=1000).duration() == 0


def test_dimensions_default_when_absent():
    assert Session().effective_dimensions == DEFAULT_DIMENSIONS == Dimensions(80, 24)


@pytest.mark.parametrize(
    "width, height, expected",
    [
        (100, 30, (100, 30)),
        ("132", "43", (132, 43)),
        (19, 5, (80, 5)),
        (20, 4, (20, 24)),
        ("abc", "xyz", (80, 24)),
        (None, 30, (80, 30)),
        (float("nan"), float("inf"), (80, 24)),
        (True, 30, (80, 30)),
        ("100cols", " 40 ", (100, 40)),
        ("12.5", "-30", (80, 24)),
        ("132.9", 43.7, (132, 43)),
    ],
)
def test_dimensions_coerce_never_raises(width, height, expected):
    dims = Dimensions.coerce(width, height)
    assert (dims.width, dims.height) == expected


def test_replace_returns_new_session():
    original = Session(frames=(Frame(0, "a"),), start_time=1)
    edited = original.replace(start_time=2)
    assert original.start_time == 1
    assert edited.start_time == 2
    assert edited.frames == original.frames


def test_ordered_is_stable():
    frames = [Frame(5, "late"), Frame(0, "first"), Frame(5, "later"), Frame(1, "second")]
    assert [f.content for f in ordered(frames)] == ["first", "second", "late", "later"]


def test_major_version_parsing():
    assert major_version("1.0") == 1
    assert major_version("2") == 2
    assert major_version("10.4.1") == 10
    with pytest.raises(MalformedDocumentError):
        major_version("one.zero")


def test_check_compatible():
    check_compatible("1.9")
    with pytest.raises(IncompatibleFormatError):
        check_compatible("2.0")
