"""Turn a raw capture stream into a finalized Session.

During recording every keystroke is kept with its own timestamp, deletions
included, so the typing animation stays authentic. Finalization replays that
stream once: a deletion retracts the keystroke it corrects, and terminal
correction noise is stripped from shell output.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Union

from termreel.scrub import ArtifactFilter, strip_artifacts
from termreel.session import (
    Dimensions,
    Frame,
    FrameKind,
    Session,
    TerminalInfo,
    ordered,
)

logger = logging.getLogger(__name__)

# Content value older capture sources use for a deletion
BACKSPACE_SENTINEL = "[BACKSPACE]"


@dataclass(frozen=True)
class Keystroke:
    timestamp: int
    content: str


@dataclass(frozen=True)
class Deletion:
    timestamp: int


@dataclass(frozen=True)
class Flush:
    """A chunk of shell output as it was read from the process."""

    timestamp: int
    content: str


@dataclass(frozen=True)
class SessionEnded:
    end_time: int


CaptureEvent = Union[Keystroke, Deletion, Flush, SessionEnded]


def events_from_frames(frames: Iterable[Frame]) -> list[CaptureEvent]:
    """Convert raw capture frames into tagged capture events.

    Deletions may arrive as CORRECTION_MARKER frames or as Input frames
    carrying the ``[BACKSPACE]`` sentinel; both become ``Deletion``.
    """
    events: list[CaptureEvent] = []
    for frame in frames:
        if frame.kind is FrameKind.CORRECTION_MARKER:
            events.append(Deletion(frame.timestamp))
        elif frame.kind is FrameKind.INPUT:
            if frame.content == BACKSPACE_SENTINEL:
                events.append(Deletion(frame.timestamp))
            else:
                events.append(Keystroke(frame.timestamp, frame.content))
        else:
            events.append(Flush(frame.timestamp, frame.content))
    return events


def _remove_identity(frames: list[Frame], target: Frame) -> None:
    for i in range(len(frames) - 1, -1, -1):
        if frames[i] is target:
            del frames[i]
            return


def finalize(
    events: Iterable[CaptureEvent | Frame],
    start_time: int = 0,
    end_time: int | None = None,
    terminal_info: TerminalInfo | None = None,
    dimensions: Dimensions | None = None,
    artifact_filter: ArtifactFilter | None = None,
) -> Session:
    """Build the clean, stored Session from a raw capture stream.

    Args:
        events: Capture events in arrival order. Raw ``Frame`` objects are
            accepted too and converted with ``events_from_frames``.
        start_time: Wall-clock start in epoch milliseconds.
        end_time: Wall-clock end; overridden by a ``SessionEnded`` event.
        terminal_info: Shell metadata to attach.
        dimensions: Grid size to attach.
        artifact_filter: Output artifact configuration. Defaults if None.

    Returns:
        A Session with no correction markers, no retracted keystrokes, no
        artifact-only output, in non-decreasing timestamp order.
    """
    if artifact_filter is None:
        artifact_filter = ArtifactFilter()

    stream: list[CaptureEvent] = []
    for item in events:
        if isinstance(item, Frame):
            stream.extend(events_from_frames([item]))
        else:
            stream.append(item)

    result: list[Frame] = []
    pending: list[Frame] = []
    ended = False

    for event in stream:
        if ended:
            logger.debug("ignoring %s after session end", type(event).__name__)
            continue
        if isinstance(event, Keystroke):
            frame = Frame(event.timestamp, event.content, FrameKind.INPUT)
            result.append(frame)
            pending.append(frame)
        elif isinstance(event, Deletion):
            if not pending:
                logger.debug("deletion at %dms has no keystroke to retract", event.timestamp)
                continue
            _remove_identity(result, pending.pop())
        elif isinstance(event, Flush):
            clean = strip_artifacts(event.content, artifact_filter)
            if not clean:
                logger.debug("dropping artifact-only output at %dms", event.timestamp)
                continue
            result.append(Frame(event.timestamp, clean, FrameKind.OUTPUT))
        elif isinstance(event, SessionEnded):
            end_time = event.end_time
            ended = True
        else:
            raise TypeError(f"unknown capture event: {event!r}")

    return Session(
        frames=ordered(result),
        start_time=start_time,
        end_time=end_time,
        terminal_info=terminal_info or TerminalInfo(),
        dimensions=dimensions,
    )
