"""Timeline edits over a Session: resize, trim, rescale.

Every function returns a new Session and leaves its argument untouched, so
an original and its edited preview can live side by side.
"""

import math
from dataclasses import dataclass
from typing import Any

from termreel.session import Dimensions, Frame, Session, ordered


def _coerce_ms(value: Any, default: float | None) -> float | None:
    if value is None or isinstance(value, bool):
        return default
    try:
        ms = float(value)
    except OverflowError:
        # Integers too large for a float are still ordered.
        return math.inf if value > 0 else -math.inf
    except (TypeError, ValueError):
        return default
    if math.isnan(ms):
        return default
    return ms


def resize(session: Session, width: Any, height: Any) -> Session:
    """Replace the grid size. Bad values fall back to 80x24, never raise."""
    return session.replace(dimensions=Dimensions.coerce(width, height))


def trim(session: Session, start_ms: Any = 0, end_ms: Any = None) -> Session:
    """Keep frames with ``start_ms <= timestamp <= end_ms`` and re-base to zero.

    Args:
        session: Source session.
        start_ms: Inclusive lower bound in session-relative ms. Malformed or
            negative values mean 0; a bound past the last frame keeps nothing.
        end_ms: Inclusive upper bound; None or malformed means unbounded.

    Returns:
        A new Session whose first frame sits at 0. It may have no frames.
    """
    start = _coerce_ms(start_ms, 0.0)
    if start < 0:
        start = 0.0
    end = _coerce_ms(end_ms, None)

    kept = [
        f for f in ordered(session.frames)
        if f.timestamp >= start and (end is None or f.timestamp <= end)
    ]
    if kept:
        base = kept[0].timestamp
        kept = [f.shifted(-base) for f in kept]

    end_time = session.end_time
    if end_time is not None and end is not None and not math.isinf(end):
        end_time = min(end_time, session.start_time + int(end))

    # An unbounded start lands on the end of the recording.
    shift = session.duration() if math.isinf(start) else int(start)
    return session.replace(
        frames=tuple(kept),
        start_time=session.start_time + shift,
        end_time=end_time,
    )


def rescale(session: Session, factor: Any) -> Session:
    """Stretch (factor > 1) or compress (factor < 1) the whole timeline."""
    scale = _coerce_ms(factor, None)
    if scale is None or scale <= 0 or math.isinf(scale):
        return session.replace()

    frames = tuple(
        Frame(round(f.timestamp * scale), f.content, f.kind)
        for f in ordered(session.frames)
    )
    end_time = session.end_time
    if end_time is not None:
        end_time = session.start_time + round((end_time - session.start_time) * scale)
    return session.replace(frames=frames, end_time=end_time)


@dataclass(frozen=True)
class Edits:
    """A declarative edit request, as sent by an editor UI.

    Attributes:
        width: New grid width, or None to leave dimensions alone.
        height: New grid height, or None to leave dimensions alone.
        start_ms: Trim start, or None for no trim.
        end_ms: Trim end, or None for an open-ended trim.
        speed: Timeline factor for ``rescale``, or None.
    """

    width: Any = None
    height: Any = None
    start_ms: Any = None
    end_ms: Any = None
    speed: Any = None

    @property
    def resizes(self) -> bool:
        return self.width is not None or self.height is not None

    @property
    def trims(self) -> bool:
        return self.start_ms is not None or self.end_ms is not None


def apply_edits(session: Session, edits: Edits) -> Session:
    """Apply resize, trim and rescale in one go."""
    edited = session
    if edits.resizes:
        edited = resize(edited, edits.width, edits.height)
    if edits.trims:
        edited = trim(edited, edits.start_ms, edits.end_ms)
    if edits.speed is not None:
        edited = rescale(edited, edits.speed)
    return edited
