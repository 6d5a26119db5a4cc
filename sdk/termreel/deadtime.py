"""Dead-time compression for playback.

Gaps longer than ``threshold_ms`` between consecutive frames are shortened to
``cap_ms``; shorter gaps are left alone. Reductions accumulate, so every
frame after a compressed gap moves earlier by the total removed so far.
"""

from dataclasses import dataclass
from typing import Sequence

from termreel.session import Frame, Session, ordered


@dataclass(frozen=True)
class DeadTimeConfig:
    """Attributes:
    threshold_ms: Gaps strictly longer than this are compressed.
    cap_ms: Length a compressed gap is reduced to.
    """

    threshold_ms: int = 3000
    cap_ms: int = 1000


def compress_frames(
    frames: Sequence[Frame], config: DeadTimeConfig | None = None
) -> tuple[Frame, ...]:
    if config is None:
        config = DeadTimeConfig()
    frames = ordered(frames)
    if len(frames) <= 1:
        return frames

    out: list[Frame] = []
    reduction = 0
    for current, nxt in zip(frames, frames[1:] + (None,)):
        out.append(current.shifted(-reduction))
        if nxt is None:
            break
        gap = nxt.timestamp - current.timestamp
        if gap > config.threshold_ms:
            # A cap above the gap would stretch time instead
            reduction += max(0, gap - config.cap_ms)
    return tuple(out)


def compress_dead_time(session: Session, config: DeadTimeConfig | None = None) -> Session:
    """Return a copy of ``session`` with long idle gaps shortened.

    The input is never modified; callers keep the original for storage and
    use the result for playback or a separate export.
    """
    return session.replace(frames=compress_frames(session.frames, config))
