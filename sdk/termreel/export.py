"""Export a session as annotated JSON, a plain transcript, or a summary."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from termreel.format import to_dict
from termreel.recorder import ENTER
from termreel.session import Dimensions, FrameKind, Session

EXPORTED_BY = "termreel"


def export_json(session: Session, exported_at: datetime | None = None) -> str:
    """Session JSON with an ``exportInfo`` block. Still loadable with ``loads``."""
    if exported_at is None:
        exported_at = datetime.now(timezone.utc)
    doc = to_dict(session)
    doc["exportInfo"] = {
        "exportedAt": exported_at.isoformat(),
        "exportedBy": EXPORTED_BY,
        "formatVersion": session.format_version,
    }
    return json.dumps(doc, indent=2, ensure_ascii=False)


def export_text(
    session: Session,
    kinds: Iterable[FrameKind] = (FrameKind.INPUT, FrameKind.OUTPUT),
) -> str:
    """Concatenate frame contents, as a viewer's "copy output" would."""
    wanted = set(kinds)
    return "".join(f.content for f in session.frames if f.kind in wanted)


@dataclass(frozen=True)
class SessionSummary:
    duration_ms: int
    frame_count: int
    input_frames: int
    output_frames: int
    commands: int
    dimensions: Dimensions
    terminal_name: str | None

    @property
    def duration_seconds(self) -> float:
        return self.duration_ms / 1000


def summarize(session: Session) -> SessionSummary:
    inputs = [f for f in session.frames if f.kind is FrameKind.INPUT]
    return SessionSummary(
        duration_ms=session.duration(),
        frame_count=len(session.frames),
        input_frames=len(inputs),
        output_frames=len(session.frames) - len(inputs),
        commands=sum(1 for f in inputs if f.content == ENTER),
        dimensions=session.effective_dimensions,
        terminal_name=session.terminal_info.name,
    )
