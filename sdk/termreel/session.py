"""Frame and Session values for terminal recordings.

A Session is immutable once finalized: editors and the dead-time compressor
build new Session values through ``Session.replace`` and never touch the
original.
"""

import dataclasses
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from termreel.errors import IncompatibleFormatError, MalformedDocumentError

FORMAT_VERSION = "1.0"
SUPPORTED_MAJOR = 1

DEFAULT_WIDTH = 80
DEFAULT_HEIGHT = 24
MIN_WIDTH = 20
MIN_HEIGHT = 5

_LEADING_INT = re.compile(r"\s*[+-]?\d+")


class FrameKind(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    # Only ever seen in raw capture streams.
    CORRECTION_MARKER = "correction"


@dataclass(frozen=True)
class Frame:
    """A single captured chunk of keystrokes or shell output."""

    timestamp: int
    content: str
    kind: FrameKind = FrameKind.OUTPUT

    def __post_init__(self):
        object.__setattr__(self, "timestamp", max(0, int(self.timestamp)))
        object.__setattr__(self, "kind", FrameKind(self.kind))

    def shifted(self, delta_ms: int) -> "Frame":
        return dataclasses.replace(self, timestamp=self.timestamp + delta_ms)


def _parse_cells(value: Any, default: int, minimum: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        # Leading digits only, so "100cols" reads as 100.
        match = _LEADING_INT.match(value)
        if match is None:
            return default
        value = match.group()
    try:
        cells = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if cells < minimum:
        return default
    return cells


@dataclass(frozen=True)
class Dimensions:
    """Character grid size. Out-of-range values fall back to 80x24 per axis."""

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT

    def __post_init__(self):
        object.__setattr__(self, "width", _parse_cells(self.width, DEFAULT_WIDTH, MIN_WIDTH))
        object.__setattr__(self, "height", _parse_cells(self.height, DEFAULT_HEIGHT, MIN_HEIGHT))

    @classmethod
    def coerce(cls, width: Any, height: Any) -> "Dimensions":
        """Build dimensions from untrusted values. Never raises."""
        return cls(width, height)


DEFAULT_DIMENSIONS = Dimensions()


@dataclass(frozen=True)
class TerminalInfo:
    """Descriptive shell metadata, carried through untouched.

    Attributes:
        name: Terminal or shell display name.
        cwd: Working directory the shell was started in.
        shell_path: Executable path of the shell.
        extra: Any other keys found in a loaded document.
    """

    name: str | None = None
    cwd: str | None = None
    shell_path: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = dict(self.extra)
        if self.name is not None:
            d["name"] = self.name
        if self.cwd is not None:
            d["cwd"] = self.cwd
        if self.shell_path is not None:
            d["shellPath"] = self.shell_path
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "TerminalInfo":
        extra = {k: v for k, v in d.items() if k not in ("name", "cwd", "shellPath")}
        return cls(
            name=d.get("name"),
            cwd=d.get("cwd"),
            shell_path=d.get("shellPath"),
            extra=extra,
        )


def ordered(frames: Iterable[Frame]) -> tuple[Frame, ...]:
    """Stable sort by timestamp; equal timestamps keep capture order."""
    return tuple(sorted(frames, key=lambda f: f.timestamp))


@dataclass(frozen=True)
class Session:
    """An ordered recording plus its metadata.

    Attributes:
        frames: Input/output frames in non-decreasing timestamp order.
        start_time: Wall-clock start in epoch milliseconds.
        end_time: Wall-clock end in epoch milliseconds, if known.
        terminal_info: Opaque shell metadata.
        dimensions: Grid size, or None to use 80x24.
        format_version: Semantic version of the persisted layout.
    """

    frames: tuple[Frame, ...] = ()
    start_time: int = 0
    end_time: int | None = None
    terminal_info: TerminalInfo = field(default_factory=TerminalInfo)
    dimensions: Dimensions | None = None
    format_version: str = FORMAT_VERSION

    def __post_init__(self):
        object.__setattr__(self, "frames", tuple(self.frames))

    def duration(self) -> int:
        """Duration in ms: wall-clock span if known, else the last frame's offset."""
        if self.end_time is not None:
            return max(0, self.end_time - self.start_time)
        if self.frames:
            return self.frames[-1].timestamp
        return 0

    @property
    def effective_dimensions(self) -> Dimensions:
        return self.dimensions if self.dimensions is not None else DEFAULT_DIMENSIONS

    def replace(self, **changes) -> "Session":
        return dataclasses.replace(self, **changes)


def major_version(version: str) -> int:
    head = str(version).strip().split(".", 1)[0]
    try:
        return int(head)
    except ValueError:
        raise MalformedDocumentError(
            "formatVersion", f"not a semantic version: {version!r}"
        ) from None


def check_compatible(version: str) -> None:
    """Reject documents whose major version differs from the engine's."""
    if major_version(version) != SUPPORTED_MAJOR:
        raise IncompatibleFormatError(str(version), SUPPORTED_MAJOR)
