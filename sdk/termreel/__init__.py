"""Termreel: terminal session recording and playback."""

from termreel.capture import Deletion, Flush, Keystroke, SessionEnded, finalize
from termreel.context import play, record
from termreel.deadtime import DeadTimeConfig, compress_dead_time
from termreel.editor import Edits, apply_edits, rescale, resize, trim
from termreel.errors import IncompatibleFormatError, MalformedDocumentError, TermreelError
from termreel.format import load, loads, dumps, save
from termreel.recorder import TerminalRecorder
from termreel.replayer import PlaybackConfig, PlaybackState, SessionReplayer
from termreel.scrub import ArtifactFilter
from termreel.session import Dimensions, Frame, FrameKind, Session, TerminalInfo

__version__ = "0.1.0"
__all__ = [
    "ArtifactFilter",
    "DeadTimeConfig",
    "Deletion",
    "Dimensions",
    "Edits",
    "Flush",
    "Frame",
    "FrameKind",
    "IncompatibleFormatError",
    "Keystroke",
    "MalformedDocumentError",
    "PlaybackConfig",
    "PlaybackState",
    "Session",
    "SessionEnded",
    "SessionReplayer",
    "TerminalInfo",
    "TerminalRecorder",
    "TermreelError",
    "apply_edits",
    "compress_dead_time",
    "dumps",
    "finalize",
    "load",
    "loads",
    "play",
    "record",
    "rescale",
    "resize",
    "save",
    "trim",
]
