"""Record a terminal session as a stream of capture events."""

import logging
import threading
import time
from pathlib import Path
from typing import Callable

from termreel.capture import (
    CaptureEvent,
    Deletion,
    Flush,
    Keystroke,
    SessionEnded,
    finalize,
)
from termreel.format import save
from termreel.scrub import ArtifactFilter
from termreel.session import Dimensions, Session, TerminalInfo

logger = logging.getLogger(__name__)

ENTER = "\r\n"


class TerminalRecorder:
    """Captures keystrokes and shell output from a host-owned pseudo-terminal.

    Usage:
        recorder = TerminalRecorder("demo.pcr")
        recorder.start(TerminalInfo(name="bash", shell_path="/bin/bash"))
        command = recorder.feed_input("ls\\r")   # host forwards it to the shell
        recorder.feed_output("file.txt\\r\\n")
        session = recorder.stop()                 # finalized and saved

    The host calls ``feed_input`` with raw key data and ``feed_output`` with
    whatever the shell printed; both may be called from different threads.
    Keystrokes are line-edited the way a cooked terminal would: printable
    characters extend the command buffer, backspace/DEL retract one character
    (and are recorded as a deletion only when there was one to retract), and
    Enter completes the command.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        clock: Callable[[], float] = time.time,
        artifact_filter: ArtifactFilter | None = None,
    ):
        self.path = Path(path) if path is not None else None
        self._clock = clock
        self._artifact_filter = artifact_filter
        self._lock = threading.Lock()
        self._events: list[CaptureEvent] = []
        self._buffer = ""
        self._started = False
        self._start_time = 0
        self._terminal_info = TerminalInfo()
        self._dimensions: Dimensions | None = None
        self.session: Session | None = None

    def _now_ms(self) -> int:
        return int(round(self._clock() * 1000))

    def _offset(self) -> int:
        return max(0, self._now_ms() - self._start_time)

    @property
    def recording(self) -> bool:
        return self._started

    @property
    def events(self) -> list[CaptureEvent]:
        """Snapshot of the raw capture stream so far."""
        with self._lock:
            return list(self._events)

    @property
    def command_buffer(self) -> str:
        return self._buffer

    def start(
        self,
        terminal_info: TerminalInfo | None = None,
        dimensions: Dimensions | None = None,
    ):
        if self._started:
            return
        self._events = []
        self._buffer = ""
        self._start_time = self._now_ms()
        self._terminal_info = terminal_info or TerminalInfo()
        self._dimensions = dimensions
        self.session = None
        self._started = True
        logger.info("recording started (%s)", self._terminal_info.name or "terminal")

    def stop(self) -> Session | None:
        """End the capture, finalize it and save it if a path was given."""
        if not self._started:
            return self.session
        with self._lock:
            self._events.append(SessionEnded(self._now_ms()))
            events = list(self._events)
            self._started = False

        self.session = finalize(
            events,
            start_time=self._start_time,
            terminal_info=self._terminal_info,
            dimensions=self._dimensions,
            artifact_filter=self._artifact_filter,
        )
        logger.info(
            "recording stopped: %d raw events, %d frames",
            len(events),
            len(self.session.frames),
        )
        if self.path is not None:
            save(self.session, self.path)
        return self.session

    def feed_input(self, data: str) -> list[str]:
        """Record raw key data. Returns the commands completed by Enter."""
        if not self._started:
            raise RuntimeError("recorder not started")
        completed: list[str] = []
        with self._lock:
            ts = self._offset()
            for ch in data:
                if ch == "\r":
                    completed.append(self._buffer)
                    self._buffer = ""
                    self._events.append(Keystroke(ts, ENTER))
                elif ch in ("\x08", "\x7f"):
                    if self._buffer:
                        self._buffer = self._buffer[:-1]
                        self._events.append(Deletion(ts))
                elif ch.isprintable():
                    self._buffer += ch
                    self._events.append(Keystroke(ts, ch))
                else:
                    logger.debug("unhandled key %r", ch)
        return completed

    def feed_output(self, data: str):
        """Record a chunk of shell output (stdout or stderr)."""
        if not self._started:
            raise RuntimeError("recorder not started")
        with self._lock:
            self._events.append(Flush(self._offset(), data))

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc):
        self.stop()
