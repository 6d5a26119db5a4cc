"""Replay a Session against a renderer with real relative timing."""

import asyncio
import bisect
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Protocol

from termreel.deadtime import DeadTimeConfig, compress_frames
from termreel.session import Frame, FrameKind, Session

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass(frozen=True)
class PlaybackConfig:
    """Attributes:
    minimum_delay_ms: Floor for the wait between two frames.
    speed: Playback rate multiplier; 1.0 is real time.
    compress_dead_time: Start with long idle gaps compressed.
    dead_time: Threshold and cap used when compression is on.
    """

    minimum_delay_ms: int = 50
    speed: float = 1.0
    compress_dead_time: bool = False
    dead_time: DeadTimeConfig = field(default_factory=DeadTimeConfig)


class Renderer(Protocol):
    def emit(self, content: str, kind: FrameKind) -> None: ...

    def reset(self) -> None: ...

    def rebuild(self, content: str) -> None: ...


class BufferRenderer:
    """Collects everything it is sent. Handy for hosts that poll, and for tests."""

    def __init__(self):
        self.text = ""
        self.emitted: list[tuple[str, FrameKind]] = []
        self.resets = 0
        self.rebuilds = 0

    def emit(self, content: str, kind: FrameKind) -> None:
        self.text += content
        self.emitted.append((content, kind))

    def reset(self) -> None:
        self.text = ""
        self.resets += 1

    def rebuild(self, content: str) -> None:
        self.text = content
        self.rebuilds += 1


class CallbackRenderer:
    """Adapts a plain ``(content, kind)`` callback to the renderer interface."""

    def __init__(
        self,
        on_frame: Callable[[str, FrameKind], None],
        on_reset: Callable[[], None] | None = None,
        on_rebuild: Callable[[str], None] | None = None,
    ):
        self._on_frame = on_frame
        self._on_reset = on_reset
        self._on_rebuild = on_rebuild

    def emit(self, content: str, kind: FrameKind) -> None:
        self._on_frame(content, kind)

    def reset(self) -> None:
        if self._on_reset is not None:
            self._on_reset()

    def rebuild(self, content: str) -> None:
        if self._on_rebuild is not None:
            self._on_rebuild(content)


class CancellationToken:
    """One-shot cancellation flag a playback loop checks at every suspend point."""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Wait up to ``seconds``. Returns False if cancelled first."""
        if self.is_cancelled:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return True
        return False


class SessionReplayer:
    """Cooperative playback of a Session's frames.

    Usage:
        replayer = SessionReplayer(session, renderer)
        await replayer.play()          # runs until paused, reset or finished

        task = replayer.start()        # or run it in the background
        replayer.pause()
        replayer.seek_fraction(0.5)
        replayer.set_speed(2.0)
        task = replayer.start()        # resumes from the cursor

    Every operation is total: out-of-range seeks clamp, bad speeds are
    ignored, and reaching the end is the FINISHED state, not an error.
    """

    def __init__(
        self,
        session: Session,
        renderer: Renderer | Callable[[str, FrameKind], None] | None = None,
        config: PlaybackConfig | None = None,
        sleep: SleepFn | None = None,
    ):
        self._session = session
        self._config = config or PlaybackConfig()
        if renderer is None:
            renderer = BufferRenderer()
        elif not hasattr(renderer, "emit") and callable(renderer):
            renderer = CallbackRenderer(renderer)
        self._renderer = renderer
        self._sleep = sleep

        self._speed = 1.0
        self.set_speed(self._config.speed)
        self._compress = self._config.compress_dead_time
        self._frames = self._select_frames()

        self._position = 0
        self._parts: list[str] = []
        self._state = PlaybackState.IDLE
        self._token: CancellationToken | None = None
        self._task: asyncio.Task | None = None
        self._disposed = False

    @property
    def session(self) -> Session:
        return self._session

    @property
    def renderer(self) -> Renderer:
        return self._renderer

    @property
    def frames(self) -> tuple[Frame, ...]:
        """The active frame list (compressed or original)."""
        return self._frames

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def position(self) -> int:
        return self._position

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def compress_dead_time(self) -> bool:
        return self._compress

    @property
    def content(self) -> str:
        """Everything emitted so far, in frame order."""
        return "".join(self._parts)

    @property
    def progress(self) -> float:
        if not self._frames:
            return 0.0
        return self._position / len(self._frames)

    @property
    def current_time_ms(self) -> int:
        if self._position == 0:
            return 0
        return self._frames[self._position - 1].timestamp

    @property
    def total_time_ms(self) -> int:
        if not self._frames:
            return 0
        return self._frames[-1].timestamp

    def _select_frames(self) -> tuple[Frame, ...]:
        if self._compress:
            return compress_frames(self._session.frames, self._config.dead_time)
        return self._session.frames

    def _set_state(self, state: PlaybackState) -> None:
        if state is not self._state:
            logger.debug("playback %s -> %s at frame %d", self._state.value, state.value, self._position)
            self._state = state

    def _cancel_pending(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None

    def delay_after(self, index: int) -> float:
        """Seconds to wait between frame ``index`` and the one after it."""
        gap = self._frames[index + 1].timestamp - self._frames[index].timestamp
        return max(self._config.minimum_delay_ms, gap) / self._speed / 1000.0

    def step(self) -> Frame | None:
        """Emit the frame under the cursor and advance. None once finished."""
        if self._disposed or self._position >= len(self._frames):
            if self._frames and not self._disposed:
                self._set_state(PlaybackState.FINISHED)
            return None
        frame = self._frames[self._position]
        self._parts.append(frame.content)
        self._renderer.emit(frame.content, frame.kind)
        self._position += 1
        if self._position >= len(self._frames):
            self._cancel_pending()
            self._set_state(PlaybackState.FINISHED)
        elif self._state is not PlaybackState.PLAYING:
            self._set_state(PlaybackState.PAUSED)
        return frame

    async def _suspend(self, token: CancellationToken, seconds: float) -> bool:
        if self._sleep is None:
            return await token.sleep(seconds)
        await self._sleep(seconds)
        return not token.is_cancelled

    async def play(self) -> None:
        """Play from the cursor until paused, reset, disposed or finished."""
        if self._disposed or self._state in (PlaybackState.PLAYING, PlaybackState.FINISHED):
            return
        if not self._frames:
            self._set_state(PlaybackState.FINISHED)
            return

        token = CancellationToken()
        self._token = token
        self._set_state(PlaybackState.PLAYING)

        while not token.is_cancelled:
            self.step()
            if self._state is PlaybackState.FINISHED:
                break
            if not await self._suspend(token, self.delay_after(self._position - 1)):
                break

    def start(self) -> asyncio.Task:
        """Schedule ``play()`` on the running loop and return its task."""
        self._task = asyncio.get_running_loop().create_task(self.play())
        return self._task

    def pause(self) -> None:
        if self._state is PlaybackState.PLAYING:
            self._cancel_pending()
            self._set_state(PlaybackState.PAUSED)

    def reset(self) -> None:
        self._cancel_pending()
        self._position = 0
        self._parts = []
        self._renderer.reset()
        self._set_state(PlaybackState.IDLE)

    def seek_index(self, index: int) -> None:
        """Move the cursor so that frames ``[0, index)`` have been emitted.

        The accumulated content is rebuilt from frame 0 and handed to the
        renderer in a single ``rebuild`` call.
        """
        if self._disposed:
            return
        index = max(0, min(int(index), len(self._frames)))
        self._position = index
        self._parts = [f.content for f in self._frames[:index]]
        self._renderer.rebuild(self.content)

        if self._frames and index >= len(self._frames):
            self._cancel_pending()
            self._set_state(PlaybackState.FINISHED)
        elif self._state is not PlaybackState.PLAYING:
            self._set_state(PlaybackState.PAUSED if index else PlaybackState.IDLE)

    def seek_fraction(self, fraction: float) -> None:
        try:
            fraction = float(fraction)
        except (TypeError, ValueError):
            fraction = 0.0
        if math.isnan(fraction):
            fraction = 0.0
        fraction = max(0.0, min(fraction, 1.0))
        self.seek_index(math.floor(fraction * len(self._frames)))

    def seek_time(self, ms: float) -> None:
        """Seek so every frame at or before ``ms`` has been emitted."""
        try:
            ms = float(ms)
        except (TypeError, ValueError, OverflowError):
            ms = 0.0
        if math.isnan(ms):
            ms = 0.0
        timestamps = [f.timestamp for f in self._frames]
        self.seek_index(bisect.bisect_right(timestamps, ms))

    def set_speed(self, speed: float) -> None:
        try:
            value = float(speed)
        except (TypeError, ValueError):
            value = math.nan
        if not math.isfinite(value) or value <= 0:
            logger.warning("ignoring invalid playback speed %r", speed)
            return
        self._speed = value

    def set_compress_dead_time(self, enabled: bool) -> None:
        """Switch between original and compressed frames and reset to IDLE.

        Frame indices do not line up across the two lists, so the cursor
        cannot be carried over.
        """
        enabled = bool(enabled)
        if enabled == self._compress:
            return
        self._cancel_pending()
        self._compress = enabled
        self._frames = self._select_frames()
        self.reset()

    def dispose(self) -> None:
        self._cancel_pending()
        self._disposed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.dispose()
        if self._task is not None and not self._task.done():
            await self._task
