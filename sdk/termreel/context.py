"""Context managers for recording and playing back sessions."""

from contextlib import contextmanager
from pathlib import Path

from termreel.format import load
from termreel.recorder import TerminalRecorder
from termreel.replayer import PlaybackConfig, Renderer, SessionReplayer
from termreel.scrub import ArtifactFilter
from termreel.session import Dimensions, Session, TerminalInfo


@contextmanager
def record(
    path: str | Path,
    terminal_info: TerminalInfo | None = None,
    dimensions: Dimensions | None = None,
    artifact_filter: ArtifactFilter | None = None,
):
    """Record a terminal session to a .pcr (or .pcrz) file.

    Usage:
        with termreel.record("demo.pcr", TerminalInfo(name="bash")) as rec:
            rec.feed_input("echo hi\\r")
            rec.feed_output("hi\\r\\n")
        # finalized and saved here; rec.session holds the result
    """
    recorder = TerminalRecorder(path, artifact_filter=artifact_filter)
    recorder.start(terminal_info, dimensions)
    try:
        yield recorder
    finally:
        recorder.stop()


@contextmanager
def play(
    source: str | Path | Session,
    renderer: Renderer | None = None,
    config: PlaybackConfig | None = None,
):
    """Open a replayer over a recording file or a Session.

    Usage:
        with termreel.play("demo.pcr", renderer) as replayer:
            asyncio.run(replayer.play())
    """
    session = source if isinstance(source, Session) else load(source)
    replayer = SessionReplayer(session, renderer, config)
    try:
        yield replayer
    finally:
        replayer.dispose()
