"""Readers and writers for recording files.

Two layouts share one document model:

- ``.pcr``: a JSON document with ``formatVersion``, ``startTime``,
  ``endTime``, ``frames``, ``terminalInfo`` and ``dimensions``.
- ``.pcrz``: a compact archive for long sessions.
  Layout: [Header] [zstd(msgpack(frame))...] [Index] [count: u32] [index_offset: u64]
  Header: [MAGIC] [major: u16] [meta_len: u32] [zstd(msgpack(meta))]

Both reject a foreign major version before anything else is decoded.
"""

import io
import json
import logging
import math
import struct
from pathlib import Path
from typing import Any

import msgpack
import zstandard as zstd

from termreel.errors import MalformedDocumentError
from termreel.session import (
    FORMAT_VERSION,
    Dimensions,
    Frame,
    FrameKind,
    Session,
    TerminalInfo,
    check_compatible,
    major_version,
)

logger = logging.getLogger(__name__)

MAGIC = b"TERMREEL"
EXTENSION = ".pcr"
COMPACT_EXTENSION = ".pcrz"

_STORED_KINDS = {FrameKind.INPUT.value, FrameKind.OUTPUT.value}


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _as_ms(value: Any) -> int:
    return value if isinstance(value, int) else int(round(value))


def frame_to_dict(frame: Frame) -> dict[str, Any]:
    return {
        "timestamp": frame.timestamp,
        "content": frame.content,
        "type": frame.kind.value,
    }


def frame_from_dict(d: Any, where: str = "frame") -> Frame:
    if not isinstance(d, dict):
        raise MalformedDocumentError(where, "expected an object")
    ts = d.get("timestamp")
    if not _is_number(ts):
        raise MalformedDocumentError(f"{where}.timestamp", "missing or not a finite number")
    if ts < 0:
        raise MalformedDocumentError(f"{where}.timestamp", f"negative offset {ts}")
    content = d.get("content")
    if not isinstance(content, str):
        raise MalformedDocumentError(f"{where}.content", "missing or not a string")
    kind = d.get("type")
    if kind not in _STORED_KINDS:
        raise MalformedDocumentError(f"{where}.type", f"expected 'input' or 'output', got {kind!r}")
    return Frame(_as_ms(ts), content, FrameKind(kind))


def to_dict(session: Session) -> dict[str, Any]:
    d: dict[str, Any] = {
        "formatVersion": session.format_version,
        "startTime": session.start_time,
    }
    if session.end_time is not None:
        d["endTime"] = session.end_time
    d["frames"] = [frame_to_dict(f) for f in session.frames]
    d["terminalInfo"] = session.terminal_info.to_dict()
    if session.dimensions is not None:
        d["dimensions"] = {
            "width": session.dimensions.width,
            "height": session.dimensions.height,
        }
    return d


def _version_of(doc: dict[str, Any]) -> str:
    # Files written before the field was renamed carry "version"
    version = doc.get("formatVersion", doc.get("version"))
    if version is None:
        raise MalformedDocumentError("formatVersion", "missing")
    if not isinstance(version, str):
        raise MalformedDocumentError("formatVersion", f"expected a string, got {version!r}")
    return version


def from_dict(doc: Any) -> Session:
    """Validate a decoded document and build a Session from it.

    Raises:
        IncompatibleFormatError: The major version is not supported.
        MalformedDocumentError: A required field is missing or invalid.
    """
    if not isinstance(doc, dict):
        raise MalformedDocumentError("document", "expected a JSON object at top level")

    version = _version_of(doc)
    check_compatible(version)

    start_time = doc.get("startTime")
    if not _is_number(start_time):
        raise MalformedDocumentError("startTime", "missing or not a finite number")

    end_time = doc.get("endTime")
    if end_time is not None and not _is_number(end_time):
        raise MalformedDocumentError("endTime", "not a finite number")

    raw_frames = doc.get("frames")
    if not isinstance(raw_frames, list):
        raise MalformedDocumentError("frames", "missing or not a list")
    frames = [frame_from_dict(f, f"frames[{i}]") for i, f in enumerate(raw_frames)]

    info = doc.get("terminalInfo")
    if not isinstance(info, dict):
        raise MalformedDocumentError("terminalInfo", "missing or not an object")

    dimensions = None
    raw_dims = doc.get("dimensions")
    if raw_dims is not None:
        if not isinstance(raw_dims, dict):
            raise MalformedDocumentError("dimensions", "not an object")
        dimensions = Dimensions.coerce(raw_dims.get("width"), raw_dims.get("height"))

    return Session(
        frames=tuple(frames),
        start_time=_as_ms(start_time),
        end_time=_as_ms(end_time) if end_time is not None else None,
        terminal_info=TerminalInfo.from_dict(info),
        dimensions=dimensions,
        format_version=version,
    )


def dumps(session: Session, indent: int | None = 2) -> str:
    return json.dumps(to_dict(session), indent=indent, ensure_ascii=False)


def loads(text: str | bytes) -> Session:
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedDocumentError("document", f"not UTF-8: {e}") from e
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedDocumentError("document", f"invalid JSON: {e}") from e
    return from_dict(doc)


class CompactWriter:
    """Write a session to a .pcrz archive, frame by frame."""

    def __init__(self, f, session: Session):
        self._f = f
        self._index: list[int] = []
        self._compressor = zstd.ZstdCompressor(level=3)

        meta = to_dict(session)
        del meta["frames"]
        packed_meta = self._compressor.compress(msgpack.packb(meta))

        # Write header
        f.write(MAGIC)
        f.write(struct.pack("<H", major_version(session.format_version)))
        f.write(struct.pack("<I", len(packed_meta)))
        f.write(packed_meta)

        self._offset = f.tell()

    def append(self, frame: Frame):
        compressed = self._compressor.compress(msgpack.packb(frame_to_dict(frame)))

        offset = self._offset
        self._f.write(struct.pack("<I", len(compressed)))
        self._f.write(compressed)
        self._offset += 4 + len(compressed)

        self._index.append(offset)

    def finish(self):
        index_offset = self._offset

        for offset in self._index:
            self._f.write(struct.pack("<Q", offset))

        self._f.write(struct.pack("<I", len(self._index)))
        self._f.write(struct.pack("<Q", index_offset))
        self._f.flush()


class CompactReader:
    """Read a .pcrz archive with random access to frames."""

    def __init__(self, f):
        self._f = f
        self._decompressor = zstd.ZstdDecompressor()

        # Read header
        magic = f.read(len(MAGIC))
        if magic != MAGIC:
            raise MalformedDocumentError("document", f"not a {COMPACT_EXTENSION} archive (got {magic!r})")

        (self.major,) = struct.unpack("<H", self._read_exact(2, "header"))
        check_compatible(str(self.major))

        (meta_len,) = struct.unpack("<I", self._read_exact(4, "header"))
        self.meta = self._unpack(self._read_exact(meta_len, "header"), "header")
        if not isinstance(self.meta, dict):
            raise MalformedDocumentError("header", "metadata is not a map")

        # Read index from end
        try:
            f.seek(-12, io.SEEK_END)
        except (OSError, ValueError) as e:
            raise MalformedDocumentError("index", "archive is truncated") from e
        (count,) = struct.unpack("<I", self._read_exact(4, "index"))
        (index_offset,) = struct.unpack("<Q", self._read_exact(8, "index"))

        f.seek(index_offset)
        self._index: list[int] = []
        for _ in range(count):
            (offset,) = struct.unpack("<Q", self._read_exact(8, "index"))
            self._index.append(offset)

    def _read_exact(self, n: int, where: str) -> bytes:
        data = self._f.read(n)
        if len(data) != n:
            raise MalformedDocumentError(where, "archive is truncated")
        return data

    def _unpack(self, compressed: bytes, where: str) -> Any:
        try:
            return msgpack.unpackb(self._decompressor.decompress(compressed), raw=False)
        except (zstd.ZstdError, msgpack.exceptions.UnpackException, ValueError, TypeError) as e:
            raise MalformedDocumentError(where, f"cannot decode block: {e}") from e

    @property
    def frame_count(self) -> int:
        return len(self._index)

    def _frame_dict(self, idx: int) -> Any:
        self._f.seek(self._index[idx])
        (compressed_len,) = struct.unpack("<I", self._read_exact(4, f"frames[{idx}]"))
        return self._unpack(self._read_exact(compressed_len, f"frames[{idx}]"), f"frames[{idx}]")

    def get_frame(self, idx: int) -> Frame:
        if idx < 0 or idx >= len(self._index):
            raise IndexError(f"frame index {idx} out of range")
        return frame_from_dict(self._frame_dict(idx), f"frames[{idx}]")

    def session(self) -> Session:
        doc = dict(self.meta)
        doc["frames"] = [self._frame_dict(i) for i in range(self.frame_count)]
        return from_dict(doc)

    def __iter__(self):
        for i in range(self.frame_count):
            yield self.get_frame(i)


def dump_compact(session: Session, f) -> None:
    writer = CompactWriter(f, session)
    for frame in session.frames:
        writer.append(frame)
    writer.finish()


def load_compact(f) -> Session:
    return CompactReader(f).session()


def save(session: Session, path: str | Path) -> Path:
    """Write ``session`` to ``path``; a ``.pcrz`` suffix selects the archive layout."""
    path = Path(path)
    if path.suffix == COMPACT_EXTENSION:
        with open(path, "wb") as f:
            dump_compact(session, f)
    else:
        path.write_text(dumps(session), encoding="utf-8")
    logger.info("saved %d frames to %s", len(session.frames), path)
    return path


def load(path: str | Path) -> Session:
    """Load a recording, detecting the layout from its first bytes.

    Raises:
        IncompatibleFormatError: The file was written by another major version.
        MalformedDocumentError: The file is not a valid recording.
    """
    path = Path(path)
    data = path.read_bytes()
    if data.startswith(MAGIC):
        session = load_compact(io.BytesIO(data))
    else:
        session = loads(data)
    logger.info("loaded %d frames from %s", len(session.frames), path)
    return session


__all__ = [
    "COMPACT_EXTENSION",
    "EXTENSION",
    "FORMAT_VERSION",
    "CompactReader",
    "CompactWriter",
    "dump_compact",
    "dumps",
    "from_dict",
    "load",
    "load_compact",
    "loads",
    "save",
    "to_dict",
]
