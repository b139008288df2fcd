"""BIF archive parsing and frame extraction.

Layout (all integers little-endian u32):
    0..7     magic
    16       frame interval in milliseconds (0 means 1000)
    64..     index of (timestamp, offset) records, terminated by a record
             whose timestamp is 0xFFFFFFFF. The terminating offset only
             closes the last frame.
    ...      frame payloads, back to back, in index order
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from loguru import logger

from .errors import BifFormatError, FrameReadError

log = logger.bind(stage="bif")

INTERVAL_OFFSET = 16
INDEX_OFFSET = 64
SENTINEL_TIMESTAMP = 0xFFFFFFFF
DEFAULT_INTERVAL = 1000
DEFAULT_MAX_INDEX_ENTRIES = 1_000_000

_U32 = struct.Struct("<I")
_INDEX_RECORD = struct.Struct("<II")


@dataclass(frozen=True)
class BifIndexEntry:
    timestamp: int
    offset: int


@dataclass(frozen=True)
class BifIndex:
    """Parsed header interval and index table of a BIF archive."""

    interval: int
    entries: tuple[BifIndexEntry, ...]

    @property
    def offsets(self) -> list[int]:
        return [entry.offset for entry in self.entries]

    @property
    def frame_count(self) -> int:
        return max(0, len(self.entries) - 1)

    def frame_ranges(self) -> list[tuple[int, int]]:
        """Return (start, length) for every frame, in index order."""
        offsets = self.offsets
        return [
            (offsets[i], offsets[i + 1] - offsets[i])
            for i in range(len(offsets) - 1)
        ]


@dataclass
class ExtractedFrameSet:
    interval: int
    images: list[Path]


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise BifFormatError(f"Truncated BIF {what}: expected {size} bytes, got {len(data)}")
    return data


def read_index(stream: BinaryIO, max_entries: int = DEFAULT_MAX_INDEX_ENTRIES) -> BifIndex:
    """Parse the interval and index table from a BIF stream.

    Raises BifFormatError if the stream is truncated, offsets go backwards,
    or no sentinel record appears within max_entries records.
    """
    stream.seek(INTERVAL_OFFSET)
    (interval,) = _U32.unpack(_read_exact(stream, _U32.size, "header"))
    if interval == 0:
        interval = DEFAULT_INTERVAL

    stream.seek(INDEX_OFFSET)
    entries: list[BifIndexEntry] = []
    while len(entries) < max_entries:
        timestamp, offset = _INDEX_RECORD.unpack(
            _read_exact(stream, _INDEX_RECORD.size, "index")
        )
        if entries and offset < entries[-1].offset:
            raise BifFormatError(
                f"BIF index offset {offset} precedes previous offset {entries[-1].offset}"
            )
        entries.append(BifIndexEntry(timestamp, offset))
        if timestamp == SENTINEL_TIMESTAMP:
            log.debug(f"BIF index: interval={interval}, entries={len(entries)}")
            return BifIndex(interval=interval, entries=tuple(entries))

    raise BifFormatError(f"No BIF index sentinel within {max_entries} entries")


def extract_frames(stream: BinaryIO, index: BifIndex, output_dir: Path) -> list[Path]:
    """Write each frame to output_dir/<i>.jpg and return the paths in order.

    Frames are contiguous, so the stream is positioned once at the first
    frame and read sequentially from there.
    """
    ranges = index.frame_ranges()
    if not ranges:
        return []

    stream.seek(ranges[0][0])
    images: list[Path] = []
    for i, (start, length) in enumerate(ranges):
        data = stream.read(length)
        if len(data) != length:
            raise FrameReadError(
                f"Frame {i} at offset {start} is truncated: "
                f"expected {length} bytes, got {len(data)}"
            )
        img_path = output_dir / f"{i}.jpg"
        img_path.write_bytes(data)
        images.append(img_path)
    return images


def extract_images(
    bif_path: Path,
    output_dir: Path,
    max_entries: int = DEFAULT_MAX_INDEX_ENTRIES,
) -> ExtractedFrameSet:
    """Parse a BIF file and extract its frames into output_dir."""
    with open(bif_path, "rb") as stream:
        index = read_index(stream, max_entries=max_entries)
        log.info(f"Extracting {index.frame_count} BIF images to {output_dir}")
        images = extract_frames(stream, index, output_dir)
    return ExtractedFrameSet(interval=index.interval, images=images)
