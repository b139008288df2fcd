"""Shared fixtures: BIF builder and in-memory library/backend fakes."""

import struct
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from trickplay_migrate.backend import TrickplayInfo
from trickplay_migrate.config import MigrateConfig


def build_bif(frames: list[bytes], interval: int = 0) -> bytes:
    """Build BIF bytes: 64-byte header, index with sentinel, frame payloads."""
    header = bytearray(64)
    header[0:8] = b"\x89BIF\r\n\x1a\n"
    struct.pack_into("<I", header, 12, len(frames))
    struct.pack_into("<I", header, 16, interval)

    index = bytearray()
    offset = 64 + 8 * (len(frames) + 1)
    for i, frame in enumerate(frames):
        index += struct.pack("<II", i, offset)
        offset += len(frame)
    index += struct.pack("<II", 0xFFFFFFFF, offset)
    return bytes(header) + bytes(index) + b"".join(frames)


@dataclass(frozen=True)
class FakeItem:
    id: str
    name: str


class FakeLibrary:
    """MediaLibrary backed by a dict of item -> {width: bif path}."""

    def __init__(self, save_with_media: bool = False) -> None:
        self.items: list[FakeItem] = []
        self.paths: dict[str, dict[int, Path]] = {}
        self.broken: set[str] = set()
        self.save_with_media = save_with_media

    def add(self, item: FakeItem, width: int, path: Path) -> None:
        if item not in self.items:
            self.items.append(item)
        self.paths.setdefault(item.id, {})[width] = path

    def video_items(self):
        return list(self.items)

    def width_resolutions(self, item):
        if item.id in self.broken:
            raise ValueError("corrupt manifest")
        widths = self.paths.get(item.id)
        return sorted(widths) if widths else None

    def existing_bif_path(self, item, width):
        path = self.paths[item.id][width]
        return path if path.is_file() else None

    def new_bif_path(self, item, width):
        return self.paths[item.id][width]

    def save_trickplay_with_media(self, item):
        return self.save_with_media


@dataclass
class InMemoryBackend:
    """TileBackend recording every call; tiles go under tiles_root."""

    tiles_root: Path
    saved: dict[str, dict[int, TrickplayInfo]] = field(default_factory=dict)
    created: list[dict] = field(default_factory=list)
    fail_create: Exception | None = None

    def trickplay_directory(self, item, tile_width, tile_height, width, save_with_media):
        return self.tiles_root / item.id / f"{width} - {tile_width}x{tile_height}"

    def get_resolutions(self, item_id):
        return dict(self.saved.get(item_id, {}))

    def create_tiles(self, images, width, options, output_dir):
        if self.fail_create is not None:
            raise self.fail_create
        self.created.append(
            {
                "images": list(images),
                "frames": [Path(p).read_bytes() for p in images],
                "width": width,
                "options": options,
                "output_dir": output_dir,
                "scratch_dir": Path(images[0]).parent,
            }
        )
        (output_dir / "0.jpg").write_bytes(b"tile")
        return TrickplayInfo(
            width=width,
            tile_width=options.tile_width,
            tile_height=options.tile_height,
            thumbnail_count=len(images),
            interval=options.interval,
        )

    def save_trickplay_info(self, info):
        self.saved.setdefault(info.item_id, {})[info.width] = info

    def mark_converted(self, item: FakeItem, width: int) -> None:
        """Pretend tiles already exist for item at width."""
        directory = self.trickplay_directory(item, 10, 10, width, False)
        directory.mkdir(parents=True, exist_ok=True)
        self.saved.setdefault(item.id, {})[width] = TrickplayInfo(width=width, item_id=item.id)


@pytest.fixture
def make_bif():
    return build_bif


@pytest.fixture
def config(tmp_path):
    return MigrateConfig(
        _env_file=None,
        temp_dir=tmp_path / "tmp",
        log_dir=tmp_path / "logs",
        lock_dir=tmp_path / "locks",
    )


@pytest.fixture
def library():
    return FakeLibrary()


@pytest.fixture
def backend(tmp_path):
    return InMemoryBackend(tiles_root=tmp_path / "tiles")


@pytest.fixture
def fake_item():
    return FakeItem
