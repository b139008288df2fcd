"""Media library access and legacy BIF candidate discovery."""

from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Protocol

from loguru import logger

from .models import (
    LEGACY_EXTENSION,
    LEGACY_FOLDER_NAME,
    VIDEO_EXTENSIONS,
    ConversionCandidate,
)

log = logger.bind(stage="library")


class MediaLibrary(Protocol):
    """Source of video items and their legacy BIF locations.

    Items must expose ``id`` and ``name`` attributes.
    """

    def video_items(self) -> Iterable[Any]: ...

    def width_resolutions(self, item: Any) -> list[int] | None: ...

    def existing_bif_path(self, item: Any, width: int) -> Path | None: ...

    def new_bif_path(self, item: Any, width: int) -> Path: ...

    def save_trickplay_with_media(self, item: Any) -> bool: ...


def find_candidates(
    library: MediaLibrary, allow_nonexistent: bool = False
) -> list[ConversionCandidate]:
    """Collect one candidate per (item, width) with a legacy BIF path.

    With allow_nonexistent, the expected path is returned even if the file is
    gone, so a deletion re-run can still clean up a leftover folder.
    A failure reading one item's manifest is logged and the item skipped.
    """
    candidates: list[ConversionCandidate] = []
    for item in library.video_items():
        try:
            widths = library.width_resolutions(item)
            if not widths:
                continue

            for width in widths:
                if allow_nonexistent:
                    path = library.new_bif_path(item, width)
                else:
                    path = library.existing_bif_path(item, width)
                if path is not None:
                    candidates.append(ConversionCandidate(item=item, path=path, width=width))
        except Exception as e:
            log.error(f'Error reading manifest for item "{item.name}" ({item.id}): {e}')

    log.debug(f"Found {len(candidates)} BIF candidates (allow_nonexistent={allow_nonexistent})")
    return candidates


def generate_item_id(video_path: Path) -> str:
    """Generate a stable 16-char hex id from a video's path."""
    h = hashlib.sha256()
    h.update(f"{video_path}\n".encode())
    return h.hexdigest()[:16]


@dataclass(frozen=True)
class VideoItem:
    id: str
    name: str
    path: Path


class FolderLibrary:
    """MediaLibrary over a plain directory tree.

    Legacy layout next to each video:
        trickplay/<stem>-manifest.json   {"WidthResolutions": [320, ...]}
        trickplay/<stem>-<width>.bif
    """

    def __init__(self, root: Path, save_with_media: bool = False) -> None:
        self.root = root
        self.save_with_media = save_with_media

    def video_items(self) -> list[VideoItem]:
        items: list[VideoItem] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            # Legacy folders never hold videos
            dirnames[:] = sorted(d for d in dirnames if d.lower() != LEGACY_FOLDER_NAME)
            for filename in sorted(filenames):
                path = Path(dirpath) / filename
                if path.suffix.lower() in VIDEO_EXTENSIONS:
                    items.append(VideoItem(id=generate_item_id(path), name=path.stem, path=path))
        log.debug(f"Found {len(items)} videos under {self.root}")
        return items

    def trickplay_folder(self, item: VideoItem) -> Path:
        return item.path.parent / LEGACY_FOLDER_NAME

    def manifest_path(self, item: VideoItem) -> Path:
        return self.trickplay_folder(item) / f"{item.path.stem}-manifest.json"

    def width_resolutions(self, item: VideoItem) -> list[int] | None:
        manifest = self.manifest_path(item)
        if not manifest.is_file():
            return None
        data = json.loads(manifest.read_text())
        widths = data.get("WidthResolutions")
        if widths is None:
            return None
        return [int(w) for w in widths]

    def new_bif_path(self, item: VideoItem, width: int) -> Path:
        return self.trickplay_folder(item) / f"{item.path.stem}-{width}{LEGACY_EXTENSION}"

    def existing_bif_path(self, item: VideoItem, width: int) -> Path | None:
        path = self.new_bif_path(item, width)
        return path if path.is_file() else None

    def save_trickplay_with_media(self, item: VideoItem) -> bool:
        return self.save_with_media
