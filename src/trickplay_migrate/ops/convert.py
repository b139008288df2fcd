"""Batch conversion of legacy BIF archives into trickplay tiles.

Each candidate is isolated: any failure is logged, counted, and the batch
moves on to the next candidate. Frames are extracted into a per-candidate
scratch directory that is removed whether or not the conversion succeeds.
"""

from __future__ import annotations

import shutil
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from loguru import logger

from ..backend import TileBackend, TileOptions, call_backend, has_trickplay
from ..bif import extract_images
from ..concurrency import check_disk_space
from ..config import MigrateConfig
from ..errors import ScratchSpaceError
from ..library import MediaLibrary
from ..models import (
    BatchResult,
    CandidateResult,
    ConversionCandidate,
    ConvertOptions,
)
from ..progress import ProgressLog

log = logger.bind(stage="convert")


@contextmanager
def scratch_directory(parent: Path) -> Iterator[Path]:
    """Create a uniquely named directory under parent and always remove it."""
    path = parent / uuid.uuid4().hex
    path.mkdir(parents=True)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        log.debug(f"Removed scratch dir: {path}")


class ConvertOrchestrator:
    """Converts every candidate BIF into trickplay tiles via the tile backend.

    Attributes:
        config: Tile dimensions, scratch location, and worker count
        library: Media library the candidates came from
        backend: Tile generation and storage backend
        progress: User-facing progress log for this run
    """

    def __init__(
        self,
        config: MigrateConfig,
        library: MediaLibrary,
        backend: TileBackend,
        progress: ProgressLog,
    ) -> None:
        self.config = config
        self.library = library
        self.backend = backend
        self.progress = progress
        # Library and backend calls are not assumed thread-safe; workers
        # only overlap on extraction.
        self._backend_lock = threading.Lock()

    def run_batch(
        self, candidates: list[ConversionCandidate], options: ConvertOptions
    ) -> BatchResult:
        """Convert all candidates and write a summary line.

        With max_workers > 1 candidates run on a thread pool. Each worker logs
        into its own buffer, flushed into the run's progress log in candidate
        order, so the output matches a sequential run.
        """
        total = len(candidates)
        log.info(
            f"Starting conversion: {total} candidates, "
            f"force={options.force_convert}, max_workers={self.config.max_workers}"
        )

        if self.config.max_workers > 1 and total > 1:
            results = self._run_parallel(candidates, options)
        else:
            results = [
                self._run_single_safe(candidate, position, total, options, self.progress)
                for position, candidate in enumerate(candidates, start=1)
            ]

        summary = BatchResult.from_results(results)
        if summary.attempted > 0:
            self.progress.info(
                f"Successfully converted {summary.completed}/{summary.attempted} "
                f"attempted .BIF files!"
            )
        else:
            self.progress.info("Task completed without attempting to convert any .BIF files.")

        log.info(
            f"Conversion complete: {summary.completed}/{summary.attempted} succeeded, "
            f"{summary.total - summary.attempted} skipped"
        )
        return summary

    def _run_parallel(
        self, candidates: list[ConversionCandidate], options: ConvertOptions
    ) -> list[CandidateResult]:
        total = len(candidates)

        def work(position: int, candidate: ConversionCandidate) -> tuple[CandidateResult, ProgressLog]:
            buffer = ProgressLog()
            return self._run_single_safe(candidate, position, total, options, buffer), buffer

        results: list[CandidateResult] = []
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            outcomes = executor.map(work, range(1, total + 1), candidates)
            for result, buffer in outcomes:
                self.progress.extend(buffer.entries())
                results.append(result)
        return results

    def _run_single_safe(
        self,
        candidate: ConversionCandidate,
        position: int,
        total: int,
        options: ConvertOptions,
        progress: ProgressLog,
    ) -> CandidateResult:
        """Wrapper for _run_single that catches exceptions."""
        result = CandidateResult(candidate=candidate)
        try:
            self._run_single(candidate, position, total, options, progress, result)
        except Exception as e:
            result.error = str(e)
            log.opt(exception=e).error(f"Error converting BIF file {candidate.path}: {e}")
            progress.error(
                f"Encountered error while converting {candidate.path}, please check the console."
            )
        return result

    def _run_single(
        self,
        candidate: ConversionCandidate,
        position: int,
        total: int,
        options: ConvertOptions,
        progress: ProgressLog,
        result: CandidateResult,
    ) -> None:
        item = candidate.item
        bif_path = candidate.path
        tile_width = self.config.tile_width
        tile_height = self.config.tile_height
        with self._backend_lock:
            save_with_media = self.library.save_trickplay_with_media(item)
            tiles_dir = call_backend(
                "trickplay_directory",
                self.backend.trickplay_directory,
                item,
                tile_width,
                tile_height,
                candidate.width,
                save_with_media,
            )
            exists = not options.force_convert and has_trickplay(
                self.backend, tiles_dir, item.id, candidate.width
            )

        if exists:
            progress.info(
                f"Found existing trickplay files for {bif_path}, "
                f"use force re-convert if necessary. [{position}/{total}]"
            )
            return

        result.attempted = True
        progress.info(f"Converting {bif_path} [{position}/{total}]")

        scratch_root = self.config.temp_dir
        scratch_root.mkdir(parents=True, exist_ok=True)
        if not check_disk_space(bif_path, scratch_root, self.config.scratch_space_multiplier):
            raise ScratchSpaceError(f"Insufficient space in {scratch_root} to extract {bif_path}")

        with scratch_directory(scratch_root) as img_dir:
            frames = extract_images(bif_path, img_dir, max_entries=self.config.max_index_entries)

            if not frames.images:
                log.error(f"No frames extracted from {bif_path}")
                progress.error(f"Image extraction for {bif_path} returned an empty list. Skipping...")
                return

            tile_options = TileOptions(
                interval=frames.interval,
                tile_width=tile_width,
                tile_height=tile_height,
                jpeg_quality=self.config.jpeg_quality,
            )

            with self._backend_lock:
                tiles_dir.mkdir(parents=True, exist_ok=True)
                info = call_backend(
                    "create_tiles",
                    self.backend.create_tiles,
                    frames.images,
                    candidate.width,
                    tile_options,
                    tiles_dir,
                )
                info.item_id = item.id
                call_backend("save_trickplay_info", self.backend.save_trickplay_info, info)

        progress.success(f"Finished converting {bif_path}")
        log.info(f"Converted {bif_path} ({len(frames.images)} frames, interval={frames.interval})")
        result.completed = True
