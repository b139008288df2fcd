"""Removal of legacy BIF archives once trickplay tiles replace them.

A BIF is only deleted when the backend holds tiles for the same item and
width, unless force_delete is set. The containing trickplay folder is removed
only when it holds nothing but residual sidecars (.json, .ignore), unless
delete_non_empty is set.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from loguru import logger

from ..backend import TileBackend, call_backend, has_trickplay
from ..config import MigrateConfig
from ..errors import PolicyError
from ..library import MediaLibrary
from ..models import (
    LEGACY_EXTENSION,
    LEGACY_FOLDER_NAME,
    RESIDUAL_EXTENSIONS,
    BatchResult,
    CandidateResult,
    ConversionCandidate,
    DeleteOptions,
)
from ..progress import ProgressLog

log = logger.bind(stage="delete")


def blocking_files(folder: Path) -> list[Path]:
    """Files under folder (recursive) that are not residual sidecars."""
    return sorted(
        f for f in folder.rglob("*")
        if f.is_file() and f.suffix.lower() not in RESIDUAL_EXTENSIONS
    )


class DeleteOrchestrator:
    """Deletes legacy BIF files and their trickplay folders.

    Candidates share folders, so they are always processed sequentially.
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

    def run_batch(
        self, candidates: list[ConversionCandidate], options: DeleteOptions
    ) -> BatchResult:
        log.info(
            f"Starting deletion: {len(candidates)} candidates, "
            f"force={options.force_delete}, delete_non_empty={options.delete_non_empty}"
        )

        results = [self._run_single_safe(candidate, options) for candidate in candidates]

        summary = BatchResult.from_results(results)
        if summary.attempted > 0:
            self.progress.info(
                f"Successfully deleted {summary.completed}/{summary.attempted} .BIF files!"
            )
        else:
            self.progress.info("Task completed without attempting to delete any .BIF files.")

        log.info(f"Deletion complete: {summary.completed}/{summary.attempted} deleted")
        return summary

    def _run_single_safe(
        self, candidate: ConversionCandidate, options: DeleteOptions
    ) -> CandidateResult:
        result = CandidateResult(candidate=candidate)
        try:
            self._run_single(candidate, options, result)
        except Exception as e:
            result.error = str(e)
            log.opt(exception=e).error(f"Error deleting BIF file {candidate.path}: {e}")
            self.progress.error(
                f"Encountered error while deleting {candidate.path}, please check the console."
            )
        return result

    def _run_single(
        self,
        candidate: ConversionCandidate,
        options: DeleteOptions,
        result: CandidateResult,
    ) -> None:
        item = candidate.item
        bif_path = candidate.path
        save_with_media = self.library.save_trickplay_with_media(item)

        tiles_dir = call_backend(
            "trickplay_directory",
            self.backend.trickplay_directory,
            item,
            self.config.tile_width,
            self.config.tile_height,
            candidate.width,
            save_with_media,
        )

        result.attempted = True
        if not options.force_delete and not has_trickplay(
            self.backend, tiles_dir, item.id, candidate.width
        ):
            self.progress.error(
                f"Couldn't find native trickplay data for {bif_path}, "
                f"use force delete if necessary."
            )
            result.attempted = False
            return

        # The file may already be gone when a previous run left its folder behind
        if bif_path.is_file():
            if not options.force_delete and bif_path.suffix.lower() != LEGACY_EXTENSION:
                raise PolicyError(f"Path to BIF file has incorrect file extension {bif_path}")
            bif_path.unlink()
            self.progress.success(f"Deleted {bif_path}")
            log.info(f"Deleted file {bif_path}")
            result.completed = True
        else:
            result.attempted = False

        folder = bif_path.parent
        if folder == bif_path or (
            not options.force_delete and folder.name.lower() != LEGACY_FOLDER_NAME
        ):
            raise PolicyError(f"BIF parent folder is missing or has invalid name {folder}")

        if not folder.is_dir():
            log.debug(f"Folder already removed: {folder}")
            return

        if options.delete_non_empty:
            shutil.rmtree(folder)
        else:
            blocking = blocking_files(folder)
            if blocking:
                contains_bifs = False
                for f in blocking:
                    if f.suffix.lower() == LEGACY_EXTENSION:
                        # Sibling BIFs may be deleted by a later candidate
                        contains_bifs = True
                        self.progress.info(f"-> {f}")
                    else:
                        self.progress.error(f"-> {f}")

                if not contains_bifs:
                    self.progress.error(
                        f"Couldn't delete folder {folder} as it is non-empty. "
                        f"Use delete non-empty folders if necessary."
                    )
                log.debug(f"Keeping {folder}: {len(blocking)} blocking files")
                return

            shutil.rmtree(folder)

        self.progress.success(f"Deleted folder {folder}")
        log.info(f"Deleted folder {folder}")
