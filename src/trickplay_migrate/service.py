"""Migration task -- single-flight convert/delete runs with progress logs."""

from __future__ import annotations

from loguru import logger

from .backend import TileBackend
from .concurrency import SingleFlight
from .config import MigrateConfig
from .library import MediaLibrary, find_candidates
from .models import BatchResult, ConvertOptions, DeleteOptions, OperationKind
from .ops.convert import ConvertOrchestrator
from .ops.delete import DeleteOrchestrator
from .progress import ProgressLog

log = logger.bind(stage="task")


class MigrationTask:
    """Shared entry point for converting and deleting legacy BIF files.

    Conversion and deletion each admit one active run at a time, tracked
    independently. Each kind keeps the progress log of its latest run for
    status polling.
    """

    def __init__(
        self,
        config: MigrateConfig,
        library: MediaLibrary,
        backend: TileBackend,
        convert_progress: ProgressLog | None = None,
        delete_progress: ProgressLog | None = None,
    ) -> None:
        self.config = config
        self.library = library
        self.backend = backend
        self.convert_progress = convert_progress if convert_progress is not None else ProgressLog()
        self.delete_progress = delete_progress if delete_progress is not None else ProgressLog()
        self._convert_guard = SingleFlight(OperationKind.CONVERT)
        self._delete_guard = SingleFlight(OperationKind.DELETE)

    def convert_all(self, options: ConvertOptions) -> BatchResult | None:
        """Convert every candidate BIF. Returns None if a run is already active."""
        with self._convert_guard.hold(self.convert_progress) as acquired:
            if not acquired:
                return None

            self.convert_progress.clear()
            log.info("Convert run started")
            candidates = find_candidates(self.library)
            orchestrator = ConvertOrchestrator(
                self.config, self.library, self.backend, self.convert_progress
            )
            return orchestrator.run_batch(candidates, options)

    def delete_all(self, options: DeleteOptions) -> BatchResult | None:
        """Delete every superseded BIF. Returns None if a run is already active."""
        with self._delete_guard.hold(self.delete_progress) as acquired:
            if not acquired:
                return None

            self.delete_progress.clear()
            log.info("Delete run started")
            candidates = find_candidates(self.library, allow_nonexistent=True)
            orchestrator = DeleteOrchestrator(
                self.config, self.library, self.backend, self.delete_progress
            )
            return orchestrator.run_batch(candidates, options)

    def get_convert_log(self) -> str:
        return self.convert_progress.read()

    def get_delete_log(self) -> str:
        return self.delete_progress.read()
