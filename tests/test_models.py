"""Tests for models.py -- enums, constants, batch folding."""

from pathlib import Path

from trickplay_migrate.models import (
    LEGACY_EXTENSION,
    LEGACY_FOLDER_NAME,
    RESIDUAL_EXTENSIONS,
    BatchResult,
    CandidateResult,
    ConversionCandidate,
    OperationKind,
    Severity,
)


class TestEnums:
    def test_operation_kinds(self):
        assert OperationKind.CONVERT == "convert"
        assert OperationKind.DELETE == "delete"

    def test_severity(self):
        assert Severity("error") is Severity.ERROR


class TestConstants:
    def test_legacy_names(self):
        assert LEGACY_EXTENSION == ".bif"
        assert LEGACY_FOLDER_NAME == "trickplay"
        assert RESIDUAL_EXTENSIONS == {".json", ".ignore"}


class TestBatchResult:
    def _candidate(self):
        return ConversionCandidate(item=object(), path=Path("/x/trickplay/200.bif"), width=200)

    def test_fold(self):
        c = self._candidate()
        results = [
            CandidateResult(c, attempted=True, completed=True),
            CandidateResult(c, attempted=False),
            CandidateResult(c, attempted=True, error="boom"),
            CandidateResult(c, attempted=True),
        ]
        summary = BatchResult.from_results(results)
        assert summary == BatchResult(total=4, attempted=3, completed=1, failed=2)

    def test_error_after_completion_counts_as_failed(self):
        c = self._candidate()
        summary = BatchResult.from_results(
            [CandidateResult(c, attempted=True, completed=True, error="folder")]
        )
        assert (summary.completed, summary.failed) == (1, 1)

    def test_empty(self):
        assert BatchResult.from_results([]) == BatchResult()
