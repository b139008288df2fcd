"""Tests for progress.py -- thread-safe progress log."""

import threading

from trickplay_migrate.models import Severity
from trickplay_migrate.progress import ProgressEntry, ProgressLog


class TestProgressLog:
    def test_append_and_read(self):
        progress = ProgressLog()
        progress.info("starting")
        progress.success("done")
        progress.error("broken")
        lines = progress.read().splitlines()
        assert len(lines) == 3
        assert lines[0].endswith("[INFO] starting")
        assert lines[1].endswith("[SUCCESS] done")
        assert lines[2].endswith("[ERROR] broken")

    def test_clear(self):
        progress = ProgressLog()
        progress.info("old run")
        progress.clear()
        assert progress.read() == ""
        assert len(progress) == 0

    def test_entries_is_snapshot(self):
        progress = ProgressLog()
        progress.info("one")
        snapshot = progress.entries()
        progress.info("two")
        assert [e.message for e in snapshot] == ["one"]

    def test_extend_keeps_order(self):
        buffer = ProgressLog()
        buffer.info("a")
        buffer.error("b")
        progress = ProgressLog()
        progress.info("first")
        progress.extend(buffer.entries())
        assert [e.message for e in progress.entries()] == ["first", "a", "b"]
        assert progress.entries()[2].severity == Severity.ERROR

    def test_sink_receives_entries(self):
        seen: list[ProgressEntry] = []
        progress = ProgressLog(sink=seen.append)
        progress.success("ok")
        assert seen[0].message == "ok"
        assert seen[0].severity == Severity.SUCCESS

    def test_concurrent_appends(self):
        progress = ProgressLog()

        def writer(n):
            for i in range(200):
                progress.info(f"{n}-{i}")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(progress) == 800
        assert len(progress.read().splitlines()) == 800
