"""Tests for errors.py -- exception hierarchy."""

from trickplay_migrate.concurrency import LockError
from trickplay_migrate.errors import (
    BackendError,
    BifFormatError,
    ConfigError,
    FrameReadError,
    MigrateError,
    PolicyError,
    ScratchSpaceError,
)


class TestExceptionHierarchy:
    def test_all_inherit_from_migrate_error(self):
        for cls in (
            ConfigError,
            BifFormatError,
            FrameReadError,
            PolicyError,
            ScratchSpaceError,
            BackendError,
            LockError,
        ):
            assert issubclass(cls, MigrateError)

    def test_frame_read_error_is_os_error(self):
        err = FrameReadError("short read")
        assert isinstance(err, OSError)
        assert "short read" in str(err)


class TestBackendError:
    def test_attributes(self):
        err = BackendError("create_tiles", "disk full")
        assert err.operation == "create_tiles"
        assert "create_tiles" in str(err)
        assert "disk full" in str(err)
