"""Exception hierarchy for trickplay migration."""


class MigrateError(Exception):
    """Base exception for all migration errors."""


class ConfigError(MigrateError):
    """Invalid or missing configuration."""


class BifFormatError(MigrateError):
    """A BIF archive header or index is malformed."""


class FrameReadError(MigrateError, OSError):
    """A BIF archive ended before a frame's byte range was fully read."""


class PolicyError(MigrateError):
    """A deletion safety check failed and force was not requested."""


class ScratchSpaceError(MigrateError):
    """Not enough free space to extract frames into the scratch directory."""


class BackendError(MigrateError):
    """The tile backend failed while handling a request."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"Tile backend {operation} failed: {message}")
        self.operation = operation
