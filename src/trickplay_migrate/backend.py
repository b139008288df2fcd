"""Tile backend interface -- generation and storage of trickplay tiles.

The migration never builds tile mosaics itself. A backend is loaded from a
"module:factory" spec; the factory is called with the MigrateConfig and must
return an object implementing TileBackend.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from pathlib import Path
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Mapping,
    Protocol,
    Sequence,
    TypeVar,
    runtime_checkable,
)

from loguru import logger

from .errors import BackendError, ConfigError

if TYPE_CHECKING:
    from .config import MigrateConfig

log = logger.bind(stage="backend")

T = TypeVar("T")


@dataclass(frozen=True)
class TileOptions:
    interval: int
    tile_width: int
    tile_height: int
    jpeg_quality: int


@dataclass
class TrickplayInfo:
    """Metadata describing one generated tile set."""

    width: int
    height: int = 0
    tile_width: int = 0
    tile_height: int = 0
    thumbnail_count: int = 0
    interval: int = 0
    bandwidth: int = 0
    item_id: str | None = None


@runtime_checkable
class TileBackend(Protocol):
    def trickplay_directory(
        self,
        item: Any,
        tile_width: int,
        tile_height: int,
        width: int,
        save_with_media: bool,
    ) -> Path: ...

    def get_resolutions(self, item_id: str) -> Mapping[int, TrickplayInfo]: ...

    def create_tiles(
        self,
        images: Sequence[Path],
        width: int,
        options: TileOptions,
        output_dir: Path,
    ) -> TrickplayInfo: ...

    def save_trickplay_info(self, info: TrickplayInfo) -> None: ...


def call_backend(operation: str, fn: Callable[..., T], *args: Any) -> T:
    """Run a backend call, surfacing any failure as BackendError."""
    try:
        return fn(*args)
    except BackendError:
        raise
    except Exception as exc:
        raise BackendError(operation, f"{type(exc).__name__}: {exc}") from exc


def has_trickplay(backend: TileBackend, tiles_dir: Path, item_id: str, width: int) -> bool:
    """True if tiles for this width exist on disk and in the backend's store."""
    if not tiles_dir.is_dir():
        return False
    resolutions = call_backend("get_resolutions", backend.get_resolutions, item_id)
    return width in resolutions


def load_backend(spec: str, config: MigrateConfig) -> TileBackend:
    """Import and build the backend named by a "module:factory" spec."""
    module_name, _, attr = spec.partition(":")
    if not module_name or not attr:
        raise ConfigError(f"Tile backend must be given as 'module:factory', got {spec!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"Cannot import tile backend module {module_name!r}: {exc}") from exc

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ConfigError(f"Tile backend factory {spec!r} not found or not callable")

    backend = factory(config)
    if not isinstance(backend, TileBackend):
        raise ConfigError(f"Tile backend {spec!r} does not implement the TileBackend interface")

    log.info(f"Loaded tile backend {spec}")
    return backend
