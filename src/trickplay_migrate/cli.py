"""CLI entry point for trickplay migration."""

from __future__ import annotations

import os
from pathlib import Path

import click
from loguru import logger
from pydantic import ValidationError

from .backend import load_backend
from .concurrency import LockError, acquire_global_lock
from .config import MigrateConfig
from .errors import ConfigError
from .library import FolderLibrary
from .models import BatchResult, OperationKind, Severity
from .progress import ProgressEntry, ProgressLog
from .service import MigrationTask

log = logger.bind(stage="cli")

_SEVERITY_COLORS = {
    Severity.INFO: None,
    Severity.SUCCESS: "green",
    Severity.ERROR: "red",
}


def _find_config_file() -> Path | None:
    """Look for .env next to the package or in cwd."""
    pkg_dir = Path(__file__).resolve().parent
    for candidate in [
        pkg_dir.parent.parent / ".env",  # dev: src/../.env
        Path.cwd() / ".env",
    ]:
        if candidate.is_file():
            return candidate
    return None


def _load_env_file(env_file: Path) -> None:
    """Load a shell-style .env file into os.environ (without overriding)."""
    for line in env_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        # Strip quotes
        if (value.startswith('"') and value.endswith('"')) or (
            value.startswith("'") and value.endswith("'")
        ):
            value = value[1:-1]
        # Skip bash variable expansions like ${VAR:-default}
        if "${" in value:
            continue
        # Don't override existing env vars (CLI > env > file)
        if key not in os.environ:
            os.environ[key] = value


def _echo_progress(entry: ProgressEntry) -> None:
    click.secho(f"  {entry.message}", fg=_SEVERITY_COLORS[entry.severity])


def _run(
    kind: OperationKind,
    library_path: str,
    config_kwargs: dict[str, object],
    backend_spec: str | None,
    config_file: str | None,
    no_lock: bool,
) -> None:
    """Shared setup for convert and delete: env, config, logging, lock, task."""
    env_file = Path(config_file) if config_file else _find_config_file()
    if env_file and env_file.is_file():
        _load_env_file(env_file)
        log.debug(f"Loaded env from {env_file}")
    else:
        log.debug("No .env found")

    try:
        config = MigrateConfig(**config_kwargs)  # type: ignore[arg-type]
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")
    config.setup_logging()

    spec = backend_spec or config.tile_backend
    if not spec:
        raise click.UsageError("No tile backend configured. Use --backend or TILE_BACKEND.")
    try:
        backend = load_backend(spec, config)
    except ConfigError as exc:
        raise click.ClickException(str(exc))

    library = FolderLibrary(
        Path(library_path).resolve(), save_with_media=config.save_trickplay_with_media
    )
    progress = ProgressLog(sink=_echo_progress)
    if kind == OperationKind.CONVERT:
        task = MigrationTask(config, library, backend, convert_progress=progress)
    else:
        task = MigrationTask(config, library, backend, delete_progress=progress)

    try:
        lock = acquire_global_lock(config.lock_dir, kind, skip=no_lock)
    except LockError as exc:
        raise click.ClickException(str(exc))

    log.info(f"Starting {kind}: library={library.root}")
    try:
        if kind == OperationKind.CONVERT:
            result = task.convert_all(config.convert_options())
        else:
            result = task.delete_all(config.delete_options())
    finally:
        if lock is not None:
            lock.close()

    _display_summary(kind, result)


def _display_summary(kind: OperationKind, result: BatchResult | None) -> None:
    if result is None:
        click.echo(f"\nA {kind} run is already in progress.")
        return
    click.echo(
        f"\n{kind.capitalize()} complete: {result.completed}/{result.attempted} "
        f"succeeded, {result.failed} failed, {result.total} candidates"
    )
    if result.failed > 0:
        log.warning(f"{kind} had {result.failed} failures out of {result.attempted} attempted")


def _common_options(fn):
    """Options shared by the convert and delete commands."""
    options = [
        click.argument("library_path", type=click.Path(exists=True, file_okay=False)),
        click.option("--backend", "backend_spec", default=None, help="Tile backend as module:factory."),
        click.option(
            "--save-with-media",
            is_flag=True,
            help="Tiles live next to the media instead of in the metadata folder.",
        ),
        click.option("--no-lock", is_flag=True, help="Skip file locking."),
        click.option("-v", "--verbose", is_flag=True, help="Enable debug logging."),
        click.option(
            "-c",
            "--config",
            "config_file",
            type=click.Path(exists=True),
            default=None,
            help="Path to .env file.",
        ),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _base_kwargs(verbose: bool, save_with_media: bool) -> dict[str, object]:
    # Pass CLI flags as kwargs to avoid env pollution
    kwargs: dict[str, object] = {"verbose": verbose}
    if verbose:
        kwargs["log_level"] = "DEBUG"
    if save_with_media:
        kwargs["save_trickplay_with_media"] = True
    return kwargs


@click.group()
def main() -> None:
    """Convert legacy BIF scrub previews to trickplay tiles, or delete them."""


@main.command()
@_common_options
@click.option("--force", is_flag=True, help="Re-convert even if tiles already exist.")
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Parallel conversion workers.")
def convert(
    library_path: str,
    backend_spec: str | None,
    save_with_media: bool,
    no_lock: bool,
    verbose: bool,
    config_file: str | None,
    force: bool,
    workers: int | None,
) -> None:
    """Convert every BIF under LIBRARY_PATH into trickplay tiles."""
    kwargs = _base_kwargs(verbose, save_with_media)
    if force:
        kwargs["force_convert"] = True
    if workers is not None:
        kwargs["max_workers"] = workers
    _run(OperationKind.CONVERT, library_path, kwargs, backend_spec, config_file, no_lock)


@main.command()
@_common_options
@click.option("--force", is_flag=True, help="Delete without checking for tiles, extension or folder name.")
@click.option("--delete-non-empty", is_flag=True, help="Remove trickplay folders even if they hold other files.")
def delete(
    library_path: str,
    backend_spec: str | None,
    save_with_media: bool,
    no_lock: bool,
    verbose: bool,
    config_file: str | None,
    force: bool,
    delete_non_empty: bool,
) -> None:
    """Delete BIF files under LIBRARY_PATH that trickplay tiles replace."""
    kwargs = _base_kwargs(verbose, save_with_media)
    if force:
        kwargs["force_delete"] = True
    if delete_non_empty:
        kwargs["delete_non_empty"] = True
    _run(OperationKind.DELETE, library_path, kwargs, backend_spec, config_file, no_lock)
