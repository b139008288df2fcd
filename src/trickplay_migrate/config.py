"""Migration configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ConvertOptions, DeleteOptions


class MigrateConfig(BaseSettings):
    """All migration configuration with layered resolution:
    .env file < environment variables < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Directories --
    temp_dir: Path = Path("/var/lib/trickplay-migrate/tmp")
    log_dir: Path = Path("/var/log/trickplay-migrate")
    lock_dir: Path = Path("/var/lib/trickplay-migrate/locks")

    # -- Tiles (passed to the backend alongside the BIF interval) --
    tile_width: int = 10
    tile_height: int = 10
    jpeg_quality: int = 90
    save_trickplay_with_media: bool = False
    tile_backend: str = ""  # "module:factory"

    # -- Behavior --
    force_convert: bool = False
    force_delete: bool = False
    delete_non_empty: bool = False
    max_workers: int = Field(1, ge=1)  # 1 = sequential conversion
    verbose: bool = False
    log_level: str = "INFO"

    # -- Limits --
    max_index_entries: int = Field(1_000_000, gt=0)
    scratch_space_multiplier: int = Field(2, ge=1)

    def convert_options(self) -> ConvertOptions:
        return ConvertOptions(force_convert=self.force_convert)

    def delete_options(self) -> DeleteOptions:
        return DeleteOptions(
            force_delete=self.force_delete,
            delete_non_empty=self.delete_non_empty,
        )

    def ensure_dirs(self) -> None:
        """Create all required directories if they don't exist."""
        for d in (self.temp_dir, self.log_dir, self.lock_dir):
            d.mkdir(parents=True, exist_ok=True)

    def setup_logging(self) -> None:
        """Configure loguru for the migration tool."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<12} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / "trickplay-migrate.log"),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
