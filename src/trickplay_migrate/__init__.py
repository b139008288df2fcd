"""Trickplay Migrate -- convert legacy BIF scrub previews into trickplay tiles.

Core modules:
    config      -- Configuration via pydantic-settings (.env + env vars) and loguru
                   setup. CLI flags passed as kwargs to MigrateConfig.
    cli         -- Click CLI with convert and delete commands over a folder library.
    service     -- MigrationTask: single-flight convert/delete runs, each with its
                   own progress log exposed for status polling.
    bif         -- BIF header/index parser and frame extractor. Bounded index scan;
                   malformed archives raise BifFormatError.
    library     -- MediaLibrary protocol, FolderLibrary, and candidate discovery.
    backend     -- TileBackend protocol and "module:factory" backend loading.
                   Tile generation and storage are always delegated.
    concurrency -- SingleFlight guard, cross-process file lock, disk space check.
    progress    -- Thread-safe, severity-tagged progress log.

Subpackages:
    ops -- Convert and delete orchestrators with per-candidate error isolation.
"""
