# src/tierstore/config/models.py
"""
Pydantic models for TierStore configuration validation.

:class:`TierStoreConfig` is a ``pydantic-settings`` model. Its sources, in
increasing order of precedence, are the packaged ``default_config.toml``, an
optional user TOML file, ``TIERSTORE__SECTION__KEY`` environment variables
and the keyword arguments it is constructed with. The loader
(:mod:`tierstore.config.loader`) picks the user file and environment prefix.

Only configuration consumed by collaborators lives here: tier priorities,
per-tier parameters (cache limits, file base directory, database
connection), logging and server settings.
"""

from pathlib import Path
from typing import Any, ClassVar, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

DEFAULT_CONFIG_FILE = Path(__file__).with_name("default_config.toml")


class TierPriority(BaseModel):
    """Rank of one tier in the fixed priority order (lower is faster)."""

    name: str = Field(..., min_length=1, description="Tier identity reported by its provider")
    rank: int = Field(..., ge=0, description="Position in the priority order")


class OrchestratorConfig(BaseModel):
    """Settings of the tier orchestration layer."""

    provider_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Deadline for each provider call; expiry counts as a provider failure (None = no deadline)",
    )


class CacheTierConfig(BaseModel):
    """
    Configuration for the in-memory cache tier.

    Attributes:
        enabled: Whether the cache tier is built.
        max_items: Maximum number of records (0 = unlimited).
        default_ttl_seconds: Absolute lifetime of a cached record (None = forever).
        cleanup_interval_seconds: How often expired records are swept.
    """

    enabled: bool = Field(default=True, description="Enable the cache tier")
    max_items: int = Field(default=10000, ge=0, description="Maximum number of cached records")
    default_ttl_seconds: float | None = Field(
        default=600, ge=0, description="Cached record lifetime in seconds (None=no expiry)"
    )
    cleanup_interval_seconds: float = Field(default=60, ge=1, le=3600)


class FileTierConfig(BaseModel):
    """
    Configuration for the JSON file tier.

    Attributes:
        enabled: Whether the file tier is built.
        base_directory: Directory holding one JSON file per record.
        retention_seconds: Lifetime of a file copy before it expires.
    """

    enabled: bool = Field(default=True, description="Enable the file tier")
    base_directory: str = Field(default="./FileStorage", description="Directory for record files")
    retention_seconds: int = Field(default=1800, ge=1, description="Retention of a file copy in seconds")


class DatabaseTierConfig(BaseModel):
    """
    Configuration for the authoritative database tier.

    Attributes:
        enabled: Whether the database tier is built.
        backend: ``"sqlite"`` or ``"postgres"``.
        db_path: SQLite file path (when backend is ``"sqlite"``).
        connection_string: PostgreSQL URL (when backend is ``"postgres"``).
        table_name: Table holding the records.
    """

    enabled: bool = Field(default=True, description="Enable the database tier")
    backend: Literal["sqlite", "postgres"] = Field(default="sqlite")
    db_path: str = Field(default="~/.local/share/tierstore/tierstore.db", description="SQLite database path")
    connection_string: str = Field(default="", description="PostgreSQL connection string")
    table_name: str = Field(default="data_entities", description="Table for records")

    @model_validator(mode="after")
    def check_connection_info(self) -> "DatabaseTierConfig":
        """Validate that a connection string is present for PostgreSQL."""
        if self.enabled and self.backend == "postgres" and not self.connection_string:
            raise ValueError("Database 'connection_string' is required when backend is 'postgres'.")
        return self


class ServerConfig(BaseModel):
    """HTTP transport settings."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)


class LoggingConfig(BaseModel):
    """
    Options handed to :func:`tierstore.logging_config.configure_logging`.

    Unset fields fall back to ``DEFAULT_LOGGING_CONFIG``; typing them here
    lets values arriving as environment strings validate like TOML ones.
    """

    console_enabled: Optional[bool] = None
    console_level: Optional[str] = None
    console_format: Optional[str] = None
    file_enabled: Optional[bool] = None
    file_level: Optional[str] = None
    file_directory: Optional[str] = None
    file_mode: Optional[Literal["per_run", "single"]] = None
    file_name_pattern: Optional[str] = None
    file_single_name: Optional[str] = None
    file_format: Optional[str] = None
    rotation_max_bytes: Optional[int] = Field(default=None, ge=0)
    rotation_backup_count: Optional[int] = Field(default=None, ge=0)
    display_min_level: Optional[str] = None
    components: Optional[Dict[str, str]] = None

    def handler_options(self) -> Dict[str, Any]:
        """Return the options that were set, as configure_logging expects them."""
        return self.model_dump(exclude_none=True)


class TierStoreConfig(BaseSettings):
    """Root configuration model."""

    model_config = SettingsConfigDict(
        env_prefix="TIERSTORE__",
        env_nested_delimiter="__",
    )

    # TOML files read below the environment, later files winning.
    config_files: ClassVar[Tuple[Path, ...]] = (DEFAULT_CONFIG_FILE,)
    read_environment: ClassVar[bool] = True

    tiers: List[TierPriority] = Field(
        default_factory=lambda: [
            TierPriority(name="cache", rank=0),
            TierPriority(name="file", rank=1),
            TierPriority(name="database", rank=2),
        ],
        description="Priority table: which tier identity maps to which rank",
    )
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    cache: CacheTierConfig = Field(default_factory=CacheTierConfig)
    file: FileTierConfig = Field(default_factory=FileTierConfig)
    database: DatabaseTierConfig = Field(default_factory=DatabaseTierConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        toml_sources = tuple(
            TomlConfigSettingsSource(settings_cls, toml_file=path) for path in reversed(cls.config_files)
        )
        if cls.read_environment:
            return (init_settings, env_settings, *toml_sources)
        return (init_settings, *toml_sources)

    @field_validator("tiers")
    @classmethod
    def check_unique_tiers(cls, v: List[TierPriority]) -> List[TierPriority]:
        names = [t.name for t in v]
        if len(names) != len(set(names)):
            raise ValueError(f"Tier names in the priority table must be unique: {names}")
        return v

    def priority_pairs(self) -> List[tuple]:
        """Return the priority table as ``(tier, rank)`` pairs, lowest rank first."""
        return [(t.name, t.rank) for t in sorted(self.tiers, key=lambda t: t.rank)]
