"""
Configuration management using Pydantic Settings.

Loads configuration from:
1. ~/.config/xtags/config.yaml (user config)
2. ./xtags.yaml (project-local config)
3. Environment variables (override)
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .applier import TagApplier
from .codec import TagCodec
from .store import AttributeStore, XattrStore


class QuerySettings(BaseModel):
    """Connection to the external tag query daemon."""

    socket_path: Path = Field(default=Path("/tmp/tag_engine"), description="Unix socket of the query daemon")
    timeout: float = Field(default=10.0, gt=0, description="Socket timeout in seconds")


class XtagsSettings(BaseSettings):
    """Main xtags configuration."""

    model_config = SettingsConfigDict(
        env_prefix="XTAGS_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    # Storage format
    attr_name: str = Field(default="user.tags", description="Extended attribute holding the tags")
    delimiter: str = Field(default=",", description="Single-byte tag separator")
    encoding: str = Field(default="utf-8", description="Text encoding of the attribute value")

    # Traversal
    follow_symlinks: bool = Field(default=False, description="Tag symlink targets met while recursing")
    lock: bool = Field(default=False, description="Advisory lock around each read-modify-write")

    query: QuerySettings = Field(default_factory=QuerySettings)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")

    @field_validator("delimiter")
    @classmethod
    def _single_byte_delimiter(cls, value: str) -> str:
        if len(value.encode("utf-8")) != 1:
            raise ValueError("delimiter must be exactly one byte")
        return value

    @field_validator("attr_name")
    @classmethod
    def _non_empty_attr_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("attr_name must not be empty")
        return value

    def build_codec(self) -> TagCodec:
        """Create a codec for the configured delimiter and encoding."""
        return TagCodec(self.delimiter, self.encoding)

    def build_store(self) -> AttributeStore:
        """Create the extended-attribute store for the configured name."""
        return XattrStore(self.attr_name)

    def build_applier(self) -> TagApplier:
        """Create an applier wired to this configuration."""
        return TagApplier(
            self.build_store(),
            self.build_codec(),
            follow_symlinks=self.follow_symlinks,
            lock=self.lock,
        )

    @classmethod
    def load_from_yaml(cls, yaml_path: Path) -> "XtagsSettings":
        """Load configuration from YAML file."""
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**config_dict)

    @classmethod
    def load(cls) -> "XtagsSettings":
        """
        Load configuration with precedence:
        1. Project-local ./xtags.yaml
        2. User config ~/.config/xtags/config.yaml
        3. Environment variables
        4. Defaults
        """
        config = cls()

        user_config = Path.home() / ".config/xtags/config.yaml"
        if user_config.exists():
            config = cls.load_from_yaml(user_config)

        # Project-local values win over the user config
        local_config = Path.cwd() / "xtags.yaml"
        if local_config.exists():
            with open(local_config) as f:
                local_dict = yaml.safe_load(f) or {}
            config = cls(**{**config.model_dump(), **local_dict})

        return config

    def save_to_yaml(self, yaml_path: Path) -> None:
        """Save current configuration to YAML file."""
        yaml_path.parent.mkdir(parents=True, exist_ok=True)
        with open(yaml_path, "w") as f:
            yaml.dump(
                self.model_dump(mode="json", exclude_none=True),
                f,
                default_flow_style=False,
                sort_keys=False,
            )


def get_config() -> XtagsSettings:
    """Convenience function to get current configuration."""
    return XtagsSettings.load()
