#!/usr/bin/env python3
"""
Pydantic settings for sysshim.

Settings come from defaults, ``SYSSHIM_*`` environment variables, or a YAML
file. They are read once when a runner is built.
"""

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "SYSSHIM_"
DEFAULT_CONFIG_FILE = ".sysshim.yaml"

CompletionMode = Literal["auto", "encoded", "tri-value"]


class SysshimSettings(BaseModel):
    """Process-execution settings with validation."""

    completion_mode: CompletionMode = Field(
        default="auto", description="Completion shape: auto|encoded|tri-value"
    )
    shell: str = Field(default="/bin/sh", description="Shell used by the tri-value runner")
    sentinel_prefix: str = Field(
        default="__EXITCODE:", description="Prefix of the exit-code sentinel line"
    )
    copy_chunk_size: int = Field(
        default=4096, ge=1, le=16 * 1024 * 1024, description="copy_file chunk size in bytes"
    )
    log_level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")

    @field_validator("shell")
    @classmethod
    def shell_must_be_absolute(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"Shell must be an absolute path: {v}")
        return v

    @field_validator("sentinel_prefix")
    @classmethod
    def sentinel_must_be_plain(cls, v: str) -> str:
        if not v:
            raise ValueError("sentinel_prefix cannot be empty")
        if any(c.isspace() or c in "'\"\\%$`" for c in v):
            raise ValueError(f"sentinel_prefix contains shell-special characters: {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_valid(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {sorted(valid_levels)}")
        return v.upper()

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "SysshimSettings":
        """Build settings from ``SYSSHIM_*`` environment variables."""
        environ = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        for name in cls.model_fields:
            value = environ.get(ENV_PREFIX + name.upper())
            if value is not None:
                data[name] = value
        return cls.model_validate(data)

    def save(self, path: Path) -> None:
        """Save settings to a YAML file."""
        import yaml

        path.write_text(yaml.dump(self.model_dump(), default_flow_style=False, sort_keys=False))

    @classmethod
    def load(cls, path: Path) -> "SysshimSettings":
        """Load settings from a YAML file."""
        import yaml

        if path.is_dir():
            path = path / DEFAULT_CONFIG_FILE
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        data = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(data)
