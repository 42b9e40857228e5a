"""
Configuration data models for forkwatch.

These models define the structure of .forkwatch.json and
~/.config/forkwatch/config.json files, with validation via Pydantic.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from forkwatch.core.versions.naming import DEFAULT_EXTENSIONS


class ServerConfig(BaseModel):
    """
    Control plane listener.
    """
    host: str = Field(
        default="127.0.0.1",
        description="Interface the control plane binds to"
    )
    port: int = Field(
        default=3030,
        ge=1,
        le=65535,
        description="Port for HTTP and the /ws push channel"
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the control plane from a browser"
    )


class WatchConfig(BaseModel):
    """
    Discovery and manifest generation settings.
    """
    lazy: bool = Field(
        default=False,
        description="Generate lazy-loading imports in manifests"
    )
    extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXTENSIONS),
        min_length=1,
        description="Version file extensions, highest priority first"
    )
    ignore_dirs: list[str] = Field(
        default_factory=list,
        description="Extra directory names to skip (hidden and dependency dirs are always skipped)"
    )

    @field_validator('extensions', mode='before')
    @classmethod
    def normalize_extensions(cls, v: Union[str, list[str]]) -> list[str]:
        """Accept "tsx,ts" or ["tsx", ".ts"] and add the leading dot."""
        if isinstance(v, str):
            v = [part.strip() for part in v.split(",") if part.strip()]
        return [ext if ext.startswith(".") else f".{ext}" for ext in v]


class EditorConfig(BaseModel):
    """
    External editor used by the open-in-editor endpoint.
    """
    tool: Optional[str] = Field(
        default=None,
        description="Editor command used when a request names none (falls back to $EDITOR)"
    )


class ForkwatchConfig(BaseModel):
    """
    Top-level forkwatch configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = ForkwatchConfig(server=ServerConfig(port=4000))
        >>> config.server.port
        4000
        >>> config.watch.extensions
        ['.tsx', '.ts', '.jsx', '.js']
    """
    server: ServerConfig = Field(
        default_factory=ServerConfig,
        description="Control plane listener"
    )
    watch: WatchConfig = Field(
        default_factory=WatchConfig,
        description="Discovery and manifest generation"
    )
    editor: EditorConfig = Field(
        default_factory=EditorConfig,
        description="Editor launch preferences"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )

    @field_validator('editor', mode='before')
    @classmethod
    def validate_editor(cls, v: Union[str, dict, EditorConfig]) -> Union[dict, EditorConfig]:
        """Convert a bare editor command to EditorConfig."""
        if isinstance(v, str):
            return {"tool": v}
        return v
