"""Configuration models for inkflow."""

from pydantic import BaseModel, Field, HttpUrl, field_validator
from pathlib import Path
from typing import Optional
import yaml
import os
import stat


class LLMConfig(BaseModel):
    """Configuration for LLM API connection."""

    endpoint: HttpUrl = Field(
        ...,
        description="LLM API endpoint URL (OpenAI or Ollama compatible)"
    )

    api_key: str = Field(
        ...,
        description="API key for authentication"
    )

    model: str = Field(
        ...,
        description="Model identifier (e.g., 'gpt-4o-mini', 'llama3')"
    )

    num_ctx: int = Field(
        default=32768,
        ge=1024,
        description="Context window size (Ollama-specific, controls VRAM usage)"
    )

    model_config = {"frozen": True}


class StorageConfig(BaseModel):
    """Configuration for local manuscript storage."""

    data_dir: str = Field(
        default="~/.local/share/inkflow",
        description="Directory holding saved manuscripts"
    )

    autosave_delay: float = Field(
        default=2.0,
        ge=0.0,
        description="Seconds of inactivity before a pending save is written"
    )

    @field_validator('data_dir')
    @classmethod
    def expand_data_dir(cls, v: str) -> str:
        """Expand ~ and reject paths that exist but are not directories."""
        path = Path(v).expanduser()
        if path.exists() and not path.is_dir():
            raise ValueError(
                f"Data directory is not a directory: {path}\n"
                f"Please provide a valid directory path"
            )
        return str(path)

    model_config = {"frozen": True}


class RevisionConfig(BaseModel):
    """Configuration for the batch revision sweep."""

    safety_timeout: float = Field(
        default=20.0,
        gt=0.0,
        description="Seconds after which a sweep is forced back to idle"
    )

    pacing_delay: float = Field(
        default=0.3,
        ge=0.0,
        description="Pause after each processed block so progress is visible"
    )

    initial_delay: float = Field(
        default=0.5,
        ge=0.0,
        description="Pause before the first block is processed"
    )

    min_length: int = Field(
        default=2,
        ge=0,
        description="Blocks with fewer trimmed characters are skipped"
    )

    model_config = {"frozen": True}


class HistoryConfig(BaseModel):
    """Configuration for undo/redo history."""

    limit: int = Field(
        default=20,
        ge=1,
        le=1000,
        description="Maximum number of undo checkpoints retained"
    )

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for inkflow."""

    llm: Optional[LLMConfig] = Field(default=None, description="LLM API settings (needed for corrections)")
    storage: StorageConfig = Field(default_factory=StorageConfig, description="Storage settings")
    revision: RevisionConfig = Field(default_factory=RevisionConfig, description="Batch revision settings")
    history: HistoryConfig = Field(default_factory=HistoryConfig, description="Undo history settings")

    @classmethod
    def load(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Validates file permissions before loading.
        Raises PermissionError if file is group/world readable.

        Args:
            path: Path to config.yaml file

        Returns:
            Validated Config instance

        Raises:
            PermissionError: If file permissions are too open
            FileNotFoundError: If config file doesn't exist
            ValueError: If YAML is invalid or validation fails
        """
        if not path.exists():
            raise FileNotFoundError(
                f"Configuration file not found at {path}\n\n"
                f"Please create the file with the following format:\n\n"
                f"llm:\n"
                f"  endpoint: https://api.openai.com/v1\n"
                f"  api_key: YOUR_API_KEY_HERE\n"
                f"  model: gpt-4o-mini\n\n"
                f"storage:\n"
                f"  data_dir: ~/.local/share/inkflow\n"
            )

        # Must be 600: the file holds an API key
        mode = os.stat(path).st_mode
        if mode & (stat.S_IRWXG | stat.S_IRWXO):
            raise PermissionError(
                f"Config file has overly permissive permissions: {oct(mode)}\n"
                f"Run: chmod 600 {path}"
            )

        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

        return cls(**data)

    model_config = {"frozen": True}
