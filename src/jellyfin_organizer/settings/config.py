"""
Jellyfin organizer configuration.

This module provides configuration management for the organizer, including
the library roots the tools may touch, model provider settings, prompt
assembly and the IMDb lookup.
"""

import os
import json
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from jellyfin_organizer.llm.config import LLMConfig, ProviderType
from jellyfin_organizer.sandbox.config import LibraryRoots
from jellyfin_organizer.sandbox.exceptions import ConfigurationError
from jellyfin_organizer.tools.imdb import IMDbSettings

# Checked in order; the first one set wins.
API_KEY_VARIABLES = {
    ProviderType.ANTHROPIC: ("ANTHROPIC_API_KEY", "LLM_API_KEY"),
    ProviderType.OPENAI: ("OPENAI_API_KEY", "LLM_API_KEY"),
}


class LLMSettings(BaseModel):
    """
    Model provider settings.

    SECURITY: API keys are protected and will not be exposed in
    string representations, logging, or serialization by default.

    Example:
        ```python
        settings = LLMSettings(
            provider="ollama",
            model="qwen2.5:14b",
            base_url="http://localhost:11434/v1",
        )
        ```
    """

    model_config = {"extra": "forbid"}

    provider: ProviderType = Field(
        default=ProviderType.ANTHROPIC,
        description="Provider type (anthropic, openai, ollama, lmstudio, dummy)"
    )
    model: Optional[str] = Field(
        default=None,
        description="Model name (None = provider default)"
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the API (for local providers)"
    )
    api_key: Optional[SecretStr] = Field(
        default=None,
        description="API key (if required)"
    )
    temperature: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature"
    )
    max_tokens: int = Field(
        default=1024,
        gt=0,
        description="Maximum tokens to generate per response"
    )
    timeout: float = Field(
        default=120.0,
        gt=0,
        description="Request timeout in seconds"
    )

    def get_api_key(self) -> Optional[str]:
        """Get the API key as a plain string. Internal use only."""
        if self.api_key:
            return self.api_key.get_secret_value()
        return None

    def to_llm_config(self) -> LLMConfig:
        """Build the provider configuration."""
        return LLMConfig(
            provider=self.provider,
            model=self.model,
            base_url=self.base_url,
            api_key=self.api_key,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout=self.timeout,
        )

    def __repr__(self) -> str:
        """Safe representation that hides API key."""
        api_key_str = "'***'" if self.api_key else "None"
        return (
            f"LLMSettings(provider={self.provider.value!r}, model={self.model!r}, "
            f"api_key={api_key_str})"
        )

    def __str__(self) -> str:
        """Safe string representation."""
        return f"LLMSettings(provider={self.provider.value}, model={self.model})"


class PromptSettings(BaseModel):
    """Where the initial prompt and its reference documentation come from."""

    model_config = {"extra": "forbid"}

    template_path: Optional[Path] = Field(
        default=None,
        description="Prompt template file (None = built-in template)"
    )
    docs_dir: Optional[Path] = Field(
        default=None,
        description="Directory of Jellyfin naming docs (*.md) embedded in the prompt"
    )
    system_prompt: Optional[str] = Field(
        default=None,
        description="Optional system prompt sent with every model call"
    )

    @field_validator("template_path", "docs_dir", mode="before")
    @classmethod
    def expand_user(cls, v):
        if v is None or v == "":
            return None
        return Path(v).expanduser()


class ConversationSettings(BaseModel):
    """Conversation loop limits."""

    model_config = {"extra": "forbid"}

    max_model_calls_per_input: Optional[int] = Field(
        default=None,
        gt=0,
        description="Return control to the operator after this many model calls (None = no limit)"
    )


class OrganizerConfig(BaseModel):
    """
    Complete organizer configuration.

    SECURITY: String representations mask the API key.

    Example:
        ```python
        config = OrganizerConfig(
            library=LibraryRoots(movies="/media/movies", shows="/media/shows"),
            llm=LLMSettings(provider="anthropic", api_key="sk-ant-..."),
        )

        # Load from file
        config = OrganizerConfig.from_file("~/.config/jellyfin-organizer.yaml")

        # Or from JELLYFIN_MOVIES_FOLDER / JELLYFIN_SHOWS_FOLDER / ...
        config = OrganizerConfig.from_env()
        ```
    """

    model_config = {"extra": "forbid"}

    library: LibraryRoots = Field(
        description="Library roots the tools are confined to"
    )
    llm: LLMSettings = Field(
        default_factory=LLMSettings,
        description="Model provider settings"
    )
    prompt: PromptSettings = Field(
        default_factory=PromptSettings,
        description="Prompt assembly settings"
    )
    imdb: IMDbSettings = Field(
        default_factory=IMDbSettings,
        description="IMDb lookup settings"
    )
    conversation: ConversationSettings = Field(
        default_factory=ConversationSettings,
        description="Conversation loop limits"
    )

    def __repr__(self) -> str:
        """Safe representation that hides all credentials."""
        return (
            f"OrganizerConfig(library={self.library!r}, llm={self.llm!r})"
        )

    def __str__(self) -> str:
        """Safe string representation."""
        return (
            f"OrganizerConfig(movies={self.library.movies}, shows={self.library.shows}, "
            f"provider={self.llm.provider.value})"
        )

    def check_directories(self) -> None:
        """
        Verify that every configured root is an existing directory.

        Raises:
            ConfigurationError: If a root is missing or not a directory
        """
        for name in ("movies", "shows", "source"):
            root = getattr(self.library, name)
            if root is not None and not root.is_dir():
                raise ConfigurationError(f"{name} folder is not a directory: {root}")

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "OrganizerConfig":
        """
        Load configuration from a YAML or JSON file.

        File format (YAML):
            ```yaml
            library:
              movies: /media/jellyfin/movies
              shows: /media/jellyfin/shows
              source: /media/incoming

            llm:
              provider: anthropic
              model: claude-3-7-sonnet-latest
              max_tokens: 1024

            prompt:
              template_path: ./prompt/main.md
              docs_dir: ./prompt/jellyfin-docs
            ```

        Args:
            path: Path to configuration file

        Returns:
            Loaded OrganizerConfig instance

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        content = path.read_text()

        try:
            if path.suffix == ".json":
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot parse configuration file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {path}")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "OrganizerConfig":
        """
        Create configuration from a dictionary.

        Raises:
            ConfigurationError: If required settings are missing or invalid
        """
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {_describe(e)}") from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OrganizerConfig":
        """
        Load configuration from environment variables.

        Environment variables:
            JELLYFIN_MOVIES_FOLDER - Movies library folder (required)
            JELLYFIN_SHOWS_FOLDER - Shows library folder (required)
            SOURCE_FOLDER - Read-only folder to scan for new media

            ORGANIZER_LLM_PROVIDER - Provider type (default: anthropic)
            ORGANIZER_LLM_MODEL - Model name
            ORGANIZER_LLM_BASE_URL - API base URL
            ANTHROPIC_API_KEY / OPENAI_API_KEY / LLM_API_KEY - API key

            ORGANIZER_PROMPT_TEMPLATE - Prompt template file
            ORGANIZER_DOCS_DIR - Jellyfin docs directory

        Args:
            environ: Variables to read (defaults to os.environ)

        Returns:
            OrganizerConfig instance

        Raises:
            ConfigurationError: If required environment variables are missing
        """
        env = os.environ if environ is None else environ

        movies = env.get("JELLYFIN_MOVIES_FOLDER")
        shows = env.get("JELLYFIN_SHOWS_FOLDER")
        if not movies:
            raise ConfigurationError("Missing required environment variable: JELLYFIN_MOVIES_FOLDER")
        if not shows:
            raise ConfigurationError("Missing required environment variable: JELLYFIN_SHOWS_FOLDER")

        library: dict[str, Any] = {"movies": movies, "shows": shows}
        if env.get("SOURCE_FOLDER"):
            library["source"] = env["SOURCE_FOLDER"]

        provider = env.get("ORGANIZER_LLM_PROVIDER", ProviderType.ANTHROPIC.value)
        llm: dict[str, Any] = {"provider": provider}
        if env.get("ORGANIZER_LLM_MODEL"):
            llm["model"] = env["ORGANIZER_LLM_MODEL"]
        if env.get("ORGANIZER_LLM_BASE_URL"):
            llm["base_url"] = env["ORGANIZER_LLM_BASE_URL"]

        api_key = api_key_from_env(provider, env)
        if api_key:
            llm["api_key"] = api_key

        prompt = {
            "template_path": env.get("ORGANIZER_PROMPT_TEMPLATE"),
            "docs_dir": env.get("ORGANIZER_DOCS_DIR"),
        }

        return cls.from_dict({"library": library, "llm": llm, "prompt": prompt})


def api_key_from_env(provider: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Find the API key for a provider in the environment."""
    env = os.environ if environ is None else environ
    try:
        names = API_KEY_VARIABLES.get(ProviderType(provider), ("LLM_API_KEY",))
    except ValueError:
        names = ("LLM_API_KEY",)
    for name in names:
        if env.get(name):
            return env[name]
    return None


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"]) or "config"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)
