"""Configuration management for recipe_normalizer.

Configuration priority (highest to lowest):
1. CLI arguments (passed directly to functions)
2. Environment variables (RECIPE_NORMALIZER_*)
3. Project config file (.recipe-normalizer.toml)
4. User config file (~/.config/recipe-normalizer/config.toml)
5. Default values

Example:
    >>> config = NormalizerConfig.load()
    >>> config.update(model="gpt-4o")
    >>> config.save("~/.config/recipe-normalizer/config.toml")
"""

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import tomli_w

from .exceptions import ConfigurationError

ENV_PREFIX = "RECIPE_NORMALIZER_"
TOML_SECTION = "recipe-normalizer"
PROJECT_CONFIG = Path(".recipe-normalizer.toml")
VALID_MODELS = frozenset({"gpt-4o", "gpt-4o-mini", "gpt-5-mini", "gpt-5-nano"})


def user_config_path() -> Path:
    """Location of the per-user config file."""
    return Path.home() / ".config" / "recipe-normalizer" / "config.toml"


@dataclass
class NormalizerConfig:
    """Settings for generation, normalization and storage.

    Attributes:
        Model Settings:
            model: OpenAI model used for generation
            temperature: Sampling temperature (0.0 = deterministic)
            retry_attempts: Retries after a transient API failure
            initial_retry_delay: First backoff delay in seconds

        Normalization Settings:
            description_line_limit: Body lines used as the description when
                plain text has no ``Description:`` section

        Storage Settings:
            data_dir: Directory for the recipe store and submission history
            log_file: File receiving CLI logs
            debug_mode: Enable debug logging

    Example:
        >>> config = NormalizerConfig(model="gpt-4o", debug_mode=True)
        >>> config.recipes_dir
        PosixPath('data')
    """

    # Model settings
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    retry_attempts: int = 3
    initial_retry_delay: float = 1.0

    # Normalization settings
    description_line_limit: int = 5

    # Storage settings
    data_dir: Path = field(default_factory=lambda: Path("data"))
    log_file: Path = field(default_factory=lambda: Path("recipe_normalizer.log"))
    debug_mode: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If any configuration value is invalid
        """
        if self.model not in VALID_MODELS:
            raise ConfigurationError(
                f"Invalid model: {self.model}",
                model=self.model,
                valid_models=", ".join(sorted(VALID_MODELS)),
            )

        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(
                "Temperature must be between 0.0 and 2.0",
                temperature=self.temperature,
            )

        if self.retry_attempts < 0:
            raise ConfigurationError(
                "retry_attempts must be non-negative",
                retry_attempts=self.retry_attempts,
            )

        if self.initial_retry_delay <= 0:
            raise ConfigurationError(
                "initial_retry_delay must be positive",
                initial_retry_delay=self.initial_retry_delay,
            )

        if self.description_line_limit < 1:
            raise ConfigurationError(
                "description_line_limit must be at least 1",
                description_line_limit=self.description_line_limit,
            )

        # May receive str from TOML or env
        self.data_dir = Path(self.data_dir)
        self.log_file = Path(self.log_file)

    @property
    def recipes_dir(self) -> Path:
        """Directory holding ``recipes.json``."""
        return self.data_dir

    @property
    def submissions_path(self) -> Path:
        """File holding the generation history."""
        return self.data_dir / "submissions.json"

    @classmethod
    def load(
        cls,
        config_path: str | Path | None = None,
        load_user_config: bool = True,
        load_env: bool = True,
    ) -> "NormalizerConfig":
        """Load configuration from file(s) and environment variables.

        Args:
            config_path: Project config file; defaults to ``.recipe-normalizer.toml``
            load_user_config: Whether to read the user config file
            load_env: Whether to apply ``RECIPE_NORMALIZER_*`` variables

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If a file is invalid or a value fails validation
        """
        config_dict: dict[str, Any] = {}

        if load_user_config:
            user_path = user_config_path()
            if user_path.exists():
                config_dict.update(cls._load_toml(user_path))

        project_path = Path(config_path) if config_path else PROJECT_CONFIG
        if project_path.exists():
            config_dict.update(cls._load_toml(project_path))

        if load_env:
            config_dict.update(cls._load_env())

        unknown = set(config_dict) - cls._field_names()
        if unknown:
            raise ConfigurationError(
                "Unknown configuration keys",
                keys=", ".join(sorted(unknown)),
            )
        return cls(**config_dict)

    @classmethod
    def _field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @staticmethod
    def _load_toml(path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file.

        Values may sit at the top level or under a ``[recipe-normalizer]`` table.

        Raises:
            ConfigurationError: If the file cannot be read or parsed
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(
                f"Failed to load configuration from {path}",
                path=str(path),
                error=str(e),
            ) from e
        return data.get(TOML_SECTION, data)

    @classmethod
    def _load_env(cls) -> dict[str, Any]:
        """Load configuration from environment variables.

        For example ``RECIPE_NORMALIZER_MODEL=gpt-4o`` or
        ``RECIPE_NORMALIZER_DEBUG_MODE=true``. Values are converted to the
        type of the field's default.

        Raises:
            ConfigurationError: If a value cannot be converted
        """
        defaults = {f.name: getattr(cls(), f.name) for f in fields(cls)}
        config: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            config_key = key[len(ENV_PREFIX) :].lower()
            if config_key not in defaults:
                continue

            default = defaults[config_key]
            try:
                if isinstance(default, bool):
                    config[config_key] = value.strip().lower() in ("true", "1", "yes", "on")
                elif isinstance(default, int):
                    config[config_key] = int(value)
                elif isinstance(default, float):
                    config[config_key] = float(value)
                else:
                    config[config_key] = value
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {key}", key=key, value=value
                ) from e

        return config

    def save(self, path: str | Path) -> None:
        """Save configuration to a TOML file.

        Raises:
            ConfigurationError: If save fails
        """
        path = Path(path).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                tomli_w.dump({TOML_SECTION: self.to_dict()}, f)
        except (OSError, TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Failed to save configuration to {path}",
                path=str(path),
                error=str(e),
            ) from e

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary with paths as strings.

        Example:
            >>> NormalizerConfig().to_dict()["model"]
            'gpt-4o-mini'
        """
        return {
            key: str(value) if isinstance(value, Path) else value
            for key, value in self.__dict__.items()
        }

    def update(self, **kwargs: Any) -> None:
        """Update configuration values and revalidate.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid
        """
        for key, value in kwargs.items():
            if key not in self._field_names():
                raise ConfigurationError(
                    f"Unknown configuration key: {key}",
                    key=key,
                    valid_keys=", ".join(sorted(self._field_names())),
                )
            setattr(self, key, value)

        self._validate()
