"""Settings resolution: defaults, then config.yaml, then environment."""
import logging
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource

from vocab_srs.constants import CONFIG_FILE, DEFAULT_NEW_CARDS_PER_DAY
from vocab_srs.errors import ConfigError
from vocab_srs.storage import DEFAULT_DATA_DIR

logger = logging.getLogger(__name__)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Application settings.

    Environment variables use the ``VOCAB_SRS_`` prefix; the data directory
    is read from ``VOCAB_SRS_HOME`` (or ``VOCAB_SRS_DATA_DIR``).
    """

    model_config = SettingsConfigDict(
        env_prefix="VOCAB_SRS_",
        extra="ignore",
        populate_by_name=True,
    )

    data_dir: str = Field(
        default=DEFAULT_DATA_DIR,
        validation_alias=AliasChoices("VOCAB_SRS_HOME", "VOCAB_SRS_DATA_DIR"),
    )
    new_cards_per_day: int = Field(default=DEFAULT_NEW_CARDS_PER_DAY, ge=0)
    loop_mode: bool = False
    log_level: LogLevel = "WARNING"

    @field_validator("data_dir", mode="before")
    @classmethod
    def expand_data_dir(cls, v: Any) -> str:
        return str(Path(str(v)).expanduser())

    @field_validator("new_cards_per_day", mode="before")
    @classmethod
    def reject_bool(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("must be an integer, not a boolean")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


def read_config_file(path: Path) -> dict:
    """Read ``path`` as YAML, keeping only known setting names."""
    try:
        data = YamlConfigSettingsSource(Settings, yaml_file=path).yaml_data
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except (TypeError, ValueError, AttributeError) as e:
        raise ConfigError(f"{path} must contain a mapping") from e
    known = set(Settings.model_fields)
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown settings in %s: %s", path, ", ".join(unknown))
    return {k: v for k, v in data.items() if k in known}


def load_settings(config_path: Optional[str] = None) -> Settings:
    """Resolve settings.

    1. Defaults in Settings
    2. config.yaml in the data directory (or ``config_path``)
    3. Environment variables (VOCAB_SRS_*)
    """
    try:
        from_env = Settings()
        path = Path(config_path) if config_path else Path(from_env.data_dir) / CONFIG_FILE
        values = read_config_file(path)
        values.update(from_env.model_dump(exclude_unset=True))
        return Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e
