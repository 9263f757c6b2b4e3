"""
Settings for locating the prompt store.

Each setting is taken from an explicit value first, then the environment,
then the built-in default.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from prompt_manager.exceptions import ConfigurationError
from prompt_manager.storage import CODECS


DATA_DIR_ENV = "PROMPT_MANAGER_HOME"
FORMAT_ENV = "PROMPT_MANAGER_FORMAT"

DEFAULT_DATA_DIR_NAME = ".prompt-manager"
DEFAULT_FORMAT = "json"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    record_format: str = DEFAULT_FORMAT


def default_data_dir() -> Path:
    return Path.home() / DEFAULT_DATA_DIR_NAME


def load_settings(
    data_dir: Optional[Path] = None,
    record_format: Optional[str] = None,
) -> Settings:
    if data_dir is None:
        env_dir = os.environ.get(DATA_DIR_ENV)
        data_dir = Path(env_dir) if env_dir else default_data_dir()

    if record_format is None:
        record_format = os.environ.get(FORMAT_ENV) or DEFAULT_FORMAT

    record_format = record_format.lower()
    if record_format not in CODECS:
        raise ConfigurationError(
            f"Unknown record format '{record_format}'. "
            f"Expected one of: {', '.join(sorted(CODECS))}"
        )

    return Settings(data_dir=Path(data_dir).expanduser(), record_format=record_format)
