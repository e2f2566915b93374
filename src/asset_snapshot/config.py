"""Export settings as the host plugin config stores them."""

import json
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class SettingsError(ValueError):
    """Raised when a settings file cannot be read or validated."""
    pass


class ExportSettings(BaseModel):
    """User-facing export configuration.

    ``export_path`` is an absolute output-directory override; blank means
    the host's data directory.
    """
    export_path: str = Field(default="", alias="ExportPath")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


def load_settings(path: Optional[Union[str, os.PathLike]]) -> ExportSettings:
    """Load settings from a JSON file. A missing file yields defaults."""
    if path is None:
        return ExportSettings()
    settings_path = Path(path)
    if not settings_path.exists():
        return ExportSettings()
    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise SettingsError(f"Cannot read settings file {settings_path}: {e}") from e
    if data is None:
        return ExportSettings()
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {settings_path} must contain a JSON object")
    try:
        return ExportSettings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings in {settings_path}: {e}") from e


def resolve_output_directory(settings: ExportSettings, data_directory: Union[str, os.PathLike]) -> Path:
    """Where the snapshot goes: the override if set, else the data directory."""
    override = (settings.export_path or "").strip()
    if not override:
        return Path(data_directory)
    return Path(os.path.normpath(os.path.abspath(override)))
