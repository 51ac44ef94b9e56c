"""User interface settings stored in the config directory."""

from pathlib import Path
from typing import Union

import yaml
from pydantic import BaseModel, Field

from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_THEME = "default"
DEFAULT_LANGUAGE = "en"

THEMES = ("default", "dark", "light", "mint", "lavender")
LANGUAGES = ("en", "de", "es", "fr", "nl", "ru", "zh")


class Settings(BaseModel):
    """Settings the user can change from the web interface."""

    theme: str = Field(default=DEFAULT_THEME, description="UI theme")
    language: str = Field(default=DEFAULT_LANGUAGE, description="UI language")

    def load(self, file_name: Union[str, Path]) -> None:
        """Replace values with those found in a YAML file."""
        path = Path(file_name)

        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")

        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse settings file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Invalid settings file: {path}")

        for key, value in data.items():
            if key in type(self).model_fields and value is not None:
                setattr(self, key, str(value))

    def save(self, file_name: Union[str, Path]) -> None:
        """Write settings to a YAML file."""
        path = Path(file_name)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            yaml.safe_dump(self.model_dump(), f, default_flow_style=False)

    def propagate(self) -> None:
        """Fall back to defaults for values the UI doesn't support."""
        if self.theme not in THEMES:
            logger.warning(f"Unknown theme '{self.theme}', using '{DEFAULT_THEME}'")
            self.theme = DEFAULT_THEME

        language = self.language.lower().replace("_", "-").split("-")[0]
        if language not in LANGUAGES:
            logger.warning(f"Unsupported language '{self.language}', using '{DEFAULT_LANGUAGE}'")
            language = DEFAULT_LANGUAGE
        self.language = language
