"""Engine settings and their YAML loader."""

import logging
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_DATETIME_FORMAT = "%x %X"


class EmptyValuePolicy(Enum):
    """What a placeholder becomes when its final value is empty."""

    KEEP_TOKEN = "keep_token"        # print the raw {{ ... }} token
    EMPTY_STRING = "empty_string"


@dataclass(frozen=True)
class EngineSettings:
    """Tunable behaviour of the composition engine."""
    empty_value_policy: EmptyValuePolicy = EmptyValuePolicy.KEEP_TOKEN
    datetime_format: str = DEFAULT_DATETIME_FORMAT
    detect_cycles: bool = True
    max_depth: Optional[int] = 64

    def __post_init__(self):
        if not isinstance(self.empty_value_policy, EmptyValuePolicy):
            object.__setattr__(self, 'empty_value_policy',
                               EmptyValuePolicy(self.empty_value_policy))
        if self.max_depth is not None and self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]]) -> "EngineSettings":
        """Build settings from a mapping, ignoring unknown keys."""
        values = values or {}
        if not isinstance(values, dict):
            raise ValueError("Engine settings must be a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning(f"Ignoring unknown engine settings: {', '.join(unknown)}")

        return cls(**{key: value for key, value in values.items() if key in known})

    @classmethod
    def from_file(cls, settings_path: Path) -> "EngineSettings":
        """
        Load settings from a YAML file.

        Args:
            settings_path: Path to a YAML mapping of setting names to values

        Returns:
            Parsed settings
        """
        try:
            with open(settings_path, 'r', encoding='utf-8') as f:
                values = yaml.safe_load(f)
            settings = cls.from_dict(values)
            logger.info(f"Loaded engine settings from {settings_path}")
            return settings
        except Exception as e:
            logger.error(f"Failed to load engine settings: {e}")
            raise
