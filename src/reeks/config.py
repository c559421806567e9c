"""
Configuration loading and management.

This module provides tools for loading YAML configuration files and the
`CollectionSettings` object that carries the pipeline-wide options of a
collection, such as the opt-in numeric limit guard.
"""

from dataclasses import dataclass, fields, replace
import os
import sys
from typing import Any, Dict, Optional

import yaml


class Config:
    """
    A wrapper around a dictionary for managing configuration.

    It provides a `get` method that allows accessing nested values using
    dot-notation (e.g., 'collection.chunk_size').
    """

    def __init__(self, config_data: Dict[str, Any]):
        self._config = config_data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Access a config value using dot notation.

        Example:
            >>> config = Config({'a': {'b': 1}})
            >>> config.get('a.b')
            1
            >>> config.get('a.c', 'default_value')
            'default_value'

        :param key: The dot-separated key for the desired value.
        :param default: The value to return if the key is not found.
        :return: The configuration value or the default.
        """
        value = self._config
        for k in key.split("."):
            if not isinstance(value, dict) or k not in value:
                return default
            value = value[k]
        return value

    def __repr__(self) -> str:
        return f"Config(config_data={self._config})"


def load_config(path: Optional[str]) -> Config:
    """
    Loads a YAML configuration file from the given path.

    If the path is None or does not exist, it returns an empty Config object.

    :param path: The path to the YAML configuration file.
    :return: A Config object with the loaded data.
    """
    if not path or not os.path.exists(path):
        return Config({})

    with open(path, "r") as f:
        config_data = yaml.safe_load(f)

    return Config(config_data)


@dataclass(frozen=True)
class CollectionSettings:
    """
    Pipeline-wide options, fixed when a collection is created from a source
    and inherited by every stage derived from it.

    Attributes:
        throw_on_number_limit: When True, index counters and sums raise
            `NumberOverflowError`/`NumberUnderflowError` instead of growing
            past the limits below.
        index_limit: The value an index counter may not reach. Defaults to
            the platform's maximum safe integer, `sys.maxsize`.
        number_limit: The largest magnitude a guarded sum may reach.
            Defaults to the largest finite float.
        chunk_size: The default block size used by `reverse`.
    """

    throw_on_number_limit: bool = False
    index_limit: int = sys.maxsize
    number_limit: float = sys.float_info.max
    chunk_size: int = 1024

    def __post_init__(self):
        if self.index_limit <= 0:
            raise ValueError("index_limit must be a positive integer")
        if self.number_limit <= 0:
            raise ValueError("number_limit must be positive")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be a positive integer")

    def evolve(self, **changes: Any) -> "CollectionSettings":
        """Returns a copy with the given fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_config(cls, config: Config, section: str = "collection") -> "CollectionSettings":
        """
        Builds settings from the `section` of a loaded configuration.
        Missing keys keep their defaults.

        Example YAML::

            collection:
              throw_on_number_limit: true
              chunk_size: 256
        """
        values = {}
        for f in fields(cls):
            value = config.get(f"{section}.{f.name}")
            if value is not None:
                values[f.name] = value
        return cls(**values)


DEFAULT_SETTINGS = CollectionSettings()
