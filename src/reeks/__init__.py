# reeks: lazy sequence pipelines
# __init__.py for the main package

# Import the public API to the top-level namespace for easier access
from .core.collection import Collection
from .core.async_collection import AsyncCollection
from .core.source import Source, AsyncSource
from .core.errors import (
    CollectionError,
    UnexpectedCollectionError,
    NumberOverflowError,
    NumberUnderflowError,
    ItemNotFoundError,
    MultipleItemsFoundError,
    InvalidTypeError,
)
from .config import Config, CollectionSettings, load_config

__all__ = [
    "Collection",
    "AsyncCollection",
    "Source",
    "AsyncSource",
    "CollectionError",
    "UnexpectedCollectionError",
    "NumberOverflowError",
    "NumberUnderflowError",
    "ItemNotFoundError",
    "MultipleItemsFoundError",
    "InvalidTypeError",
    "Config",
    "CollectionSettings",
    "load_config",
]
