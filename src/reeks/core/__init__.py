# reeks.core
# This package contains the pipeline machinery of reeks: sources, the stage
# base classes, both collection types and the error taxonomy.

from .source import Source, AsyncSource
from .stage import Stage, AsyncStage
from .collection import Collection
from .async_collection import AsyncCollection
from .errors import CollectionError, translate_errors

__all__ = [
    "Source",
    "AsyncSource",
    "Stage",
    "AsyncStage",
    "Collection",
    "AsyncCollection",
    "CollectionError",
    "translate_errors",
]
