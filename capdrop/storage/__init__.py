"""
capdrop Storage - keyed records with all-or-nothing commits.
"""

from capdrop.storage.backend import (
    JsonFileStorage,
    MemoryStorage,
    StagedStorage,
    Storage,
)
from capdrop.storage.items import Item, Map

__all__ = [
    "Storage",
    "MemoryStorage",
    "JsonFileStorage",
    "StagedStorage",
    "Item",
    "Map",
]
