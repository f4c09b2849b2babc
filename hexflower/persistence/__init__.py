"""Persistence providers for the Hex Flower Engine."""

from hexflower.persistence.flower_store import (
    FlowerStore,
    InMemoryFlowerStore,
    JsonFileFlowerStore,
    STORE_FORMAT_VERSION,
)

__all__ = [
    "FlowerStore",
    "InMemoryFlowerStore",
    "JsonFileFlowerStore",
    "STORE_FORMAT_VERSION",
]
