"""Reusable type definitions shared by every document model."""

from .base import CamelModel, FrozenModel

__all__ = [
    "CamelModel",
    "FrozenModel",
]
