"""
Schedload Loader Registry.

The single shared mutable structure of the driver. The executor and the
diagnostics reporter both rescan it; lookups return a three-state
Resolution.
"""

from .registry import LabelEntry, LoaderRegistry, RegistrySnapshot
from .resolution import (
    Ambiguous,
    LabelSpace,
    LoaderHandle,
    Resolution,
    ResolutionPolicy,
    ResolutionState,
    Unique,
    Unknown,
)

__all__ = [
    # Registry
    "LabelEntry",
    "LoaderRegistry",
    "RegistrySnapshot",
    # Resolution
    "Ambiguous",
    "LabelSpace",
    "LoaderHandle",
    "Resolution",
    "ResolutionPolicy",
    "ResolutionState",
    "Unique",
    "Unknown",
]
