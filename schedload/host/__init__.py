"""
Schedload Host Layer.

The host is the environment that creates loaders as a side effect of its
own activity. schedload consumes four host capabilities (see LoaderHost)
and never owns a loader.

Implementations:
    - ImportSystemHost: the running interpreter (sys.modules + importlib)
    - MemoryLoaderHost: declared artifacts/loaders, for tests and embedding
"""

from .base import DiscoveryPair, LoaderHost, LoaderIdentity, identify_loader
from .memory import MemoryLoaderHost
from .python import BOOTSTRAP_IMPORTERS, ImportSystemHost, origin_loader

__all__ = [
    "BOOTSTRAP_IMPORTERS",
    "DiscoveryPair",
    "ImportSystemHost",
    "LoaderHost",
    "LoaderIdentity",
    "MemoryLoaderHost",
    "identify_loader",
    "origin_loader",
]
