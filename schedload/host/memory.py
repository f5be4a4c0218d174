"""
In-memory host.

A LoaderHost whose artifacts and loaders are declared up front. Useful
for unit tests and for embedding schedload in an application that keeps
its own plugin table instead of going through sys.modules.

Usage:
    host = MemoryLoaderHost()
    finder = PluginFinder()

    host.add("plugins.alpha", finder)          # visible to discovery
    host.allow(finder, "plugins.beta")         # loadable through finder
    host.allow_default("json")                 # loadable through bootstrap
"""

from __future__ import annotations

import types
from typing import Any

from schedload.errors import ArtifactNotFoundError

from .base import DiscoveryPair, LoaderIdentity, identify_loader


class MemoryLoaderHost:
    """
    LoaderHost backed by plain dictionaries.

    The host owns its loaders: it keeps strong references to them, the
    registry does not.
    """

    def __init__(self) -> None:
        self._artifacts: dict[str, Any] = {}  # artifact -> origin loader
        self._loadable: list[tuple[Any, set[str]]] = []  # (loader, artifacts)
        self._default_loadable: set[str] = set()
        self.loads: list[tuple[str, Any]] = []  # (artifact, loader or None)

    def add(self, artifact_id: str, loader: Any = None) -> None:
        """Make an artifact visible to discovery with its origin loader."""
        self._artifacts[artifact_id] = loader

    def forget(self, artifact_id: str) -> None:
        """Drop an artifact from discovery."""
        self._artifacts.pop(artifact_id, None)

    def allow(self, loader: Any, *artifact_ids: str) -> None:
        """Make artifacts loadable through *loader*."""
        for known, artifacts in self._loadable:
            if known is loader:
                artifacts.update(artifact_ids)
                return
        self._loadable.append((loader, set(artifact_ids)))

    def allow_default(self, *artifact_ids: str) -> None:
        """Make artifacts loadable through the bootstrap loader."""
        self._default_loadable.update(artifact_ids)

    def discover(self) -> list[DiscoveryPair]:
        return list(self._artifacts.items())

    def identify(self, loader: Any) -> LoaderIdentity:
        return identify_loader(loader)

    def load(self, artifact_id: str, loader: Any) -> Any:
        for known, artifacts in self._loadable:
            if known is loader and artifact_id in artifacts:
                self.loads.append((artifact_id, loader))
                self._artifacts[artifact_id] = loader
                return types.ModuleType(artifact_id)
        raise ArtifactNotFoundError(
            artifact_id, identify_loader(loader).qualified_name, "not loadable by this loader"
        )

    def load_default(self, artifact_id: str) -> Any:
        if artifact_id not in self._default_loadable:
            raise ArtifactNotFoundError(artifact_id, "default", "not loadable by bootstrap loader")
        self.loads.append((artifact_id, None))
        self._artifacts.setdefault(artifact_id, None)
        return types.ModuleType(artifact_id)
