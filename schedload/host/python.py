"""
Import-system host.

Binds the LoaderHost protocol to the running interpreter:

    artifact       -> dotted module name
    origin loader  -> module.__spec__.loader (or module.__loader__)
    bootstrap      -> importlib.import_module

Loaders are created by the application as it runs: plugin frameworks
install meta path finders, zip archives get zipimporters, test runners
install rewriting hooks. The host only reports what sys.modules shows at
the moment it is asked.
"""

from __future__ import annotations

import importlib
import importlib.abc
import importlib.machinery
import importlib.util
import logging
import sys
from typing import Any, Iterator

from schedload.errors import ArtifactNotFoundError

from .base import DiscoveryPair, LoaderIdentity, identify_loader

logger = logging.getLogger(__name__)

# Importers that make up the interpreter's own bootstrap machinery. Modules
# loaded by them have no visible origin loader.
BOOTSTRAP_IMPORTERS: tuple[type, ...] = (
    importlib.machinery.BuiltinImporter,
    importlib.machinery.FrozenImporter,
)


def _is_bootstrap_importer(loader: Any) -> bool:
    if isinstance(loader, type):
        return issubclass(loader, BOOTSTRAP_IMPORTERS)
    return isinstance(loader, BOOTSTRAP_IMPORTERS)


def origin_loader(module: Any) -> Any:
    """Return the loader that created *module*, or None for bootstrap modules."""
    spec = getattr(module, "__spec__", None)
    loader = getattr(spec, "loader", None) if spec is not None else None
    if loader is None:
        loader = getattr(module, "__loader__", None)
    if loader is None or _is_bootstrap_importer(loader):
        return None
    return loader


class ImportSystemHost:
    """
    LoaderHost over sys.modules and importlib.

    Example:
        host = ImportSystemHost()
        registry.rescan(host.discover())
        module = host.load("plugins.alpha", finder)
    """

    def discover(self) -> Iterator[DiscoveryPair]:
        """Yield (module name, origin loader) for every module in sys.modules."""
        for name, module in list(sys.modules.items()):
            if module is None:
                continue
            yield name, origin_loader(module)

    def identify(self, loader: Any) -> LoaderIdentity:
        return identify_loader(loader)

    def load_default(self, artifact_id: str) -> Any:
        """Import through the normal import system."""
        try:
            return importlib.import_module(artifact_id)
        except Exception as e:
            raise ArtifactNotFoundError(artifact_id, "default", str(e)) from e

    def load(self, artifact_id: str, loader: Any) -> Any:
        """
        Import *artifact_id* through *loader*.

        Modules that are already initialized are returned as they are.
        Parent packages are imported through the normal import system.

        Raises:
            ArtifactNotFoundError: If the loader cannot find the module or
                its initialization fails
        """
        existing = sys.modules.get(artifact_id)
        if existing is not None:
            return existing

        label = identify_loader(loader).qualified_name
        parent_name, _, child_name = artifact_id.rpartition(".")
        parent_path = None
        if parent_name:
            try:
                parent = importlib.import_module(parent_name)
            except Exception as e:
                raise ArtifactNotFoundError(
                    artifact_id, label, f"parent package {parent_name} is not importable"
                ) from e
            parent_path = getattr(parent, "__path__", None)
            if parent_path is None:
                raise ArtifactNotFoundError(artifact_id, label, f"{parent_name} is not a package")

        try:
            spec = self._find_spec(artifact_id, loader, parent_path)
        except ImportError as e:
            raise ArtifactNotFoundError(artifact_id, label, str(e)) from e
        if spec is None or spec.loader is None:
            raise ArtifactNotFoundError(artifact_id, label, "loader could not locate it")

        module = importlib.util.module_from_spec(spec)
        sys.modules[artifact_id] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(artifact_id, None)
            raise ArtifactNotFoundError(
                artifact_id, label, f"initialization failed: {e}"
            ) from e

        # The module may have replaced itself in sys.modules while executing
        module = sys.modules.get(artifact_id, module)
        if parent_name:
            setattr(sys.modules[parent_name], child_name, module)
        return module

    def _find_spec(
        self,
        artifact_id: str,
        loader: Any,
        parent_path: Any,
    ) -> importlib.machinery.ModuleSpec | None:
        find_spec = getattr(loader, "find_spec", None)
        if callable(find_spec):
            if self._is_meta_path_finder(loader):
                return find_spec(artifact_id, parent_path)
            # Path entry finders (FileFinder, zipimporter) take the name only
            return find_spec(artifact_id)

        if hasattr(loader, "exec_module"):
            return importlib.util.spec_from_loader(artifact_id, loader)

        logger.debug(f"[host] {identify_loader(loader)} is neither a finder nor a loader")
        return None

    @staticmethod
    def _is_meta_path_finder(loader: Any) -> bool:
        if isinstance(loader, type):
            return True
        if any(finder is loader for finder in sys.meta_path):
            return True
        return isinstance(loader, importlib.abc.MetaPathFinder)
