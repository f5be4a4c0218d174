"""
Host collaborator protocol.

The host owns the loaders. schedload only observes them, asks the host to
load artifacts through them, and never extends their lifetime.

Capabilities:
    - discover(): (artifact, origin loader) pairs currently known to the host
    - load(): load and initialize an artifact through a given loader
    - load_default(): load through the driver's own bootstrap machinery
    - identify(): short and fully-qualified identity of a loader
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Protocol, runtime_checkable

DiscoveryPair = tuple[str, Any]


@dataclass(frozen=True, slots=True)
class LoaderIdentity:
    """Implementation identity of a loader, in two label spaces."""

    short_name: str
    qualified_name: str

    def __str__(self) -> str:
        return self.qualified_name


def identify_loader(loader: Any) -> LoaderIdentity:
    """
    Identify a loader by its implementation class.

    Class-level importers (e.g. BuiltinImporter) are used as loaders
    without instantiation; they identify as themselves.
    """
    cls = loader if isinstance(loader, type) else type(loader)
    return LoaderIdentity(
        short_name=cls.__name__,
        qualified_name=f"{cls.__module__}.{cls.__qualname__}",
    )


@runtime_checkable
class LoaderHost(Protocol):
    """Protocol for the environment that creates and owns loaders."""

    def discover(self) -> Iterable[DiscoveryPair]:
        """
        List (artifact, origin loader) pairs currently known to the host.

        The origin loader is None for artifacts loaded by the host's own
        bootstrap machinery.
        """
        ...

    def load(self, artifact_id: str, loader: Any) -> Any:
        """
        Load and initialize an artifact through a loader.

        Raises:
            ArtifactNotFoundError: If the loader cannot locate or
                initialize the artifact
        """
        ...

    def load_default(self, artifact_id: str) -> Any:
        """Load and initialize an artifact through the bootstrap loader."""
        ...

    def identify(self, loader: Any) -> LoaderIdentity:
        """Return the implementation identity of a loader."""
        ...
