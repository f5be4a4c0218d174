"""
Loader Registry.

Incrementally observes loader instances and classifies each label as
Unknown, Unique or Ambiguous.

Loaders come into existence as a side effect of host activity, so the
registry cannot be filled up front. Callers sample the host at well
defined points (before the timeline starts, after every wait, on every
diagnostics tick) and fold each sample in with rescan().

Concurrency:
    All mutation happens in rescan() under a single lock. resolve() and
    snapshot() take the same lock briefly and return immutable values,
    so a reader never sees a label mid-transition.

Ownership:
    The registry holds loaders through weak references only. A loader
    the host drops can be reclaimed; its label keeps its state.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator

from schedload.host.base import DiscoveryPair, LoaderIdentity, identify_loader

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

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LabelEntry:
    """One label in one label space."""

    label: str
    space: LabelSpace
    resolution: Unique | Ambiguous

    @property
    def state(self) -> ResolutionState:
        return self.resolution.state

    @property
    def handle(self) -> LoaderHandle | None:
        if isinstance(self.resolution, Unique):
            return self.resolution.handle
        return None


@dataclass(frozen=True, slots=True)
class RegistrySnapshot:
    """Stable copy of the registry, taken at one point in time."""

    entries: tuple[LabelEntry, ...] = ()
    loaders: tuple[LoaderHandle, ...] = ()
    policy: ResolutionPolicy = ResolutionPolicy.SHORT_BY_IMPLEMENTATION

    def __iter__(self) -> Iterator[tuple[str, ResolutionState]]:
        for entry in self.entries:
            yield entry.label, entry.state

    def __len__(self) -> int:
        return len(self.entries)

    def state_of(self, label: str, space: LabelSpace) -> ResolutionState:
        for entry in self.entries:
            if entry.space is space and entry.label == label:
                return entry.state
        return ResolutionState.UNKNOWN

    @property
    def unique_entries(self) -> tuple[LabelEntry, ...]:
        return tuple(e for e in self.entries if e.state is ResolutionState.UNIQUE)

    @property
    def ambiguous_entries(self) -> tuple[LabelEntry, ...]:
        return tuple(e for e in self.entries if e.state is ResolutionState.AMBIGUOUS)

    def format(self) -> list[str]:
        """Render the snapshot as human-readable report lines."""
        lines = ["Loaders found:"]
        lines.extend(f"\t {handle.describe()}" for handle in self.loaders)
        lines.append("\t----- Of which the following are unique: ------")
        for entry in self.unique_entries:
            lines.append(f"\t [{entry.space.value}] {entry.label} -> {entry.handle.describe()}")
        ambiguous = self.ambiguous_entries
        if ambiguous:
            lines.append("\t----- Ambiguous labels: ------")
            lines.extend(f"\t [{e.space.value}] {e.label}" for e in ambiguous)
        return lines


class LoaderRegistry:
    """
    Registry of observed loader instances, addressable by label.

    Every loader is registered under two independent label spaces: its
    short class name and its fully-qualified class name. A label may be
    unique in one space and ambiguous in the other. Under the default
    policy a short label is claimed by the first implementation seen
    with it (see ResolutionPolicy).

    Example:
        registry = LoaderRegistry()
        registry.rescan(host.discover())

        match registry.resolve("PluginFinder"):
            case Unique(handle=handle):
                host.load("plugins.alpha", handle.get())
            case Ambiguous() | Unknown():
                ...
    """

    def __init__(
        self,
        policy: ResolutionPolicy = ResolutionPolicy.SHORT_BY_IMPLEMENTATION,
        *,
        identify: Callable[[Any], LoaderIdentity] = identify_loader,
    ):
        """
        Initialize an empty registry.

        Args:
            policy: Label spaces consulted by resolve(), in order
            identify: Maps a loader to its short and qualified identity
        """
        self._policy = ResolutionPolicy(policy)
        self._identify = identify
        self._lock = threading.Lock()
        self._known: dict[int, LoaderHandle] = {}  # id(loader) -> handle
        self._labels: dict[LabelSpace, dict[str, Unique | Ambiguous]] = {
            LabelSpace.SHORT: {},
            LabelSpace.QUALIFIED: {},
        }
        # Filled from weakref callbacks, which may fire inside a locked section
        self._reclaimed: deque[int] = deque()

    @property
    def policy(self) -> ResolutionPolicy:
        return self._policy

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for handle in self._known.values() if handle.alive)

    # ==================== Writes ====================

    def rescan(self, discovery: Iterable[DiscoveryPair]) -> int:
        """
        Fold a discovery sample into the registry.

        Pairs whose loader is None or already known are skipped, so
        rescanning an unchanged sample is a no-op.

        Args:
            discovery: (artifact, origin loader) pairs from the host

        Returns:
            Number of newly discovered loader instances
        """
        discovered = 0
        with self._lock:
            self._purge_reclaimed()
            for _artifact_id, loader in discovery:
                if loader is None or self._is_known(loader):
                    continue
                handle = self._track(loader)
                if handle is None:
                    continue
                discovered += 1
                self._promote(LabelSpace.SHORT, handle.identity.short_name, handle)
                self._promote(LabelSpace.QUALIFIED, handle.identity.qualified_name, handle)

        if discovered:
            logger.debug(f"[registry] Discovered {discovered} new loader(s)")
        return discovered

    def _is_known(self, loader: Any) -> bool:
        handle = self._known.get(id(loader))
        # A dead handle means the id now belongs to a different object
        return handle is not None and handle.get() is loader

    def _track(self, loader: Any) -> LoaderHandle | None:
        key = id(loader)
        try:
            ref = weakref.ref(loader, lambda _ref, key=key: self._reclaimed.append(key))
        except TypeError:
            logger.debug(
                f"[registry] Skipping loader without weak reference support: {type(loader)!r}"
            )
            return None
        handle = LoaderHandle(ref=ref, identity=self._identify(loader))
        self._known[key] = handle
        return handle

    def _promote(self, space: LabelSpace, label: str, handle: LoaderHandle) -> None:
        labels = self._labels[space]
        current = labels.get(label)
        if current is None:
            labels[label] = Unique(label, handle)
        elif isinstance(current, Unique):
            if (
                space is LabelSpace.SHORT
                and self._policy.short_labels_per_implementation
                and current.handle.identity.qualified_name != handle.identity.qualified_name
            ):
                logger.debug(
                    f"[registry] short label '{label}' stays with "
                    f"{current.handle.identity.qualified_name}, "
                    f"ignoring {handle.identity.qualified_name}"
                )
                return
            labels[label] = Ambiguous(label)
            logger.debug(f"[registry] {space.value} label '{label}' is now ambiguous")

    def _purge_reclaimed(self) -> None:
        while self._reclaimed:
            key = self._reclaimed.popleft()
            handle = self._known.get(key)
            if handle is not None and not handle.alive:
                del self._known[key]

    # ==================== Reads ====================

    def resolve(self, label: str) -> Resolution:
        """
        Resolve a label according to the registry's policy.

        Spaces are consulted in policy order; the first Unique hit wins.
        Otherwise the label is Ambiguous if any consulted space saw it
        ambiguous, and Unknown if none saw it at all.
        """
        with self._lock:
            found = [self._labels[space].get(label) for space in self._policy.spaces]

        for resolution in found:
            if isinstance(resolution, Unique):
                return resolution
        if any(isinstance(resolution, Ambiguous) for resolution in found):
            return Ambiguous(label)
        return Unknown(label)

    def state_of(self, label: str, space: LabelSpace) -> ResolutionState:
        """Resolution state of a label in a single label space."""
        with self._lock:
            resolution = self._labels[space].get(label)
        if resolution is None:
            return ResolutionState.UNKNOWN
        return resolution.state

    def snapshot(self) -> RegistrySnapshot:
        """Return an immutable copy of the registry."""
        with self._lock:
            entries = [
                LabelEntry(label=label, space=space, resolution=resolution)
                for space, labels in self._labels.items()
                for label, resolution in labels.items()
            ]
            loaders = [handle for handle in self._known.values() if handle.alive]

        entries.sort(key=lambda e: (e.space is not LabelSpace.SHORT, e.label))
        loaders.sort(key=lambda h: h.identity.qualified_name)
        return RegistrySnapshot(
            entries=tuple(entries),
            loaders=tuple(loaders),
            policy=self._policy,
        )
