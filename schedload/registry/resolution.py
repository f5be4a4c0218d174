"""
Label resolution results.

A label resolves to exactly one of:

    Unknown    - never observed
    Unique     - exactly one distinct loader instance observed
    Ambiguous  - two or more distinct loader instances observed

Per label space the state only moves forward:
Unknown -> Unique -> Ambiguous.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias

from schedload.host.base import LoaderIdentity


class ResolutionState(str, Enum):
    """Resolution state of a label."""

    UNKNOWN = "unknown"
    UNIQUE = "unique"
    AMBIGUOUS = "ambiguous"


class LabelSpace(str, Enum):
    """Independent namespaces a loader is registered under."""

    SHORT = "short"
    QUALIFIED = "qualified"


class ResolutionPolicy(str, Enum):
    """
    Which label spaces a lookup consults, in order.

    The first space yielding a Unique hit wins.

    SHORT_BY_IMPLEMENTATION consults the same spaces as
    SHORT_THEN_QUALIFIED, but a short label belongs to the first
    implementation observed under it: loaders of other implementations
    sharing the short name do not make it ambiguous, a second instance
    of the owning implementation does.
    """

    SHORT_BY_IMPLEMENTATION = "short_by_implementation"
    SHORT_THEN_QUALIFIED = "short_then_qualified"
    SHORT_ONLY = "short_only"
    QUALIFIED_ONLY = "qualified_only"

    @property
    def short_labels_per_implementation(self) -> bool:
        return self is ResolutionPolicy.SHORT_BY_IMPLEMENTATION

    @property
    def spaces(self) -> tuple[LabelSpace, ...]:
        if self is ResolutionPolicy.SHORT_ONLY:
            return (LabelSpace.SHORT,)
        if self is ResolutionPolicy.QUALIFIED_ONLY:
            return (LabelSpace.QUALIFIED,)
        return (LabelSpace.SHORT, LabelSpace.QUALIFIED)


@dataclass(frozen=True, slots=True, eq=False)
class LoaderHandle:
    """
    Non-owning reference to a host loader.

    The registry creates one handle per distinct loader instance, so two
    handles are equal only if they are the same object.
    """

    ref: weakref.ref
    identity: LoaderIdentity

    def get(self) -> Any | None:
        """Return the loader, or None if the host has reclaimed it."""
        return self.ref()

    @property
    def alive(self) -> bool:
        return self.ref() is not None

    def describe(self) -> str:
        loader = self.ref()
        if loader is None:
            return f"Loader Class: {self.identity.qualified_name} (reclaimed)"
        name = getattr(loader, "name", None)
        path = getattr(loader, "path", None)
        return (
            f"Loader Class: {self.identity.qualified_name}, "
            f"Loader Name: {name}, Loader Path: {path}"
        )

    def __repr__(self) -> str:
        status = "alive" if self.alive else "reclaimed"
        return f"LoaderHandle({self.identity.qualified_name}, {status})"


@dataclass(frozen=True, slots=True)
class Unknown:
    label: str

    @property
    def state(self) -> ResolutionState:
        return ResolutionState.UNKNOWN


@dataclass(frozen=True, slots=True)
class Unique:
    label: str
    handle: LoaderHandle

    @property
    def state(self) -> ResolutionState:
        return ResolutionState.UNIQUE


@dataclass(frozen=True, slots=True)
class Ambiguous:
    label: str

    @property
    def state(self) -> ResolutionState:
        return ResolutionState.AMBIGUOUS


Resolution: TypeAlias = Unknown | Unique | Ambiguous
