"""Shared types: API versions, versioned API groups and disk descriptors."""

from __future__ import annotations

import abc
import re
from dataclasses import dataclass, field
from typing import Any, Callable

_VERSION_RE = re.compile(r"^v([1-9][0-9]*)(?:(alpha|beta)([1-9][0-9]*))?$")
_TRACK_RANK = {"alpha": 0, "beta": 1, "": 2}


@dataclass(frozen=True)
class ApiVersion:
    """An API version such as ``v1alpha1``, ``v1beta3`` or ``v1``."""

    major: int
    track: str = ""
    level: int = 0

    def __post_init__(self) -> None:
        if self.major < 1:
            raise ValueError(f"invalid major version: {self.major}")
        if self.track not in _TRACK_RANK:
            raise ValueError(f"invalid version track: {self.track!r}")
        if self.track and self.level < 1:
            raise ValueError(f"invalid {self.track} level: {self.level}")
        if not self.track and self.level:
            raise ValueError("a GA version has no level")

    @property
    def _key(self) -> tuple[int, int, int]:
        return (self.major, _TRACK_RANK[self.track], self.level)

    def compare(self, other: ApiVersion) -> int:
        """Return -1, 0 or 1 as this version is older, equal or newer than ``other``."""
        mine, theirs = self._key, other._key
        return (mine > theirs) - (mine < theirs)

    def __lt__(self, other: ApiVersion) -> bool:
        return self._key < other._key

    def __le__(self, other: ApiVersion) -> bool:
        return self._key <= other._key

    def __gt__(self, other: ApiVersion) -> bool:
        return self._key > other._key

    def __ge__(self, other: ApiVersion) -> bool:
        return self._key >= other._key

    def __str__(self) -> str:
        if self.track:
            return f"v{self.major}{self.track}{self.level}"
        return f"v{self.major}"


def parse_version(text: str) -> ApiVersion:
    """Parse a version string; raise ValueError if it is malformed."""
    match = _VERSION_RE.match(text)
    if match is None:
        raise ValueError(f"invalid API version: {text!r}")
    major, track, level = match.groups()
    return ApiVersion(int(major), track or "", int(level) if level else 0)


@dataclass
class VersionedAPI:
    """An API group at one version, with the callable that registers it on a server."""

    group: str
    version: ApiVersion
    registrant: Callable[[Any], None] = field(repr=False)


class APIGroup(abc.ABC):
    """An API group that offers one or more versioned APIs."""

    @abc.abstractmethod
    def versioned_apis(self) -> list[VersionedAPI]:
        """Return the versioned APIs of this group."""


@dataclass
class DiskLocation:
    """Physical location of a disk."""

    adapter: str = ""
    bus: str = ""
    target: str = ""
    lun_id: str = ""


@dataclass
class DiskIDs:
    """Identifiers of a disk."""

    page83: str = ""
    serial_number: str = ""