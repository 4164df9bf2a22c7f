"""
Package Index

Per-branch snapshot of binary packages grouped by architecture. Within an
architecture a package is identified by name alone, so each bucket maps
name to the record carrying its EVR.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Optional

from .rpm_utils import format_evr

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageRecord:
    """A package name and its EVR string (epoch:version-release)."""

    name: str
    version: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {"name": self.name, "rpm_version": self.version}


class PackageIndex:
    """
    Immutable mapping of architecture -> package name -> PackageRecord.

    Build instances with PackageIndex.build(); there is no API for
    changing an index after construction.
    """

    def __init__(self, arch_packages: Mapping[str, Mapping[str, PackageRecord]]):
        self._arch_packages: dict[str, dict[str, PackageRecord]] = {
            arch: dict(pkgs) for arch, pkgs in arch_packages.items() if pkgs
        }

    @classmethod
    def build(cls, records: Iterable[Mapping[str, Any]]) -> PackageIndex:
        """
        Build an index from raw package records.

        Each record needs arch, name, epoch, version and release keys;
        other keys are ignored. When a name repeats within one
        architecture the first record encountered is kept.

        Args:
            records: Raw package dicts as returned by the API

        Returns:
            PackageIndex over the given records
        """
        arch_packages: dict[str, dict[str, PackageRecord]] = {}
        duplicates = 0

        for raw in records:
            bucket = arch_packages.setdefault(raw["arch"], {})
            name = raw["name"]

            if name in bucket:
                duplicates += 1
                logger.debug(
                    f"Ignoring duplicate package {name} ({raw['arch']}), "
                    f"keeping {bucket[name].version}"
                )
                continue

            bucket[name] = PackageRecord(
                name=name,
                version=format_evr(raw["epoch"], raw["version"], raw["release"]),
            )

        if duplicates:
            logger.warning(f"Dropped {duplicates} duplicate package records")

        return cls(arch_packages)

    def architectures(self) -> frozenset[str]:
        """Return all architectures with at least one package."""
        return frozenset(self._arch_packages)

    def packages(self, arch: str) -> Optional[list[PackageRecord]]:
        """Return packages for an architecture, or None if it is absent."""
        bucket = self._arch_packages.get(arch)
        if bucket is None:
            return None
        return list(bucket.values())

    def contains(self, arch: str, name: str) -> bool:
        """Check whether a package name is present for an architecture."""
        bucket = self._arch_packages.get(arch)
        return bucket is not None and name in bucket

    def lookup(self, arch: str, name: str) -> Optional[PackageRecord]:
        """Return the package with a given name and arch, if any."""
        bucket = self._arch_packages.get(arch)
        if bucket is None:
            return None
        return bucket.get(name)

    def package_count(self, arch: str) -> int:
        """Return number of packages for an architecture."""
        return len(self._arch_packages.get(arch, ()))

    def summary(self) -> dict[str, int]:
        """Return package counts per architecture, sorted by arch."""
        return {
            arch: len(self._arch_packages[arch])
            for arch in sorted(self._arch_packages)
        }

    def __len__(self) -> int:
        return sum(len(pkgs) for pkgs in self._arch_packages.values())

    def __repr__(self) -> str:
        return f"PackageIndex({self.summary()!r})"
