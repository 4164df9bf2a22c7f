"""
Branch Reconciliation

Compares the package indices of two branches, producing per-architecture
lists of packages exclusive to one branch and of packages whose version is
newer in the target branch.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .packages import PackageIndex, PackageRecord
from .rpm_utils import EVRComparator, compare_evr

logger = logging.getLogger(__name__)


@dataclass
class ReportEntry:
    """Packages of one architecture that exist in only one branch."""

    arch: str
    packages: list[PackageRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "arch": self.arch,
            "packages": [p.to_dict() for p in self.packages],
        }


@dataclass
class VersionedPair:
    """A package present in both branches with its two versions."""

    name: str
    target_version: str
    secondary_version: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "target_rpm_version": self.target_version,
            "secondary_rpm_version": self.secondary_version,
        }


@dataclass
class VersionedReportEntry:
    """Packages of one architecture that are newer in the target branch."""

    arch: str
    packages: list[VersionedPair] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "arch": self.arch,
            "packages": [p.to_dict() for p in self.packages],
        }


def exclusive(primary: PackageIndex, other: PackageIndex) -> list[ReportEntry]:
    """
    Find packages of ``primary`` missing from ``other``.

    One entry is produced for every architecture of ``primary``, even when
    nothing is exclusive there. If ``other`` lacks the architecture
    entirely, all of its packages are exclusive.

    Args:
        primary: Index whose packages are reported
        other: Index to check membership against

    Returns:
        ReportEntry list sorted by architecture
    """
    report = []

    for arch in sorted(primary.architectures()):
        packages = [
            pkg for pkg in primary.packages(arch) or []
            if not other.contains(arch, pkg.name)
        ]
        packages.sort(key=lambda p: p.name)
        report.append(ReportEntry(arch=arch, packages=packages))

    return report


def newer_in_target(
    target: PackageIndex,
    secondary: PackageIndex,
    compare: EVRComparator = compare_evr,
) -> list[VersionedReportEntry]:
    """
    Find packages whose version in ``target`` is newer than in ``secondary``.

    Packages missing from ``secondary`` are skipped, and architectures
    missing from ``secondary`` produce no entry at all.

    Args:
        target: Index expected to hold the newer versions
        secondary: Index to compare against
        compare: Three-way EVR comparator, positive when the first
            argument is newer

    Returns:
        VersionedReportEntry list sorted by architecture

    Raises:
        VersionCompareError: If the comparator rejects a version string
    """
    report = []

    for arch in sorted(target.architectures()):
        if secondary.packages(arch) is None:
            logger.debug(f"Architecture {arch} missing from secondary index, skipping")
            continue

        pairs = []
        for pkg in target.packages(arch) or []:
            match = secondary.lookup(arch, pkg.name)
            if match is None:
                continue

            if compare(pkg.version, match.version) > 0:
                pairs.append(
                    VersionedPair(
                        name=pkg.name,
                        target_version=pkg.version,
                        secondary_version=match.version,
                    )
                )

        pairs.sort(key=lambda p: p.name)
        report.append(VersionedReportEntry(arch=arch, packages=pairs))

    return report


@dataclass
class BranchComparison:
    """Results of comparing two branches."""

    target: str
    secondary: str
    target_exclusive: list[ReportEntry]
    secondary_exclusive: list[ReportEntry]
    newer_in_target: list[VersionedReportEntry]
    arch: Optional[str] = None

    @property
    def exclusive_count(self) -> tuple[int, int]:
        """Return numbers of exclusive packages in (target, secondary)."""
        return (
            sum(len(e.packages) for e in self.target_exclusive),
            sum(len(e.packages) for e in self.secondary_exclusive),
        )

    @property
    def newer_count(self) -> int:
        """Return number of packages newer in the target branch."""
        return sum(len(e.packages) for e in self.newer_in_target)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary keyed by branch names."""
        return {
            f"{self.target}_exclusive": [e.to_dict() for e in self.target_exclusive],
            f"{self.secondary}_exclusive": [e.to_dict() for e in self.secondary_exclusive],
            f"newer_in_{self.target}": [e.to_dict() for e in self.newer_in_target],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


def compare_indices(
    target_name: str,
    secondary_name: str,
    target: PackageIndex,
    secondary: PackageIndex,
    arch: Optional[str] = None,
    compare: EVRComparator = compare_evr,
) -> BranchComparison:
    """
    Run all reconciliations for a pair of branch indices.

    Args:
        target_name: Target branch name (e.g., "sisyphus")
        secondary_name: Secondary branch name (e.g., "p10")
        target: Target branch index
        secondary: Secondary branch index
        arch: Architecture filter the indices were fetched with, if any
        compare: Three-way EVR comparator

    Returns:
        BranchComparison with both exclusivity reports and the
        newer-version report
    """
    result = BranchComparison(
        target=target_name,
        secondary=secondary_name,
        target_exclusive=exclusive(target, secondary),
        secondary_exclusive=exclusive(secondary, target),
        newer_in_target=newer_in_target(target, secondary, compare),
        arch=arch,
    )

    target_only, secondary_only = result.exclusive_count
    logger.info(
        f"{target_name} vs {secondary_name}: {target_only} exclusive to "
        f"{target_name}, {secondary_only} exclusive to {secondary_name}, "
        f"{result.newer_count} newer in {target_name}"
    )
    return result
