"""
Fetch orchestration.

Validates the requested branches and architecture, fetches both branches
concurrently and reconciles them once both indices are built.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Collection
from typing import Optional

from .api import RDBClient
from .config import Settings
from .errors import UnknownBranchError, UnsupportedArchError
from .packages import PackageIndex
from .reconcile import BranchComparison, compare_indices
from .rpm_utils import EVRComparator, compare_evr

logger = logging.getLogger(__name__)


def check_known_branches(branches: Collection[str], known_branches: Collection[str]) -> None:
    """
    Reject branches outside a static allow-list.

    An empty allow-list accepts everything and leaves validation to the
    service.

    Raises:
        UnknownBranchError: For the first branch not in the list
    """
    if not known_branches:
        return
    for branch in branches:
        if branch not in known_branches:
            raise UnknownBranchError(
                f"unknown branch (known: {', '.join(sorted(known_branches))})",
                branch=branch,
                operation="validating",
            )


async def validate_branches(
    client: RDBClient,
    target: str,
    secondary: str,
    arch: Optional[str] = None,
) -> None:
    """
    Check that both branches exist and both support ``arch``.

    Fetches the architecture lists of both branches concurrently. An
    unknown branch is reported by the service and raised by the client.

    Raises:
        UnknownBranchError: If the service does not know a branch
        UnsupportedArchError: If ``arch`` is missing from either branch
    """
    target_archs, secondary_archs = await asyncio.gather(
        client.fetch_branch_archs(target),
        client.fetch_branch_archs(secondary),
    )

    if arch is None:
        return

    for branch, archs in ((target, target_archs), (secondary, secondary_archs)):
        if arch not in archs:
            raise UnsupportedArchError(
                f"architecture '{arch}' is not supported "
                f"(available: {', '.join(sorted(archs))})",
                branch=branch,
                operation="validating",
            )


async def fetch_indices(
    client: RDBClient,
    target: str,
    secondary: str,
    arch: Optional[str] = None,
    known_branches: Collection[str] = (),
) -> tuple[PackageIndex, PackageIndex]:
    """
    Validate, then fetch and index both branches.

    Both package lists are requested concurrently; indices are only built
    after both requests have completed. If either request fails its error
    propagates and the other result is discarded.

    Args:
        client: Open API client
        target: Target branch name
        secondary: Secondary branch name
        arch: Only fetch packages of this architecture
        known_branches: Static branch allow-list, empty to skip

    Returns:
        (target index, secondary index)
    """
    check_known_branches((target, secondary), known_branches)
    await validate_branches(client, target, secondary, arch)

    logger.info(
        f"Fetching packages for {target} and {secondary}"
        + (f" ({arch})" if arch else "")
    )
    target_raw, secondary_raw = await asyncio.gather(
        client.fetch_branch_packages(target, arch),
        client.fetch_branch_packages(secondary, arch),
    )

    target_index = PackageIndex.build(target_raw)
    secondary_index = PackageIndex.build(secondary_raw)
    logger.debug(f"{target}: {target_index!r}")
    logger.debug(f"{secondary}: {secondary_index!r}")

    return target_index, secondary_index


async def compare_branches(
    settings: Settings,
    target: str,
    secondary: str,
    arch: Optional[str] = None,
    client: Optional[RDBClient] = None,
    compare: EVRComparator = compare_evr,
) -> BranchComparison:
    """
    Fetch two branches and reconcile them.

    Args:
        settings: Runtime settings (API location, timeout, allow-list)
        target: Target branch name
        secondary: Secondary branch name
        arch: Optional architecture filter
        client: API client to use; one is created from settings if omitted
        compare: Three-way EVR comparator

    Returns:
        BranchComparison for the two branches
    """
    if client is None:
        client = RDBClient(settings.base_url, timeout=settings.timeout)

    async with client:
        target_index, secondary_index = await fetch_indices(
            client, target, secondary, arch, settings.known_branches
        )

    return compare_indices(
        target, secondary, target_index, secondary_index, arch=arch, compare=compare
    )
