"""
Package database API client.

Async client for the two read-only endpoints used to compare branches:
the binary package export of a branch and the list of its architectures.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

import httpx

from .errors import (
    BranchCompareError,
    SchemaError,
    TransportError,
    UnknownBranchError,
    UnsupportedArchError,
)

logger = logging.getLogger(__name__)

REQUIRED_PACKAGE_FIELDS = ("arch", "name", "epoch", "version", "release")

# Fallback patterns for error bodies that do not name the offending field
UNKNOWN_BRANCH_RE = re.compile(r"unknown package set|package set name|invalid branch", re.I)
UNSUPPORTED_ARCH_RE = re.compile(
    r"(unknown|invalid|unsupported) arch|\barch(itecture)?\b.*\bnot (found|supported)", re.I
)


def _invalid_package_fields(pkg: dict[str, Any]) -> list[str]:
    """Return names of package fields whose value has the wrong type."""
    invalid = [
        f for f in ("arch", "name", "version", "release")
        if not isinstance(pkg[f], str)
    ]
    epoch = pkg["epoch"]
    if isinstance(epoch, bool) or not (
        isinstance(epoch, int) or (isinstance(epoch, str) and epoch.isdigit())
    ):
        invalid.append("epoch")
    return invalid


def _error_detail(response: httpx.Response) -> str:
    """Extract a short human-readable message from an error response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip()[:200] or response.reason_phrase

    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, dict) and errors:
            return "; ".join(f"{k}: {v}" for k, v in errors.items())
        if payload.get("message"):
            return str(payload["message"])
    return str(payload)[:200]


def _classify_error(response: httpx.Response) -> type[BranchCompareError]:
    """Map a non-success response to the error class it represents."""
    fields = set()
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("errors"), dict):
        fields = set(payload["errors"])

    if "branch" in fields:
        return UnknownBranchError
    if "arch" in fields:
        return UnsupportedArchError

    text = response.text
    if UNKNOWN_BRANCH_RE.search(text):
        return UnknownBranchError
    if response.status_code == 400 and UNSUPPORTED_ARCH_RE.search(text):
        return UnsupportedArchError
    return TransportError


class RDBClient:
    """
    Client for the package database REST API.

    Use as an async context manager. When no httpx client is passed in,
    one is created on enter and closed on exit.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: API root, e.g. "https://rdb.altlinux.org/api"
            timeout: Request timeout in seconds
            client: Preconfigured httpx client (not closed by this object)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> RDBClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying httpx client if this object created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_json(
        self,
        path: str,
        branch: str,
        operation: str,
        params: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """
        Perform a single GET request and decode its JSON object body.

        Raises:
            TransportError: If the request fails or returns an error status
            UnknownBranchError: If the service rejects the branch name
            UnsupportedArchError: If the service rejects the architecture
            SchemaError: If the body is not a JSON object
        """
        if self._client is None:
            raise RuntimeError("RDBClient must be used as an async context manager")

        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url} params={params}")

        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise TransportError(
                f"request to {url} failed", branch=branch, operation=operation
            ) from exc

        if response.is_error:
            error_cls = _classify_error(response)
            detail = _error_detail(response)
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise error_cls(
                    f"HTTP {response.status_code}: {detail}",
                    branch=branch,
                    operation=operation,
                ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise SchemaError(
                "response is not valid JSON", branch=branch, operation=operation
            ) from exc

        if not isinstance(payload, dict):
            raise SchemaError(
                f"expected a JSON object, got {type(payload).__name__}",
                branch=branch,
                operation=operation,
            )
        return payload

    async def fetch_branch_packages(
        self, branch: str, arch: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """
        Fetch the binary packages of a branch.

        Args:
            branch: Branch name (e.g., "sisyphus")
            arch: Only return packages of this architecture

        Returns:
            Raw package dicts, each with at least arch, name, epoch,
            version and release keys
        """
        operation = "fetching packages"
        params = {"arch": arch} if arch else None
        payload = await self._get_json(
            f"/export/branch_binary_packages/{branch}", branch, operation, params
        )

        packages = payload.get("packages")
        if not isinstance(packages, list):
            raise SchemaError(
                "response has no 'packages' list", branch=branch, operation=operation
            )

        for i, pkg in enumerate(packages):
            if not isinstance(pkg, dict):
                raise SchemaError(
                    f"package #{i} is not an object", branch=branch, operation=operation
                )
            missing = [f for f in REQUIRED_PACKAGE_FIELDS if f not in pkg]
            if missing:
                raise SchemaError(
                    f"package #{i} ({pkg.get('name', '?')}) is missing "
                    f"{', '.join(missing)}",
                    branch=branch,
                    operation=operation,
                )
            invalid = _invalid_package_fields(pkg)
            if invalid:
                raise SchemaError(
                    f"package #{i} has invalid {', '.join(invalid)}",
                    branch=branch,
                    operation=operation,
                )

        logger.info(f"Fetched {len(packages)} packages for {branch}")
        return packages

    async def fetch_branch_archs(self, branch: str) -> list[str]:
        """
        Fetch the architectures available in a branch.

        Args:
            branch: Branch name

        Returns:
            Architecture names (e.g., ["aarch64", "noarch", "x86_64"])
        """
        operation = "fetching architectures"
        payload = await self._get_json(
            "/site/all_pkgset_archs", branch, operation, {"branch": branch}
        )

        archs = payload.get("archs")
        if not isinstance(archs, list):
            raise SchemaError(
                "response has no 'archs' list", branch=branch, operation=operation
            )

        try:
            result = [entry["arch"] for entry in archs]
        except (KeyError, TypeError) as exc:
            raise SchemaError(
                "malformed 'archs' entry", branch=branch, operation=operation
            ) from exc

        logger.debug(f"Branch {branch} architectures: {', '.join(result)}")
        return result
