"""
Errors

Exception hierarchy for branch comparison. Every failure that reaches the
command line is a BranchCompareError tagged with the branch and operation
that produced it; the underlying exception is kept as ``__cause__``.
"""

from __future__ import annotations

from typing import Optional


class BranchCompareError(Exception):
    """Base error for all branch comparison failures."""

    def __init__(
        self,
        message: str,
        branch: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.branch = branch
        self.operation = operation

    def __str__(self) -> str:
        context = []
        if self.operation:
            context.append(self.operation)
        if self.branch:
            context.append(f"branch '{self.branch}'")
        if context:
            return f"{' for '.join(context)}: {self.message}"
        return self.message


class TransportError(BranchCompareError):
    """HTTP request failed or returned an unexpected status."""


class SchemaError(BranchCompareError):
    """Response body did not match the expected structure."""


class UnknownBranchError(BranchCompareError):
    """Branch name is not known to the service."""


class UnsupportedArchError(BranchCompareError):
    """Requested architecture is not available in a branch."""


class VersionCompareError(BranchCompareError):
    """EVR string could not be parsed for comparison."""


class OutputError(BranchCompareError):
    """Report could not be serialized or written."""


class ConfigError(BranchCompareError):
    """Configuration file or environment value is invalid."""


def _cause_of(exc: BaseException) -> Optional[BaseException]:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__


def format_error_chain(exc: BaseException) -> str:
    """
    Render an exception and its causes, outermost first.

    Example:
        fetching packages for branch 'p10': HTTP 502
          caused by: Server error '502 Bad Gateway'
    """
    lines = [str(exc) or type(exc).__name__]
    seen = {id(exc)}
    cause = _cause_of(exc)

    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        lines.append(f"  caused by: {str(cause) or type(cause).__name__}")
        cause = _cause_of(cause)

    return "\n".join(lines)
