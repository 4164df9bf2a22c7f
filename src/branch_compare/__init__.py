"""
Branch Compare Module

Provides functionality for comparing the binary package sets of two
repository branches: packages exclusive to each branch and packages whose
version is newer in the target branch.
"""

from .errors import BranchCompareError
from .packages import PackageIndex, PackageRecord
from .reconcile import BranchComparison, exclusive, newer_in_target
from .rpm_utils import compare_evr, format_evr, parse_evr

__all__ = [
    "BranchCompareError",
    "BranchComparison",
    "PackageIndex",
    "PackageRecord",
    "compare_evr",
    "exclusive",
    "format_evr",
    "newer_in_target",
    "parse_evr",
]

__version__ = "1.0.0"
