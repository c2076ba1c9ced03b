from __future__ import annotations

"""Shared data structures for license notice collection.

The definitions live in domain-focused modules; this module re-exports them
so callers have one stable import path.
"""

from .types_dependencies import DependencyRecord, PackageDescriptor
from .types_license import LicenseRequirement
from .types_report import Notices

__all__ = [
    "DependencyRecord",
    "LicenseRequirement",
    "Notices",
    "PackageDescriptor",
]
