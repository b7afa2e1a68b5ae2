"""
capwire - Core Module

Foundational pieces shared by every other capwire module. Each component here
is free of dependencies on the rest of capwire.

Usage:
    from capwire.core import CapwireError, DependencyResolutionError
"""

from capwire.core.errors import (
    CapabilityTableError,
    CapwireConfigError,
    CapwireError,
    ConstructionError,
    DependencyResolutionError,
    ErrorContext,
    ErrorSeverity,
    UnresolvedServiceError,
    describe_key,
)

__all__ = [
    # ========================================================================
    # ERRORS
    # ========================================================================
    "CapwireError",
    "CapwireConfigError",
    "CapabilityTableError",
    "ConstructionError",
    "UnresolvedServiceError",
    "DependencyResolutionError",
    "ErrorContext",
    "ErrorSeverity",
    "describe_key",
]
