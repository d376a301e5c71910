"""
DecoExt - Core Module

Foundational pieces shared by every other package:
- Unified error handling (configuration errors only; user errors propagate)
- Async helpers (call-once guard, sync/async bridging, ordered joins)

Nothing in core depends on other DecoExt packages.

Usage:
    from core import ServiceNotRegisteredError, call_once, maybe_await
"""

from core.errors import (
    DecoError,
    ConfigurationError,
    RuntimeConfigError,
    ServiceNotRegisteredError,
    UnregisteredDependencyError,
    DependencyCycleError,
    DuplicateListenerError,
    InvalidListenerError,
    ErrorContext,
    ErrorSeverity,
)
from core.async_utils import (
    call_once,
    maybe_await,
    gather_in_order,
)

__all__ = [
    # Errors
    "DecoError",
    "ConfigurationError",
    "RuntimeConfigError",
    "ServiceNotRegisteredError",
    "UnregisteredDependencyError",
    "DependencyCycleError",
    "DuplicateListenerError",
    "InvalidListenerError",
    "ErrorContext",
    "ErrorSeverity",
    # Async utilities
    "call_once",
    "maybe_await",
    "gather_in_order",
]
