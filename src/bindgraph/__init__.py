"""Minimal dependency injection container.

This package provides a small dependency injection container for Python: a
registry of service descriptors and a resolver that builds object graphs by
recursively satisfying constructor dependencies.

Exports:
- `Registry`: Ordered mapping of tokens to `ServiceDescriptor` records.
- `Resolver`: Resolves tokens against a registry, honoring each `Lifetime`.
- `Lifetime`: Enum for controlling object lifetimes (singleton or transient).
- `DependencyInspector` / `SignatureInspector`: Discover constructor dependencies.
- The error taxonomy, all rooted at `BindgraphError`.
"""

from ._container import Lifetime, Registry, ServiceDescriptor
from ._errors import (
    AmbiguousConstructorError,
    BindgraphError,
    CircularDependencyError,
    DuplicateRegistrationError,
    InstantiationError,
    RegistrationError,
    ResolutionError,
    UnregisteredServiceError,
)
from ._inspect import DependencyInspector, DependencySpec, SignatureInspector
from ._resolver import Resolver


__all__ = [
    "AmbiguousConstructorError",
    "BindgraphError",
    "CircularDependencyError",
    "DependencyInspector",
    "DependencySpec",
    "DuplicateRegistrationError",
    "InstantiationError",
    "Lifetime",
    "Registry",
    "RegistrationError",
    "ResolutionError",
    "Resolver",
    "ServiceDescriptor",
    "SignatureInspector",
    "UnregisteredServiceError",
]
