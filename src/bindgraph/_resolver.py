from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._container import Lifetime, is_protocol
from ._errors import CircularDependencyError, InstantiationError, ResolutionError
from ._inspect import SignatureInspector


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ._container import Registry, ServiceDescriptor, Token
    from ._inspect import DependencyInspector

    T = TypeVar("T")


class Resolver:
    """Builds object graphs from a `Registry`.

    Dependencies are resolved depth-first in declaration order. Singletons are
    cached on their descriptor after the first successful build; transients are
    built on every call and never cached.

    The whole top-level walk holds the registry's re-entrant lock, so concurrent
    first resolutions of a singleton construct it once, even across resolvers.
    """

    def __init__(self, registry: Registry, inspector: DependencyInspector | None = None) -> None:
        self._registry = registry
        self._inspector: DependencyInspector = inspector if inspector is not None else SignatureInspector()
        self._resolving: list[Any] = []  # tokens on the current resolution path

    @property
    def registry(self) -> Registry:
        return self._registry

    @overload
    def resolve(self, token: type[T]) -> T: ...

    @overload
    def resolve(self, token: str) -> object: ...

    def resolve(self, token: Token[T]) -> object:
        """Resolve the token to an instance.

        Raises:
            UnregisteredServiceError: `token`, or one of its dependencies, is not registered.
            AmbiguousConstructorError: a constructor's dependencies cannot be determined.
            CircularDependencyError: a dependency cycle was reached.
            InstantiationError: a constructor or factory raised.

        """
        with self._registry.lock:
            return self._resolve(token)

    def _resolve(self, token: Any) -> object:
        descriptor = self._registry.lookup(token)

        if token in self._resolving:
            start = self._resolving.index(token)
            raise CircularDependencyError([*self._resolving[start:], token])

        # Return cached singleton if present
        if descriptor.lifetime is Lifetime.SINGLETON and descriptor.is_built:
            logger.debug("Returning cached singleton: %r", token)
            return descriptor.cached_instance

        self._resolving.append(token)
        try:
            instance = self._build(descriptor)
        finally:
            self._resolving.pop()

        # Cache if singleton
        if descriptor.lifetime is Lifetime.SINGLETON:
            descriptor.store(instance)

        return instance

    def _build(self, descriptor: ServiceDescriptor) -> object:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for spec in self._inspector.dependencies(descriptor):
            value = self._resolve(spec.token)
            if spec.keyword_only:
                kwargs[spec.name] = value
            else:
                args.append(value)

        logger.debug("Creating %s service: %r", descriptor.lifetime.value, descriptor.token)
        try:
            instance = descriptor.target(*args, **kwargs)
        except ResolutionError:
            raise
        except Exception as e:
            msg = f"Failed to construct {descriptor.token!r}: {e}"
            raise InstantiationError(descriptor.token, msg) from e

        self._check_instance(descriptor, instance)
        return instance

    def _check_instance(self, descriptor: ServiceDescriptor, instance: object) -> None:
        token = descriptor.token
        if descriptor.factory is None or not inspect.isclass(token) or is_protocol(token):
            # impl path was validated with issubclass at register time
            return

        if not isinstance(instance, token):
            msg = f"Factory for {token.__name__} returned {type(instance).__name__}, not an instance of {token.__name__}"
            raise InstantiationError(token, msg)
