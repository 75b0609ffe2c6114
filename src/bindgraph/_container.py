from __future__ import annotations

import inspect
import logging
import threading
import typing
from dataclasses import dataclass
from enum import Enum
from collections.abc import Hashable
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from ._errors import DuplicateRegistrationError, UnregisteredServiceError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    T = TypeVar("T")

    Token = type[T] | str


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


@dataclass(eq=False)
class ServiceDescriptor:
    """Registry record for one token.

    `is_built` is true iff `cached_instance` holds a value. Only singletons are
    ever built; see `store`.
    """

    token: Any
    lifetime: Lifetime
    impl: type | None = None
    factory: Callable[..., object] | None = None
    dependencies: tuple[Any, ...] | None = None  # explicit binding, skips introspection
    cached_instance: object | None = None
    is_built: bool = False

    @property
    def target(self) -> Callable[..., object]:
        """Callable invoked to build a new instance."""
        target = self.factory if self.factory is not None else self.impl
        if target is None:
            msg = f"Descriptor for {self.token!r} has neither impl nor factory"
            raise RuntimeError(msg)
        return target

    def store(self, instance: object) -> None:
        if self.lifetime is not Lifetime.SINGLETON:
            msg = f"Cannot cache an instance for {self.lifetime.value} token {self.token!r}"
            raise ValueError(msg)
        self.cached_instance = instance
        self.is_built = True


def is_protocol(tp: object) -> bool:
    """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
    if not inspect.isclass(tp):
        return False
    if hasattr(typing, "is_protocol"):
        # https://docs.python.org/3/library/typing.html#typing.is_protocol
        return typing.is_protocol(tp)
    return tp is not Protocol and bool(getattr(tp, "_is_protocol", False))


class Registry:
    """Ordered mapping from token to `ServiceDescriptor`.

    - register types, factories or pre-built instances
    - one registration per token unless `replace=True`
    - lookups fail with `UnregisteredServiceError`.
    """

    def __init__(self) -> None:
        self._descriptors: dict[Any, ServiceDescriptor] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Re-entrant lock guarding registrations and every descriptor's singleton cache."""
        return self._lock

    def register(
        self,
        token: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[..., Any] | None = None,
        lifetime: Lifetime = Lifetime.SINGLETON,
        dependencies: Sequence[Any] | None = None,
        replace: bool = False,
    ) -> ServiceDescriptor:
        """Register a concrete type or a factory for a token.

        Example:
          registry.register(IFoo, FooImpl)
          registry.register(MessageService, lifetime=Lifetime.SINGLETON)
          registry.register("db", factory=create_db, dependencies=[Settings])

        A concrete class token registered without `impl` or `factory` is bound to itself.
        `dependencies` declares the constructor's dependency tokens explicitly, in
        parameter order; without it they are read from type annotations on resolve.
        """
        if impl is not None and factory is not None:
            msg = "Provide either `impl` or `factory`, not both."
            raise ValueError(msg)

        if impl is None and factory is None:
            if not inspect.isclass(token):
                msg = "Either `impl` or `factory` must be provided for non-type tokens."
                raise ValueError(msg)
            if is_protocol(token):
                msg = f"Protocol {token.__name__} cannot be bound to itself; provide `impl` or `factory`."
                raise ValueError(msg)
            impl = token

        if factory is not None and not callable(factory):
            msg = f"Factory for {token!r} is not callable"
            raise TypeError(msg)

        if impl is not None:  # noqa: SIM102
            # Only validate type tokens. Non-type tokens (like strings) cannot validate statically.
            if inspect.isclass(token):
                self._validate_impl(cls=token, impl=impl)

        descriptor = ServiceDescriptor(
            token=token,
            lifetime=lifetime,
            impl=impl,
            factory=factory,
            dependencies=tuple(dependencies) if dependencies is not None else None,
        )
        self._add(descriptor, replace=replace)
        logger.debug("Registered %r with lifetime: %s", token, lifetime.value)
        return descriptor

    def add_singleton(self, token: Token[T], impl: type | None = None, **kwargs: Any) -> ServiceDescriptor:
        return self.register(token, impl, lifetime=Lifetime.SINGLETON, **kwargs)

    def add_transient(self, token: Token[T], impl: type | None = None, **kwargs: Any) -> ServiceDescriptor:
        return self.register(token, impl, lifetime=Lifetime.TRANSIENT, **kwargs)

    def register_instance(
        self,
        token: Token[T],
        instance: object,
        *,
        replace: bool = False,
    ) -> ServiceDescriptor:
        """Register a pre-built instance (always singleton, already built)."""
        if inspect.isclass(token) and not is_protocol(token) and not isinstance(instance, token):
            msg = f"Instance {type(instance).__name__} is not an instance of {token.__name__}"
            raise TypeError(msg)

        descriptor = ServiceDescriptor(token=token, lifetime=Lifetime.SINGLETON, impl=type(instance))
        descriptor.store(instance)
        self._add(descriptor, replace=replace)
        logger.debug("Registered instance for %r", token)
        return descriptor

    def lookup(self, token: Token[T]) -> ServiceDescriptor:
        with self._lock:
            try:
                return self._descriptors[token]
            except (KeyError, TypeError):
                # unhashable tokens can never have been registered
                raise UnregisteredServiceError(token) from None

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._descriptors

    def __len__(self) -> int:
        with self._lock:
            return len(self._descriptors)

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        with self._lock:
            return iter(list(self._descriptors.values()))

    def _add(self, descriptor: ServiceDescriptor, *, replace: bool) -> None:
        if not isinstance(descriptor.token, Hashable):
            msg = f"Token {descriptor.token!r} is not hashable"
            raise TypeError(msg)

        with self._lock:
            if not replace and descriptor.token in self._descriptors:
                raise DuplicateRegistrationError(descriptor.token)
            self._descriptors[descriptor.token] = descriptor

    def _validate_impl(self, cls: type, impl: type) -> None:
        """Validate that 'impl' implements 'cls'.

        - For normal classes/ABCs: require issubclass(impl, token).
        - For Protocols: conformance is not checked at registration time.
        """
        if not inspect.isclass(impl):
            msg = f"Implementation for {cls.__name__} must be a class, got {impl!r}"
            raise TypeError(msg)

        if is_protocol(cls):
            return

        if not issubclass(impl, cls):
            msg = f"Implementation {impl.__name__} must be a subclass of {cls.__name__}"
            raise TypeError(msg)
