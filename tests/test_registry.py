import unittest
from abc import ABC, abstractmethod
from typing import Protocol

import pytest

from bindgraph import (
    DuplicateRegistrationError,
    Lifetime,
    Registry,
    RegistrationError,
    UnregisteredServiceError,
)


class TestRegisterImplTokenConstraints(unittest.TestCase):
    registry: Registry

    def setUp(self):
        self.registry = Registry()

    def test_register_impl_requires_impl_to_be_subclass_of_concrete_token(self):
        class Base: ...

        class NotDerived: ...

        with pytest.raises(TypeError):
            self.registry.register(Base, impl=NotDerived)  # Not a subclass of Base

    def test_register_impl_derived_from_abstract_token(self):
        class Base(ABC):
            @abstractmethod
            def run(self) -> None: ...

        class Derived(Base):
            def run(self) -> None:
                pass

        descriptor = self.registry.register(Base, impl=Derived)
        assert descriptor.impl is Derived
        assert descriptor.target is Derived

    def test_register_any_impl_with_protocol_token_succeeds(self):
        class Fooer(Protocol):
            def foo(self) -> None: ...

        class AnyClass: ...

        descriptor = self.registry.register(Fooer, impl=AnyClass)
        assert descriptor.impl is AnyClass

    def test_register_impl_must_be_a_class(self):
        class Base: ...

        with pytest.raises(TypeError):
            self.registry.register(Base, impl=Base())

    def test_register_impl_and_factory_raises_value_error(self):
        class A: ...

        with pytest.raises(ValueError, match="not both"):
            self.registry.register(A, impl=A, factory=A)

    def test_register_string_token_without_impl_or_factory_raises_value_error(self):
        with pytest.raises(ValueError, match="must be provided"):
            self.registry.register("db")

    def test_register_non_callable_factory_raises_type_error(self):
        with pytest.raises(TypeError):
            self.registry.register("db", factory=42)

    def test_register_class_token_alone_binds_to_itself(self):
        class A: ...

        descriptor = self.registry.register(A)

        assert descriptor.token is A
        assert descriptor.impl is A
        assert descriptor.factory is None
        assert descriptor.lifetime is Lifetime.SINGLETON
        assert descriptor.is_built is False

    def test_register_keeps_explicit_dependencies_as_tuple(self):
        class A: ...

        class B: ...

        descriptor = self.registry.register("ab", factory=lambda a, b: (a, b), dependencies=[A, B])
        assert descriptor.dependencies == (A, B)


class TestRegistrationShorthands(unittest.TestCase):
    registry: Registry

    def setUp(self):
        self.registry = Registry()

    def test_add_singleton_registers_singleton_lifetime(self):
        class A: ...

        assert self.registry.add_singleton(A).lifetime is Lifetime.SINGLETON

    def test_add_transient_registers_transient_lifetime(self):
        class A: ...

        assert self.registry.add_transient(A).lifetime is Lifetime.TRANSIENT

    def test_add_transient_accepts_factory(self):
        descriptor = self.registry.add_transient("answer", factory=lambda: 42)

        assert descriptor.lifetime is Lifetime.TRANSIENT
        assert descriptor.target() == 42


class TestDuplicateRegistration(unittest.TestCase):
    registry: Registry

    def setUp(self):
        self.registry = Registry()

    def test_register_twice_raises_duplicate_registration_error(self):
        class A: ...

        first = self.registry.register(A)
        with pytest.raises(DuplicateRegistrationError) as ctx:
            self.registry.add_transient(A)

        assert ctx.value.token is A
        assert self.registry.lookup(A) is first

    def test_duplicate_registration_error_is_a_value_error(self):
        self.registry.register("db", factory=object)

        with pytest.raises(ValueError):
            self.registry.register("db", factory=object)
        with pytest.raises(RegistrationError):
            self.registry.register("db", factory=object)

    def test_register_with_replace_substitutes_descriptor(self):
        class A: ...

        self.registry.add_singleton(A)
        replaced = self.registry.add_transient(A, replace=True)

        assert self.registry.lookup(A) is replaced
        assert len(self.registry) == 1

    def test_register_instance_twice_without_replace_raises(self):
        class A: ...

        a1, a2 = A(), A()

        self.registry.register_instance("a_instance", instance=a1)
        with pytest.raises(DuplicateRegistrationError):
            self.registry.register_instance("a_instance", instance=a2)

    def test_register_instance_by_type_twice_with_replace_option_substitutes_instance(self):
        class A: ...

        a1, a2 = A(), A()

        self.registry.register_instance(A, instance=a1)
        self.registry.register_instance(A, instance=a2, replace=True)

        assert self.registry.lookup(A).cached_instance is a2


class TestRegisterInstance(unittest.TestCase):
    registry: Registry

    def setUp(self):
        self.registry = Registry()

    def test_register_instance_descriptor_is_built_singleton(self):
        class A: ...

        a = A()
        descriptor = self.registry.register_instance(A, a)

        assert descriptor.lifetime is Lifetime.SINGLETON
        assert descriptor.is_built is True
        assert descriptor.cached_instance is a

    def test_register_instance_of_wrong_type_raises_type_error(self):
        class A: ...

        class B: ...

        with pytest.raises(TypeError):
            self.registry.register_instance(A, B())

    def test_register_instance_with_protocol_token_is_not_checked(self):
        class Greeter(Protocol):
            def greet(self) -> str: ...

        class English:
            def greet(self) -> str:
                return "hello"

        english = English()
        assert self.registry.register_instance(Greeter, english).cached_instance is english


def test_lookup_unregistered_token_raises():
    registry = Registry()

    with pytest.raises(UnregisteredServiceError) as ctx:
        registry.lookup("unknown-token")

    assert ctx.value.token == "unknown-token"
    assert "unknown-token" in str(ctx.value)


def test_lookup_unregistered_token_is_a_lookup_error():
    with pytest.raises(LookupError):
        Registry().lookup(int)


def test_registry_iterates_in_registration_order():
    class A: ...

    class B: ...

    registry = Registry()
    registry.add_transient(B)
    registry.add_singleton(A)
    registry.register("c", factory=dict)

    assert [d.token for d in registry] == [B, A, "c"]
    assert A in registry
    assert "missing" not in registry
    assert len(registry) == 3


def test_store_on_transient_descriptor_raises():
    registry = Registry()
    descriptor = registry.add_transient("value", factory=object)

    with pytest.raises(ValueError):
        descriptor.store(object())
    assert descriptor.is_built is False


def test_lookup_unhashable_token_raises_unregistered_service_error():
    with pytest.raises(UnregisteredServiceError):
        Registry().lookup(["x"])


def test_register_unhashable_token_raises_type_error():
    registry = Registry()

    with pytest.raises(TypeError, match="not hashable"):
        registry.register(["x"], factory=object)
    assert len(registry) == 0


def test_register_protocol_without_impl_or_factory_raises_value_error():
    class Greeter(Protocol):
        def greet(self) -> str: ...

    registry = Registry()

    with pytest.raises(ValueError, match="cannot be bound to itself"):
        registry.register(Greeter)
    assert Greeter not in registry
