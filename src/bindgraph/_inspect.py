from __future__ import annotations

import inspect
import logging
import types
import typing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, Union, get_type_hints

from ._errors import AmbiguousConstructorError


if TYPE_CHECKING:
    from collections.abc import Callable

    from ._container import ServiceDescriptor


logger = logging.getLogger(__name__)

_UNION_ORIGINS: tuple[Any, ...] = (Union, types.UnionType)


@dataclass(frozen=True)
class DependencySpec:
    """One constructor parameter and the token that satisfies it.

    `name` is None for explicitly declared dependencies, which are passed positionally.
    """

    token: Any
    name: str | None = None
    keyword_only: bool = False


class DependencyInspector(Protocol):
    def dependencies(self, descriptor: ServiceDescriptor) -> tuple[DependencySpec, ...]: ...


class SignatureInspector:
    """Reads dependencies from the constructor (or factory) signature.

    Explicit `dependencies` on the descriptor win. Otherwise every required
    parameter must carry a single resolvable type annotation; parameters with a
    default and `*args`/`**kwargs` are left to the callee.
    """

    def dependencies(self, descriptor: ServiceDescriptor) -> tuple[DependencySpec, ...]:
        if descriptor.dependencies is not None:
            return tuple(DependencySpec(token=token) for token in descriptor.dependencies)

        target = descriptor.target
        if inspect.isclass(target):
            if inspect.isabstract(target):
                msg = f"{target.__name__} is abstract and has no eligible constructor"
                raise AmbiguousConstructorError(descriptor.token, msg)
            if target.__init__ is object.__init__:
                return ()

        sig = self._signature(descriptor.token, target)
        hints = _get_type_hints(descriptor.token, target)

        specs: list[DependencySpec] = []
        for name, p in sig.parameters.items():
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue
            if p.default is not p.empty:
                continue
            ann = hints.get(name, p.annotation)
            specs.append(
                DependencySpec(
                    token=self._parameter_token(descriptor.token, target, name, ann),
                    name=name,
                    keyword_only=p.kind is p.KEYWORD_ONLY,
                )
            )
        return tuple(specs)

    def _signature(self, token: Any, target: Callable[..., object]) -> inspect.Signature:
        try:
            return inspect.signature(target)
        except (TypeError, ValueError) as e:
            msg = f"Cannot read constructor signature of {_callable_name(target)}: {e}"
            raise AmbiguousConstructorError(token, msg) from e

    def _parameter_token(self, token: Any, target: Callable[..., object], name: str, ann: Any) -> Any:
        if ann is inspect.Parameter.empty:
            msg = f"Constructor parameter '{name}' of {_callable_name(target)} has no type annotation"
            raise AmbiguousConstructorError(token, msg)

        if isinstance(ann, str):
            msg = f"Constructor parameter '{name}' of {_callable_name(target)} has unresolved annotation {ann!r}"
            raise AmbiguousConstructorError(token, msg)

        if typing.get_origin(ann) in _UNION_ORIGINS:
            msg = f"Constructor parameter '{name}' of {_callable_name(target)} is annotated with a union ({ann!r})"
            raise AmbiguousConstructorError(token, msg)

        return ann


def _callable_name(target: Callable[..., object]) -> str:
    return getattr(target, "__qualname__", None) or repr(target)


def _get_type_hints(token: Any, target: Callable[..., object]) -> dict[str, Any]:
    hinted = inspect.getattr_static(target, "__init__") if inspect.isclass(target) else target
    try:
        hints = get_type_hints(hinted)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%r) type hints", exc.name, _callable_name(target), token)
        hints = {}

    return hints
