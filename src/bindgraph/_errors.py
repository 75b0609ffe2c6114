from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Sequence


def _token_name(token: Any) -> str:
    return getattr(token, "__name__", None) or repr(token)


class BindgraphError(Exception):
    pass


class RegistrationError(BindgraphError, ValueError):
    pass


class DuplicateRegistrationError(RegistrationError):
    def __init__(self, token: Any) -> None:
        self.token = token
        msg = f"Token {_token_name(token)} is already registered. Pass replace=True to overwrite."
        super().__init__(msg)


class ResolutionError(BindgraphError, RuntimeError):
    """Base class for every failure raised while resolving a token."""

    def __init__(self, token: Any, message: str) -> None:
        self.token = token
        super().__init__(message)


class UnregisteredServiceError(ResolutionError, LookupError):
    def __init__(self, token: Any) -> None:
        super().__init__(token, f"No registration found for token: {_token_name(token)}")


class AmbiguousConstructorError(ResolutionError):
    pass


class CircularDependencyError(ResolutionError):
    """Raised when a token is requested again while it is still being resolved.

    `chain` holds the path that closed the cycle, e.g. ``[A, B, A]``.
    """

    def __init__(self, chain: Sequence[Any]) -> None:
        self.chain = list(chain)
        path = " -> ".join(_token_name(t) for t in self.chain)
        super().__init__(self.chain[-1], f"Circular dependency detected: {path}")


class InstantiationError(ResolutionError):
    pass
