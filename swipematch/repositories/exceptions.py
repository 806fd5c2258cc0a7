"""Custom exceptions for the repository layer."""

from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, TypeVar

from pymongo.errors import ConnectionFailure, ExecutionTimeout

T = TypeVar("T")


class RepositoryError(RuntimeError):
    """Base exception raised when a repository operation fails."""


class DuplicateKeyRepositoryError(RepositoryError):
    """Raised when attempting to insert a document that violates a unique index."""


class NotFoundRepositoryError(RepositoryError):
    """Raised when an expected document is missing."""


class StoreUnavailableRepositoryError(RepositoryError):
    """Raised when MongoDB is unreachable or timed out. Safe to retry."""


def translate_store_errors(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """Re-raise driver connectivity failures as ``StoreUnavailableRepositoryError``."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except (ConnectionFailure, ExecutionTimeout) as exc:
            raise StoreUnavailableRepositoryError(str(exc) or "database unavailable") from exc

    return wrapper


__all__ = [
    "DuplicateKeyRepositoryError",
    "NotFoundRepositoryError",
    "RepositoryError",
    "StoreUnavailableRepositoryError",
    "translate_store_errors",
]
