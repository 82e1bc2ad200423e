"""Lifecycle of one server-fetched value.

Exactly one variant holds at a time. Loads move a field through
``NotAsked | Failure | Success -> Loading -> Success | Failure``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

from .result import Err, Ok, Result

T = TypeVar('T')
U = TypeVar('U')


@dataclass(frozen=True)
class NotAsked:
    pass


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    message: str


RemoteData = Union[NotAsked, Loading, Success[T], Failure]

NOT_ASKED = NotAsked()
LOADING = Loading()


def is_loading(data: RemoteData[T]) -> bool:
    return isinstance(data, Loading)


def is_success(data: RemoteData[T]) -> bool:
    return isinstance(data, Success)


def is_failure(data: RemoteData[T]) -> bool:
    return isinstance(data, Failure)


def to_optional(data: RemoteData[T]) -> T | None:
    if isinstance(data, Success):
        return data.value
    return None


def value_or(data: RemoteData[T], default: T) -> T:
    if isinstance(data, Success):
        return data.value
    return default


def map(data: RemoteData[T], fn: Callable[[T], U]) -> RemoteData[U]:
    if isinstance(data, Success):
        return Success(fn(data.value))
    return data


def bind(data: RemoteData[T], fn: Callable[[T], RemoteData[U]]) -> RemoteData[U]:
    if isinstance(data, Success):
        return fn(data.value)
    return data


def from_result(result: Result[T]) -> RemoteData[T]:
    if isinstance(result, Ok):
        return Success(result.value)
    if isinstance(result, Err):
        return Failure(result.error)
    raise TypeError(f'Expected Ok or Err, got {type(result).__name__}')
