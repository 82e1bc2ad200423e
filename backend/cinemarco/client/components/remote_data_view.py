"""Shared rendering for ``RemoteData`` fields.

Callers supply only the success renderer. Loading presentation and an error
context prefix are configurable.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, TypeVar, Union

from .. import html
from ..remote_data import Failure, Loading, NotAsked, RemoteData, Success
from .common import error_state, poster_skeleton, spinner

T = TypeVar('T')


@dataclass(frozen=True)
class Spinner:
    pass


@dataclass(frozen=True)
class Skeleton:
    count: int


@dataclass(frozen=True)
class Custom:
    element: html.Node


LoadingView = Union[Spinner, Skeleton, Custom]


@dataclass(frozen=True)
class RemoteDataView(Generic[T]):
    data: RemoteData[T]
    loading_view: LoadingView = Spinner()
    error_context: str | None = None

    def with_skeleton(self, count: int) -> 'RemoteDataView[T]':
        return replace(self, loading_view=Skeleton(count))

    def with_spinner(self) -> 'RemoteDataView[T]':
        return replace(self, loading_view=Spinner())

    def with_custom_loading(self, element: html.Node) -> 'RemoteDataView[T]':
        return replace(self, loading_view=Custom(element))

    def with_error_context(self, context: str) -> 'RemoteDataView[T]':
        return replace(self, error_context=context)


def _loading(loading_view: LoadingView) -> html.Node:
    if isinstance(loading_view, Skeleton):
        return poster_skeleton(loading_view.count)
    if isinstance(loading_view, Custom):
        return loading_view.element
    return spinner()


def view(model: RemoteDataView[T], on_success: Callable[[T], html.Node]) -> html.Node:
    data = model.data
    if isinstance(data, NotAsked):
        return html.NONE
    if isinstance(data, Loading):
        return _loading(model.loading_view)
    if isinstance(data, Success):
        return on_success(data.value)
    if isinstance(data, Failure):
        return error_state(data.message, model.error_context)
    raise TypeError(f'Not a RemoteData value: {data!r}')


def with_spinner(data: RemoteData[T], on_success: Callable[[T], Any]) -> html.Node:
    return view(RemoteDataView(data), on_success)


def with_skeleton(count: int, data: RemoteData[T], on_success: Callable[[T], Any]) -> html.Node:
    return view(RemoteDataView(data).with_skeleton(count), on_success)


def with_context(context: str, data: RemoteData[T], on_success: Callable[[T], Any]) -> html.Node:
    return view(RemoteDataView(data).with_error_context(context), on_success)


def with_skeleton_and_context(
    count: int,
    context: str,
    data: RemoteData[T],
    on_success: Callable[[T], Any],
) -> html.Node:
    return view(RemoteDataView(data).with_skeleton(count).with_error_context(context), on_success)
