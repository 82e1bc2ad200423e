"""Tracked contributors (actors, directors, writers) page."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Sequence, Union

from ...config import TMDB_IMAGE_BASE
from ...domain import TmdbPersonId, TrackedContributor, TrackedContributorId
from .. import cmd, remote_data
from ..api import ContributorsApi
from ..cmd import Cmd, NO_ARG
from ..components import remote_data_view
from ..components.common import button, empty_state
from ..html import Element, h
from ..remote_data import RemoteData
from ..result import Err, Ok, Result
from ..signals import NO_OP, NoOp, ShowNotification


@dataclass(frozen=True)
class Model:
    contributors: RemoteData[list[TrackedContributor]] = remote_data.NOT_ASKED
    department_filter: str | None = None
    search_query: str = ''
    epoch: int = 0


EMPTY = Model()


@dataclass(frozen=True)
class Load:
    pass


@dataclass(frozen=True)
class Loaded:
    result: Result[list[TrackedContributor]]
    epoch: int


@dataclass(frozen=True)
class SetDepartmentFilter:
    department: str | None


@dataclass(frozen=True)
class SetSearchQuery:
    query: str


@dataclass(frozen=True)
class ViewContributorDetail:
    person_id: TmdbPersonId
    name: str


@dataclass(frozen=True)
class Untrack:
    tracked_id: TrackedContributorId


@dataclass(frozen=True)
class UntrackResult:
    result: Result[None]


Msg = Union[Load, Loaded, SetDepartmentFilter, SetSearchQuery, ViewContributorDetail, Untrack, UntrackResult]


@dataclass(frozen=True)
class NavigateToContributorDetail:
    person_id: TmdbPersonId
    name: str


Signal = Union[NoOp, NavigateToContributorDetail, ShowNotification]


def init() -> tuple[Model, Cmd]:
    return EMPTY, cmd.of_msg(Load())


def update(api: ContributorsApi, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, Load):
        epoch = model.epoch + 1
        fetch = cmd.either(api.get_all, NO_ARG, lambda result: Loaded(result, epoch))
        return replace(model, contributors=remote_data.LOADING, epoch=epoch), fetch, NO_OP
    if isinstance(msg, Loaded):
        if msg.epoch != model.epoch:
            return model, cmd.NONE, NO_OP
        return replace(model, contributors=remote_data.from_result(msg.result)), cmd.NONE, NO_OP
    if isinstance(msg, SetDepartmentFilter):
        return replace(model, department_filter=msg.department), cmd.NONE, NO_OP
    if isinstance(msg, SetSearchQuery):
        return replace(model, search_query=msg.query), cmd.NONE, NO_OP
    if isinstance(msg, ViewContributorDetail):
        return model, cmd.NONE, NavigateToContributorDetail(msg.person_id, msg.name)
    if isinstance(msg, Untrack):
        return model, cmd.call_api(api.untrack, msg.tracked_id, UntrackResult), NO_OP
    if isinstance(msg, UntrackResult):
        if isinstance(msg.result, Ok):
            return model, cmd.of_msg(Load()), ShowNotification('Contributor untracked', True)
        if isinstance(msg.result, Err):
            return model, cmd.NONE, ShowNotification(msg.result.error, False)
    raise TypeError(f'Unhandled contributors page message: {msg!r}')


def departments(contributors: Sequence[TrackedContributor]) -> list[str]:
    return sorted({c.known_for_department for c in contributors if c.known_for_department})


def filter_contributors(
    contributors: Sequence[TrackedContributor],
    department: str | None,
    query: str,
) -> list[TrackedContributor]:
    needle = query.strip().lower()
    return [
        c
        for c in contributors
        if (department is None or c.known_for_department == department)
        and (not needle or needle in c.name.lower())
    ]


def _contributor_card(contributor: TrackedContributor, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'li',
        h('img', src=f'{TMDB_IMAGE_BASE}{contributor.profile_path}', alt=contributor.name, loading='lazy')
        if contributor.profile_path else None,
        h('button', contributor.name, type='button', class_='contributor-name',
          on={'click': lambda _: dispatch(ViewContributorDetail(contributor.tmdb_person_id, contributor.name))}),
        h('span', contributor.known_for_department, class_='badge')
        if contributor.known_for_department else None,
        button('Untrack', lambda _: dispatch(Untrack(contributor.id)), kind='ghost'),
        class_='contributor-card',
        data_contributor_id=contributor.id,
    )


def _filter_bar(model: Model, contributors: list[TrackedContributor], dispatch: Callable[[Any], None]) -> Element:
    options = [h('option', 'All departments', value='', selected=model.department_filter is None)]
    options.extend(
        h('option', department, value=department, selected=model.department_filter == department)
        for department in departments(contributors)
    )
    return h(
        'div',
        h('select', options, id='contributors-department', class_='select select-bordered',
          on={'change': lambda value: dispatch(SetDepartmentFilter(value or None))}),
        h('input', id='contributors-search', type='search', value=model.search_query,
          placeholder='Search contributors...', class_='input input-bordered',
          on={'input': lambda value: dispatch(SetSearchQuery(value))}),
        class_='filter-bar',
    )


def _contributor_list(model: Model, contributors: list[TrackedContributor], dispatch: Callable[[Any], None]) -> Any:
    if not contributors:
        return empty_state('No tracked contributors', 'Track actors and directors from their detail pages.')
    matches = filter_contributors(contributors, model.department_filter, model.search_query)
    return h(
        'div',
        _filter_bar(model, contributors, dispatch),
        h('ul', [_contributor_card(c, dispatch) for c in matches], class_='contributor-grid')
        if matches else empty_state('No matches'),
    )


def view(model: Model, dispatch: Callable[[Any], None]) -> Element:
    return h(
        'section',
        h('header', h('h1', 'Tracked Contributors'), class_='page-header'),
        remote_data_view.with_skeleton_and_context(
            8,
            'Failed to load contributors',
            model.contributors,
            lambda contributors: _contributor_list(model, contributors, dispatch),
        ),
        id='contributors-page',
    )
