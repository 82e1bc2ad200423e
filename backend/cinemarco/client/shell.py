"""App-level owner of pages, the modal slot and the notification.

The shell is the only place that interprets child signals. Pages and modals
ask for things (navigate, open a modal, show a toast) and the shell decides:
navigation is handed to the host as ``Navigated``, saves close the modal and
re-fetch the active page, and every toast goes through the one notification.
Back navigation pops a short history of routes kept in the shell model.

Each page and modal instance gets a fresh key when it is created. Child
messages carry that key, so a late completion addressed to a page that was
navigated away from, or to a modal that has been closed, is dropped.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Union

from ..domain import Friend
from . import cmd, html
from .api import Apis
from .cmd import Cmd
from .components import (
    collection_modal,
    confirm_modal,
    friend_modal,
    movie_session_modal,
    notification,
    tag_modal,
)
from .html import h
from .pages import cache, collections, contributors, entry_detail, friend_detail, friends, library, tags
from .routing import (
    CacheRoute,
    CollectionsRoute,
    ContributorDetailRoute,
    ContributorsRoute,
    FriendDetailRoute,
    FriendsRoute,
    LibraryRoute,
    MovieDetailRoute,
    Route,
    SeriesDetailRoute,
    TagDetailRoute,
    TagsRoute,
)
from .signals import (
    NO_OP,
    Cancelled,
    CloseRequested,
    NavigateBack,
    NoOp,
    ShowNotification,
)

logger = logging.getLogger(__name__)

# page model type -> (page module, capability record)
_PAGES: dict[type, tuple[Any, Callable[[Apis], Any]]] = {
    library.Model: (library, lambda apis: apis.library),
    entry_detail.Model: (entry_detail, lambda apis: apis.entry_detail),
    friends.Model: (friends, lambda apis: apis.friends),
    tags.Model: (tags, lambda apis: apis.tags),
    collections.Model: (collections, lambda apis: apis.collections),
    contributors.Model: (contributors, lambda apis: apis.contributors),
    friend_detail.Model: (friend_detail, lambda apis: apis.friend_detail),
    cache.Model: (cache, lambda apis: apis.cache),
}

_MODALS: dict[type, tuple[Any, Callable[[Apis], Any]]] = {
    friend_modal.Model: (friend_modal, lambda apis: apis.friend_save),
    tag_modal.Model: (tag_modal, lambda apis: apis.tag_save),
    collection_modal.Model: (collection_modal, lambda apis: apis.collection_save),
    movie_session_modal.Model: (movie_session_modal, lambda apis: apis.movie_session),
}


@dataclass(frozen=True)
class ModalSlot:
    key: int
    model: Any
    # friends offered by the watch session modal
    friends: tuple[Friend, ...] = ()


@dataclass(frozen=True)
class Model:
    route: Route
    page: Any = None
    page_key: int = 0
    modal: ModalSlot | None = None
    modal_key: int = 0
    toast: notification.Model = notification.EMPTY
    # routes left behind, most recent last
    history: tuple[Route, ...] = ()


@dataclass(frozen=True)
class PageMsg:
    key: int
    msg: Any


@dataclass(frozen=True)
class ModalMsg:
    key: int
    msg: Any


@dataclass(frozen=True)
class NotificationMsg:
    msg: notification.Msg


@dataclass(frozen=True)
class Navigate:
    route: Route


@dataclass(frozen=True)
class OpenMovieSessionModal:
    mode: movie_session_modal.Mode
    friends: tuple[Friend, ...] = ()


@dataclass(frozen=True)
class Deleted:
    target: confirm_modal.DeleteTarget


Msg = Union[PageMsg, ModalMsg, NotificationMsg, Navigate, OpenMovieSessionModal, Deleted]


@dataclass(frozen=True)
class Navigated:
    route: Route


Signal = Union[NoOp, Navigated]


MAX_HISTORY = 20

# tag and contributor details are drawn by the host over the current page
_HOST_OWNED = (TagDetailRoute, ContributorDetailRoute)


def _init_page(route: Route) -> tuple[Any, Cmd]:
    if isinstance(route, LibraryRoute):
        return library.init()
    if isinstance(route, (MovieDetailRoute, SeriesDetailRoute)):
        return entry_detail.init(route.entry_id)
    if isinstance(route, FriendsRoute):
        return friends.init()
    if isinstance(route, TagsRoute):
        return tags.init()
    if isinstance(route, CollectionsRoute):
        return collections.init()
    if isinstance(route, ContributorsRoute):
        return contributors.init()
    if isinstance(route, FriendDetailRoute):
        return friend_detail.init(route.friend_id, route.name)
    if isinstance(route, CacheRoute):
        return cache.init()
    raise TypeError(f'No page for route: {route!r}')


def _enter(model: Model, route: Route) -> tuple[Model, Cmd]:
    page, page_cmd = _init_page(route)
    key = model.page_key + 1
    entered = replace(model, route=route, page=page, page_key=key, modal=None)
    return entered, cmd.map_cmd(page_cmd, lambda msg: PageMsg(key, msg))


def _navigate(model: Model, route: Route) -> tuple[Model, Cmd, Signal]:
    logger.info('Navigating to %s', type(route).__name__)
    if isinstance(route, _HOST_OWNED):
        return model, cmd.NONE, Navigated(route)
    history = (*model.history, model.route)[-MAX_HISTORY:]
    entered, page_cmd = _enter(replace(model, history=history), route)
    return entered, page_cmd, Navigated(route)


def _go_back(model: Model) -> tuple[Model, Cmd, Signal]:
    previous = model.history[-1] if model.history else LibraryRoute()
    logger.info('Going back to %s', type(previous).__name__)
    entered, page_cmd = _enter(replace(model, history=model.history[:-1]), previous)
    return entered, page_cmd, Navigated(previous)


def init(route: Route | None = None) -> tuple[Model, Cmd]:
    route = route or FriendsRoute()
    return _enter(Model(route=route), route)


def _notify(model: Model, message: str, is_success: bool = True) -> tuple[Model, Cmd]:
    note, note_cmd, _ = notification.update(notification.Show(message, is_success), model.toast)
    return replace(model, toast=note), cmd.map_cmd(note_cmd, NotificationMsg)


def _open_modal(model: Model, modal_model: Any, friends_: tuple[Friend, ...] = ()) -> Model:
    key = model.modal_key + 1
    return replace(model, modal=ModalSlot(key, modal_model, friends_), modal_key=key)


def _reload_page(model: Model) -> Cmd:
    if model.page is None:
        return cmd.NONE
    module, _ = _PAGES[type(model.page)]
    return cmd.of_msg(PageMsg(model.page_key, module.Load()))


def _route_for(signal: Any) -> Route | None:
    if isinstance(signal, friends.NavigateToFriendDetail):
        return FriendDetailRoute(signal.friend_id, signal.name)
    if isinstance(signal, tags.NavigateToTagDetail):
        return TagDetailRoute(signal.tag_id)
    if isinstance(signal, contributors.NavigateToContributorDetail):
        return ContributorDetailRoute(signal.person_id, signal.name)
    if isinstance(signal, (library.NavigateToMovieDetail, friend_detail.NavigateToMovieDetail)):
        return MovieDetailRoute(signal.entry_id)
    if isinstance(signal, (library.NavigateToSeriesDetail, friend_detail.NavigateToSeriesDetail)):
        return SeriesDetailRoute(signal.entry_id)
    if isinstance(signal, entry_detail.NavigateToFriendDetail):
        return FriendDetailRoute(signal.friend_id, signal.name)
    return None


def _modal_for(signal: Any) -> Any:
    if isinstance(signal, friends.RequestOpenAddModal):
        return friend_modal.init()
    if isinstance(signal, friends.RequestOpenEditModal):
        return friend_modal.init(signal.friend)
    if isinstance(signal, friends.RequestOpenDeleteModal):
        return confirm_modal.init(confirm_modal.FriendTarget(signal.friend))
    if isinstance(signal, tags.RequestOpenAddModal):
        return tag_modal.init()
    if isinstance(signal, tags.RequestOpenEditModal):
        return tag_modal.init(signal.tag)
    if isinstance(signal, tags.RequestOpenDeleteModal):
        return confirm_modal.init(confirm_modal.TagTarget(signal.tag))
    if isinstance(signal, collections.RequestOpenAddModal):
        return collection_modal.init()
    if isinstance(signal, collections.RequestOpenEditModal):
        return collection_modal.init(signal.collection)
    if isinstance(signal, collections.RequestOpenDeleteModal):
        target = confirm_modal.CollectionTarget(signal.collection, signal.collection.item_count)
        return confirm_modal.init(target)
    if isinstance(signal, (library.RequestOpenDeleteModal, entry_detail.RequestOpenDeleteModal)):
        return confirm_modal.init(confirm_modal.EntryTarget(signal.entry_id))
    return None


def _handle_page_signal(model: Model, signal: Any) -> tuple[Model, Cmd, Signal]:
    if isinstance(signal, NoOp):
        return model, cmd.NONE, NO_OP
    if isinstance(signal, NavigateBack):
        return _go_back(model)
    route = _route_for(signal)
    if route is not None:
        return _navigate(model, route)
    modal_model = _modal_for(signal)
    if modal_model is not None:
        return _open_modal(model, modal_model), cmd.NONE, NO_OP
    if isinstance(signal, entry_detail.RequestOpenSessionModal):
        return _open_modal(model, movie_session_modal.init(signal.mode), signal.friends), cmd.NONE, NO_OP
    if isinstance(signal, ShowNotification):
        notified, note_cmd = _notify(model, signal.message, signal.is_success)
        return notified, note_cmd, NO_OP
    if isinstance(signal, friend_detail.FriendUpdated):
        notified, note_cmd = _notify(model, 'Friend updated')
        return notified, note_cmd, NO_OP
    raise TypeError(f'Unhandled page signal: {signal!r}')


def _saved_message(slot: ModalSlot, signal: Any) -> str:
    if isinstance(signal, movie_session_modal.Created):
        return 'Watch session logged'
    if isinstance(signal, movie_session_modal.Updated):
        return 'Watch session updated'
    action = 'updated' if getattr(slot.model, 'editing', None) is not None else 'added'
    if isinstance(signal, friend_modal.Saved):
        return f'Friend {action}'
    if isinstance(signal, tag_modal.Saved):
        return f'Tag {action}'
    return f'Collection {action}'


def _delete_cmd(apis: Apis, target: confirm_modal.DeleteTarget) -> Cmd:
    if isinstance(target, confirm_modal.FriendTarget):
        op, arg = apis.delete.friend, target.friend.id
    elif isinstance(target, confirm_modal.TagTarget):
        op, arg = apis.delete.tag, target.tag.id
    elif isinstance(target, confirm_modal.CollectionTarget):
        op, arg = apis.delete.collection, target.collection.id
    else:
        op, arg = apis.delete.entry, target.entry_id
    return cmd.load(
        op,
        arg,
        lambda _: Deleted(target),
        lambda error: NotificationMsg(notification.Show(f'Failed to delete: {error}', False)),
    )


def _deleted_message(target: confirm_modal.DeleteTarget) -> str:
    if isinstance(target, confirm_modal.FriendTarget):
        return f'Deleted {target.friend.name}'
    if isinstance(target, confirm_modal.TagTarget):
        return f'Deleted tag {target.tag.name}'
    if isinstance(target, confirm_modal.CollectionTarget):
        return f'Deleted collection {target.collection.name}'
    return 'Entry deleted'


def _shows_deleted_entry(model: Model, target: confirm_modal.DeleteTarget) -> bool:
    return (
        isinstance(target, confirm_modal.EntryTarget)
        and isinstance(model.page, entry_detail.Model)
        and model.page.entry_id == target.entry_id
    )


def _handle_modal_signal(apis: Apis, model: Model, slot: ModalSlot, signal: Any) -> tuple[Model, Cmd, Signal]:
    if isinstance(signal, NoOp):
        return model, cmd.NONE, NO_OP
    if isinstance(signal, (CloseRequested, Cancelled)):
        return replace(model, modal=None), cmd.NONE, NO_OP
    if isinstance(signal, (friend_modal.Saved, tag_modal.Saved, collection_modal.Saved,
                           movie_session_modal.Created, movie_session_modal.Updated)):
        closed = replace(model, modal=None)
        notified, note_cmd = _notify(closed, _saved_message(slot, signal))
        return notified, cmd.batch(_reload_page(closed), note_cmd), NO_OP
    if isinstance(signal, movie_session_modal.FriendCreatedInline):
        # keep the modal's friend list in step with the selection
        if model.modal is not None and model.modal.key == slot.key:
            model = replace(model, modal=replace(model.modal, friends=(signal.friend, *model.modal.friends)))
        notified, note_cmd = _notify(model, f'Added {signal.friend.name}')
        return notified, note_cmd, NO_OP
    if isinstance(signal, confirm_modal.Confirmed):
        return replace(model, modal=None), _delete_cmd(apis, signal.target), NO_OP
    raise TypeError(f'Unhandled modal signal: {signal!r}')


def update(apis: Apis, msg: Msg, model: Model) -> tuple[Model, Cmd, Signal]:
    if isinstance(msg, PageMsg):
        if msg.key != model.page_key or model.page is None:
            logger.debug('Dropping %s for a page that is gone', type(msg.msg).__name__)
            return model, cmd.NONE, NO_OP
        key = model.page_key
        module, api_of = _PAGES[type(model.page)]
        page, page_cmd, signal = module.update(api_of(apis), msg.msg, model.page)
        updated, signal_cmd, out = _handle_page_signal(replace(model, page=page), signal)
        return updated, cmd.batch(cmd.map_cmd(page_cmd, lambda m: PageMsg(key, m)), signal_cmd), out

    if isinstance(msg, ModalMsg):
        slot = model.modal
        if slot is None or msg.key != slot.key:
            logger.debug('Dropping %s for a modal that is no longer open', type(msg.msg).__name__)
            return model, cmd.NONE, NO_OP
        if isinstance(slot.model, confirm_modal.Model):
            modal_model, modal_cmd, signal = confirm_modal.update(msg.msg, slot.model)
        else:
            module, api_of = _MODALS[type(slot.model)]
            modal_model, modal_cmd, signal = module.update(api_of(apis), msg.msg, slot.model)
        slot = replace(slot, model=modal_model)
        updated, signal_cmd, out = _handle_modal_signal(apis, replace(model, modal=slot), slot, signal)
        mapped = cmd.map_cmd(modal_cmd, lambda m: ModalMsg(slot.key, m))
        return updated, cmd.batch(mapped, signal_cmd), out

    if isinstance(msg, NotificationMsg):
        note, note_cmd, _ = notification.update(msg.msg, model.toast)
        return replace(model, toast=note), cmd.map_cmd(note_cmd, NotificationMsg), NO_OP

    if isinstance(msg, Navigate):
        return _navigate(model, msg.route)

    if isinstance(msg, OpenMovieSessionModal):
        return _open_modal(model, movie_session_modal.init(msg.mode), msg.friends), cmd.NONE, NO_OP

    if isinstance(msg, Deleted):
        notified, note_cmd = _notify(model, _deleted_message(msg.target))
        if _shows_deleted_entry(notified, msg.target):
            left, page_cmd, out = _go_back(notified)
            return left, cmd.batch(page_cmd, note_cmd), out
        return notified, cmd.batch(_reload_page(notified), note_cmd), NO_OP

    raise TypeError(f'Unhandled shell message: {msg!r}')


_NAV = (
    ('Library', LibraryRoute()),
    ('Friends', FriendsRoute()),
    ('Tags', TagsRoute()),
    ('Collections', CollectionsRoute()),
    ('Contributors', ContributorsRoute()),
    ('Cache', CacheRoute()),
)


def _nav(model: Model, dispatch: Callable[[Any], None]) -> html.Element:
    def link(label: str, route: Route) -> html.Element:
        return h(
            'a',
            label,
            class_='active' if model.route == route else None,
            on={'click': lambda _: dispatch(Navigate(route))},
        )

    return h('nav', [link(label, route) for label, route in _NAV], class_='app-nav')


def _modal_view(slot: ModalSlot, dispatch: Callable[[Any], None]) -> html.Node:
    def to_shell(msg: Any) -> None:
        dispatch(ModalMsg(slot.key, msg))

    if isinstance(slot.model, movie_session_modal.Model):
        return movie_session_modal.view(slot.model, slot.friends, to_shell)
    if isinstance(slot.model, confirm_modal.Model):
        return confirm_modal.view(slot.model, to_shell)
    module, _ = _MODALS[type(slot.model)]
    return module.view(slot.model, to_shell)


def view(model: Model, dispatch: Callable[[Any], None]) -> html.Element:
    page = html.NONE
    if model.page is not None:
        module, _ = _PAGES[type(model.page)]
        key = model.page_key
        page = module.view(model.page, lambda m: dispatch(PageMsg(key, m)))
    return h(
        'div',
        _nav(model, dispatch),
        h('main', page),
        _modal_view(model.modal, dispatch) if model.modal is not None else None,
        notification.view(model.toast, lambda m: dispatch(NotificationMsg(m))),
        id='app',
    )
