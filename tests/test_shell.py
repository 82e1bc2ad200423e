import asyncio

import pytest

from cinemarco.client import cmd, html, shell
from cinemarco.client.api import build_apis
from cinemarco.client.components import confirm_modal, friend_modal, movie_session_modal, notification, tag_modal
from cinemarco.client.pages import entry_detail, friend_detail, friends, library, tags
from cinemarco.client.remote_data import Success
from cinemarco.client.result import Err, Ok
from cinemarco.client.routing import (
    FriendDetailRoute,
    FriendsRoute,
    LibraryRoute,
    MovieDetailRoute,
    TagDetailRoute,
    TagsRoute,
)
from cinemarco.client.runtime import Program
from cinemarco.client.signals import NO_OP
from cinemarco.domain import TmdbDetails

from conftest import make_entry, make_friend, make_session, make_tag


@pytest.fixture(autouse=True)
def instant_toasts(monkeypatch):
    monkeypatch.setattr(notification, 'NOTIFICATION_TIMEOUT_SECONDS', 0)


class FakeBackend:
    def __init__(self):
        self.friends = [make_friend(1, 'Alice'), make_friend(2, 'Bob')]
        self.entries = [make_entry(1, 'Heat'), make_entry(2, 'Severance', 'series')]
        self.deleted = []
        self.fail_delete = False

    def get_friends(self):
        return list(self.friends)

    def create_friend(self, request):
        friend = make_friend(len(self.friends) + 1, request.name, request.nickname)
        self.friends.append(friend)
        return Ok(friend)

    def update_friend(self, request):
        return Err('not supported')

    def delete_friend(self, friend_id):
        if self.fail_delete:
            raise RuntimeError('database is locked')
        self.deleted.append(friend_id)
        self.friends = [f for f in self.friends if f.id != friend_id]

    def get_friend_entries(self, friend_id):
        return []

    def get_tags(self):
        return [make_tag(1, 'Cozy')]

    def get_entries(self):
        return list(self.entries)

    def get_entry(self, entry_id):
        return next(e for e in self.entries if e.id == entry_id)

    def get_entry_sessions(self, entry_id):
        return [make_session(1, entry_id, [1])]

    def get_tmdb_details(self, entry):
        return TmdbDetails(tmdb_id=entry.tmdb_id, media_type=entry.media_type, title=entry.title)

    def delete_entry(self, entry_id):
        self.deleted.append(entry_id)
        self.entries = [e for e in self.entries if e.id != entry_id]

    def __getattr__(self, name):
        def unsupported(*args):
            raise NotImplementedError(name)

        return unsupported


def run_shell(backend, route=None, messages=()):
    apis = build_apis(backend)
    signals = []

    async def scenario():
        program = Program(shell.init(route), lambda msg, model: shell.update(apis, msg, model), on_signal=signals.append)
        await program.run_until_idle()
        for msg in messages:
            message = msg(program.model) if callable(msg) else msg
            program.dispatch(message)
            await program.run_until_idle()
        return program.model

    return asyncio.run(scenario()), signals


def page_msg(msg):
    return lambda model: shell.PageMsg(model.page_key, msg)


def modal_msg(msg):
    return lambda model: shell.ModalMsg(model.modal.key, msg)


class TestPages:
    def test_initial_route_loads_friends(self):
        model, signals = run_shell(FakeBackend())
        assert isinstance(model.page, friends.Model)
        assert [f.name for f in model.page.friends.value] == ['Alice', 'Bob']
        assert signals == []

    def test_navigation_signal_reaches_host(self):
        backend = FakeBackend()
        alice = backend.friends[0]
        model, signals = run_shell(backend, messages=[page_msg(friends.ViewFriendDetail(alice))])
        assert signals == [shell.Navigated(FriendDetailRoute(1, 'Alice'))]
        assert model.route == FriendDetailRoute(1, 'Alice')
        assert model.page.entries == Success([])

    def test_host_navigation(self):
        model, signals = run_shell(FakeBackend(), messages=[shell.Navigate(TagsRoute())])
        assert isinstance(model.page, tags.Model)
        assert model.page.tags == Success([make_tag(1, 'Cozy')])
        assert signals == [shell.Navigated(TagsRoute())]

    def test_messages_for_previous_page_are_dropped(self):
        apis = build_apis(FakeBackend())
        model, _ = shell.init(FriendsRoute())
        stale_key = model.page_key
        model, _, _ = shell.update(apis, shell.Navigate(TagsRoute()), model)
        msg = shell.PageMsg(stale_key, friends.Loaded(Ok([]), 1))
        assert shell.update(apis, msg, model) == (model, cmd.NONE, NO_OP)

    def test_navigating_closes_modal(self):
        apis = build_apis(FakeBackend())
        model, _ = shell.init(FriendsRoute())
        model, _, _ = shell.update(apis, shell.PageMsg(model.page_key, friends.OpenAddModal()), model)
        assert model.modal is not None
        model, _, _ = shell.update(apis, shell.Navigate(TagsRoute()), model)
        assert model.modal is None


class TestModals:
    def test_add_friend_closes_modal_reloads_and_notifies(self):
        backend = FakeBackend()
        model, _ = run_shell(
            backend,
            messages=[
                page_msg(friends.OpenAddModal()),
                modal_msg(friend_modal.NameChanged('Carol')),
                modal_msg(friend_modal.Submit()),
            ],
        )
        assert model.modal is None
        assert [f.name for f in model.page.friends.value] == ['Alice', 'Bob', 'Carol']
        assert model.toast.message == 'Friend added'
        assert model.toast.is_success

    def test_save_error_keeps_modal_open(self):
        backend = FakeBackend()
        model, _ = run_shell(
            backend,
            messages=[
                page_msg(friends.OpenEditModal(backend.friends[0])),
                modal_msg(friend_modal.Submit()),
            ],
        )
        assert isinstance(model.modal.model, friend_modal.Model)
        assert model.modal.model.error == 'not supported'

    def test_close_clears_slot(self):
        model, _ = run_shell(
            FakeBackend(),
            messages=[page_msg(friends.OpenAddModal()), modal_msg(friend_modal.Close())],
        )
        assert model.modal is None

    def test_message_for_closed_modal_is_ignored(self):
        apis = build_apis(FakeBackend())
        model, _ = shell.init(TagsRoute())
        model, _, _ = shell.update(apis, shell.PageMsg(model.page_key, tags.OpenAddModal()), model)
        old_key = model.modal.key
        model, _, _ = shell.update(apis, shell.ModalMsg(old_key, tag_modal.Close()), model)
        assert model.modal is None
        msg = shell.ModalMsg(old_key, tag_modal.SubmitResult(Ok(make_tag())))
        assert shell.update(apis, msg, model) == (model, cmd.NONE, NO_OP)

    def test_confirmed_delete_reloads_page(self):
        backend = FakeBackend()
        model, _ = run_shell(
            backend,
            messages=[
                page_msg(friends.OpenDeleteModal(backend.friends[1])),
                modal_msg(confirm_modal.Confirm()),
            ],
        )
        assert backend.deleted == [2]
        assert model.modal is None
        assert [f.name for f in model.page.friends.value] == ['Alice']
        assert model.toast.message == 'Deleted Bob'

    def test_failed_delete_notifies(self):
        backend = FakeBackend()
        backend.fail_delete = True
        model, _ = run_shell(
            backend,
            messages=[
                page_msg(friends.OpenDeleteModal(backend.friends[1])),
                modal_msg(confirm_modal.Confirm()),
            ],
        )
        assert model.toast.message == 'Failed to delete: database is locked'
        assert not model.toast.is_success

    def test_inline_friend_is_offered_in_session_modal(self):
        backend = FakeBackend()
        open_modal = shell.OpenMovieSessionModal(movie_session_modal.CreateMode(1), tuple(backend.friends))
        model, _ = run_shell(backend, messages=[open_modal, modal_msg(movie_session_modal.AddNewFriend('Dana'))])
        assert [f.name for f in model.modal.friends] == ['Dana', 'Alice', 'Bob']
        assert model.modal.model.selected_friends == (3,)


class TestView:
    def test_renders_page_modal_and_toast(self):
        backend = FakeBackend()
        model, _ = run_shell(
            backend,
            messages=[page_msg(friends.OpenAddModal())],
        )
        sent = []
        tree = shell.view(model, sent.append)
        assert html.find_by_id(tree, 'friends-page') is not None
        html.find_by_id(tree, 'friend-name').trigger('input', 'Zoe')
        assert sent == [shell.ModalMsg(model.modal.key, friend_modal.NameChanged('Zoe'))]


class TestHistory:
    def test_go_back_returns_to_previous_page(self):
        backend = FakeBackend()
        model, signals = run_shell(
            backend,
            messages=[page_msg(friends.ViewFriendDetail(backend.friends[0])), page_msg(friend_detail.GoBack())],
        )
        assert signals == [shell.Navigated(FriendDetailRoute(1, 'Alice')), shell.Navigated(FriendsRoute())]
        assert model.route == FriendsRoute()
        assert isinstance(model.page, friends.Model)
        assert model.page.friends.value == backend.friends
        assert model.history == ()
        assert html.find_by_id(shell.view(model, lambda m: None), 'friends-page') is not None

    def test_go_back_without_history_lands_on_library(self):
        model, signals = run_shell(FakeBackend(), FriendDetailRoute(1, 'Alice'), [page_msg(friend_detail.GoBack())])
        assert signals == [shell.Navigated(LibraryRoute())]
        assert isinstance(model.page, library.Model)
        assert [e.title for e in model.page.entries.value] == ['Heat', 'Severance']

    def test_history_is_bounded(self):
        apis = build_apis(FakeBackend())
        model, _ = shell.init(FriendsRoute())
        for _ in range(shell.MAX_HISTORY + 5):
            model, _, _ = shell.update(apis, shell.Navigate(TagsRoute()), model)
        assert len(model.history) == shell.MAX_HISTORY

    def test_tag_detail_keeps_current_page(self):
        apis = build_apis(FakeBackend())
        model, _ = shell.init(TagsRoute())
        page = model.page
        updated, command, signal = shell.update(apis, shell.PageMsg(model.page_key, tags.ViewTagDetail(1)), model)
        assert signal == shell.Navigated(TagDetailRoute(1))
        assert updated.page is page
        assert updated.route == TagsRoute()
        assert command == cmd.NONE


class TestEntryFlows:
    def test_library_to_detail_to_session_modal(self):
        model, signals = run_shell(
            FakeBackend(),
            LibraryRoute(),
            [page_msg(library.ViewMovieDetail(1)), page_msg(entry_detail.LogSession())],
        )
        assert signals == [shell.Navigated(MovieDetailRoute(1))]
        assert model.page.bundle.value.sessions == (make_session(1, 1, [1]),)
        assert model.modal.model.mode == movie_session_modal.CreateMode(1)
        assert [f.name for f in model.modal.friends] == ['Alice', 'Bob']

    def test_delete_from_library_reloads_list(self):
        backend = FakeBackend()
        model, _ = run_shell(
            backend,
            LibraryRoute(),
            [page_msg(library.OpenDeleteModal(2)), modal_msg(confirm_modal.Confirm())],
        )
        assert backend.deleted == [2]
        assert isinstance(model.page, library.Model)
        assert [e.title for e in model.page.entries.value] == ['Heat']
        assert model.toast.message == 'Entry deleted'

    def test_delete_from_detail_goes_back(self):
        backend = FakeBackend()
        model, signals = run_shell(
            backend,
            LibraryRoute(),
            [
                page_msg(library.ViewMovieDetail(1)),
                page_msg(entry_detail.OpenDeleteModal()),
                modal_msg(confirm_modal.Confirm()),
            ],
        )
        assert backend.deleted == [1]
        assert signals[-1] == shell.Navigated(LibraryRoute())
        assert isinstance(model.page, library.Model)
        assert [e.title for e in model.page.entries.value] == ['Severance']
        assert model.toast.message == 'Entry deleted'
