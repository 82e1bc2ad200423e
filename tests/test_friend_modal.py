import asyncio
from dataclasses import replace

from cinemarco.client import cmd, html
from cinemarco.client.api import CollectionSaveApi, FriendSaveApi, TagSaveApi
from cinemarco.client.components import collection_modal, friend_modal, tag_modal
from cinemarco.client.result import Err, Ok
from cinemarco.client.signals import CLOSE_REQUESTED, NO_OP
from cinemarco.domain import CreateFriendRequest, UpdateFriendRequest

from conftest import make_collection, make_friend, make_tag


class RecordingFriendApi:
    def __init__(self, result=None):
        self.calls = []
        self.result = result

    def create(self, request):
        self.calls.append(('create', request))
        return self.result or Ok(make_friend(7, request.name, request.nickname))

    def update(self, request):
        self.calls.append(('update', request))
        return self.result or Ok(make_friend(request.id, request.name, request.nickname))

    @property
    def api(self):
        return FriendSaveApi(create=self.create, update=self.update)


class TestSubmit:
    def test_blank_name_sets_error_without_command(self):
        model = replace(friend_modal.EMPTY, name='   ')
        new_model, command, signal = friend_modal.update(RecordingFriendApi().api, friend_modal.Submit(), model)
        assert new_model == replace(model, error='Name is required')
        assert command == cmd.NONE
        assert signal == NO_OP

    def test_valid_create_issues_one_command(self):
        recorder = RecordingFriendApi()
        model = replace(friend_modal.EMPTY, name=' Alice ', nickname='  ')
        new_model, command, signal = friend_modal.update(recorder.api, friend_modal.Submit(), model)
        assert new_model.is_submitting
        assert new_model.error is None
        assert len(command) == 1
        assert signal == NO_OP

        messages = asyncio.run(cmd.collect(command))
        assert recorder.calls == [('create', CreateFriendRequest(name='Alice', nickname=None))]
        assert messages == [friend_modal.SubmitResult(Ok(make_friend(7, 'Alice')))]

    def test_editing_issues_update(self):
        recorder = RecordingFriendApi()
        model = replace(friend_modal.from_friend(make_friend(3, 'Bob', 'B')), name='Robert')
        _, command, _ = friend_modal.update(recorder.api, friend_modal.Submit(), model)
        asyncio.run(cmd.collect(command))
        assert recorder.calls == [('update', UpdateFriendRequest(id=3, name='Robert', nickname='B'))]

    def test_server_error_keeps_modal_open(self):
        model = replace(friend_modal.EMPTY, name='Alice', is_submitting=True)
        msg = friend_modal.SubmitResult(Err('Duplicate name'))
        new_model, command, signal = friend_modal.update(RecordingFriendApi().api, msg, model)
        assert new_model == replace(model, is_submitting=False, error='Duplicate name')
        assert command == cmd.NONE
        assert signal == NO_OP

    def test_success_signals_saved(self):
        friend = make_friend(7, 'Alice')
        model = replace(friend_modal.EMPTY, name='Alice', is_submitting=True)
        new_model, _, signal = friend_modal.update(RecordingFriendApi().api, friend_modal.SubmitResult(Ok(friend)), model)
        assert not new_model.is_submitting
        assert signal == friend_modal.Saved(friend)


class TestWhileSubmitting:
    def test_close_submit_and_edits_are_ignored(self):
        model = replace(friend_modal.EMPTY, name='Alice', is_submitting=True)
        api = RecordingFriendApi().api
        for msg in (friend_modal.Close(), friend_modal.Submit(), friend_modal.NameChanged('Zed')):
            assert friend_modal.update(api, msg, model) == (model, cmd.NONE, NO_OP)


class TestClose:
    def test_close_is_idempotent(self):
        model = replace(friend_modal.EMPTY, name='draft')
        api = RecordingFriendApi().api
        first = friend_modal.update(api, friend_modal.Close(), model)
        second = friend_modal.update(api, friend_modal.Close(), first[0])
        assert first == (model, cmd.NONE, CLOSE_REQUESTED)
        assert second == first


class TestView:
    def test_inputs_reproduce_model_fields(self):
        model = friend_modal.from_friend(make_friend(1, 'Alice <3', 'Al'))
        tree = friend_modal.view(model, lambda msg: None)
        assert html.find_by_id(tree, 'friend-name').attrs['value'] == 'Alice <3'
        assert html.find_by_id(tree, 'friend-nickname').attrs['value'] == 'Al'
        assert 'value="Alice &lt;3"' in html.to_html(tree)

    def test_handlers_dispatch_messages(self):
        sent = []
        tree = friend_modal.view(friend_modal.EMPTY, sent.append)
        html.find_by_id(tree, 'friend-name').trigger('input', 'Carol')
        html.find_by_id(tree, 'friend-submit').trigger('click')
        assert sent == [friend_modal.NameChanged('Carol'), friend_modal.Submit()]

    def test_submit_disabled_while_submitting(self):
        tree = friend_modal.view(replace(friend_modal.EMPTY, is_submitting=True), lambda msg: None)
        submit = html.find_by_id(tree, 'friend-submit')
        assert submit.attrs['disabled'] is True
        assert 'click' not in submit.handlers

    def test_error_is_rendered(self):
        tree = friend_modal.view(replace(friend_modal.EMPTY, error='Name is required'), lambda msg: None)
        errors = html.find_all(tree, lambda el: el.attrs.get('class') == 'form-error')
        assert [e.text for e in errors] == ['Name is required']


class TestTagAndCollectionModals:
    def test_tag_optional_fields_are_trimmed(self):
        calls = []
        api = TagSaveApi(create=lambda req: calls.append(req) or Ok(make_tag(2, req.name)), update=None)
        model = replace(tag_modal.EMPTY, name='Cozy', color=' #ff0000 ', description=' ')
        _, command, _ = tag_modal.update(api, tag_modal.Submit(), model)
        asyncio.run(cmd.collect(command))
        assert calls[0].color == '#ff0000'
        assert calls[0].description is None

    def test_tag_round_trip_through_view(self):
        model = tag_modal.from_tag(make_tag(1, 'Cozy', '#00ff00'))
        tree = tag_modal.view(model, lambda msg: None)
        assert html.find_by_id(tree, 'tag-name').attrs['value'] == 'Cozy'
        assert html.find_by_id(tree, 'tag-color').attrs['value'] == '#00ff00'

    def test_collection_blank_name(self):
        api = CollectionSaveApi(create=None, update=None)
        model, command, signal = collection_modal.update(api, collection_modal.Submit(), collection_modal.EMPTY)
        assert model.error == 'Name is required'
        assert command == cmd.NONE

    def test_collection_update_uses_editing_id(self):
        calls = []
        api = CollectionSaveApi(create=None, update=lambda req: calls.append(req) or Ok(make_collection(9, req.name)))
        model = replace(collection_modal.from_collection(make_collection(9, 'Old')), name='New')
        _, command, _ = collection_modal.update(api, collection_modal.Submit(), model)
        messages = asyncio.run(cmd.collect(command))
        assert calls[0].id == 9
        assert messages == [collection_modal.SubmitResult(Ok(make_collection(9, 'New')))]
