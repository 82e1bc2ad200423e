from unittest.mock import MagicMock

import pytest

from cinemarco.client.api import ApiError, HttpApi, LocalApi
from cinemarco.client.result import Err, Ok
from cinemarco.domain import CreateFriendRequest, UpdateFriendRequest

from conftest import NOW


def response(status_code=200, payload=None, text=''):
    mock = MagicMock()
    mock.status_code = status_code
    mock.ok = status_code < 400
    mock.content = b'{}' if payload is not None else b''
    mock.text = text
    if payload is None:
        mock.json.side_effect = ValueError('no json')
    else:
        mock.json.return_value = payload
    return mock


def friend_payload(friend_id=1, name='Alice'):
    return {'id': friend_id, 'name': name, 'nickname': None, 'avatar_url': None, 'created_at': NOW.isoformat()}


class TestHttpApi:
    def api(self, *responses):
        session = MagicMock()
        session.request.side_effect = list(responses)
        return HttpApi('http://localhost:8787/', session=session), session

    def test_update_sends_only_provided_fields(self):
        api, session = self.api(response(payload=friend_payload(3, 'Robert')))
        result = api.update_friend(UpdateFriendRequest(id=3, name='Robert'))
        assert result.value.name == 'Robert'
        method, url = session.request.call_args.args
        assert (method, url) == ('PUT', 'http://localhost:8787/api/friends/3')
        assert session.request.call_args.kwargs['json'] == {'id': 3, 'name': 'Robert'}

    def test_client_error_becomes_err(self):
        api, _ = self.api(response(400, {'detail': 'Friend name is required'}))
        assert api.create_friend(CreateFriendRequest(name=' ')) == Err('Friend name is required')

    def test_server_error_raises(self):
        api, _ = self.api(response(500, text='Internal Server Error'))
        with pytest.raises(ApiError) as info:
            api.create_friend(CreateFriendRequest(name='Bob'))
        assert info.value.status_code == 500
        assert str(info.value) == 'Internal Server Error'

    def test_list_and_delete(self):
        api, session = self.api(response(payload=[friend_payload()]), response(payload={'ok': True}))
        assert [f.name for f in api.get_friends()] == ['Alice']
        api.delete_friend(1)
        assert session.request.call_args.args == ('DELETE', 'http://localhost:8787/api/friends/1')
        assert session.request.call_args.kwargs['json'] is None

    def test_untrack_failure_is_err(self):
        api, _ = self.api(response(404, {'detail': 'Tracked contributor x not found'}))
        assert api.untrack_contributor('x') == Err('Tracked contributor x not found')

    def test_entry_detail_calls(self):
        entry = {'id': 4, 'media_type': 'series', 'tmdb_id': 70523, 'title': 'Dark',
                 'date_added': NOW.isoformat()}
        details = {'tmdb_id': 70523, 'media_type': 'series', 'title': 'Dark', 'total_episodes': 26}
        api, session = self.api(response(payload=entry), response(payload=details))
        loaded = api.get_entry(4)
        assert session.request.call_args.args == ('GET', 'http://localhost:8787/api/entries/4')
        assert api.get_tmdb_details(loaded).total_episodes == 26
        assert session.request.call_args.args == ('GET', 'http://localhost:8787/api/tmdb/series/70523')

    def test_recalculate_reads_count(self):
        api, _ = self.api(response(payload={'updated': 4}))
        assert api.recalculate_series_watch_status() == 4


class TestLocalApi:
    def test_validation_and_missing_rows_become_err(self, temp_db):
        api = LocalApi()
        assert api.create_friend(CreateFriendRequest(name='  ')) == Err('Friend name is required')
        assert api.update_friend(UpdateFriendRequest(id=5, name='X')) == Err('Friend 5 not found')

    def test_create_then_list(self, temp_db):
        api = LocalApi()
        created = api.create_friend(CreateFriendRequest(name='Alice'))
        assert isinstance(created, Ok)
        assert api.get_friends() == [created.value]
