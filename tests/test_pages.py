import asyncio
from dataclasses import replace

from cinemarco.client import cmd, html, remote_data
from cinemarco.client.api import CacheApi, ContributorsApi, EntryDetailApi, FriendDetailApi, FriendsApi, LibraryApi
from cinemarco.client.components import movie_session_modal
from cinemarco.client.pages import cache, contributors, entry_detail, friend_detail, friends, library
from cinemarco.client.remote_data import Failure, Success
from cinemarco.client.result import Err, Ok
from cinemarco.client.signals import NO_OP, NavigateBack, ShowNotification
from cinemarco.domain import CacheStats, ClearCacheResult, TmdbDetails, TrackedContributor, UpdateFriendRequest

from conftest import NOW, make_entry, make_friend, make_session


def friends_api(result=None, error=None):
    def get_all():
        if error:
            raise RuntimeError(error)
        return result or []

    return FriendsApi(get_all=get_all)


class TestFriendsPage:
    def test_init_issues_load(self):
        model, command = friends.init()
        assert model == friends.EMPTY
        assert asyncio.run(cmd.collect(command)) == [friends.Load()]

    def test_load_sets_loading_and_fetches(self):
        alice = make_friend(1, 'Alice')
        model, command, signal = friends.update(friends_api([alice]), friends.Load(), friends.EMPTY)
        assert model.friends == remote_data.LOADING
        assert model.epoch == 1
        assert signal == NO_OP
        assert asyncio.run(cmd.collect(command)) == [friends.Loaded(Ok([alice]), 1)]

    def test_load_failure_becomes_failure(self):
        api = friends_api(error='Network error')
        loading, command, _ = friends.update(api, friends.Load(), friends.EMPTY)
        [loaded] = asyncio.run(cmd.collect(command))
        model, _, _ = friends.update(api, loaded, loading)
        assert model.friends == Failure('Network error')

    def test_stale_completion_is_dropped(self):
        api = friends_api()
        first, _, _ = friends.update(api, friends.Load(), friends.EMPTY)
        second, _, _ = friends.update(api, friends.Load(), first)
        stale = friends.Loaded(Ok([make_friend(1, 'Old')]), 1)
        assert friends.update(api, stale, second) == (second, cmd.NONE, NO_OP)
        fresh, _, _ = friends.update(api, friends.Loaded(Ok([]), 2), second)
        assert fresh.friends == Success([])

    def test_signals(self):
        alice = make_friend(1, 'Alice')
        api = friends_api()
        assert friends.update(api, friends.ViewFriendDetail(alice), friends.EMPTY)[2] == \
            friends.NavigateToFriendDetail(1, 'Alice')
        assert friends.update(api, friends.OpenAddModal(), friends.EMPTY)[2] == friends.RequestOpenAddModal()
        assert friends.update(api, friends.OpenDeleteModal(alice), friends.EMPTY)[2] == \
            friends.RequestOpenDeleteModal(alice)

    def test_search_filters_name_and_nickname(self):
        people = [make_friend(1, 'Alice'), make_friend(2, 'Bob', 'Bobby'), make_friend(3, 'Carol')]
        assert [f.id for f in friends.filter_friends(people, 'BOB')] == [2]
        assert [f.id for f in friends.filter_friends(people, 'ali')] == [1]
        assert len(friends.filter_friends(people, '  ')) == 3

    def test_empty_list_renders_empty_state(self):
        model = replace(friends.EMPTY, friends=Success([]))
        tree = friends.view(model, lambda m: None)
        assert 'No friends yet' in html.text_content(tree)

    def test_failure_renders_error_with_context(self):
        model = replace(friends.EMPTY, friends=Failure('Network error'))
        tree = friends.view(model, lambda m: None)
        [message] = html.find_all(tree, lambda el: el.attrs.get('class') == 'error-message')
        assert message.text == 'Failed to load friends: Network error'


def contributor(tracked_id='abc', name='Greta Gerwig', department='Directing'):
    return TrackedContributor(
        id=tracked_id,
        tmdb_person_id=45400,
        name=name,
        known_for_department=department,
        created_at=NOW,
    )


class TestContributorsPage:
    def test_untrack_success_reloads_and_notifies(self):
        calls = []
        api = ContributorsApi(get_all=lambda: [], untrack=lambda tid: calls.append(tid) or Ok(None))
        model, command, _ = contributors.update(api, contributors.Untrack('abc'), contributors.EMPTY)
        [result] = asyncio.run(cmd.collect(command))
        assert calls == ['abc']

        model, command, signal = contributors.update(api, result, model)
        assert signal == ShowNotification('Contributor untracked', True)
        assert asyncio.run(cmd.collect(command)) == [contributors.Load()]

    def test_untrack_failure_notifies(self):
        api = ContributorsApi(get_all=lambda: [], untrack=None)
        msg = contributors.UntrackResult(Err('Tracked contributor abc not found'))
        model, command, signal = contributors.update(api, msg, contributors.EMPTY)
        assert command == cmd.NONE
        assert signal == ShowNotification('Tracked contributor abc not found', False)

    def test_filters(self):
        people = [contributor('a', 'Greta Gerwig', 'Directing'), contributor('b', 'Tilda Swinton', 'Acting')]
        assert contributors.departments(people) == ['Acting', 'Directing']
        assert [c.id for c in contributors.filter_contributors(people, 'Acting', '')] == ['b']
        assert [c.id for c in contributors.filter_contributors(people, None, 'greta')] == ['a']

    def test_view_detail_navigation(self):
        api = ContributorsApi(get_all=lambda: [], untrack=None)
        _, _, signal = contributors.update(api, contributors.ViewContributorDetail(45400, 'Greta'), contributors.EMPTY)
        assert signal == contributors.NavigateToContributorDetail(45400, 'Greta')


class TestFriendDetailPage:
    def api(self, update_result=None):
        self.updates = []

        def update_friend(request):
            self.updates.append(request)
            return update_result or Ok(make_friend(request.id, request.name))

        return FriendDetailApi(get_entries=lambda fid: [], update_friend=update_friend)

    def test_init_loads_entries_for_friend(self):
        model, command = friend_detail.init(3, 'Bob')
        assert (model.friend_id, model.name) == (3, 'Bob')
        assert asyncio.run(cmd.collect(command)) == [friend_detail.Load()]

    def test_rename_flow(self):
        api = self.api()
        model, _ = friend_detail.init(3, 'Bob')
        model, _, _ = friend_detail.update(api, friend_detail.StartEditingName(), model)
        assert model.editing_name == 'Bob'
        model, _, _ = friend_detail.update(api, friend_detail.UpdateEditingName(' Robert '), model)
        model, command, _ = friend_detail.update(api, friend_detail.SaveFriendName(), model)
        assert model.is_saving
        [saved] = asyncio.run(cmd.collect(command))
        assert self.updates == [UpdateFriendRequest(id=3, name='Robert')]
        assert self.updates[0].model_fields_set == {'id', 'name'}

        model, _, signal = friend_detail.update(api, saved, model)
        assert model.name == 'Robert'
        assert model.editing_name is None
        assert signal == friend_detail.FriendUpdated(make_friend(3, 'Robert'))

    def test_blank_name_cancels(self):
        api = self.api()
        model = replace(friend_detail.init(3, 'Bob')[0], editing_name='  ')
        model, command, signal = friend_detail.update(api, friend_detail.SaveFriendName(), model)
        assert model.editing_name is None
        assert command == cmd.NONE
        assert self.updates == []

    def test_save_failure_leaves_edit_mode_and_notifies(self):
        api = self.api()
        model = replace(friend_detail.init(3, 'Bob')[0], editing_name='Rob', is_saving=True)
        model, _, signal = friend_detail.update(api, friend_detail.FriendNameSaved(Err('Friend 3 not found')), model)
        assert model.editing_name is None
        assert model.name == 'Bob'
        assert signal == ShowNotification('Failed to update friend: Friend 3 not found', False)

    def test_navigation(self):
        api = self.api()
        model = friend_detail.init(3, 'Bob')[0]
        assert friend_detail.update(api, friend_detail.GoBack(), model)[2] == NavigateBack()
        assert friend_detail.update(api, friend_detail.ViewSeriesDetail(8), model)[2] == \
            friend_detail.NavigateToSeriesDetail(8)


def cache_api(clear_result=None, error=None):
    stats = CacheStats(total_entries=2, total_size_bytes=2048, expired_entries=1, entries_by_type={'movie': 2})

    def clear():
        if error:
            raise RuntimeError(error)
        return clear_result

    return CacheApi(
        get_entries=lambda: [],
        get_stats=lambda: stats,
        clear_all=clear,
        clear_expired=clear,
        recalculate_series_watch_status=lambda: 3,
    )


class TestCachePage:
    def test_entries_and_stats_load_together(self):
        api = cache_api()
        model, command, _ = cache.update(api, cache.Load(), cache.EMPTY)
        assert model.entries == remote_data.LOADING and model.stats == remote_data.LOADING
        [loaded] = asyncio.run(cmd.collect(command))
        model, _, _ = cache.update(api, loaded, model)
        assert model.entries == Success([])
        assert model.stats.value.total_entries == 2

    def test_clear_reloads_and_reports_size(self):
        api = cache_api(ClearCacheResult(entries_removed=3, bytes_freed=3072))
        model, command, _ = cache.update(api, cache.ClearAll(), cache.EMPTY)
        assert model.is_clearing
        assert cache.update(api, cache.ClearExpired(), model) == (model, cmd.NONE, NO_OP)
        [cleared] = asyncio.run(cmd.collect(command))
        model, command, signal = cache.update(api, cleared, model)
        assert not model.is_clearing
        assert signal == ShowNotification('Cleared 3 entries (3.0 KB freed)', True)
        assert asyncio.run(cmd.collect(command)) == [cache.Load()]

    def test_clear_failure_notifies(self):
        api = cache_api(error='disk I/O error')
        model, command, _ = cache.update(api, cache.ClearExpired(), cache.EMPTY)
        [cleared] = asyncio.run(cmd.collect(command))
        model, command, signal = cache.update(api, cleared, model)
        assert command == cmd.NONE
        assert signal == ShowNotification('Failed to clear cache: disk I/O error', False)

    def test_recalculate(self):
        api = cache_api()
        model, command, _ = cache.update(api, cache.RecalculateSeriesWatchStatus(), cache.EMPTY)
        assert model.is_recalculating
        [done] = asyncio.run(cmd.collect(command))
        model, _, signal = cache.update(api, done, model)
        assert not model.is_recalculating
        assert signal == ShowNotification('Recalculated watch status for 3 series', True)

    def test_format_bytes(self):
        assert cache.format_bytes(512) == '512 B'
        assert cache.format_bytes(1536) == '1.5 KB'
        assert cache.format_bytes(3 * 1024 * 1024) == '3.0 MB'


class TestLibraryPage:
    entries = [
        make_entry(1, 'Heat', personal_rating=9, watch_status='completed'),
        make_entry(2, 'Severance', 'series', watch_status='in_progress'),
        make_entry(3, 'Alien', personal_rating=7, watch_status='completed'),
    ]

    def test_load_fetches_entries(self):
        api = LibraryApi(get_all=lambda: list(self.entries))
        model, command = library.init()
        assert asyncio.run(cmd.collect(command)) == [library.Load()]
        model, command, _ = library.update(api, library.Load(), model)
        [loaded] = asyncio.run(cmd.collect(command))
        model, _, _ = library.update(api, loaded, model)
        assert model.entries == Success(self.entries)

    def test_filters_and_sorting(self):
        filters = library.Filters(watch_status='completed', sort_by='title', descending=False)
        assert [e.title for e in library.filter_entries(self.entries, filters)] == ['Alien', 'Heat']
        filters = library.Filters(min_rating=8)
        assert [e.title for e in library.filter_entries(self.entries, filters)] == ['Heat']
        filters = library.Filters(search_query=' SEV ')
        assert [e.title for e in library.filter_entries(self.entries, filters)] == ['Severance']

    def test_filter_messages_and_clear(self):
        api = LibraryApi(get_all=list)
        model, _, _ = library.update(api, library.SetSearchQuery('heat'), library.EMPTY)
        model, _, _ = library.update(api, library.ToggleSortDirection(), model)
        assert model.filters == library.Filters(search_query='heat', descending=False)
        model, _, _ = library.update(api, library.ClearFilters(), model)
        assert model.filters == library.Filters()

    def test_signals(self):
        api = LibraryApi(get_all=list)
        assert library.update(api, library.ViewMovieDetail(1), library.EMPTY)[2] == library.NavigateToMovieDetail(1)
        assert library.update(api, library.ViewSeriesDetail(2), library.EMPTY)[2] == \
            library.NavigateToSeriesDetail(2)
        assert library.update(api, library.OpenDeleteModal(3), library.EMPTY)[2] == \
            library.RequestOpenDeleteModal(3)

    def test_card_click_picks_detail_by_media_type(self):
        sent = []
        model = replace(library.EMPTY, entries=Success(self.entries))
        tree = library.view(model, sent.append)
        cards = html.find_all(tree, lambda el: el.attrs.get('class') == 'entry-card')
        assert [card.attrs['data-entry-id'] for card in cards] == [1, 2, 3]
        cards[1].children[0].trigger('click')
        assert sent == [library.ViewSeriesDetail(2)]

    def test_empty_library(self):
        tree = library.view(replace(library.EMPTY, entries=Success([])), lambda m: None)
        assert 'Your library is empty' in html.text_content(tree)


class TestEntryDetailPage:
    heat = make_entry(1, 'Heat')
    details = TmdbDetails(tmdb_id=901, media_type='movie', title='Heat', overview='A heist.', runtime=170)

    def api(self, entry=None, details_error=None):
        entry = entry or self.heat

        def get_details(loaded):
            if details_error:
                raise RuntimeError(details_error)
            return self.details

        return EntryDetailApi(
            get_entry=lambda entry_id: entry,
            get_sessions=lambda entry_id: [make_session(5, entry_id, [1])],
            get_friends=lambda: [make_friend(1, 'Alice')],
            get_details=get_details,
        )

    def loaded(self, api, entry_id=1):
        model, _ = entry_detail.init(entry_id)
        model, command, _ = entry_detail.update(api, entry_detail.Load(), model)
        [loaded] = asyncio.run(cmd.collect(command))
        model, command, _ = entry_detail.update(api, loaded, model)
        [details] = asyncio.run(cmd.collect(command))
        model, _, _ = entry_detail.update(api, details, model)
        return model

    def test_load_fetches_entry_then_details(self):
        model = self.loaded(self.api())
        bundle = model.bundle.value
        assert bundle.entry == self.heat
        assert bundle.sessions == (make_session(5, 1, [1]),)
        assert model.details == Success(self.details)
        assert html.text_content(entry_detail.view(model, lambda m: None)).count('170 min') == 1

    def test_details_failure_keeps_entry(self):
        model = self.loaded(self.api(details_error='TMDb API key is not configured'))
        assert isinstance(model.bundle, Success)
        tree = entry_detail.view(model, lambda m: None)
        [message] = html.find_all(tree, lambda el: el.attrs.get('class') == 'error-message')
        assert message.text == 'TMDB details unavailable: TMDb API key is not configured'
        assert html.find_by_id(tree, 'entry-detail-title').text == 'Heat'

    def test_log_session_requests_modal_with_friends(self):
        model = self.loaded(self.api())
        sent = []
        html.find_by_id(entry_detail.view(model, sent.append), 'entry-log-session').trigger('click')
        assert sent == [entry_detail.LogSession()]
        _, _, signal = entry_detail.update(self.api(), sent[0], model)
        assert signal == entry_detail.RequestOpenSessionModal(
            movie_session_modal.CreateMode(1), (make_friend(1, 'Alice'),)
        )

    def test_edit_session_requests_edit_mode(self):
        model = self.loaded(self.api())
        session = make_session(5, 1, [1])
        _, _, signal = entry_detail.update(self.api(), entry_detail.EditSession(session), model)
        assert signal.mode == movie_session_modal.EditMode(session)

    def test_series_has_no_sessions(self):
        show = make_entry(2, 'Severance', 'series')
        api = self.api(entry=show)
        model = self.loaded(api, 2)
        assert model.bundle.value.sessions == ()
        assert entry_detail.update(api, entry_detail.LogSession(), model)[2] == NO_OP
        assert html.find_by_id(entry_detail.view(model, lambda m: None), 'entry-log-session') is None

    def test_navigation_and_delete(self):
        api = self.api()
        model = entry_detail.init(1)[0]
        assert entry_detail.update(api, entry_detail.GoBack(), model)[2] == NavigateBack()
        assert entry_detail.update(api, entry_detail.OpenDeleteModal(), model)[2] == \
            entry_detail.RequestOpenDeleteModal(1)
        alice = make_friend(1, 'Alice')
        assert entry_detail.update(api, entry_detail.ViewFriendDetail(alice), model)[2] == \
            entry_detail.NavigateToFriendDetail(1, 'Alice')

    def test_stale_details_are_dropped(self):
        api = self.api()
        model = replace(entry_detail.init(1)[0], epoch=2)
        stale = entry_detail.DetailsLoaded(Ok(self.details), 1)
        assert entry_detail.update(api, stale, model) == (model, cmd.NONE, NO_OP)
