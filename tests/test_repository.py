from datetime import date

import pytest

from cinemarco import repository
from cinemarco.domain import (
    AddEntryRequest,
    CreateCollectionRequest,
    CreateFriendRequest,
    CreateMovieWatchSessionRequest,
    CreateTagRequest,
    EpisodeProgressRequest,
    TrackContributorRequest,
    UpdateFriendRequest,
    UpdateMovieWatchSessionRequest,
    UpdateTagRequest,
)


@pytest.fixture(autouse=True)
def _db(temp_db):
    return temp_db


def add_movie(title='Heat', friends=()):
    return repository.add_entry(AddEntryRequest(media_type='movie', tmdb_id=949, title=title, friends=list(friends)))


def add_series(title='Severance', total_episodes=3):
    return repository.add_entry(
        AddEntryRequest(media_type='series', tmdb_id=95396, title=title, total_episodes=total_episodes)
    )


class TestFriends:
    def test_create_trims_and_lists_by_name(self):
        repository.create_friend(CreateFriendRequest(name=' zed '))
        repository.create_friend(CreateFriendRequest(name='Amy', nickname='  '))
        names = [(f.name, f.nickname) for f in repository.list_friends()]
        assert names == [('Amy', None), ('zed', None)]

    def test_blank_name_rejected(self):
        with pytest.raises(ValueError, match='Friend name is required'):
            repository.create_friend(CreateFriendRequest(name='   '))

    def test_partial_update_keeps_unset_fields(self):
        friend = repository.create_friend(CreateFriendRequest(name='Bob', nickname='Bobby'))
        renamed = repository.update_friend(UpdateFriendRequest(id=friend.id, name='Robert'))
        assert (renamed.name, renamed.nickname) == ('Robert', 'Bobby')
        cleared = repository.update_friend(UpdateFriendRequest(id=friend.id, nickname=None))
        assert cleared.nickname is None

    def test_avatar_empty_string_removes(self):
        friend = repository.create_friend(CreateFriendRequest(name='Bob'))
        with_avatar = repository.update_friend(UpdateFriendRequest(id=friend.id, avatar_url='a.png'))
        assert with_avatar.avatar_url == 'a.png'
        removed = repository.update_friend(UpdateFriendRequest(id=friend.id, avatar_url=''))
        assert removed.avatar_url is None

    def test_missing_friend(self):
        with pytest.raises(repository.NotFoundError):
            repository.get_friend(99)
        with pytest.raises(repository.NotFoundError):
            repository.delete_friend(99)

    def test_entries_for_friend_via_link_or_session(self):
        friend = repository.create_friend(CreateFriendRequest(name='Bob'))
        linked = add_movie('Heat', friends=[friend.id])
        watched = add_movie('Ronin')
        add_movie('Alone')
        repository.create_movie_session(
            CreateMovieWatchSessionRequest(entry_id=watched.id, watched_date=date(2024, 1, 2), friends=[friend.id])
        )
        titles = {e.title for e in repository.entries_for_friend(friend.id)}
        assert titles == {linked.title, watched.title}


class TestTagsAndCollections:
    def test_tag_update_clears_only_provided_fields(self):
        tag = repository.create_tag(CreateTagRequest(name='Cozy', color='#fff', description='Rainy days'))
        updated = repository.update_tag(UpdateTagRequest(id=tag.id, color=None))
        assert updated.color is None
        assert updated.description == 'Rainy days'

    def test_delete_tag(self):
        tag = repository.create_tag(CreateTagRequest(name='Cozy'))
        repository.delete_tag(tag.id)
        assert repository.list_tags() == []

    def test_collection_item_count(self):
        collection = repository.create_collection(CreateCollectionRequest(name='Mann'))
        entry = add_movie()
        updated = repository.add_collection_item(collection.id, entry.id)
        assert updated.item_count == 1
        assert repository.add_collection_item(collection.id, entry.id).item_count == 1
        repository.delete_entry(entry.id)
        assert repository.get_collection(collection.id).item_count == 0


class TestSessionsAndProgress:
    def test_session_marks_movie_completed(self):
        entry = add_movie()
        session = repository.create_movie_session(
            CreateMovieWatchSessionRequest(entry_id=entry.id, watched_date=date(2024, 3, 1), name=' ')
        )
        assert session.name is None
        assert repository.get_entry(entry.id).watch_status == 'completed'

    def test_session_for_series_rejected(self):
        series = add_series()
        with pytest.raises(ValueError):
            repository.create_movie_session(
                CreateMovieWatchSessionRequest(entry_id=series.id, watched_date=date(2024, 3, 1))
            )

    def test_update_session_replaces_friends(self):
        a = repository.create_friend(CreateFriendRequest(name='A'))
        b = repository.create_friend(CreateFriendRequest(name='B'))
        entry = add_movie()
        session = repository.create_movie_session(
            CreateMovieWatchSessionRequest(entry_id=entry.id, watched_date=date(2024, 3, 1), friends=[a.id])
        )
        updated = repository.update_movie_session(
            UpdateMovieWatchSessionRequest(session_id=session.id, watched_date=date(2024, 3, 2), friends=[b.id, a.id])
        )
        assert updated.friends == sorted([a.id, b.id])
        assert updated.watched_date == date(2024, 3, 2)

    def test_recalculate_series_watch_status(self):
        done = add_series('Done', total_episodes=2)
        started = add_series('Started', total_episodes=5)
        add_series('Untouched', total_episodes=4)
        for episode in (1, 2):
            repository.set_episode_progress(done.id, EpisodeProgressRequest(season_number=1, episode_number=episode))
        repository.set_episode_progress(started.id, EpisodeProgressRequest(season_number=1, episode_number=1))

        assert repository.recalculate_series_watch_status() == 2
        assert repository.get_entry(done.id).watch_status == 'completed'
        assert repository.get_entry(started.id).watch_status == 'in_progress'
        assert repository.recalculate_series_watch_status() == 0

    def test_episode_progress_only_for_series(self):
        with pytest.raises(ValueError):
            repository.set_episode_progress(add_movie().id, EpisodeProgressRequest(season_number=1, episode_number=1))


class TestContributors:
    def test_track_is_idempotent_per_person(self):
        first = repository.track_contributor(TrackContributorRequest(tmdb_person_id=1, name='Michael Mann'))
        again = repository.track_contributor(
            TrackContributorRequest(tmdb_person_id=1, name='Michael Mann', known_for_department='Directing')
        )
        assert first.id == again.id
        assert again.known_for_department == 'Directing'
        assert len(repository.list_tracked_contributors()) == 1

    def test_untrack_missing(self):
        with pytest.raises(repository.NotFoundError):
            repository.untrack_contributor('nope')


class TestCache:
    def test_expired_entries_are_misses(self):
        repository.cache_set('movie:1', {'id': 1}, ttl_hours=1)
        repository.cache_set('movie:2', {'id': 2}, ttl_hours=-1)
        assert repository.cache_get('movie:1') == {'id': 1}
        assert repository.cache_get('movie:2') is None

    def test_stats_group_by_prefix(self):
        repository.cache_set('movie:1', {'id': 1}, ttl_hours=1)
        repository.cache_set('search:movie:heat', {'results': []}, ttl_hours=-1)
        stats = repository.cache_stats()
        assert stats.total_entries == 2
        assert stats.expired_entries == 1
        assert stats.entries_by_type == {'movie': 1, 'search': 1}
        assert stats.total_size_bytes == sum(e.size_bytes for e in repository.cache_entries())

    def test_clear_expired_then_all(self):
        repository.cache_set('movie:1', {'id': 1}, ttl_hours=1)
        repository.cache_set('movie:2', {'id': 2}, ttl_hours=-1)
        expired = repository.clear_expired_cache()
        assert expired.entries_removed == 1
        assert expired.bytes_freed == len('{"id": 2}')
        assert repository.clear_all_cache().entries_removed == 1
        assert repository.cache_entries() == []
