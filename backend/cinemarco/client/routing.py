"""Typed navigation destinations handed to the navigation collaborator."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..domain import EntryId, FriendId, TagId, TmdbPersonId


@dataclass(frozen=True)
class LibraryRoute:
    pass


@dataclass(frozen=True)
class FriendsRoute:
    pass


@dataclass(frozen=True)
class FriendDetailRoute:
    friend_id: FriendId
    name: str


@dataclass(frozen=True)
class TagsRoute:
    pass


@dataclass(frozen=True)
class TagDetailRoute:
    tag_id: TagId


@dataclass(frozen=True)
class CollectionsRoute:
    pass


@dataclass(frozen=True)
class ContributorsRoute:
    pass


@dataclass(frozen=True)
class ContributorDetailRoute:
    person_id: TmdbPersonId
    name: str


@dataclass(frozen=True)
class CacheRoute:
    pass


@dataclass(frozen=True)
class MovieDetailRoute:
    entry_id: EntryId


@dataclass(frozen=True)
class SeriesDetailRoute:
    entry_id: EntryId


Route = Union[
    LibraryRoute,
    FriendsRoute,
    FriendDetailRoute,
    TagsRoute,
    TagDetailRoute,
    CollectionsRoute,
    ContributorsRoute,
    ContributorDetailRoute,
    CacheRoute,
    MovieDetailRoute,
    SeriesDetailRoute,
]
