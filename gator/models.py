"""Records stored in and returned from the database."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class User:
    id: UUID
    created_at: datetime
    updated_at: datetime
    name: str


@dataclass(frozen=True)
class Feed:
    id: UUID
    created_at: datetime
    updated_at: datetime
    name: str
    url: str
    user_id: UUID
    last_fetched_at: datetime | None = None


@dataclass(frozen=True)
class FeedFollow:
    id: UUID
    created_at: datetime
    updated_at: datetime
    user_id: UUID
    feed_id: UUID


@dataclass(frozen=True)
class Post:
    id: UUID
    created_at: datetime
    updated_at: datetime
    title: str | None
    url: str
    description: str | None
    published_at: datetime | None
    feed_id: UUID


@dataclass(frozen=True)
class FeedFollowRow:
    """A feed follow together with the names of its feed and user."""

    id: UUID
    created_at: datetime
    updated_at: datetime
    user_id: UUID
    feed_id: UUID
    feed_name: str
    user_name: str

    @property
    def follow(self) -> FeedFollow:
        return FeedFollow(self.id, self.created_at, self.updated_at, self.user_id, self.feed_id)


@dataclass(frozen=True)
class FeedWithUser:
    """A feed together with the name of the user who added it."""

    id: UUID
    created_at: datetime
    updated_at: datetime
    name: str
    url: str
    user_id: UUID
    last_fetched_at: datetime | None
    user_name: str

    @property
    def feed(self) -> Feed:
        return Feed(
            self.id,
            self.created_at,
            self.updated_at,
            self.name,
            self.url,
            self.user_id,
            self.last_fetched_at,
        )