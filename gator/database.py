"""SQLite storage for users, feeds, follows and posts."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator
from uuid import UUID

from gator.models import Feed, FeedFollowRow, FeedWithUser, Post, User

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS feeds (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    name TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    last_fetched_at TEXT
);
CREATE TABLE IF NOT EXISTS feed_follows (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    feed_id TEXT NOT NULL REFERENCES feeds(id) ON DELETE CASCADE,
    UNIQUE (user_id, feed_id)
);
CREATE TABLE IF NOT EXISTS posts (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    title TEXT,
    url TEXT NOT NULL UNIQUE,
    description TEXT,
    published_at TEXT,
    feed_id TEXT NOT NULL REFERENCES feeds(id) ON DELETE CASCADE
);
"""

_FEED_COLUMNS = "feeds.id, feeds.created_at, feeds.updated_at, feeds.name, feeds.url, feeds.user_id, feeds.last_fetched_at"
_POST_COLUMNS = (
    "posts.id, posts.created_at, posts.updated_at, posts.title, posts.url, "
    "posts.description, posts.published_at, posts.feed_id"
)


class NotFoundError(LookupError):
    """A query that must return a row returned none."""


def _ts(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="microseconds")


def _dt(text: str | None) -> datetime | None:
    return None if text is None else datetime.fromisoformat(text)


def _user(row: sqlite3.Row) -> User:
    return User(UUID(row["id"]), _dt(row["created_at"]), _dt(row["updated_at"]), row["name"])


def _feed(row: sqlite3.Row) -> Feed:
    return Feed(
        UUID(row["id"]),
        _dt(row["created_at"]),
        _dt(row["updated_at"]),
        row["name"],
        row["url"],
        UUID(row["user_id"]),
        _dt(row["last_fetched_at"]),
    )


def _post(row: sqlite3.Row) -> Post:
    return Post(
        UUID(row["id"]),
        _dt(row["created_at"]),
        _dt(row["updated_at"]),
        row["title"],
        row["url"],
        row["description"],
        _dt(row["published_at"]),
        UUID(row["feed_id"]),
    )


def _follow_row(row: sqlite3.Row) -> FeedFollowRow:
    return FeedFollowRow(
        UUID(row["id"]),
        _dt(row["created_at"]),
        _dt(row["updated_at"]),
        UUID(row["user_id"]),
        UUID(row["feed_id"]),
        row["feed_name"],
        row["user_name"],
    )


_FOLLOW_SELECT = """
SELECT feed_follows.id, feed_follows.created_at, feed_follows.updated_at,
       feed_follows.user_id, feed_follows.feed_id,
       feeds.name AS feed_name, users.name AS user_name
FROM feed_follows
INNER JOIN users ON feed_follows.user_id = users.id
INNER JOIN feeds ON feed_follows.feed_id = feeds.id
"""


class Queries:
    """Typed queries over an open SQLite connection."""

    def __init__(self, connection: sqlite3.Connection):
        self.connection = connection
        connection.row_factory = sqlite3.Row

    def __enter__(self) -> Queries:
        return self

    def __exit__(self, *exc_info) -> None:
        self.connection.close()

    def create_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        self.connection.executescript(_SCHEMA)

    @contextmanager
    def transaction(self) -> Iterator[Queries]:
        """Run the enclosed queries atomically; roll back on any exception."""
        if self.connection.in_transaction:
            yield self
            return
        self.connection.execute("BEGIN")
        try:
            yield self
        except BaseException:
            self.connection.execute("ROLLBACK")
            raise
        self.connection.execute("COMMIT")

    def _one(self, sql: str, params: tuple = ()) -> sqlite3.Row:
        row = self.connection.execute(sql, params).fetchone()
        if row is None:
            raise NotFoundError("no rows in result set")
        return row

    def _feed_by_id(self, feed_id: UUID) -> Feed:
        return _feed(self._one(f"SELECT {_FEED_COLUMNS} FROM feeds WHERE id = ?", (str(feed_id),)))

    # feeds

    def create_feed(self, feed_id, created_at, updated_at, name, url, user_id) -> Feed:
        with self.transaction():
            self.connection.execute(
                "INSERT INTO feeds (id, created_at, updated_at, name, url, user_id) VALUES (?, ?, ?, ?, ?, ?)",
                (str(feed_id), _ts(created_at), _ts(updated_at), name, url, str(user_id)),
            )
            return self._feed_by_id(feed_id)

    def create_feed_follow(self, follow_id, created_at, updated_at, user_id, feed_id) -> list[FeedFollowRow]:
        with self.transaction():
            self.connection.execute(
                "INSERT INTO feed_follows (id, created_at, updated_at, user_id, feed_id) VALUES (?, ?, ?, ?, ?)",
                (str(follow_id), _ts(created_at), _ts(updated_at), str(user_id), str(feed_id)),
            )
            rows = self.connection.execute(
                _FOLLOW_SELECT + "WHERE feed_follows.id = ?", (str(follow_id),)
            ).fetchall()
        return [_follow_row(row) for row in rows]

    def delete_follow(self, feed_id, user_id) -> None:
        self.connection.execute(
            "DELETE FROM feed_follows WHERE feed_id = ? AND user_id = ?",
            (str(feed_id), str(user_id)),
        )

    def get_feed_by_url(self, url: str) -> Feed:
        return _feed(self._one(f"SELECT {_FEED_COLUMNS} FROM feeds WHERE feeds.url = ?", (url,)))

    def get_feed_follows_for_user(self, name: str) -> list[FeedFollowRow]:
        rows = self.connection.execute(
            _FOLLOW_SELECT + "WHERE users.name = ? ORDER BY feed_follows.rowid", (name,)
        ).fetchall()
        return [_follow_row(row) for row in rows]

    def get_feeds(self) -> list[FeedWithUser]:
        rows = self.connection.execute(
            f"SELECT {_FEED_COLUMNS}, users.name AS user_name FROM feeds "
            "JOIN users ON feeds.user_id = users.id ORDER BY feeds.rowid"
        ).fetchall()
        return [
            FeedWithUser(**vars_feed(_feed(row)), user_name=row["user_name"]) for row in rows
        ]

    def get_next_feed_to_fetch(self) -> Feed:
        return _feed(
            self._one(
                f"SELECT {_FEED_COLUMNS} FROM feeds "
                "ORDER BY last_fetched_at IS NOT NULL, last_fetched_at ASC LIMIT 1"
            )
        )

    def mark_feed_fetched(self, feed_id) -> Feed:
        now = _ts(datetime.now(timezone.utc))
        with self.transaction():
            cursor = self.connection.execute(
                "UPDATE feeds SET last_fetched_at = ?, updated_at = ? WHERE id = ?",
                (now, now, str(feed_id)),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("no rows in result set")
            return self._feed_by_id(feed_id)

    # posts

    def create_post(
        self, post_id, created_at, updated_at, title, url, description, published_at, feed_id
    ) -> Post:
        with self.transaction():
            self.connection.execute(
                "INSERT INTO posts (id, created_at, updated_at, title, url, description, published_at, feed_id) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    str(post_id),
                    _ts(created_at),
                    _ts(updated_at),
                    title,
                    url,
                    description,
                    _ts(published_at),
                    str(feed_id),
                ),
            )
            return _post(self._one(f"SELECT {_POST_COLUMNS} FROM posts WHERE id = ?", (str(post_id),)))

    def get_posts(self, limit: int, user_id) -> list[Post]:
        if limit < 0:
            raise ValueError("LIMIT must not be negative")
        rows = self.connection.execute(
            f"SELECT {_POST_COLUMNS} FROM posts "
            "INNER JOIN feeds ON feeds.id = posts.feed_id "
            "WHERE feeds.user_id = ? ORDER BY posts.updated_at ASC LIMIT ?",
            (str(user_id), limit),
        ).fetchall()
        return [_post(row) for row in rows]

    # users

    def create_user(self, user_id, created_at, updated_at, name) -> User:
        with self.transaction():
            self.connection.execute(
                "INSERT INTO users (id, created_at, updated_at, name) VALUES (?, ?, ?, ?)",
                (str(user_id), _ts(created_at), _ts(updated_at), name),
            )
            return _user(self._one("SELECT * FROM users WHERE id = ?", (str(user_id),)))

    def delete_users(self) -> None:
        self.connection.execute("DELETE FROM users")

    def get_user(self, name: str) -> User:
        return _user(self._one("SELECT * FROM users WHERE name = ? LIMIT 1", (name,)))

    def get_users(self) -> list[User]:
        rows = self.connection.execute("SELECT * FROM users ORDER BY rowid").fetchall()
        return [_user(row) for row in rows]


def vars_feed(feed: Feed) -> dict:
    return {
        "id": feed.id,
        "created_at": feed.created_at,
        "updated_at": feed.updated_at,
        "name": feed.name,
        "url": feed.url,
        "user_id": feed.user_id,
        "last_fetched_at": feed.last_fetched_at,
    }


def connect(url: str) -> Queries:
    """Open the SQLite database at ``url`` (a path, ``:memory:`` or ``sqlite://`` URL)."""
    path = url[len("sqlite://"):] if url.startswith("sqlite://") else url
    connection = sqlite3.connect(path, isolation_level=None)
    connection.execute("PRAGMA foreign_keys = ON")
    queries = Queries(connection)
    queries.create_schema()
    return queries