import sqlite3
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from gator.database import NotFoundError, connect

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def queries():
    q = connect(":memory:")
    yield q
    q.connection.close()


def _user(q, name, when=T0):
    return q.create_user(uuid.uuid4(), when, when, name)


def _feed(q, user, name, url, when=T0):
    return q.create_feed(uuid.uuid4(), when, when, name, url, user.id)


def _post(q, feed, url, when=T0, title="t", description="d"):
    return q.create_post(uuid.uuid4(), when, when, title, url, description, None, feed.id)


def test_create_and_get_user(queries):
    uid = uuid.uuid4()
    created = queries.create_user(uid, T0, T0, "alice")
    assert created.id == uid
    assert created.created_at == T0
    assert queries.get_user("alice") == created


def test_get_missing_user(queries):
    with pytest.raises(NotFoundError):
        queries.get_user("nobody")


def test_duplicate_user_name(queries):
    first = _user(queries, "alice")
    with pytest.raises(sqlite3.IntegrityError):
        _user(queries, "alice")
    assert queries.get_users() == [first]


def test_get_users_and_delete(queries):
    names = ["alice", "bob"]
    for name in names:
        _user(queries, name)
    assert [u.name for u in queries.get_users()] == names
    queries.delete_users()
    assert queries.get_users() == []


def test_delete_users_cascades_to_feeds(queries):
    user = _user(queries, "alice")
    _feed(queries, user, "blog", "https://example.com/rss")
    queries.delete_users()
    assert queries.get_feeds() == []


def test_create_feed_and_lookup_by_url(queries):
    user = _user(queries, "alice")
    feed = _feed(queries, user, "blog", "https://example.com/rss")
    assert feed.last_fetched_at is None
    assert feed.user_id == user.id
    assert queries.get_feed_by_url("https://example.com/rss") == feed
    with pytest.raises(NotFoundError):
        queries.get_feed_by_url("https://example.com/other")


def test_feed_requires_existing_user(queries):
    with pytest.raises(sqlite3.IntegrityError):
        queries.create_feed(uuid.uuid4(), T0, T0, "blog", "https://example.com/rss", uuid.uuid4())


def test_get_feeds_includes_user_name(queries):
    user = _user(queries, "alice")
    feed = _feed(queries, user, "blog", "https://example.com/rss")
    rows = queries.get_feeds()
    assert len(rows) == 1
    assert rows[0].user_name == "alice"
    assert rows[0].feed == feed


def test_feed_follow_rows(queries):
    alice = _user(queries, "alice")
    bob = _user(queries, "bob")
    feed = _feed(queries, alice, "blog", "https://example.com/rss")
    fid = uuid.uuid4()
    rows = queries.create_feed_follow(fid, T0, T0, bob.id, feed.id)
    assert len(rows) == 1
    assert (rows[0].id, rows[0].feed_name, rows[0].user_name) == (fid, "blog", "bob")
    follows = queries.get_feed_follows_for_user("bob")
    assert [r.feed_name for r in follows] == ["blog"]
    assert queries.get_feed_follows_for_user("alice") == []


def test_duplicate_follow_rejected(queries):
    user = _user(queries, "alice")
    feed = _feed(queries, user, "blog", "https://example.com/rss")
    queries.create_feed_follow(uuid.uuid4(), T0, T0, user.id, feed.id)
    with pytest.raises(sqlite3.IntegrityError):
        queries.create_feed_follow(uuid.uuid4(), T0, T0, user.id, feed.id)


def test_delete_follow(queries):
    user = _user(queries, "alice")
    feed = _feed(queries, user, "blog", "https://example.com/rss")
    queries.create_feed_follow(uuid.uuid4(), T0, T0, user.id, feed.id)
    queries.delete_follow(feed.id, user.id)
    assert queries.get_feed_follows_for_user("alice") == []


def test_next_feed_prefers_never_fetched(queries):
    user = _user(queries, "alice")
    a = _feed(queries, user, "a", "https://example.com/a")
    b = _feed(queries, user, "b", "https://example.com/b")
    first = queries.get_next_feed_to_fetch()
    assert first.id in {a.id, b.id}
    marked = queries.mark_feed_fetched(first.id)
    assert marked.last_fetched_at is not None
    assert marked.updated_at == marked.last_fetched_at
    second = queries.get_next_feed_to_fetch()
    assert {first.id, second.id} == {a.id, b.id}


def test_next_feed_empty(queries):
    with pytest.raises(NotFoundError):
        queries.get_next_feed_to_fetch()


def test_mark_missing_feed(queries):
    with pytest.raises(NotFoundError):
        queries.mark_feed_fetched(uuid.uuid4())


def test_create_post_round_trip(queries):
    user = _user(queries, "alice")
    feed = _feed(queries, user, "blog", "https://example.com/rss")
    pid = uuid.uuid4()
    published = T0 - timedelta(days=1)
    post = queries.create_post(pid, T0, T0, None, "https://example.com/p1", "desc", published, feed.id)
    assert post.id == pid
    assert post.title is None
    assert post.published_at == published
    assert post.feed_id == feed.id


def test_duplicate_post_url(queries):
    user = _user(queries, "alice")
    feed = _feed(queries, user, "blog", "https://example.com/rss")
    first = _post(queries, feed, "https://example.com/p1")
    with pytest.raises(sqlite3.IntegrityError):
        _post(queries, feed, "https://example.com/p1")
    assert queries.get_posts(10, user.id) == [first]


def test_get_posts_order_and_limit(queries):
    alice = _user(queries, "alice")
    bob = _user(queries, "bob")
    feed = _feed(queries, alice, "blog", "https://example.com/rss")
    other = _feed(queries, bob, "other", "https://example.com/other")
    late = _post(queries, feed, "https://example.com/late", when=T0 + timedelta(hours=2))
    early = _post(queries, feed, "https://example.com/early", when=T0)
    _post(queries, other, "https://example.com/bobs")
    assert queries.get_posts(10, alice.id) == [early, late]
    assert queries.get_posts(1, alice.id) == [early]
    assert queries.get_posts(0, alice.id) == []


def test_get_posts_negative_limit(queries):
    user = _user(queries, "alice")
    with pytest.raises(ValueError):
        queries.get_posts(-1, user.id)


def test_transaction_rolls_back(queries):
    with pytest.raises(RuntimeError):
        with queries.transaction():
            _user(queries, "alice")
            raise RuntimeError("boom")
    with pytest.raises(NotFoundError):
        queries.get_user("alice")


def test_transaction_commits(queries):
    with queries.transaction() as q:
        _user(q, "alice")
        _user(q, "bob")
    assert len(queries.get_users()) == 2


def test_file_database_persists(tmp_path):
    path = tmp_path / "gator.db"
    with connect(f"sqlite://{path}") as q:
        _user(q, "alice")
    with connect(str(path)) as q:
        assert q.get_user("alice").name == "alice"