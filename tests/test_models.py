import dataclasses
import uuid
from datetime import datetime, timezone

import pytest

from gator.models import Feed, FeedFollow, FeedFollowRow, FeedWithUser, Post, User

WHEN = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_user_is_frozen():
    user = User(uuid.uuid4(), WHEN, WHEN, "alice")
    with pytest.raises(dataclasses.FrozenInstanceError):
        user.name = "bob"
    assert user.name == "alice"


def test_feed_last_fetched_defaults_to_none():
    feed = Feed(uuid.uuid4(), WHEN, WHEN, "blog", "https://example.com/rss", uuid.uuid4())
    assert feed.last_fetched_at is None


def test_feed_with_user_projects_to_feed():
    fid, uid = uuid.uuid4(), uuid.uuid4()
    row = FeedWithUser(fid, WHEN, WHEN, "blog", "https://example.com/rss", uid, None, "alice")
    assert row.feed == Feed(fid, WHEN, WHEN, "blog", "https://example.com/rss", uid, None)


def test_follow_row_projects_to_follow():
    ids = [uuid.uuid4() for _ in range(3)]
    row = FeedFollowRow(ids[0], WHEN, WHEN, ids[1], ids[2], "blog", "alice")
    assert row.follow == FeedFollow(ids[0], WHEN, WHEN, ids[1], ids[2])


def test_post_equality_by_value():
    pid, fid = uuid.uuid4(), uuid.uuid4()
    a = Post(pid, WHEN, WHEN, None, "https://example.com/p", "d", None, fid)
    b = Post(pid, WHEN, WHEN, None, "https://example.com/p", "d", None, fid)
    assert a == b
    assert dataclasses.replace(a, title="t") != a