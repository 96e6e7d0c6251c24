"""The command handlers."""

from __future__ import annotations

import functools
import re
import sqlite3
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from fractions import Fraction
from typing import Any, Callable
from uuid import uuid4

from gator.commands import Command, CommandError, State
from gator.database import NotFoundError
from gator.fetcher import FetchError, fetch_feed
from gator.models import Feed, User

DEFAULT_BROWSE_LIMIT = 2

_UNIT_SECONDS = {
    "ns": Fraction(1, 10**9),
    "us": Fraction(1, 10**6),
    "µs": Fraction(1, 10**6),
    "μs": Fraction(1, 10**6),
    "ms": Fraction(1, 1000),
    "s": Fraction(1),
    "m": Fraction(60),
    "h": Fraction(3600),
}
_COMPONENT = r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"([+-]?)((?:{_COMPONENT})+)")
_COMPONENT_RE = re.compile(_COMPONENT)

_MONTHS = {
    name: number
    for number, name in enumerate(
        ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"], 1
    )
}
_RFC1123Z_RE = re.compile(
    r"(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun), (\d{2}) ([a-z]{3}) (\d{4}) "
    r"(\d{2}):(\d{2}):(\d{2})(?:[.,](\d+))? ([+-])(\d{2})(\d{2})",
    re.IGNORECASE,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def middleware_logged_in(handler: Callable[[State, Command, User], Any]) -> Callable[[State, Command], Any]:
    """Wrap ``handler`` so that it receives the logged-in user."""

    @functools.wraps(handler)
    def wrapper(state: State, cmd: Command) -> Any:
        if not state.config.current_user_name:
            raise CommandError("no user logged in")
        user = state.db.get_user(state.config.current_user_name)
        return handler(state, cmd, user)

    return wrapper


def print_feed(feed: Feed) -> None:
    print(f" * ID:\t{feed.id}")
    print(f" * CreatedAt:\t{feed.created_at}")
    print(f" * UpdatedAt:\t{feed.updated_at}")
    print(f" * Name:\t{feed.name}")
    print(f" * URL:\t{feed.url}")
    print(f" * UserID:\t{feed.user_id}")


def print_user(user: User) -> None:
    print(f" * ID:\t{user.id}")
    print(f" * Name:\t{user.name}")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``1h30m``, ``1.5s`` or ``300ms``."""
    if text in ("0", "+0", "-0"):
        return timedelta(0)
    match = _DURATION_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid duration {text!r}")
    seconds = sum(
        (Fraction(Decimal(number)) * _UNIT_SECONDS[unit] for number, unit in _COMPONENT_RE.findall(match.group(2))),
        Fraction(0),
    )
    if match.group(1) == "-":
        seconds = -seconds
    return timedelta(microseconds=int(seconds * 10**6))


def parse_pub_date(text: str) -> datetime | None:
    """Parse an RFC 1123 date with numeric zone; ``None`` if it is not one."""
    match = _RFC1123Z_RE.fullmatch(text)
    if match is None:
        return None
    day, month_name, year, hour, minute, second, fraction, sign, off_h, off_m = match.groups()
    month = _MONTHS.get(month_name.lower())
    if month is None:
        return None
    micro = int((fraction or "").ljust(6, "0")[:6])
    offset = timedelta(hours=int(off_h), minutes=int(off_m))
    try:
        zone = timezone(-offset if sign == "-" else offset)
        return datetime(int(year), month, int(day), int(hour), int(minute), int(second), micro, tzinfo=zone)
    except ValueError:
        return None


def _require_args(cmd: Command, count: int, usage: str) -> None:
    if len(cmd.args) != count:
        raise CommandError(f"usage: {cmd.name}{usage}")


def handler_add_feed(state: State, cmd: Command, user: User) -> None:
    if len(cmd.args) != 2:
        raise CommandError("wrong number of arguments: requires 2")
    name, url = cmd.args
    with state.db.transaction():
        feed = state.db.create_feed(uuid4(), _now(), _now(), name, url, user.id)
        state.db.create_feed_follow(uuid4(), _now(), _now(), user.id, feed.id)
    print_feed(feed)


def handler_get_feeds(state: State, cmd: Command) -> None:
    if len(cmd.args) > 1:
        raise CommandError(f"usage: {cmd.name}")
    for feed in state.db.get_feeds():
        print(f" * Name: {feed.name}")
        print(f" * URL: {feed.url}")
        print(f" * User: {feed.user_name}")


def handler_follow(state: State, cmd: Command, user: User) -> None:
    _require_args(cmd, 1, " <url>")
    feed = state.db.get_feed_by_url(cmd.args[0])
    for follow in state.db.create_feed_follow(uuid4(), _now(), _now(), user.id, feed.id):
        print(f" * Feed name: {follow.feed_name}")
        print(f" * User name: {follow.user_name}")


def handler_following(state: State, cmd: Command) -> None:
    _require_args(cmd, 0, "")
    follows = state.db.get_feed_follows_for_user(state.config.current_user_name)
    print(" * Following feeds: ")
    for follow in follows:
        print(f" * Feed name: {follow.feed_name}")


def handler_unfollow(state: State, cmd: Command, user: User) -> None:
    _require_args(cmd, 1, " <url>")
    feed = state.db.get_feed_by_url(cmd.args[0])
    state.db.delete_follow(feed.id, user.id)


def handler_register(state: State, cmd: Command) -> None:
    _require_args(cmd, 1, " <name>")
    try:
        user = state.db.create_user(uuid4(), _now(), _now(), cmd.args[0])
    except sqlite3.Error as exc:
        raise CommandError(f"couldn't create user: {exc}") from exc
    try:
        state.config.set_user(user.name)
    except OSError as exc:
        raise CommandError(f"couldn't set current user: {exc}") from exc
    print("User created successfully!")
    print_user(user)


def handler_login(state: State, cmd: Command) -> None:
    _require_args(cmd, 1, " <name>")
    try:
        state.db.get_user(cmd.args[0])
    except NotFoundError as exc:
        raise CommandError(f"couldn't find user: {exc}") from exc
    try:
        state.config.set_user(cmd.args[0])
    except OSError as exc:
        raise CommandError(f"couldn't set current user: {exc}") from exc
    print("User switched successfully!")


def handler_reset(state: State, cmd: Command) -> None:
    _require_args(cmd, 0, "")
    try:
        state.db.delete_users()
    except sqlite3.Error as exc:
        raise CommandError("couldn't delete users") from exc
    print("Table users restarted!")


def handler_get_users(state: State, cmd: Command) -> None:
    _require_args(cmd, 0, "")
    for user in state.db.get_users():
        suffix = " (current)" if user.name == state.config.current_user_name else ""
        print(f"* {user.name}{suffix}")


def handler_aggregate(state: State, cmd: Command) -> None:
    """Scrape the stalest feed once per interval until a scrape fails."""
    _require_args(cmd, 1, " [1s/1m/1h]")
    try:
        interval = parse_duration(cmd.args[0])
    except ValueError as exc:
        raise CommandError("couldn't parse time") from exc
    if interval <= timedelta(0):
        raise CommandError("interval must be positive")
    print(f"Collecting feeds every {interval}")

    period = interval.total_seconds()
    next_tick = time.monotonic()
    while True:
        print(" * New batch *")
        try:
            scrape_feeds(state)
        except CommandError as exc:
            print(f"Couldn't scrap the feed: {exc}")
            break
        next_tick += period
        delay = next_tick - time.monotonic()
        if delay > 0:
            time.sleep(delay)
        else:
            next_tick = time.monotonic()


def scrape_feeds(state: State) -> None:
    """Fetch the feed fetched longest ago and store its new posts."""
    try:
        feed = state.db.get_next_feed_to_fetch()
    except (NotFoundError, sqlite3.Error) as exc:
        raise CommandError("no feeds to fetch") from exc
    try:
        state.db.mark_feed_fetched(feed.id)
    except (NotFoundError, sqlite3.Error) as exc:
        raise CommandError("couldn't mark feed as fetched") from exc
    try:
        rss = fetch_feed(feed.url)
    except FetchError as exc:
        raise CommandError(f"failed to fetch the feed: {exc}") from exc

    for item in rss.items:
        try:
            state.db.create_post(
                uuid4(),
                _now(),
                _now(),
                item.title,
                item.link,
                item.description,
                parse_pub_date(item.pub_date),
                feed.id,
            )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" not in str(exc):
                print(f"Couldn't create post: {exc}")
        except sqlite3.Error as exc:
            print(f"Couldn't create post: {exc}")

    print(f"Feed {feed.name} collected, {len(rss.items)} posts found")


def handler_browse(state: State, cmd: Command, user: User) -> None:
    if len(cmd.args) > 1:
        raise CommandError(f"usage: {cmd.name} <LIMIT optional>")
    limit = DEFAULT_BROWSE_LIMIT
    if cmd.args:
        if not re.fullmatch(r"[+-]?\d+", cmd.args[0]):
            raise CommandError("couldn't convert string to int")
        limit = int(cmd.args[0])
        if limit < 0:
            raise CommandError("limit must not be negative")
    for post in state.db.get_posts(limit, user.id):
        print(f" * Created at: {post.created_at}")
        print(f" * Title: {post.title or ''}")
        print(f" * Description: {post.description or ''}")
        print("======================================")