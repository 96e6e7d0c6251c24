"""Command-line entry point."""

from __future__ import annotations

import sqlite3
import sys

from gator import config as config_file
from gator.commands import Command, CommandError, CommandRegistry, State
from gator.database import connect
from gator.handlers import (
    handler_add_feed,
    handler_aggregate,
    handler_browse,
    handler_follow,
    handler_following,
    handler_get_feeds,
    handler_get_users,
    handler_login,
    handler_register,
    handler_reset,
    handler_unfollow,
    middleware_logged_in,
)


def build_registry() -> CommandRegistry:
    """Return a registry holding every command."""
    registry = CommandRegistry()
    registry.register("login", handler_login)
    registry.register("register", handler_register)
    registry.register("reset", handler_reset)
    registry.register("users", handler_get_users)
    registry.register("agg", handler_aggregate)
    registry.register("addfeed", middleware_logged_in(handler_add_feed))
    registry.register("feeds", handler_get_feeds)
    registry.register("follow", middleware_logged_in(handler_follow))
    registry.register("unfollow", middleware_logged_in(handler_unfollow))
    registry.register("following", handler_following)
    registry.register("browse", middleware_logged_in(handler_browse))
    return registry


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        config = config_file.read()
    except (OSError, ValueError) as exc:
        print(f"error reading config: {exc}", file=sys.stderr)
        return 1
    if not args:
        print("Usage: gator <command> [args...]", file=sys.stderr)
        return 1
    try:
        db = connect(config.db_url)
    except sqlite3.Error as exc:
        print(f"error could not connect to db: {exc}", file=sys.stderr)
        return 1
    with db:
        state = State(db=db, config=config)
        try:
            build_registry().run(state, Command(args[0], tuple(args[1:])))
        except (CommandError, LookupError, sqlite3.Error, OSError, ValueError) as exc:
            print(exc, file=sys.stderr)
            return 1
        except KeyboardInterrupt:
            return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())