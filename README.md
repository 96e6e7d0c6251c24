# gator

`gator` is a small command-line RSS aggregator. You register users, add
feeds, follow the feeds you care about, and let it collect posts into a
local SQLite database. Then you browse the collected posts from the
terminal.

It uses only the Python standard library (3.10 or later).

## Installation

```
pip install .
```

This installs the `gator` command.

## Configuration

`gator` reads its settings from `.gatorconfig.json` in your home
directory. The file must exist before the first run; `gator` does not
create it:

```json
{
  "db_url": "gator.db",
  "current_user_name": ""
}
```

- `db_url` is where the SQLite database lives: a file path, `:memory:`,
  or a `sqlite://` prefix followed by a path. The tables are created
  automatically if they do not exist yet.
- `current_user_name` is the logged-in user. `gator` rewrites the file
  itself when you run `register` or `login`.

## Usage

```
gator <command> [args...]
```

| Command                    | What it does                                                        |
|----------------------------|---------------------------------------------------------------------|
| `register <name>`          | Create a user and log in as that user                               |
| `login <name>`             | Switch to an existing user                                          |
| `users`                    | List all users and mark the current one                             |
| `reset`                    | Delete all users, along with their feeds, follows and posts         |
| `addfeed <name> <url>`     | Add a feed and follow it as the current user                        |
| `feeds`                    | List every feed with the name of the user who added it              |
| `follow <url>`             | Follow an existing feed as the current user                         |
| `unfollow <url>`           | Stop following a feed                                               |
| `following`                | List the feeds the current user follows                             |
| `agg <interval>`           | Fetch feeds repeatedly, e.g. `agg 30s`, `agg 1m`, `agg 1h30m`       |
| `browse [limit]`           | Show posts from the current user's feeds (two by default)           |

`addfeed`, `follow`, `unfollow` and `browse` need a logged-in user.

The `agg` interval is a sequence of numbers with units `ns`, `us`, `ms`,
`s`, `m` or `h` (for example `1.5s`, `300ms`, `1h30m`) and must be
positive. `browse` takes a non-negative whole number.

On error `gator` prints a message to standard error and exits with
status 1; interrupting `agg` with Ctrl-C exits with status 130.

### Example session

```
gator register alice
gator addfeed "Example Blog" https://blog.example.com/index.xml
gator agg 1m
gator browse 5
```

`agg` keeps running. On each tick it takes the feed that was fetched
longest ago (or never), marks it as fetched, downloads it with the
user agent `gator`, and stores its items as posts. Titles and
descriptions have HTML entities unescaped, and publication dates in the
RFC 1123 form with a numeric zone (`Mon, 02 Jan 2006 15:04:05 -0700`)
are kept. Posts whose URL is already stored are skipped. It stops when
a feed cannot be fetched or there are no feeds to fetch.

## Using it as a library

- `gator.config` — `Config`, `read()`, `write()` and `config_file_path()`.
- `gator.database` — `connect(url)` returns a `Queries` object with typed
  methods such as `create_user`, `create_feed`, `get_posts` and a
  `transaction()` context manager; a missing row raises `NotFoundError`.
- `gator.models` — the `User`, `Feed`, `FeedFollow`, `Post`,
  `FeedFollowRow` and `FeedWithUser` records.
- `gator.fetcher` — `parse_feed(data)` and `fetch_feed(url)` return an
  `RSSFeed` of `RSSItem`s; failures raise `FetchError`.
- `gator.commands` and `gator.handlers` — the `CommandRegistry`, `State`,
  `Command` and the command handlers; `gator.cli.build_registry()` wires
  them all together.

## Limitations

- Storage is SQLite only; `db_url` cannot point at a database server.
- Only RSS 2.0 documents (`<rss><channel><item>`) are read; Atom feeds
  yield no posts.
- There are no passwords: anyone with access to the configuration file
  can act as any registered user.

## Running the tests

```
pip install .[test]
pytest
```