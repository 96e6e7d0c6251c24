"""Named commands and the registry that dispatches them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from gator.config import Config
from gator.database import Queries


class CommandError(Exception):
    """A command was misused or could not complete."""


@dataclass(frozen=True)
class Command:
    name: str
    args: tuple[str, ...] = ()


@dataclass
class State:
    """What every command handler works with."""

    db: Queries
    config: Config


Handler = Callable[[State, Command], Any]


@dataclass
class CommandRegistry:
    handlers: dict[str, Handler] = field(default_factory=dict)

    def register(self, name: str, handler: Handler) -> None:
        """Bind ``handler`` to ``name``, replacing any earlier binding."""
        self.handlers[name] = handler

    def run(self, state: State, command: Command) -> Any:
        """Run the handler registered for ``command.name``."""
        try:
            handler = self.handlers[command.name]
        except KeyError:
            raise CommandError(f"no command registered: {command.name}") from None
        return handler(state, command)

    def __contains__(self, name: object) -> bool:
        return name in self.handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self.handlers)