"""Reading and writing the JSON configuration file in the user's home directory."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILE_NAME = ".gatorconfig.json"


@dataclass
class Config:
    """Database location and the name of the logged-in user."""

    db_url: str = ""
    current_user_name: str = ""
    path: Path | None = field(default=None, compare=False, repr=False)

    def set_user(self, user_name: str) -> None:
        """Record ``user_name`` as the current user and save the file."""
        self.current_user_name = user_name
        write(self)

    def to_dict(self) -> dict[str, str]:
        return {"db_url": self.db_url, "current_user_name": self.current_user_name}


def config_file_path() -> Path:
    """Return the default location of the configuration file."""
    return Path.home() / CONFIG_FILE_NAME


def _string_field(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"config field {key!r} must be a string")
    return value


def read(path: str | Path | None = None) -> Config:
    """Load the configuration from ``path`` (or the default location)."""
    target = Path(path) if path is not None else config_file_path()
    data = json.loads(target.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("config file must hold a JSON object")
    return Config(
        db_url=_string_field(data, "db_url"),
        current_user_name=_string_field(data, "current_user_name"),
        path=target,
    )


def write(config: Config, path: str | Path | None = None) -> None:
    """Save ``config`` to ``path``, its own path, or the default location."""
    if path is not None:
        target = Path(path)
    elif config.path is not None:
        target = config.path
    else:
        target = config_file_path()
    target.write_text(json.dumps(config.to_dict(), separators=(",", ":")), encoding="utf-8")