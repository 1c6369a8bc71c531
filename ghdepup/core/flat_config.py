"""Flat ``KEY="VALUE"`` configuration files and a typed accessor over them.

The files are kept parsable by POSIX sh, make, ini and TOML at the same time,
so parsing is delegated to a TOML reader.  Only top-level keys are meaningful.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from ghdepup.exceptions import ConfigError, MissingKeyError, WrongTypeError


class FlatConfig(Mapping[str, Any]):
    """Read-only key/value store with explicit, typed lookups."""

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"FlatConfig({self._values!r})"

    def get_str(self, key: str) -> str:
        """Return the string stored under *key*.

        Raises :class:`MissingKeyError` when the key is not declared and
        :class:`WrongTypeError` when it holds anything but a string.
        """
        try:
            value = self._values[key]
        except KeyError:
            raise MissingKeyError(key) from None
        if not isinstance(value, str):
            raise WrongTypeError(key, str, value)
        return value

    def get_str_or(self, key: str, default: str = "") -> str:
        """Like :meth:`get_str` but falls back to *default* on either failure."""
        try:
            return self.get_str(key)
        except (MissingKeyError, WrongTypeError):
            return default


def parse_flat_config(text: str) -> FlatConfig:
    """Parse declaration text into a :class:`FlatConfig`.

    Raises :class:`ConfigError` on malformed syntax or duplicate keys.
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"config can't be parsed: {exc}") from exc
    return FlatConfig(data)


def read_config_files(paths: Sequence[str | Path], *, min_files: int = 1) -> FlatConfig:
    """Read, concatenate and parse several declaration files.

    Files are joined with a newline before decoding so that a declaration can
    never run across a file boundary.  Every unreadable file is reported, not
    only the first one.
    """
    if len(paths) < min_files:
        raise ConfigError(
            f"at least {min_files} config files needed, but only {len(paths)} found"
        )

    chunks: list[bytes] = []
    unreadable: list[str] = []
    for path in paths:
        try:
            chunks.append(Path(path).read_bytes())
        except OSError as exc:
            unreadable.append(f"error reading config file {str(path)!r}: {exc.strerror or exc}")
    if unreadable:
        raise ConfigError("\n".join(unreadable))

    raw = b"".join(chunk + b"\n" for chunk in chunks)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigError(f"config is not valid utf-8: {exc}") from exc
    return parse_flat_config(text)
