"""Data models for the tag resolver engine."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from semantic_version import NpmSpec, Version

from ghdepup.core.flat_config import FlatConfig
from ghdepup.engines.tag_resolver.resolver import (
    extract_versions,
    parse_requirement,
    parse_version,
    select_best,
)

# Key suffixes in the flat config: <NAME>_GH_PROJECT, <NAME>_GH_TAG_PREFIX, ...
KEY_NAMESPACE = "GH"
PROJECT_SUFFIX = f"_{KEY_NAMESPACE}_PROJECT"
TAG_PREFIX_SUFFIX = f"_{KEY_NAMESPACE}_TAG_PREFIX"
VERSION_REQ_SUFFIX = f"_{KEY_NAMESPACE}_VERSION_REQ"
VERSION_SUFFIX = f"_{KEY_NAMESPACE}_VERSION"


def config_key(name: str, suffix: str) -> str:
    return f"{name.upper()}{suffix}"


def discover_names(config: FlatConfig) -> set[str]:
    """Names of all dependencies declaring a project, lower-cased."""
    return {
        key[: -len(PROJECT_SUFFIX)].lower()
        for key in config
        if key.endswith(PROJECT_SUFFIX) and len(key) > len(PROJECT_SUFFIX)
    }


_TAG_INPUTS = frozenset({"tag_prefix", "available_tags"})


@dataclass
class Dependency:
    """One tracked dependency plus its derived candidate/resolved versions.

    ``available_versions`` is always ``extract_versions(available_tags,
    tag_prefix)``: assigning either input rederives it and clears
    ``best_version``.
    """

    name: str
    project: str = ""
    tag_prefix: str = ""
    version_req: NpmSpec | None = None
    current_version: Version | None = None
    available_tags: list[str] = field(default_factory=list)
    available_versions: list[Version] = field(default_factory=list, init=False)
    best_version: Version | None = None

    def __post_init__(self) -> None:
        self.update_versions_from_tags()

    def __setattr__(self, name: str, value: object) -> None:
        super().__setattr__(name, value)
        # __init__ assigns fields in order; best_version is the last one.
        if name in _TAG_INPUTS and "best_version" in self.__dict__:
            self.update_versions_from_tags()
            self.best_version = None

    @classmethod
    def from_config(cls, config: FlatConfig, name: str) -> Dependency:
        """Build a descriptor; missing or malformed values become defaults."""
        name = name.lower()
        return cls(
            name=name,
            project=config.get_str_or(config_key(name, PROJECT_SUFFIX)),
            tag_prefix=config.get_str_or(config_key(name, TAG_PREFIX_SUFFIX)),
            version_req=parse_requirement(
                config.get_str_or(config_key(name, VERSION_REQ_SUFFIX))
            ),
            current_version=parse_version(
                config.get_str_or(config_key(name, VERSION_SUFFIX))
            ),
        )

    def ingest_tags(self, tags: Iterable[str]) -> None:
        """Store fetched tags; the versions they encode are rederived."""
        self.available_tags = list(tags)

    def update_versions_from_tags(self) -> None:
        self.available_versions = extract_versions(self.available_tags, self.tag_prefix)

    def resolve(self) -> Version | None:
        """Pick the best version out of ``available_versions``."""
        self.best_version = select_best(self.available_versions, self.version_req)
        return self.best_version

    @property
    def best_version_str(self) -> str:
        return str(self.best_version) if self.best_version is not None else ""


def build_dependencies(config: FlatConfig) -> list[Dependency]:
    """One descriptor per discovered name, sorted by name for stable output."""
    return [Dependency.from_config(config, name) for name in sorted(discover_names(config))]


class RunState(str, Enum):
    """Lifecycle of a single resolve run."""

    CONFIGURED = "configured"
    FETCHING = "fetching"
    RESOLVED = "resolved"
    WRITTEN = "written"
    ABORTED = "aborted"


@dataclass
class ResolveResult:
    """Outcome of a resolve run."""

    state: RunState
    dependencies: list[Dependency] = field(default_factory=list)
    output: str | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def resolved(self) -> dict[str, Version]:
        return {
            d.name: d.best_version for d in self.dependencies if d.best_version is not None
        }
