"""Rewrite dependency versions in Cargo.toml manifests.

Documents are edited in place with tomlkit, so comments, key order and the
exact bytes of every untouched entry survive a rewrite.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
import tomlkit
from tomlkit.exceptions import TOMLKitError

from ghdepup.core.flat_config import FlatConfig
from ghdepup.engines.manifest_updater.declarations import OUTPUT_SUFFIX
from ghdepup.engines.tag_resolver.resolver import parse_version
from ghdepup.exceptions import ConfigError

log = structlog.get_logger("ghdepup.engine")

VERSION_KEY = "version"
CRATE_NAME_SUFFIX = "_CRATE_NAME"

_REQUIRED_SECTION = "dependencies"
_OPTIONAL_SECTIONS = ("dev-dependencies", "build-dependencies")


def apply_versions(
    table: MutableMapping[str, Any],
    resolved: Mapping[str, object],
) -> MutableMapping[str, Any]:
    """Overwrite the ``version`` of every entry named in *resolved*.

    Only table-shaped entries are touched: a bare ``serde = "1.0"`` is left as
    it is, and names missing from *table* are never added.  *table* is
    modified in place and returned.
    """
    for name, version in resolved.items():
        entry = table.get(name)
        if entry is None:
            continue
        if not isinstance(entry, MutableMapping):
            log.info("manifest.entry_skipped", dependency=name, reason="not a table")
            continue
        new_version = str(version)
        if entry.get(VERSION_KEY) == new_version:
            continue
        log.debug(
            "manifest.entry_updated",
            dependency=name,
            old=entry.get(VERSION_KEY),
            new=new_version,
        )
        entry[VERSION_KEY] = new_version
    return table


def update_manifest_text(
    content: str,
    versions: Mapping[str, object],
    *,
    source: str = "<string>",
) -> str:
    """Apply *versions* to the dependency sections of a manifest and re-serialize it."""
    try:
        doc = tomlkit.parse(content)
    except TOMLKitError as exc:
        raise ConfigError(f"could not parse cargo file {source}: {exc}") from exc

    deps = doc.get(_REQUIRED_SECTION)
    if not isinstance(deps, MutableMapping):
        raise ConfigError(f"missing [{_REQUIRED_SECTION}] in cargo file {source}")
    apply_versions(deps, versions)

    for section in _OPTIONAL_SECTIONS:
        extra = doc.get(section)
        if isinstance(extra, MutableMapping):
            apply_versions(extra, versions)

    return tomlkit.dumps(doc)


@dataclass
class ManifestUpdate:
    """A manifest's text before and after applying versions."""

    path: Path
    original: str
    updated: str

    @property
    def changed(self) -> bool:
        return self.updated != self.original

    def write(self) -> None:
        if not self.changed:
            return
        self.path.write_text(self.updated, encoding="utf-8")
        log.info("manifest.written", path=str(self.path))


def update_manifest(
    path: str | Path,
    versions: Mapping[str, object],
    *,
    write: bool = True,
) -> ManifestUpdate:
    """Apply *versions* to the manifest at *path*.

    With *write* false the file is only read, and the caller decides when to
    call :meth:`ManifestUpdate.write`.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"could not read cargo file {path}: {exc}") from exc

    update = ManifestUpdate(
        path=path,
        original=content,
        updated=update_manifest_text(content, versions, source=str(path)),
    )
    if write:
        update.write()
    return update


def read_crate_versions(mapping: FlatConfig, versions: FlatConfig) -> dict[str, str]:
    """Map crate names to resolved versions.

    *mapping* declares ``<NAME>_CRATE_NAME="crate"``; *versions* is a rendered
    declaration file with ``<NAME>_VERSION="x.y.z"``.  Empty or invalid
    versions mean "no update available" and are left out.
    """
    crate_versions: dict[str, str] = {}
    for key in sorted(mapping):
        if not key.endswith(CRATE_NAME_SUFFIX):
            continue
        crate = mapping.get_str_or(key)
        if not crate:
            log.warning("manifest.invalid_crate_name", key=key)
            continue
        version_key = key[: -len(CRATE_NAME_SUFFIX)] + OUTPUT_SUFFIX
        version = versions.get_str_or(version_key)
        if not version:
            continue
        if parse_version(version) is None:
            log.warning("manifest.invalid_version", key=version_key, version=version)
            continue
        crate_versions[crate] = version
    return crate_versions
