"""Manifest updater engine: write resolved versions back to config artifacts."""

from ghdepup.engines.manifest_updater.cargo_toml import (
    ManifestUpdate,
    apply_versions,
    read_crate_versions,
    update_manifest,
)
from ghdepup.engines.manifest_updater.declarations import (
    render_declaration,
    render_declarations,
)

__all__ = [
    "ManifestUpdate",
    "apply_versions",
    "read_crate_versions",
    "render_declaration",
    "render_declarations",
    "update_manifest",
]
