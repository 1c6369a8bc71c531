"""Flat ``<NAME>_VERSION="x.y.z"`` declaration files."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ghdepup.engines.tag_resolver.models import Dependency

OUTPUT_SUFFIX = "_VERSION"
_LIST_SEPARATOR = ", "


def declaration_key(name: str) -> str:
    return f"{name.upper()}{OUTPUT_SUFFIX}"


def render_declaration(dep: Dependency, *, verbose: bool = False) -> str:
    """Render one dependency; the assignment line is always present."""
    assignment = f'{declaration_key(dep.name)}="{dep.best_version_str}"\n'
    if not verbose:
        return assignment
    previous = str(dep.current_version) if dep.current_version is not None else ""
    return (
        f"# {dep.name}\n"
        f"# from {dep.project}\n"
        f"# previous version: {previous}\n"
        f"# with tags: {_LIST_SEPARATOR.join(dep.available_tags)}\n"
        f"# with versions: {_LIST_SEPARATOR.join(str(v) for v in dep.available_versions)}\n"
        f"{assignment}"
    )


def render_declarations(deps: Iterable[Dependency], *, verbose: bool = False) -> str:
    """Render every dependency, in the given order.

    Verbose blocks are separated by a blank line.
    """
    separator = "\n" if verbose else ""
    return separator.join(render_declaration(d, verbose=verbose) for d in deps)
