"""Tag resolver engine: turn repository tags into pinned versions."""

from ghdepup.engines.tag_resolver.models import (
    Dependency,
    ResolveResult,
    RunState,
    build_dependencies,
    discover_names,
)
from ghdepup.engines.tag_resolver.resolver import extract_versions, select_best
from ghdepup.engines.tag_resolver.runner import TagResolverRunner, TagSource

__all__ = [
    "Dependency",
    "ResolveResult",
    "RunState",
    "TagResolverRunner",
    "TagSource",
    "build_dependencies",
    "discover_names",
    "extract_versions",
    "select_best",
]
