"""Tests for the flat declaration renderer."""

from __future__ import annotations

from semantic_version import Version

from ghdepup.engines.manifest_updater.declarations import (
    declaration_key,
    render_declaration,
    render_declarations,
)
from ghdepup.engines.tag_resolver.models import Dependency


def _resolved_hyper() -> Dependency:
    dep = Dependency(
        name="hyper",
        project="hyperium/hyper",
        tag_prefix="v",
        current_version=Version("0.14.26"),
    )
    dep.ingest_tags(["v0.14.28", "v0.14.27", "nightly"])
    dep.resolve()
    return dep


class TestRenderDeclaration:
    def test_key(self):
        assert declaration_key("hyper_tls") == "HYPER_TLS_VERSION"

    def test_resolved(self):
        assert render_declaration(_resolved_hyper()) == 'HYPER_VERSION="0.14.28"\n'

    def test_unresolved_line_still_emitted(self):
        assert render_declaration(Dependency(name="zlib")) == 'ZLIB_VERSION=""\n'

    def test_verbose(self):
        assert render_declaration(_resolved_hyper(), verbose=True) == (
            "# hyper\n"
            "# from hyperium/hyper\n"
            "# previous version: 0.14.26\n"
            "# with tags: v0.14.28, v0.14.27, nightly\n"
            "# with versions: 0.14.28, 0.14.27\n"
            'HYPER_VERSION="0.14.28"\n'
        )

    def test_verbose_without_previous_version(self):
        text = render_declaration(Dependency(name="zlib", project="madler/zlib"), verbose=True)
        assert "# previous version: \n" in text
        assert text.endswith('ZLIB_VERSION=""\n')


class TestRenderDeclarations:
    def test_keeps_order(self):
        deps = [Dependency(name="zlib"), _resolved_hyper()]
        assert render_declarations(deps) == 'ZLIB_VERSION=""\nHYPER_VERSION="0.14.28"\n'

    def test_empty(self):
        assert render_declarations([]) == ""

    def test_verbose_blocks_separated(self):
        text = render_declarations([Dependency(name="a"), Dependency(name="b")], verbose=True)
        assert 'A_VERSION=""\n\n# b\n' in text
