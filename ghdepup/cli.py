"""CLI entry point: ghdepup.

Subcommands:
    ghdepup resolve ghdeps.toml ghversions.toml          # fetch tags, pin best versions
    ghdepup sync ghdeps.toml ghversions.toml Cargo.toml  # push pins into Cargo manifests
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from ghdepup import __version__
from ghdepup.core.flat_config import read_config_files
from ghdepup.core.logging import setup_logging
from ghdepup.engines.manifest_updater.cargo_toml import (
    ManifestUpdate,
    read_crate_versions,
    update_manifest,
)
from ghdepup.engines.manifest_updater.declarations import render_declarations
from ghdepup.engines.tag_resolver.github_client import GitHubClient
from ghdepup.engines.tag_resolver.models import (
    Dependency,
    ResolveResult,
    RunState,
    build_dependencies,
)
from ghdepup.engines.tag_resolver.runner import TagResolverRunner, file_writer
from ghdepup.exceptions import ConfigError

_MIN_RESOLVE_FILES = 2


def _fail(messages: list[str]) -> None:
    for message in messages:
        click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _resolve_token(token: str | None) -> str:
    """Strip the credential; trailing newlines are common in secret stores."""
    token = (token or "").strip()
    if not token:
        raise ConfigError("GITHUB_TOKEN environment variable is missing or unset")
    return token


@click.group()
@click.version_option(__version__, prog_name="ghdepup")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """ghdepup: keep GitHub-hosted dependency pins up to date."""
    setup_logging("DEBUG" if verbose else None)


@main.command("resolve")
@click.argument("paths", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option(
    "--token",
    envvar="GITHUB_TOKEN",
    default=None,
    show_default=False,
    show_envvar=True,
    help="GitHub token",
)
@click.option(
    "--concurrency",
    default=5,
    show_default=True,
    type=click.IntRange(min=1),
    help="Maximum number of tag requests in flight",
)
@click.option(
    "--max-pages",
    default=10,
    show_default=True,
    type=click.IntRange(min=1),
    help="Maximum tag pages fetched per project",
)
@click.option("--debug", "debug_output", is_flag=True, help="Print annotated results to stdout")
@click.option(
    "--annotate", is_flag=True, help="Write source and candidate comments into the output file"
)
@click.option("--write/--no-write", default=True, show_default=True, help="Write the output file")
def resolve(
    paths: tuple[str, ...],
    token: str | None,
    concurrency: int,
    max_pages: int,
    debug_output: bool,
    annotate: bool,
    write: bool,
) -> None:
    """Resolve the best version of every dependency declared in PATHS.

    All PATHS are read and merged as configuration; the last one is also the
    output file that receives the ``<NAME>_VERSION`` declarations.
    """
    problems: list[str] = []
    try:
        token = _resolve_token(token)
    except ConfigError as exc:
        problems.append(str(exc))
    try:
        config = read_config_files(paths, min_files=_MIN_RESOLVE_FILES)
    except ConfigError as exc:
        problems.append(str(exc))
    if problems:
        _fail(problems)

    deps = build_dependencies(config)
    if not deps:
        click.echo("Warning: no dependencies declared.", err=True)

    output_path = Path(paths[-1])
    result = asyncio.run(
        _run_resolve(
            deps,
            token=token,  # type: ignore[arg-type]
            concurrency=concurrency,
            max_pages=max_pages,
            output_path=output_path if write else None,
            annotate=annotate,
        )
    )

    if result.state is not RunState.WRITTEN:
        _fail(["tag fetching failed, nothing written:"] + result.errors)

    if debug_output:
        click.echo(render_declarations(result.dependencies, verbose=True), nl=False)

    updated = sum(
        1
        for d in result.dependencies
        if d.best_version is not None and d.best_version != d.current_version
    )
    target = str(output_path) if write else "(not written)"
    click.echo(
        f"Resolved {len(result.resolved)}/{len(deps)} dependencies, "
        f"{updated} changed -> {target}"
    )


async def _run_resolve(
    deps: list[Dependency],
    *,
    token: str,
    concurrency: int,
    max_pages: int,
    output_path: Path | None,
    annotate: bool = False,
) -> ResolveResult:
    async with GitHubClient(token, max_pages=max_pages) as client:
        runner = TagResolverRunner(
            client, max_concurrency=concurrency, verbose_output=annotate
        )
        write = file_writer(output_path) if output_path is not None else None
        return await runner.run(deps, write=write)


@main.command("sync")
@click.argument("mapping_file", type=click.Path(dir_okay=False))
@click.argument("versions_file", type=click.Path(dir_okay=False))
@click.argument("manifests", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option("--write/--no-write", default=True, show_default=True, help="Rewrite the manifests")
def sync(mapping_file: str, versions_file: str, manifests: tuple[str, ...], write: bool) -> None:
    """Copy resolved versions from VERSIONS_FILE into Cargo MANIFESTS.

    MAPPING_FILE maps ``<NAME>_CRATE_NAME`` to crate names.  Either every
    manifest is rewritten or, on any error, none is.
    """
    problems: list[str] = []
    mapping = versions = None
    try:
        mapping = read_config_files([mapping_file])
    except ConfigError as exc:
        problems.append(str(exc))
    try:
        versions = read_config_files([versions_file])
    except ConfigError as exc:
        problems.append(str(exc))
    if problems:
        _fail(problems)

    crate_versions = read_crate_versions(mapping, versions)  # type: ignore[arg-type]

    pending: list[ManifestUpdate] = []
    for manifest in manifests:
        try:
            pending.append(update_manifest(manifest, crate_versions, write=False))
        except ConfigError as exc:
            problems.append(str(exc))
    if problems:
        _fail(problems)

    changed = 0
    for update in pending:
        if not update.changed:
            continue
        changed += 1
        if write:
            update.write()
        click.echo(f"{'Updated' if write else 'Would update'} {update.path}")
    click.echo(f"{len(crate_versions)} pinned crates, {changed}/{len(pending)} manifests changed")


if __name__ == "__main__":
    main()
