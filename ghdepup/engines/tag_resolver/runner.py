"""TagResolverRunner: fetch tags for every dependency, resolve, render once.

A run moves CONFIGURED → FETCHING → RESOLVED → WRITTEN.  Fetches are fanned
out concurrently and joined at a single barrier: if any of them fails, the
run is ABORTED and nothing is rendered or written.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx
import structlog

from ghdepup.engines.manifest_updater.declarations import render_declarations
from ghdepup.engines.tag_resolver.models import Dependency, ResolveResult, RunState
from ghdepup.exceptions import BatchFetchError, TagFetchError, TagPayloadError

log = structlog.get_logger("ghdepup.engine")

_MAX_CONCURRENCY = 5


@runtime_checkable
class TagSource(Protocol):
    """Anything that can list the tag names of a project."""

    async def list_tags(self, project: str) -> list[str]: ...


def describe_fetch_error(exc: BaseException) -> str:
    """Human-readable reason for a failed tag fetch."""
    if isinstance(exc, httpx.HTTPStatusError):
        return f"unexpected http status: {exc.response.status_code}"
    if isinstance(exc, httpx.HTTPError):
        return f"http error: {type(exc).__name__}: {exc}"
    if isinstance(exc, TagPayloadError):
        return str(exc)
    return f"{type(exc).__name__}: {exc}"


class TagResolverRunner:
    """Orchestration layer: tag source → resolver → flat declaration output."""

    def __init__(
        self,
        source: TagSource,
        *,
        max_concurrency: int = _MAX_CONCURRENCY,
        verbose_output: bool = False,
    ) -> None:
        self._source = source
        self._max_concurrency = max(1, max_concurrency)
        self._verbose_output = verbose_output

    async def fetch_all(self, deps: Sequence[Dependency]) -> None:
        """Ingest tags for every dependency, or raise :class:`BatchFetchError`.

        Every fetch runs to completion before success is decided, so the
        error lists all failing dependencies.
        """
        sem = asyncio.Semaphore(self._max_concurrency)

        async def _fetch_one(dep: Dependency) -> list[str]:
            async with sem:
                return await self._source.list_tags(dep.project)

        results = await asyncio.gather(
            *(_fetch_one(dep) for dep in deps),
            return_exceptions=True,
        )

        errors: list[TagFetchError] = []
        for dep, result in zip(deps, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                reason = describe_fetch_error(result)
                log.error(
                    "runner.fetch_failed",
                    dependency=dep.name,
                    project=dep.project,
                    error=reason,
                )
                errors.append(TagFetchError(dep.name, reason))
        if errors:
            raise BatchFetchError(errors)

        for dep, tags in zip(deps, results, strict=True):
            dep.ingest_tags(tags)  # type: ignore[arg-type]

    async def run(
        self,
        deps: Sequence[Dependency],
        write: Callable[[str], None] | None = None,
    ) -> ResolveResult:
        """Fetch, resolve and render *deps*; hand the text to *write* once.

        Returns a :class:`ResolveResult` whose ``state`` is WRITTEN on
        success.  Fetch failures leave it ABORTED with one entry per failing
        dependency in ``errors``.
        """
        result = ResolveResult(state=RunState.CONFIGURED, dependencies=list(deps))

        result.state = RunState.FETCHING
        log.info("runner.fetching", dependencies=len(result.dependencies))
        try:
            await self.fetch_all(result.dependencies)
        except BatchFetchError as exc:
            result.state = RunState.ABORTED
            result.errors = [str(e) for e in exc.errors]
            return result

        for dep in result.dependencies:
            dep.resolve()
            log.info(
                "runner.resolved",
                dependency=dep.name,
                current=str(dep.current_version) if dep.current_version else None,
                best=dep.best_version_str or None,
                candidates=len(dep.available_versions),
            )
        result.state = RunState.RESOLVED

        result.output = render_declarations(result.dependencies, verbose=self._verbose_output)
        if write is not None:
            write(result.output)
        result.state = RunState.WRITTEN
        return result


def file_writer(path: str | Path) -> Callable[[str], None]:
    """A ``write`` callback that stores the rendered text at *path*."""

    def _write(text: str) -> None:
        Path(path).write_text(text, encoding="utf-8")
        log.info("runner.written", path=str(path))

    return _write
