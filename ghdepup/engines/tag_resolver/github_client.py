"""Async GitHub API client for listing repository tags.

Handles pagination, rate limits and retries; everything above it only sees
lists of tag names.
"""

from __future__ import annotations

import asyncio
import json
import re
import time
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import structlog

from ghdepup import __version__
from ghdepup.exceptions import TagPayloadError

log = structlog.get_logger("ghdepup.engine")

GITHUB_API_URL = "https://api.github.com"

_NEXT_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="next"')

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds
_DEFAULT_MAX_PAGES = 10


class RateLimitError(Exception):
    """Raised when GitHub rate limit is exhausted and we need to wait."""

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"rate limit exceeded, retry after {retry_after}s")


def parse_tags_payload(body: str) -> list[str]:
    """Extract tag names from a ``GET /repos/{owner}/{repo}/tags`` body.

    The body must be a JSON array of objects, each with a string ``name``.
    """
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise TagPayloadError(f"error parsing json response: {exc}") from exc
    if not isinstance(data, list):
        raise TagPayloadError("json array not found where expected in response")

    names: list[str] = []
    for entry in data:
        if not isinstance(entry, dict):
            raise TagPayloadError("object not found where expected in json response")
        name = entry.get("name")
        if not isinstance(name, str):
            raise TagPayloadError("name not found where expected in json response")
        names.append(name)
    return names


class GitHubClient:
    """Thin async wrapper around the GitHub REST API."""

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str = GITHUB_API_URL,
        max_pages: int = _DEFAULT_MAX_PAGES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"ghdepup/{__version__}",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.max_pages = max_pages
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=30.0,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def list_tags(self, project: str) -> list[str]:
        """All tag names of *project* (``owner/repo``), in the order GitHub returns them."""
        names: list[str] = []
        async for response in self.iter_pages(f"/repos/{project}/tags"):
            names.extend(parse_tags_payload(response.text))
        log.debug("github.tags_listed", project=project, count=len(names))
        return names

    async def iter_pages(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> AsyncGenerator[httpx.Response, None]:
        """Yield one response per page of a paginated endpoint.

        Follows ``Link: <...>; rel="next"`` headers and respects rate-limit
        headers. Stops after ``max_pages`` pages.
        """
        url: str | None = path
        params = dict(params or {})
        params.setdefault("per_page", 100)
        page = 0

        while url and page < self.max_pages:
            response = await self._request_with_retry(url, params if page == 0 else None)
            await self._check_rate_limit(response)
            yield response
            url = self._parse_next_link(response.headers.get("Link", ""))
            page += 1

        if url:
            log.warning("github.pages_truncated", path=path, max_pages=self.max_pages, next=url)

    # ── internal ───────────────────────────────────────────────────────────

    async def _request_with_retry(
        self,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """GET *url*, retrying rate limits, 5xx responses and timeouts.

        Any other 4xx is raised immediately as :class:`httpx.HTTPStatusError`.
        After the last attempt the most recent failure is raised.
        """
        last_exc: Exception | None = None
        for attempt in range(1, _MAX_RETRIES + 1):
            try:
                resp = await self._client.get(url, params=params)
            except httpx.TimeoutException as exc:
                log.warning("github.timeout", url=url, attempt=attempt, max_retries=_MAX_RETRIES)
                last_exc = exc
            else:
                if resp.status_code == 403 and self._is_rate_limited(resp):
                    wait = self._get_rate_limit_wait(resp)
                    log.warning(
                        "github.rate_limit",
                        url=url,
                        wait_seconds=wait,
                        attempt=attempt,
                        max_retries=_MAX_RETRIES,
                    )
                    await asyncio.sleep(wait)
                    last_exc = RateLimitError(wait)
                    continue
                if resp.status_code < 500:
                    resp.raise_for_status()
                    return resp
                log.warning(
                    "github.server_error",
                    url=url,
                    status=resp.status_code,
                    attempt=attempt,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = httpx.HTTPStatusError(
                    f"server error {resp.status_code}", request=resp.request, response=resp
                )

            if attempt < _MAX_RETRIES:
                await asyncio.sleep(_RETRY_BASE_DELAY * 2 ** (attempt - 1))

        raise last_exc  # type: ignore[misc]

    async def _check_rate_limit(self, response: httpx.Response) -> None:
        """Sleep until rate-limit resets if remaining == 0."""
        remaining = self._parse_header_int(response.headers.get("X-RateLimit-Remaining"))
        if remaining is not None and remaining == 0:
            wait = self._get_rate_limit_wait(response)
            log.warning("github.rate_limit_wait", wait_seconds=wait)
            await asyncio.sleep(wait)

    @classmethod
    def _is_rate_limited(cls, response: httpx.Response) -> bool:
        """A 403 caused by rate limiting rather than missing permissions."""
        remaining = cls._parse_header_int(response.headers.get("X-RateLimit-Remaining"))
        if remaining is not None:
            return remaining == 0
        # secondary (abuse) limits only send Retry-After
        return "Retry-After" in response.headers

    @classmethod
    def _get_rate_limit_wait(cls, response: httpx.Response) -> int:
        """Seconds to wait, from Retry-After or else X-RateLimit-Reset."""
        retry_after = cls._parse_header_int(response.headers.get("Retry-After"))
        if retry_after is not None:
            return max(retry_after, 1)
        reset_ts = cls._parse_header_int(response.headers.get("X-RateLimit-Reset"))
        if reset_ts is not None:
            return max(reset_ts - int(time.time()), 1)
        return 60

    @staticmethod
    def _parse_header_int(value: str | None) -> int | None:
        if value is None:
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _parse_next_link(link_header: str) -> str | None:
        """Extract the ``next`` URL from a GitHub ``Link`` header."""
        match = _NEXT_LINK_RE.search(link_header)
        return match.group(1) if match else None
