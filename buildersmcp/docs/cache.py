"""Time-bounded cache for the remote tool list."""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Protocol, Tuple

from buildersmcp.docs.errors import UpstreamUnavailable
from buildersmcp.docs.schema import RemoteToolDef

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 10 * 60


class ToolLister(Protocol):
    async def list_tools(self) -> List[RemoteToolDef]: ...


class RemoteToolCache:
    """
    Holds the last fetched tool list and when it was fetched.

    The ``(tools, fetched_at)`` pair is swapped in one assignment after a
    fetch completes, so readers see either the old set or the new one.
    Concurrent stale reads are not coalesced; each may trigger its own fetch.
    """

    def __init__(
        self,
        client: ToolLister,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: Optional[Tuple[List[RemoteToolDef], float]] = None
        self.last_error: Optional[str] = None

    @property
    def fetched_at(self) -> Optional[float]:
        return self._entry[1] if self._entry else None

    @property
    def is_fresh(self) -> bool:
        if self._entry is None:
            return False
        return self._clock() - self._entry[1] < self.ttl_seconds

    async def get_tools(self) -> List[RemoteToolDef]:
        """
        Return the cached tools, fetching them when stale.

        On a failed fetch the previous set is returned (even if expired), or an
        empty list when nothing was ever fetched.
        """
        entry = self._entry
        if entry is not None and self._clock() - entry[1] < self.ttl_seconds:
            return list(entry[0])

        try:
            tools = await self._client.list_tools()
        except UpstreamUnavailable as exc:
            self.last_error = str(exc)
            logger.warning("Failed to fetch docs tools: %s", exc)
            previous = self._entry
            return list(previous[0]) if previous else []

        self._entry = (list(tools), self._clock())
        self.last_error = None
        logger.info("Fetched %d tools from docs MCP", len(tools))
        return list(tools)

    def invalidate(self) -> None:
        """Drop the cached set so the next ``get_tools()`` fetches live."""
        self._entry = None
