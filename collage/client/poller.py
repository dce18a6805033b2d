import asyncio
import contextlib
import logging
from typing import List, Optional
import httpx
from collage.config import settings
from collage.client.api import ApiError, CollageClient
from collage.client.listeners import ListenerRegistry

logger = logging.getLogger(__name__)


class FeedPoller:
    """Periodically re-fetch the full feed and publish it to listeners.

    Polling is the only way other users' changes are observed. A refresh that
    resolves after a newer one has already been applied is discarded.
    """

    def __init__(
        self,
        client: CollageClient,
        interval: Optional[float] = None,
        sort_by: str = "created_at_desc",
        filter_by: str = "all",
        listeners: Optional[ListenerRegistry] = None,
    ):
        self.client = client
        self.interval = interval if interval is not None else settings.POLL_INTERVAL_SECONDS
        self.sort_by = sort_by
        self.filter_by = filter_by
        self.listeners = listeners if listeners is not None else ListenerRegistry()
        self._issued = 0
        self._applied = 0
        self._task: Optional[asyncio.Task] = None

    async def refresh(self) -> Optional[List[dict]]:
        self._issued += 1
        seq = self._issued
        views = await self.client.list_images(self.sort_by, self.filter_by)
        if seq < self._applied:
            logger.debug("Discarding stale feed #%s (applied #%s)", seq, self._applied)
            return None
        self._applied = seq
        self.client.cache.reconcile(views)
        self.listeners.publish(views)
        return views

    async def _run(self) -> None:
        while True:
            try:
                await self.refresh()
            except (ApiError, httpx.HTTPError) as e:
                logger.warning("Feed refresh failed: %s", e)
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
