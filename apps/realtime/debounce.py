import asyncio
import logging

logger = logging.getLogger(__name__)


class DebouncedRefresh:
    """
    Run an async callback `delay` seconds after the most recent `schedule()`.

    Each call to `schedule()` cancels the pending run, so a burst of events
    produces a single refresh once things go quiet. `cancel()` drops the
    pending run without calling it.
    """

    def __init__(self, delay, callback):
        self.delay = max(0.0, float(delay))
        self.callback = callback
        self._task = None

    @property
    def pending(self):
        return self._task is not None and not self._task.done()

    def schedule(self):
        self.cancel()
        self._task = asyncio.ensure_future(self._run())
        return self._task

    def cancel(self):
        if self.pending:
            self._task.cancel()
        self._task = None

    async def _run(self):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            return
        # detach before running so a schedule() from inside the callback starts fresh
        self._task = None
        try:
            await self.callback()
        except Exception:
            logger.exception("Debounced refresh failed")
