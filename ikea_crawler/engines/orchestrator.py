from __future__ import annotations

import asyncio
import logging
import smtplib
import time
from typing import Awaitable, Callable, Optional

from .base import CrawlEngine, CrawlReport
from ..config import CrawlConfig
from ..utils.notify import EmailNotifier

logger = logging.getLogger(__name__)


def remaining_sleep(interval: float, elapsed: float) -> float:
    """Time left in the interval after a pass; a pass that overran starts the next at once."""
    return max(0.0, interval - elapsed)


class CrawlOrchestrator:
    """
    Runs crawl passes once or on a fixed interval and mails the error summary
    of any pass that recorded failures.
    """

    def __init__(
        self,
        config: CrawlConfig,
        engine_factory: Callable[[], CrawlEngine],
        notifier: Optional[EmailNotifier] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.engine_factory = engine_factory
        self.notifier = notifier
        self._clock = clock
        self._sleep = sleep

    async def run(self, max_passes: Optional[int] = None) -> CrawlReport:
        """
        Run passes until ``loop`` is off or ``max_passes`` is reached.
        Sink failures propagate and end the loop.
        """
        passes = 0
        while True:
            started = self._clock()
            report = await self.run_pass()
            passes += 1
            if not self.config.loop or (max_passes is not None and passes >= max_passes):
                return report
            delay = remaining_sleep(self.config.interval, self._clock() - started)
            logger.info("Next pass in %.1fs", delay)
            await self._sleep(delay)

    async def run_pass(self) -> CrawlReport:
        engine = self.engine_factory()
        report = await engine.crawl()
        logger.info(
            "Pass finished for %s: %s products written from %s stubs, %s pages walked, %s errors",
            report.country,
            report.product_count,
            report.stub_count,
            report.visited_count,
            len(report.errors),
        )
        if report.errors:
            await self.notify(report)
        return report

    async def notify(self, report: CrawlReport) -> None:
        if self.notifier is None:
            return
        subject = f"ikea_crawler: {len(report.errors)} errors while crawling {report.country}"
        body = (
            f"Products written: {report.product_count}\n"
            f"Products found: {report.stub_count}\n\n"
            f"{report.errors.summary()}\n"
        )
        try:
            await asyncio.to_thread(self.notifier.send, subject, body)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Could not send failure summary: %r", exc)
