"""Periodic scraping of one metrics endpoint into a MetricStore.

``Scraper`` performs a single pass: fetch, parse, write, and mark stale
any series that vanished since the previous pass. ``ScrapeLoop`` repeats
that pass on a daemon thread that owns its own event loop, so the
terminal refresh loop can keep the main thread.
"""

from __future__ import annotations

import asyncio
import sys
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import aiohttp

from promview._internal.config import PromViewConfig
from promview._internal.errors import ScrapeError
from promview._internal.logging import get_logger
from promview.metrics.labels import (
    INSTANCE_LABEL,
    JOB_LABEL,
    METRIC_NAME_LABEL,
    LabelSet,
)
from promview.scrape.parser import parse_exposition

if TYPE_CHECKING:
    from collections.abc import Callable, Collection

    from promview.metrics.store import MetricStore

logger = get_logger("scrape.scraper")

STALE_NAN = float("nan")

# Longest stretch the loop sleeps before re-checking the stop event.
_STOP_POLL_SECONDS = 0.05

Health = Literal["unknown", "up", "down"]


@dataclass(frozen=True)
class TargetHealth:
    """Outcome of the most recent scrape.

    Attributes:
        health: ``"up"`` after a successful scrape, ``"down"`` after a failed
            one, ``"unknown"`` before the first attempt.
        last_scrape: Wall-clock time of the last attempt (epoch seconds).
        last_duration: Seconds the last attempt took.
        last_error: Error message of the last attempt, if it failed.
        samples: Number of samples the last successful scrape returned.
    """

    health: Health = "unknown"
    last_scrape: float | None = None
    last_duration: float = 0.0
    last_error: str | None = None
    samples: int = 0


def _now_ms() -> int:
    return int(time.time() * 1000)


class Scraper:
    """Fetches one target's metrics endpoint and writes samples to a store.

    Attributes:
        target: ``host:port`` of the monitored process.
        url: Full metrics URL.
    """

    def __init__(
        self,
        store: MetricStore,
        target: str,
        config: PromViewConfig | None = None,
    ) -> None:
        """Initialize the scraper.

        Args:
            store: Store that receives every scraped sample.
            target: ``host:port`` of the monitored process.
            config: Scheme, path, job name and timeout settings.
        """
        self._config = config or PromViewConfig()
        self._store = store
        self.target = target
        self.url = f"{self._config.scheme}://{target}{self._config.metrics_path}"
        self._target_labels = {INSTANCE_LABEL: target, JOB_LABEL: self._config.job_name}
        self._seen: dict[int, LabelSet] = {}
        self._health = TargetHealth()

    @property
    def health(self) -> TargetHealth:
        """Health recorded by the most recent :meth:`scrape`."""
        return self._health

    async def fetch(self, session: aiohttp.ClientSession) -> str:
        """Return the raw metrics payload.

        Raises:
            ScrapeError: On connection failure, timeout, non-2xx status or a
                body that does not decode as text.
        """
        timeout = aiohttp.ClientTimeout(total=self._config.scrape_timeout)
        try:
            async with session.get(self.url, timeout=timeout) as resp:
                if resp.status >= 300:
                    msg = f"{self.url} returned HTTP {resp.status}"
                    raise ScrapeError(msg)
                return await resp.text()
        except UnicodeDecodeError as exc:
            msg = f"{self.url} returned an undecodable payload: {exc}"
            raise ScrapeError(msg) from exc
        except TimeoutError as exc:
            msg = f"{self.url} timed out after {self._config.scrape_timeout}s"
            raise ScrapeError(msg) from exc
        except aiohttp.ClientError as exc:
            msg = f"{self.url} unreachable: {exc}"
            raise ScrapeError(msg) from exc

    async def scrape(self, session: aiohttp.ClientSession) -> TargetHealth:
        """Run one scrape pass and write its results to the store.

        Failures are recorded in the returned health rather than raised.

        Args:
            session: Open aiohttp session to fetch with.

        Returns:
            The health of this pass.
        """
        started = time.monotonic()
        scrape_ts = _now_ms()
        try:
            payload = await self.fetch(session)
            parsed = parse_exposition(
                payload,
                timestamp_ms=scrape_ts,
                target_labels=self._target_labels,
            )
        except ScrapeError as exc:
            duration = time.monotonic() - started
            logger.warning("Scrape of %s failed: %s", self.target, exc)
            self._mark_stale((), scrape_ts)
            self._seen = {}
            self._write_report(scrape_ts, up=False, duration=duration, count=0)
            self._health = TargetHealth(
                health="down",
                last_scrape=scrape_ts / 1000,
                last_duration=duration,
                last_error=str(exc),
            )
            return self._health

        current: dict[int, LabelSet] = {}
        for labels, ts, value in parsed:
            current[self._store.write(labels, ts, value)] = labels
        self._mark_stale(current.keys(), scrape_ts)
        self._seen = current

        duration = time.monotonic() - started
        self._write_report(scrape_ts, up=True, duration=duration, count=len(parsed))
        logger.debug("Scraped %d samples from %s in %.3fs", len(parsed), self.target, duration)
        self._health = TargetHealth(
            health="up",
            last_scrape=scrape_ts / 1000,
            last_duration=duration,
            samples=len(parsed),
        )
        return self._health

    def _mark_stale(self, keep: Collection[int], timestamp: int) -> None:
        """Write NaN for every previously seen series not in *keep*."""
        gone = [labels for identity, labels in self._seen.items() if identity not in keep]
        for labels in gone:
            self._store.write(labels, timestamp, STALE_NAN)
        if gone:
            logger.debug("Marked %d series stale on %s", len(gone), self.target)

    def _write_report(self, timestamp: int, *, up: bool, duration: float, count: int) -> None:
        """Write the synthetic ``up`` and scrape bookkeeping series."""
        report = (
            ("up", 1.0 if up else 0.0),
            ("scrape_duration_seconds", duration),
            ("scrape_samples_scraped", float(count)),
        )
        for name, value in report:
            labels = LabelSet({**self._target_labels, METRIC_NAME_LABEL: name})
            self._store.write(labels, timestamp, value)


def _loop_factory() -> Callable[[], asyncio.AbstractEventLoop] | None:
    """Return uvloop's loop factory, or None for the default asyncio loop.

    uvloop is skipped on Windows and when it is not installed.
    """
    if sys.platform == "win32":
        return None

    try:
        import uvloop
    except ImportError:
        logger.debug("uvloop not available, using default asyncio event loop")
        return None
    return uvloop.new_event_loop


class ScrapeLoop:
    """Runs :meth:`Scraper.scrape` every ``interval`` seconds on a daemon thread.

    The thread owns one event loop and one aiohttp session for its whole
    life. A failed scrape is logged and the loop carries on.

    Attributes:
        interval: Seconds between the starts of two scrapes.
    """

    def __init__(self, scraper: Scraper, interval: float = 1.0) -> None:
        """Initialize the loop.

        Args:
            scraper: Scraper to run.
            interval: Seconds between the starts of two scrapes.
        """
        self._scraper = scraper
        self.interval = interval
        self._stop_event = threading.Event()
        self._first_scrape = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def health(self) -> TargetHealth:
        """Health recorded by the most recent scrape."""
        return self._scraper.health

    def start(self) -> None:
        """Start the scrape thread."""
        self._stop_event.clear()
        self._first_scrape.clear()
        self._thread = threading.Thread(
            target=self._run_thread,
            name="promview-scrape",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Scrape thread started for %s", self._scraper.url)

    def stop(self) -> None:
        """Stop the scrape thread and wait for it to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None
        logger.debug("Scrape thread stopped")

    def wait_for_first_scrape(self, timeout: float | None = None) -> bool:
        """Block until the first scrape attempt has finished.

        Returns:
            True if a scrape finished within *timeout*.
        """
        return self._first_scrape.wait(timeout=timeout)

    def _run_thread(self) -> None:
        with asyncio.Runner(loop_factory=_loop_factory()) as runner:
            runner.run(self._run())

    async def _run(self) -> None:
        async with aiohttp.ClientSession() as session:
            while not self._stop_event.is_set():
                started = time.monotonic()
                try:
                    await self._scraper.scrape(session)
                except Exception:
                    logger.exception("Scrape pass for %s failed", self._scraper.target)
                self._first_scrape.set()
                await self._sleep(self.interval - (time.monotonic() - started))

    async def _sleep(self, seconds: float) -> None:
        deadline = time.monotonic() + seconds
        while not self._stop_event.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            await asyncio.sleep(min(remaining, _STOP_POLL_SECONDS))


def scrape_once(store: MetricStore, target: str, config: PromViewConfig) -> TargetHealth:
    """Scrape *target* a single time from synchronous code.

    Returns:
        Health of the scrape.
    """

    async def _run() -> TargetHealth:
        async with aiohttp.ClientSession() as session:
            return await Scraper(store, target, config).scrape(session)

    return asyncio.run(_run())
