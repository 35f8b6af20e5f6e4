"""
Asyncio polling loop: fixed interval, one cycle at a time.
Each cycle probes every endpoint (bounded concurrency), waits for all of them,
feeds results to the EndpointTracker, then sleeps.
Notification delivery runs as background tasks; failures are logged and dropped.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from sitecheck.config import MonitorConfig
from sitecheck.notify import DeliveryError, LogNotifier, SlackNotifier, render_message
from sitecheck.probe import HttpProber, ProbeResult
from sitecheck.state import EndpointTracker, EventKind, NotificationEvent, State

logger = logging.getLogger("sitecheck.monitor")

# Seconds to let in-flight deliveries finish when the loop is cancelled
DRAIN_TIMEOUT = 5.0


class Prober(Protocol):
    async def probe(self, url: str) -> ProbeResult: ...


class Notifier(Protocol):
    async def notify(self, event: NotificationEvent, text: str) -> None: ...


@dataclass
class MonitorState:
    config: MonitorConfig
    tracker: EndpointTracker
    prober: Prober
    notifier: Notifier
    pending: set[asyncio.Task] = field(default_factory=set)
    _sem: Optional[asyncio.Semaphore] = None

    @property
    def sem(self) -> asyncio.Semaphore:
        # Created lazily so it binds to the running loop
        if self._sem is None:
            self._sem = asyncio.Semaphore(self.config.concurrency)
        return self._sem


def build_state(config: MonitorConfig, dry_run: bool = False) -> MonitorState:
    notifier: Notifier
    if dry_run:
        notifier = LogNotifier()
    else:
        notifier = SlackNotifier(config.slack_url)
    return MonitorState(
        config=config,
        tracker=EndpointTracker(config.endpoints, config.max_retries),
        prober=HttpProber(timeout=config.timeout, verify_tls=config.verify_tls),
        notifier=notifier,
    )


async def _deliver(event: NotificationEvent, text: str, notifier: Notifier) -> None:
    try:
        await notifier.notify(event, text)
    except DeliveryError as e:
        logger.error("Notification for %s dropped: %s", event.endpoint, e)
    except Exception as e:
        logger.exception("Notification for %s failed: %s", event.endpoint, e)


def dispatch(event: NotificationEvent, state: MonitorState) -> asyncio.Task:
    """Render and hand off to the notifier without waiting for delivery."""
    text = render_message(event, state.config.identifier, state.config.interval)
    if event.kind is EventKind.DOWN_ALERT:
        logger.warning("Notify: %s", text)
    else:
        logger.info("Notify: %s", text)
    task = asyncio.create_task(_deliver(event, text, state.notifier), name=f"notify-{event.endpoint}")
    state.pending.add(task)
    task.add_done_callback(state.pending.discard)
    return task


async def check_endpoint(url: str, state: MonitorState) -> Optional[NotificationEvent]:
    """Probe one endpoint, update its state machine, dispatch any resulting notification."""
    async with state.sem:
        try:
            result = await state.prober.probe(url)
        except Exception as e:
            logger.warning("Probe %s raised %s, treating as DOWN", url, e)
            result = ProbeResult(status=State.DOWN, status_code=None, reason=f"ERROR:{type(e).__name__}")

    raw = State.DOWN if result.status is State.UNKNOWN else result.status
    prev = state.tracker.get(url).state
    event = state.tracker.update(url, raw)

    if raw is State.UP:
        logger.debug("Probe %s: OK %s", url, f"{result.latency_ms:.0f}ms" if result.latency_ms is not None else "")
    else:
        logger.debug("Probe %s: DOWN %s (%d/%d)", url, result.reason,
                     state.tracker.get(url).count, state.tracker.retry_threshold)

    if prev == State.UP and raw is State.DOWN:
        logger.info("UP->DOWN %s: %s", url, result.reason)
    elif prev == State.DOWN and raw is State.UP:
        logger.info("DOWN->UP %s", url)
    elif prev == State.UNKNOWN:
        logger.info("Initial state %s: %s", url, raw.name)

    if event is not None:
        dispatch(event, state)
    return event


async def run_cycle(state: MonitorState) -> list[NotificationEvent]:
    """One pass over all endpoints; returns once every probe has been applied."""
    events = await asyncio.gather(*(check_endpoint(url, state) for url in state.config.endpoints))
    return [e for e in events if e is not None]


async def drain(state: MonitorState) -> None:
    """Wait for in-flight notification deliveries."""
    if state.pending:
        await asyncio.gather(*list(state.pending), return_exceptions=True)


async def shutdown(state: MonitorState) -> None:
    await drain(state)
    for closable in (state.prober, state.notifier):
        aclose = getattr(closable, "aclose", None)
        if aclose is not None:
            await aclose()


async def run_monitor(state: MonitorState, max_cycles: Optional[int] = None) -> None:
    """Loop: cycle, sleep interval, repeat. Runs until cancelled unless max_cycles is given."""
    cfg = state.config
    logger.info(
        "Monitor started with %d endpoints (interval %ds, max_retries %d)",
        len(cfg.endpoints), cfg.interval, cfg.max_retries,
    )
    cycle = 0
    try:
        while True:
            cycle += 1
            events = await run_cycle(state)
            logger.debug("Cycle %d done, %d notification(s)", cycle, len(events))
            if max_cycles is not None and cycle >= max_cycles:
                break
            await asyncio.sleep(cfg.interval)
        await drain(state)
    except asyncio.CancelledError:
        if state.pending:
            _, unfinished = await asyncio.wait(list(state.pending), timeout=DRAIN_TIMEOUT)
            for t in unfinished:
                t.cancel()
            if unfinished:
                logger.warning("Dropped %d undelivered notification(s) on stop", len(unfinished))
                await asyncio.gather(*unfinished, return_exceptions=True)
        logger.info("Monitor stopped")
        raise
