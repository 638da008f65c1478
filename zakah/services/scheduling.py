"""Request coalescing for rate-dependent recomputation.

Two policies sit between a caller that fires on every keystroke and the
calculator:

    Debouncer            - only the last request in a quiet window runs
    SingleSlotSupervisor - at most one request in flight; others are rejected

SessionSupervisors and ConversionSessions hold one of each per caller
session, so separate users never throttle one another.

Both assume a single asyncio event loop. A check-and-set with no ``await``
in between is atomic there, so no locks are used.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Set, TypeVar

from zakah.core.config import get_settings
from zakah.core.errors import InvalidDateError, InvalidInputError, RequestRejected
from zakah.models.hijri import HijriDate
from zakah.models.wealth import CashConversion
from zakah.services.zakah_calculator import ZakahCalculator, get_calculator

logger = logging.getLogger("zakah.scheduling")

T = TypeVar("T")

DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_MAX_SESSIONS = 1024


class SingleSlotSupervisor:
    """Runs one request at a time and rejects the rest without waiting.

    A rejected request is not queued, and the running one is not cancelled.
    """

    def __init__(self, name: str = "request"):
        self.name = name
        self._busy = False
        self.accepted = 0
        self.rejected = 0

    @property
    def busy(self) -> bool:
        return self._busy

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        if self._busy:
            self.rejected += 1
            raise RequestRejected(f"{self.name} already in progress")
        self._busy = True
        self.accepted += 1
        try:
            return await factory()
        finally:
            self._busy = False


class SessionSupervisors:
    """One ``SingleSlotSupervisor`` per caller session.

    Requests from different sessions never block each other. A slot is
    created on first use and dropped again once it is idle, so the map only
    holds sessions with a request in flight.
    """

    def __init__(self, name: str = "request"):
        self.name = name
        self._slots: Dict[str, SingleSlotSupervisor] = {}

    def slot(self, session_id: str) -> SingleSlotSupervisor:
        supervisor = self._slots.get(session_id)
        if supervisor is None:
            supervisor = self._slots[session_id] = SingleSlotSupervisor(self.name)
        return supervisor

    def busy(self, session_id: str) -> bool:
        supervisor = self._slots.get(session_id)
        return supervisor is not None and supervisor.busy

    def __len__(self) -> int:
        return len(self._slots)

    async def run(self, session_id: str, factory: Callable[[], Awaitable[T]]) -> T:
        supervisor = self.slot(session_id)
        try:
            return await supervisor.run(factory)
        finally:
            if not supervisor.busy and self._slots.get(session_id) is supervisor:
                del self._slots[session_id]


class Debouncer:
    """Delays ``callback`` until ``delay`` seconds pass without a new trigger.

    Each ``trigger`` replaces the pending arguments and restarts the timer.
    Once the callback has started it runs to completion even if new triggers
    arrive; those arm a fresh timer.
    """

    def __init__(self, delay: float, callback: Callable[..., Awaitable[Any]]):
        if delay < 0:
            raise ValueError("debounce delay cannot be negative")
        self._delay = delay
        self._callback = callback
        self._timer: Optional[asyncio.Task] = None
        self._running: Set[asyncio.Task] = set()
        self.triggered = 0
        self.fired = 0

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        self.triggered += 1
        if self.pending:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._fire(args, kwargs))

    def cancel(self) -> None:
        if self.pending:
            self._timer.cancel()

    async def _fire(self, args: tuple, kwargs: dict) -> None:
        await asyncio.sleep(self._delay)
        self.fired += 1
        # Separate task so a later trigger only ever cancels the sleep above
        task = asyncio.get_running_loop().create_task(self._callback(*args, **kwargs))
        self._running.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task) -> None:
        self._running.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("debounced callback failed: %s", exc, exc_info=exc)

    async def wait(self) -> None:
        """Wait until no timer is pending and every started callback has finished."""
        while self.pending or self._running:
            await asyncio.wait({self._timer} if self.pending else set(self._running))


class ConversionSession:
    """Live cash conversion for one user session.

    Rapid input changes are debounced, and a conversion that would overlap
    one still running is dropped. ``latest`` holds the most recent result.
    """

    def __init__(
        self,
        calculator: ZakahCalculator,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        supervisor: Optional[SingleSlotSupervisor] = None,
    ):
        self._calculator = calculator
        self._supervisor = supervisor or SingleSlotSupervisor("cash conversion")
        self._debouncer = Debouncer(debounce_seconds, self._convert)
        self.latest: Optional[CashConversion] = None
        self.last_error: Optional[Exception] = None
        self.dropped = 0

    @property
    def supervisor(self) -> SingleSlotSupervisor:
        return self._supervisor

    @property
    def debounce_seconds(self) -> float:
        return self._debouncer.delay

    @property
    def pending(self) -> bool:
        return self._debouncer.pending or self._supervisor.busy

    def update(
        self,
        cash_by_currency: Mapping[str, Any],
        target_currency: Optional[str],
        value_date: Optional[HijriDate],
    ) -> None:
        self._debouncer.trigger(dict(cash_by_currency), target_currency, value_date)

    async def _convert(
        self,
        cash_by_currency: Mapping[str, Any],
        target_currency: Optional[str],
        value_date: Optional[HijriDate],
    ) -> None:
        try:
            result = await self._supervisor.run(
                lambda: self._calculator.preview_cash(cash_by_currency, target_currency, value_date)
            )
        except RequestRejected:
            self.dropped += 1
            logger.debug("cash conversion dropped: previous conversion still running")
            return
        except (InvalidInputError, InvalidDateError) as e:
            self.last_error = e
            logger.info("cash conversion skipped: %s", e)
            return
        self.latest = result
        self.last_error = None

    async def wait(self) -> None:
        await self._debouncer.wait()

    def close(self) -> None:
        self._debouncer.cancel()


def build_conversion_session(
    calculator: Optional[ZakahCalculator] = None, debounce_seconds: Optional[float] = None
) -> ConversionSession:
    """New session wired to the configured calculator and debounce window."""
    if debounce_seconds is None:
        debounce_seconds = get_settings().debounce_seconds
    return ConversionSession(calculator or get_calculator(), debounce_seconds=debounce_seconds)


class ConversionSessions:
    """Live conversion sessions keyed by caller session id.

    The least recently used session is closed and dropped once more than
    ``max_sessions`` are open.
    """

    def __init__(
        self,
        calculator: Optional[ZakahCalculator] = None,
        debounce_seconds: Optional[float] = None,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ):
        self._calculator = calculator
        self._debounce_seconds = debounce_seconds
        self._max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ConversionSession]" = OrderedDict()

    def get(self, session_id: str) -> ConversionSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = build_conversion_session(self._calculator, self._debounce_seconds)
            self._sessions[session_id] = session
            while len(self._sessions) > self._max_sessions:
                evicted_id, evicted = self._sessions.popitem(last=False)
                evicted.close()
                logger.debug("conversion session %s evicted", evicted_id)
        else:
            self._sessions.move_to_end(session_id)
        return session

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
