"""
Fetch coordination for filter state changes.

The FetchCoordinator is a small state machine driven by state-change
notifications on the running asyncio loop:

- IDLE: nothing pending
- DEBOUNCING: waiting for a quiet period; every notification restarts it
- VALIDATING: the settled snapshot is checked by the validity predicate
- FETCHING: one fetch is in flight, retried up to a fixed bound

A newer state change cancels the in-flight fetch (latest wins). Results are
correlated with the request id they answer and discarded when stale.
Cancellation is never reported as a failure.
"""

import asyncio
import enum
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Union

from core.exceptions import ErrorKind, FetchFailure

from .state import Snapshot

logger = logging.getLogger(__name__)

Fetcher = Callable[[Snapshot], Union[Any, Awaitable[Any]]]
Validator = Callable[[Snapshot], bool]


class FetchPhase(enum.Enum):
    """Coordinator states."""
    IDLE = 'idle'
    DEBOUNCING = 'debouncing'
    VALIDATING = 'validating'
    FETCHING = 'fetching'


@dataclass(frozen=True)
class FetchRequest:
    """A state snapshot paired with its correlation id."""
    request_id: int
    snapshot: Snapshot


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one request: a payload or a terminal failure."""
    request_id: int
    payload: Any = None
    error: Optional[FetchFailure] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return None if self.error is None else ErrorKind.FETCH_FAILURE


def _is_async_callable(fetcher: Callable) -> bool:
    if inspect.iscoroutinefunction(fetcher):
        return True
    call = getattr(fetcher, '__call__', None)
    return call is not None and inspect.iscoroutinefunction(call)


async def call_fetcher(fetcher: Fetcher, snapshot: Snapshot) -> Any:
    """
    Invoke a fetch collaborator without blocking the loop.

    Coroutine functions are awaited directly; plain callables run in a
    worker thread.
    """
    if _is_async_callable(fetcher):
        return await fetcher(snapshot)
    result = await asyncio.to_thread(fetcher, snapshot)
    if inspect.isawaitable(result):
        result = await result
    return result


async def fetch_with_retry(
    fetcher: Fetcher,
    snapshot: Snapshot,
    max_attempts: int = 3,
    retry_delay: float = 0.0
) -> Tuple[Any, int]:
    """
    Run a fetch, retrying failures up to a fixed number of attempts.

    Args:
        fetcher: The fetch collaborator
        snapshot: State snapshot to fetch for
        max_attempts: Total attempts, including the first
        retry_delay: Seconds to wait between attempts

    Returns:
        Tuple of (payload, attempts used)

    Raises:
        FetchFailure: After the last attempt failed
        asyncio.CancelledError: If the surrounding task is cancelled
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Optional[Exception] = None
    for attempt in range(1, max_attempts + 1):
        try:
            payload = await call_fetcher(fetcher, snapshot)
            return payload, attempt
        except Exception as e:
            last_error = e
            logger.warning(f"Fetch attempt {attempt}/{max_attempts} failed: {e}")
            if attempt < max_attempts and retry_delay > 0:
                await asyncio.sleep(retry_delay)

    raise FetchFailure(
        f"Fetch failed after {max_attempts} attempt(s)",
        attempts=max_attempts,
        last_error=last_error
    )


class FetchCoordinator:
    """
    Debounces state changes, gates on validity and runs the latest fetch.

    Args:
        snapshot_provider: Returns the current state snapshot
        fetcher: The fetch collaborator
        is_valid: Validity predicate; None accepts every snapshot
        on_result: Receives each applied (non-stale) FetchResult
        on_settle: Receives the settled snapshot when a debounce window
            contained changes that must reach the wire
        debounce_seconds: Quiet period before acting
        max_attempts: Total fetch attempts per request
        retry_delay_seconds: Pause between attempts
    """

    def __init__(
        self,
        snapshot_provider: Callable[[], Snapshot],
        fetcher: Fetcher,
        is_valid: Optional[Validator] = None,
        on_result: Optional[Callable[[FetchResult], None]] = None,
        on_settle: Optional[Callable[[Snapshot], None]] = None,
        debounce_seconds: float = 0.3,
        max_attempts: int = 3,
        retry_delay_seconds: float = 0.0
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._snapshot_provider = snapshot_provider
        self._fetcher = fetcher
        self._is_valid = is_valid
        self._on_result = on_result
        self._on_settle = on_settle
        self.debounce_seconds = debounce_seconds
        self.max_attempts = max_attempts
        self.retry_delay_seconds = retry_delay_seconds

        self._phase = FetchPhase.IDLE
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._pending_push = False
        self._request_counter = 0
        self._latest_request_id: Optional[int] = None
        self._idle_waiters: List[asyncio.Future] = []
        self.closed = False

        self.last_request: Optional[FetchRequest] = None
        self.last_result: Optional[FetchResult] = None
        self.data: Any = None

    @property
    def phase(self) -> FetchPhase:
        return self._phase

    @property
    def is_loading(self) -> bool:
        return self._phase is FetchPhase.FETCHING

    @property
    def requests_issued(self) -> int:
        return self._request_counter

    def notify(self, push_wire: bool = True) -> None:
        """
        Report a state change; (re)starts the debounce window.

        Args:
            push_wire: Whether the change has to be projected to the wire
                once the window settles
        """
        if self.closed:
            logger.debug("Ignoring state change on closed coordinator")
            return

        if push_wire:
            self._pending_push = True

        if self._phase is FetchPhase.FETCHING:
            self._cancel_fetch("superseded by a newer state change")

        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self.debounce_seconds, self._on_debounce_elapsed)
        self._phase = FetchPhase.DEBOUNCING

    def trigger(self) -> None:
        """Settle immediately, skipping the debounce window"""
        if self.closed:
            return
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._settle()

    def close(self) -> None:
        """Cancel the timer and any in-flight fetch; ignore later changes"""
        self.closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._cancel_fetch("coordinator closed")
        self._pending_push = False
        self._enter_idle()

    async def wait_idle(self) -> None:
        """Wait until the coordinator is back in IDLE"""
        if self._phase is FetchPhase.IDLE:
            return
        waiter = asyncio.get_running_loop().create_future()
        self._idle_waiters.append(waiter)
        await waiter

    def _on_debounce_elapsed(self) -> None:
        self._timer = None
        logger.debug("Debounce window elapsed")
        self._settle()

    def _settle(self) -> None:
        snapshot = self._snapshot_provider()

        if self._pending_push:
            self._pending_push = False
            if self._on_settle is not None:
                try:
                    self._on_settle(snapshot)
                except Exception:
                    logger.exception("Wire push failed while settling state")

        self._phase = FetchPhase.VALIDATING
        if self._is_valid is not None:
            try:
                valid = self._is_valid(snapshot)
            except Exception:
                logger.exception("Validity check failed; treating filter state as invalid")
                valid = False
            if not valid:
                logger.info("Filter state is invalid; skipping fetch")
                self._enter_idle()
                return

        self._start_fetch(snapshot)

    def _start_fetch(self, snapshot: Snapshot) -> None:
        self._cancel_fetch("superseded by a newer request")

        self._request_counter += 1
        request = FetchRequest(request_id=self._request_counter, snapshot=snapshot)
        self._latest_request_id = request.request_id
        self.last_request = request
        self._phase = FetchPhase.FETCHING

        logger.debug(f"Issuing fetch request {request.request_id}")
        self._task = asyncio.get_running_loop().create_task(self._run(request))

    async def _run(self, request: FetchRequest) -> None:
        try:
            payload, attempts = await fetch_with_retry(
                self._fetcher,
                request.snapshot,
                max_attempts=self.max_attempts,
                retry_delay=self.retry_delay_seconds
            )
            result = FetchResult(request_id=request.request_id, payload=payload, attempts=attempts)
        except FetchFailure as failure:
            logger.error(f"Fetch request {request.request_id} failed: {failure}")
            result = FetchResult(request_id=request.request_id, error=failure, attempts=failure.attempts)
        except asyncio.CancelledError:
            logger.debug(f"Fetch request {request.request_id} cancelled")
            raise

        self._apply(result)

    def _apply(self, result: FetchResult) -> None:
        if result.request_id != self._latest_request_id:
            logger.debug(f"Discarding stale result for request {result.request_id}")
            return

        self._task = None
        self._latest_request_id = None
        self.last_result = result
        if result.ok:
            self.data = result.payload

        if self._on_result is not None:
            try:
                self._on_result(result)
            except Exception:
                logger.exception(f"Result handler failed for request {result.request_id}")

        self._enter_idle()

    def _cancel_fetch(self, reason: str) -> None:
        if self._task is not None and not self._task.done():
            logger.debug(f"Cancelling fetch request {self._latest_request_id}: {reason}")
            self._task.cancel()
        self._task = None
        self._latest_request_id = None

    def _enter_idle(self) -> None:
        if self._timer is not None:
            return
        self._phase = FetchPhase.IDLE
        waiters, self._idle_waiters = self._idle_waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
