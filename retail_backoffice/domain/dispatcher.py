"""Observer registry that fans lifecycle events out to collaborators"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Dict, List, Optional

from retail_backoffice.domain.events import Event

logger = logging.getLogger(__name__)

FailureHook = Callable[[object, Event, BaseException], None]


def observer_name(observer: object) -> str:
    return getattr(observer, "name", type(observer).__name__)


class EventDispatcher:
    """
    Delivers events synchronously, in registration order.

    - register/unregister mutate the observer list under a lock
    - notify copies the list under the lock and calls observers with the lock released,
      so observers may register or notify re-entrantly
    - an observer that raises or overruns its time budget is logged and skipped;
      the caller never sees the failure

    With a budget, every observer owns a single-worker lane: its hooks run one at
    a time in delivery order, so a hook abandoned after its budget still finishes
    before that observer sees its next event. A notify issued from inside a hook
    runs inline on that hook's thread and counts against the calling hook's budget.

    Args:
        timeout_seconds: Per-observer execution budget. 0 or None runs hooks inline.
        on_failure: Extra callback for failed deliveries (metrics)
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        on_failure: Optional[FailureHook] = None,
    ):
        self._observers: List[object] = []
        self._lanes: Dict[int, ThreadPoolExecutor] = {}
        self._lock = threading.Lock()
        self._timeout = timeout_seconds or None
        self._on_failure = on_failure
        self._local = threading.local()

    def register(self, observer: object) -> None:
        with self._lock:
            self._observers.append(observer)
            if self._timeout and id(observer) not in self._lanes:
                self._lanes[id(observer)] = ThreadPoolExecutor(
                    max_workers=1,
                    thread_name_prefix=f"observer-{observer_name(observer)}",
                )

    def unregister(self, observer: object) -> bool:
        with self._lock:
            try:
                self._observers.remove(observer)
            except ValueError:
                return False
            if observer not in self._observers:
                lane = self._lanes.pop(id(observer), None)
                if lane is not None:
                    lane.shutdown(wait=False)
            return True

    def observer_count(self) -> int:
        with self._lock:
            return len(self._observers)

    def observer_names(self) -> List[str]:
        with self._lock:
            return [observer_name(o) for o in self._observers]

    def notify(self, event: Event) -> int:
        """
        Deliver an event to every observer implementing its interface.

        Returns:
            Number of observers that handled the event successfully
        """
        with self._lock:
            snapshot = [(o, self._lanes.get(id(o))) for o in self._observers]

        delivered = 0
        for observer, lane in snapshot:
            if not isinstance(observer, event.observer_type):
                continue
            if self._deliver(observer, lane, event):
                delivered += 1
        return delivered

    def shutdown(self) -> None:
        with self._lock:
            lanes = list(self._lanes.values())
            self._lanes.clear()
        for lane in lanes:
            lane.shutdown(wait=False)

    def _deliver(self, observer: object, lane: Optional[ThreadPoolExecutor], event: Event) -> bool:
        hook = getattr(observer, event.hook)
        try:
            if lane is None or getattr(self._local, "in_hook", False):
                hook(event)
            else:
                lane.submit(self._run_hook, hook, event).result(timeout=self._timeout)
            return True
        except FutureTimeoutError as e:
            logger.error(
                "Observer exceeded its time budget; hook abandoned and may still complete",
                extra={
                    "observer": observer_name(observer),
                    "event": event.name,
                    "timeout_seconds": self._timeout,
                },
            )
            self._report(observer, event, e)
        except Exception as e:
            logger.exception(
                "Observer failed",
                extra={"observer": observer_name(observer), "event": event.name},
            )
            self._report(observer, event, e)
        return False

    def _run_hook(self, hook: Callable[[Event], None], event: Event) -> None:
        self._local.in_hook = True
        try:
            hook(event)
        finally:
            self._local.in_hook = False

    def _report(self, observer: object, event: Event, error: BaseException) -> None:
        if self._on_failure is None:
            return
        try:
            self._on_failure(observer, event, error)
        except Exception:
            logger.exception("Failure hook raised", extra={"event": event.name})
