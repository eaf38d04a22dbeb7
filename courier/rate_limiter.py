"""
Per-requester and global cooldowns for backup deliveries.

A request is first admitted, then committed once its delivery succeeded, or
released when it failed. Only a commit records timestamps, so failures never
burn a requester's window. While an admission is outstanding it holds the
slots it would consume, which keeps two racing requests from both getting in.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Hashable, Iterator, List, Optional, Set, Tuple

from courier.exceptions import CooldownActiveError

logger = logging.getLogger(__name__)

REASON_USER = "user"
REASON_GLOBAL = "global"
REASON_IN_PROGRESS = "in_progress"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=False)
class Admission:
    """
    Ticket for an admitted request. Settle it with commit() or release().
    """
    requester_id: Hashable
    admitted_at: datetime


class RateLimiter:
    """
    Thread-safe cooldown bookkeeping.

    Created once at startup and handed to the delivery service; state lives
    for the lifetime of the process.
    """

    def __init__(
        self,
        user_cooldown: timedelta,
        global_cooldown: timedelta,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize rate limiter.

        Args:
            user_cooldown: Minimum interval between deliveries for one requester
            global_cooldown: Minimum interval between any two deliveries
            clock: Source of the current time when callers pass none
        """
        self.user_cooldown = user_cooldown
        self.global_cooldown = global_cooldown
        self._clock = clock
        self._lock = threading.Lock()
        self._last_by_requester: Dict[Hashable, datetime] = {}
        self._last_global: Optional[datetime] = None
        self._pending: Set[Admission] = set()

    def try_admit(self, requester_id: Hashable, now: Optional[datetime] = None) -> Admission:
        """
        Admit a request or raise with the time left to wait.

        Args:
            requester_id: Identity of the requester
            now: Evaluation time (defaults to the clock)

        Returns:
            Admission ticket that must be committed or released

        Raises:
            CooldownActiveError: If a cooldown window is still open, or another
                admission holds a slot this request needs
        """
        if now is None:
            now = self._clock()

        with self._lock:
            blocking = self._blocking_windows(requester_id, now)
            if blocking:
                reason, retry_after = max(blocking, key=lambda w: w[1])
                logger.info(
                    f"Denied delivery for requester {requester_id}: {reason} cooldown, "
                    f"{int(retry_after.total_seconds())}s left"
                )
                raise CooldownActiveError(reason, retry_after)

            if self._slot_taken(requester_id):
                logger.info(f"Denied delivery for requester {requester_id}: another delivery in progress")
                raise CooldownActiveError(REASON_IN_PROGRESS, timedelta(0))

            admission = Admission(requester_id=requester_id, admitted_at=now)
            self._pending.add(admission)

        logger.debug(f"Admitted delivery for requester {requester_id}")
        return admission

    def commit(self, admission: Admission, now: Optional[datetime] = None) -> None:
        """
        Record a successful delivery and free the admission's slots.

        Timestamps only move forward, so a late commit carrying an older time
        cannot reopen a window.

        Raises:
            ValueError: If the admission was already committed or released
        """
        if now is None:
            now = self._clock()

        with self._lock:
            if admission not in self._pending:
                raise ValueError("Admission was already settled")
            self._pending.discard(admission)

            requester_id = admission.requester_id
            previous = self._last_by_requester.get(requester_id)
            self._last_by_requester[requester_id] = now if previous is None else max(previous, now)
            self._last_global = now if self._last_global is None else max(self._last_global, now)

        logger.info(f"Committed delivery for requester {requester_id}")

    def release(self, admission: Admission) -> None:
        """Drop an admission without recording a delivery. Safe to call twice."""
        with self._lock:
            released = admission in self._pending
            self._pending.discard(admission)
        if released:
            logger.debug(f"Released admission for requester {admission.requester_id}")

    @contextmanager
    def admitted(self, requester_id: Hashable, now: Optional[datetime] = None) -> Iterator[Admission]:
        """
        Admit for the duration of a block: commit on normal exit, release on error.
        """
        admission = self.try_admit(requester_id, now)
        try:
            yield admission
        except BaseException:
            self.release(admission)
            raise
        self.commit(admission)

    def remaining(self, requester_id: Hashable, now: Optional[datetime] = None) -> Optional[Tuple[str, timedelta]]:
        """
        Report the longest open window for a requester without reserving anything.

        Returns:
            (reason, time left) or None when a request would pass the cooldown check
        """
        if now is None:
            now = self._clock()
        with self._lock:
            blocking = self._blocking_windows(requester_id, now)
        if not blocking:
            return None
        return max(blocking, key=lambda w: w[1])

    def _blocking_windows(self, requester_id: Hashable, now: datetime) -> List[Tuple[str, timedelta]]:
        blocking = []
        user_left = self._time_left(self._last_by_requester.get(requester_id), self.user_cooldown, now)
        if user_left > timedelta(0):
            blocking.append((REASON_USER, user_left))
        global_left = self._time_left(self._last_global, self.global_cooldown, now)
        if global_left > timedelta(0):
            blocking.append((REASON_GLOBAL, global_left))
        return blocking

    def _slot_taken(self, requester_id: Hashable) -> bool:
        if self.global_cooldown > timedelta(0) and self._pending:
            return True
        if self.user_cooldown > timedelta(0):
            return any(a.requester_id == requester_id for a in self._pending)
        return False

    @staticmethod
    def _time_left(last: Optional[datetime], cooldown: timedelta, now: datetime) -> timedelta:
        if last is None or cooldown <= timedelta(0):
            return timedelta(0)
        return max(cooldown - (now - last), timedelta(0))
