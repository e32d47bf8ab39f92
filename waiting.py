"""Retry and polling helpers shared by every step of the outreach workflow.

Every surface interaction that might not have rendered yet goes through one of
these helpers instead of assuming the page is ready. None of them sleep on
their own: the caller passes ``pause`` (normally ``page.wait_for_timeout``) so
Playwright keeps dispatching page callbacks while we wait.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Set, TypeVar

T = TypeVar("T")

Pause = Callable[[int], None]


@dataclass(frozen=True)
class RetrySpec:
    retries: int = 5
    interval_ms: int = 500
    status_message: Optional[str] = None

    def __post_init__(self) -> None:
        # frozen, so clamp through object.__setattr__
        object.__setattr__(self, "retries", max(0, int(self.retries)))
        object.__setattr__(self, "interval_ms", max(0, int(self.interval_ms)))


def retry(
    probe: Callable[[], Optional[T]],
    spec: RetrySpec,
    *,
    pause: Pause,
    report: Optional[Callable[[str], None]] = None,
) -> Optional[T]:
    """
    Call ``probe`` until it returns something truthy or the retries run out.

    The probe runs at most ``spec.retries + 1`` times. A probe that raises is
    treated the same as one that returned a falsy value. The status message,
    when present, is reported once before the first attempt.
    """
    if spec.status_message and report:
        report(spec.status_message)

    remaining = spec.retries
    while True:
        try:
            result = probe()
            if result:
                return result
        except Exception as exc:
            print(f"  • Probe failed, will retry: {exc}")
        if remaining <= 0:
            return None
        pause(spec.interval_ms)
        remaining -= 1


def poll_until(
    condition: Callable[[], bool],
    *,
    interval_ms: int,
    pause: Pause,
    max_polls: Optional[int] = None,
    cancelled: Optional[Callable[[], bool]] = None,
) -> bool:
    """
    Poll ``condition`` every ``interval_ms`` until it holds.

    ``max_polls=None`` waits indefinitely. Returns False when the bound runs
    out or ``cancelled()`` turns true.
    """
    polls = 0
    while True:
        try:
            if condition():
                return True
        except Exception as exc:
            print(f"  • Poll check failed, will retry: {exc}")
        if cancelled is not None and cancelled():
            return False
        if max_polls is not None and polls >= max_polls:
            return False
        pause(interval_ms)
        polls += 1


class EventJoin:
    """Resolves once every named event has been seen at least once, in any order."""

    def __init__(self, names: Iterable[str]):
        self._expected: Set[str] = set(names)
        if not self._expected:
            raise ValueError("EventJoin needs at least one event name.")
        self._seen: Set[str] = set()
        self._cleanups: List[Callable[[], None]] = []
        self._closed = False

    def mark(self, name: str) -> None:
        if name in self._expected:
            self._seen.add(name)

    @property
    def seen(self) -> Set[str]:
        return set(self._seen)

    @property
    def satisfied(self) -> bool:
        return self._seen >= self._expected

    def add_cleanup(self, cleanup: Callable[[], None]) -> None:
        self._cleanups.append(cleanup)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        while self._cleanups:
            cleanup = self._cleanups.pop()
            try:
                cleanup()
            except Exception as exc:
                print(f"  • Listener cleanup failed: {exc}")

    def wait(
        self,
        *,
        interval_ms: int,
        pause: Pause,
        max_polls: Optional[int] = None,
        cancelled: Optional[Callable[[], bool]] = None,
    ) -> bool:
        try:
            return poll_until(
                lambda: self.satisfied,
                interval_ms=interval_ms,
                pause=pause,
                max_polls=max_polls,
                cancelled=cancelled,
            )
        finally:
            self.close()
