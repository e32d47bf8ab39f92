"""Human checkpoints: the Continue gate and the manual paste + Enter rendezvous."""

from __future__ import annotations

from typing import Any, Callable, Optional

from progress import ProgressReporter
from surface import search_phrase
from waiting import EventJoin, poll_until

BLOCKED_REASON = "Close all chats to continue"
CLIPBOARD_FAILED = "Failed to copy to clipboard. Please try again."
PASTE_INSTRUCTIONS = (
    "Your clipboard now has the necessary search term. Please tap CMD+V for MacOS, "
    "or CTRL+V for Windows to paste it, and then hit Enter."
)


class CheckpointGate:
    """
    Blocks the workflow until the operator clicks Continue with no chats open.

    ``control`` is the on-page button (``panel.StatusPanel`` in a real run); it
    must offer ``show_continue``, ``hide_continue`` and ``take_continue_request``.
    """

    def __init__(
        self,
        surface,
        control,
        reporter: ProgressReporter,
        *,
        poll_ms: int = 500,
        max_polls: Optional[int] = None,
        search_poll_ms: int = 250,
        search_max_polls: Optional[int] = None,
        cancelled: Optional[Callable[[], bool]] = None,
    ):
        self._surface = surface
        self._control = control
        self._reporter = reporter
        self._poll_ms = poll_ms
        self._max_polls = max_polls
        self._search_poll_ms = search_poll_ms
        self._search_max_polls = search_max_polls
        self._cancelled = cancelled or (lambda: False)

    def present(self, target: str) -> bool:
        """
        Wait for an explicit Continue click made while no chats are open.

        On the accepted click the search phrase is staged on the clipboard.
        Returns False only when cancelled or when the poll bound runs out.
        """
        self._reporter.set_status(
            f"This script is about to search for friends in {target} and autopopulate message "
            "templates... It will be up to you to actually send the messages. Ready?"
        )
        # stale clicks from an earlier checkpoint don't count
        self._control.take_continue_request()

        def _approved() -> bool:
            blocked = self._surface.count_open_overlays() > 0
            self._control.show_continue(not blocked, BLOCKED_REASON if blocked else None)
            if not self._control.take_continue_request():
                return False
            if blocked:
                print("  • Continue ignored while chats are open.")
                return False
            return self._stage_clipboard(target)

        try:
            approved = poll_until(
                _approved,
                interval_ms=self._poll_ms,
                pause=self._surface.pause,
                max_polls=self._max_polls,
                cancelled=self._cancelled,
            )
        finally:
            self._control.hide_continue()

        if not approved and not self._cancelled():
            self._reporter.set_status(f"Stopped waiting for approval to search {target}.")
        return approved

    def await_manual_search(self, target: str, field) -> bool:
        """
        Wait until the operator has pasted the search phrase and pressed Enter.

        Both have to happen, in either order; one without the other never
        resolves.
        """
        expected = search_phrase(target)
        self._reporter.set_status(PASTE_INSTRUCTIONS)

        join = EventJoin(("paste", "enter"))

        def on_event(kind: str, value: Any) -> None:
            if kind == "input" and expected in str(value or ""):
                join.mark("paste")
            elif kind == "keydown" and value == "Enter":
                join.mark("enter")

        cleanup = self._surface.watch_field(field, on_event)
        if cleanup is None:
            return False
        join.add_cleanup(cleanup)
        done = join.wait(
            interval_ms=self._search_poll_ms,
            pause=self._surface.pause,
            max_polls=self._search_max_polls,
            cancelled=self._cancelled,
        )
        if not done and not self._cancelled():
            missing = {"paste", "enter"} - join.seen
            print(f"  • Manual search for {target} timed out waiting for: {', '.join(sorted(missing))}")
        return done

    def _stage_clipboard(self, target: str) -> bool:
        if self._surface.copy_to_clipboard(search_phrase(target)):
            return True
        self._reporter.set_status(CLIPBOARD_FAILED)
        return False
