"""Per-state step sequence: search, filter to friends, scan, prefill messages, go home."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional

from config import OutreachConfig, message_template
from progress import ProgressReporter
from surface import search_phrase
from waiting import RetrySpec, poll_until, retry


class TargetOutcome(Enum):
    COMPLETED = "completed"
    NO_MATCHES = "no_matches"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class PipelineResult:
    target: str
    outcome: TargetOutcome
    status: str
    messaged: int = 0

    @property
    def advances(self) -> bool:
        return self.outcome in (TargetOutcome.COMPLETED, TargetOutcome.NO_MATCHES)


class _StepFailed(Exception):
    def __init__(self, status: str):
        super().__init__(status)
        self.status = status


class _Cancelled(Exception):
    pass


class StepPipeline:
    """
    Runs every step for one target, strictly in order.

    Each lookup is retried with its own ``RetrySpec``. The first step that
    runs out of retries ends the target with a FAILED result instead of
    raising. The pipeline never sends a message: it only fills the composer
    and then waits for the operator to send or close the chat.
    """

    def __init__(
        self,
        surface,
        gate,
        reporter: ProgressReporter,
        config: OutreachConfig,
        *,
        template: Callable[[str], str] = message_template,
        cancelled: Optional[Callable[[], bool]] = None,
    ):
        self._surface = surface
        self._gate = gate
        self._reporter = reporter
        self._config = config
        self._selectors = config.selectors
        self._template = template
        self._cancelled = cancelled or (lambda: False)

    def run(self, target: str, *, has_next: bool) -> PipelineResult:
        try:
            field = self._locate_search_entry(target)
            self._supply_search_text(target, field)
            self._navigate_to_friends(target)
            matches = self._scan_results(target)
            if not matches:
                status = f"No friends living in {target} were found."
                self._reporter.set_status(status)
                self._advance(target, has_next)
                return PipelineResult(target, TargetOutcome.NO_MATCHES, status)
            for button in matches:
                self._message_match(target, button)
            status = f"Finished sending messages for {target}."
            self._reporter.set_status(status)
            self._advance(target, has_next)
            return PipelineResult(target, TargetOutcome.COMPLETED, status, messaged=len(matches))
        except _StepFailed as failure:
            self._reporter.set_status(failure.status)
            return PipelineResult(target, TargetOutcome.FAILED, failure.status)
        except _Cancelled:
            return PipelineResult(target, TargetOutcome.CANCELLED, f"Stopped while processing {target}.")

    # --- steps ---------------------------------------------------------

    def _locate_search_entry(self, target: str):
        self._reporter.set_status(f"Pasting text for {target}...")
        field = self._retry(
            lambda: self._surface.find_one(self._selectors.search_input),
            f"Looking for search box for {target}...",
        )
        if field is None:
            raise _StepFailed(f"Input not found for {target}")
        return field

    def _supply_search_text(self, target: str, field) -> None:
        phrase = search_phrase(target)
        submitted = False
        if not self._config.manual_search:
            submitted = self._type_search(field, phrase)
            if not submitted:
                print(f"  • Could not type the search for {target}; asking for a manual paste.")
        if not submitted:
            self._check_cancelled()
            self._surface.set_focus(field)
            if not self._gate.await_manual_search(target, field):
                self._check_cancelled()
                raise _StepFailed(f"Search for {target} was not completed")
        self._surface.pause(self._config.search_settle_ms)

    def _type_search(self, field, phrase: str) -> bool:
        self._surface.set_focus(field)
        if not self._surface.insert_text(field, phrase):
            return False
        confirmed = self._retry(lambda: phrase.lower() in self._surface.read_text(field).lower())
        if not confirmed:
            return False
        return self._surface.press_enter(field)

    def _navigate_to_friends(self, target: str) -> None:
        filters = (
            ("People", self._selectors.people_filter),
            ("Friends", self._selectors.friends_filter),
            ("My Friends", self._selectors.my_friends_filter),
        )
        for label, selector in filters:
            self._check_cancelled()
            clicked = self._retry(lambda: self._click_first(selector), f"Clicking {label} for {target}...")
            if not clicked:
                raise _StepFailed(f"Could not open the {label} filter for {target}")

    def _scan_results(self, target: str) -> List:
        self._reporter.set_status(f"Looking for Message buttons for {target}...")
        self._surface.pause(self._config.results_settle_ms)
        self._check_cancelled()

        container = self._surface.find_one(self._selectors.results_container)
        if container is None:
            raise _StepFailed(f"Search results not found for {target}")
        feed = self._surface.find_within(container, self._selectors.results_feed)
        if feed is None:
            raise _StepFailed(f"Feed not found for {target}")

        buttons = []
        for result in self._surface.query_all_results(feed):
            if not self._surface.matches_target(result, target):
                continue
            button = self._surface.find_within(result, self._selectors.message_button)
            if button is not None:
                buttons.append(button)
        print(f"  🔎 {len(buttons)} friend(s) in {target} with a Message button.")
        return buttons

    def _message_match(self, target: str, button) -> None:
        self._check_cancelled()
        if not self._surface.click(button):
            raise _StepFailed(f"Could not open a chat for {target}")
        self._surface.pause(self._config.composer_settle_ms)

        text = self._template(target)
        inserted = self._retry(
            lambda: self._fill_composer(text),
            f"Inserting message template for {target}...",
        )
        if not inserted:
            raise _StepFailed(f"Could not insert the message template for {target}")
        self._reporter.set_status(
            "Message template inserted. Either send this message or close the chat to move on."
        )

        closed = poll_until(
            lambda: self._surface.count_open_overlays() == 0,
            interval_ms=self._config.chat_poll_ms,
            pause=self._surface.pause,
            max_polls=self._config.chat_max_polls,
            cancelled=self._cancelled,
        )
        if not closed:
            self._check_cancelled()
            raise _StepFailed(f"Timed out waiting for the chat to close for {target}")
        self._reporter.set_status("Loading next message template...")

    def _advance(self, target: str, has_next: bool) -> None:
        if not has_next:
            return
        self._check_cancelled()
        went_home = self._retry(
            lambda: self._click_first(self._selectors.home_link),
            "Navigating back to homepage...",
        )
        if not went_home:
            # the next checkpoint waits for the operator anyway
            print(f"  • Could not navigate home after {target}; continuing from the current page.")

    # --- helpers -------------------------------------------------------

    def _fill_composer(self, text: str) -> bool:
        composer = self._surface.find_one(self._selectors.composer)
        return composer is not None and self._surface.insert_text(composer, text)

    def _click_first(self, selector: str) -> bool:
        handle = self._surface.find_one(selector)
        return handle is not None and self._surface.click(handle)

    def _retry(self, probe, status_message: Optional[str] = None):
        spec: RetrySpec = replace(self._config.lookup_retry, status_message=status_message)
        return retry(probe, spec, pause=self._surface.pause, report=self._reporter.set_status)

    def _check_cancelled(self) -> None:
        if self._cancelled():
            raise _Cancelled()
