from __future__ import annotations

from typing import Callable, Dict, List, Optional

import pytest

from config import OutreachConfig, Selectors
from progress import ProgressReporter
from surface import lives_in_target
from waiting import RetrySpec

SELECTORS = Selectors()


class FakeElement:
    def __init__(
        self,
        name: str,
        *,
        text: str = "",
        children: Optional[Dict[str, "FakeElement"]] = None,
        results: Optional[List["FakeElement"]] = None,
        on_click: Optional[Callable[[], None]] = None,
        on_enter: Optional[Callable[[], None]] = None,
    ):
        self.name = name
        self.text = text
        self.value = ""
        self.children = dict(children or {})
        self.results = list(results or [])
        self.on_click = on_click
        self.on_enter = on_enter


class FakeSurface:
    """In-memory stand-in for the Facebook page with a virtual clock.

    ``pause`` advances the clock and runs anything scheduled for that tick,
    which is how tests play the operator's part.
    """

    MAX_PAUSES = 5000

    def __init__(self):
        self.elements: Dict[str, FakeElement] = {}
        self.overlays = 0
        self.clock_ms = 0
        self.pauses = 0
        self.actions: List[tuple] = []
        self.clipboard: Optional[str] = None
        self.clipboard_ok = True
        self.insert_ok = True
        self.watch_ok = True
        self.watchers: Dict[str, Callable] = {}
        self.screenshots: List[str] = []
        self.on_pause: List[Callable[[], None]] = []
        self._scheduled: List[tuple] = []

    # scripting helpers
    def schedule(self, after_pauses: int, action: Callable[[], None]) -> None:
        self._scheduled.append((self.pauses + after_pauses, action))

    def emit(self, name: str, kind: str, value) -> None:
        watcher = self.watchers.get(name)
        if watcher is not None:
            watcher(kind, value)

    def clicked(self) -> List[str]:
        return [action[1] for action in self.actions if action[0] == "click"]

    # surface API
    def pause(self, ms: int) -> None:
        self.clock_ms += ms
        self.pauses += 1
        if self.pauses > self.MAX_PAUSES:
            raise RuntimeError("fake surface stalled")
        due = [item for item in self._scheduled if item[0] <= self.pauses]
        self._scheduled = [item for item in self._scheduled if item[0] > self.pauses]
        for _, action in due:
            action()
        for hook in list(self.on_pause):
            hook()

    def find_one(self, selector: str):
        return self.elements.get(selector)

    def find_within(self, handle, selector: str):
        return handle.children.get(selector)

    def query_all_results(self, container):
        return list(container.results)

    def matches_target(self, result, target: str) -> bool:
        return lives_in_target(result.text, target)

    def count_open_overlays(self) -> int:
        return self.overlays

    def read_text(self, handle) -> str:
        return handle.value

    def click(self, handle) -> bool:
        self.actions.append(("click", handle.name))
        if handle.on_click:
            handle.on_click()
        return True

    def set_focus(self, handle) -> bool:
        self.actions.append(("focus", handle.name))
        return True

    def insert_text(self, handle, text: str) -> bool:
        self.actions.append(("insert", handle.name, text))
        if not self.insert_ok:
            return False
        handle.value = text
        return True

    def press_enter(self, handle) -> bool:
        self.actions.append(("enter", handle.name))
        if handle.on_enter:
            handle.on_enter()
        return True

    def copy_to_clipboard(self, text: str) -> bool:
        self.actions.append(("copy", text))
        if self.clipboard_ok:
            self.clipboard = text
        return self.clipboard_ok

    def watch_field(self, handle, on_event):
        self.actions.append(("watch", handle.name))
        if not self.watch_ok:
            return None
        self.watchers[handle.name] = on_event

        def cleanup() -> None:
            self.watchers.pop(handle.name, None)
            self.actions.append(("unwatch", handle.name))

        return cleanup

    def capture_screenshot(self, label: str):
        self.screenshots.append(label)
        return None


class FakeControl:
    def __init__(self, auto_approve: bool = False):
        self.auto_approve = auto_approve
        self.requested = False
        self.shown: List[tuple] = []
        self.hidden = 0

    def click(self) -> None:
        self.requested = True

    def show_continue(self, enabled: bool, reason: Optional[str] = None) -> None:
        self.shown.append((enabled, reason))
        if enabled and self.auto_approve:
            self.requested = True

    def hide_continue(self) -> None:
        self.hidden += 1

    def take_continue_request(self) -> bool:
        requested = self.requested
        self.requested = False
        return requested


class FakeGate:
    def __init__(self, approve: bool = True, manual_ok: bool = True):
        self.approve = approve
        self.manual_ok = manual_ok
        self.presented: List[str] = []
        self.manual_searches: List[str] = []

    def present(self, target: str) -> bool:
        self.presented.append(target)
        return self.approve

    def await_manual_search(self, target: str, field) -> bool:
        self.manual_searches.append(target)
        return self.manual_ok


def build_facebook(surface: FakeSurface, friends_by_state: Dict[str, List[str]], *, chat_open_pauses: int = 3):
    """Wire up a search box, the three filters, a home link and per-state results.

    ``friends_by_state`` maps a state to the "Lives in ..." lines shown in the
    result list once that state is searched. Clicking a Message button opens
    a chat that the "operator" closes ``chat_open_pauses`` ticks later.
    """
    state = {"results": 0}

    def close_chat() -> None:
        surface.overlays = max(0, surface.overlays - 1)
        surface.elements.pop(SELECTORS.composer, None)

    def open_chat() -> None:
        surface.overlays += 1
        surface.elements[SELECTORS.composer] = FakeElement("composer")
        surface.schedule(chat_open_pauses, close_chat)

    def show_results() -> None:
        searched = search.value.replace("lives in ", "", 1)
        entries = []
        for line in friends_by_state.get(searched, []):
            state["results"] += 1
            idx = state["results"]
            entries.append(
                FakeElement(
                    f"result-{idx}",
                    text=f"Friend {idx}\n{line}",
                    children={SELECTORS.message_button: FakeElement(f"message-{idx}", on_click=open_chat)},
                )
            )
        feed = FakeElement("feed", results=entries)
        surface.elements[SELECTORS.results_container] = FakeElement(
            "results", children={SELECTORS.results_feed: feed}
        )

    def go_home() -> None:
        surface.elements.pop(SELECTORS.results_container, None)
        search.value = ""

    search = FakeElement("search", on_enter=show_results)
    surface.elements[SELECTORS.search_input] = search
    surface.elements[SELECTORS.people_filter] = FakeElement("people")
    surface.elements[SELECTORS.friends_filter] = FakeElement("friends")
    surface.elements[SELECTORS.my_friends_filter] = FakeElement("my-friends")
    surface.elements[SELECTORS.home_link] = FakeElement("home", on_click=go_home)
    return search


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def fast_config() -> Callable[..., OutreachConfig]:
    def _make(targets=("Nevada", "Arizona"), **overrides) -> OutreachConfig:
        overrides.setdefault("lookup_retry", RetrySpec(retries=2, interval_ms=10))
        overrides.setdefault("chat_max_polls", 50)
        return OutreachConfig(targets=tuple(targets), **overrides)

    return _make


@pytest.fixture
def reporter_log():
    """Reporter plus the list of statuses it rendered, in order."""

    def _make(targets=("Nevada", "Arizona")):
        statuses: List[str] = []
        reporter = ProgressReporter(targets, render=lambda snap: statuses.append(snap.status))
        return reporter, statuses

    return _make
