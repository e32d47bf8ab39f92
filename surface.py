"""Snapshot reads and actions against the Facebook page.

Each call looks at the page as it is right now and reports success or failure
with a plain value; nothing in here retries. Retrying is left to ``waiting``
so every probe can be retried the same way.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from itertools import count
from pathlib import Path
from typing import Any, Callable, List, Optional

from playwright.sync_api import Error as PlaywrightError

from bridge import PageBridge
from config import Selectors


INSERT_TEXT_JS = """
(element, text) => {
    element.focus();
    if (element instanceof HTMLInputElement || element instanceof HTMLTextAreaElement) {
        element.select();
    } else {
        const range = document.createRange();
        range.selectNodeContents(element);
        range.collapse(true);
        const selection = window.getSelection();
        selection.removeAllRanges();
        selection.addRange(range);
    }
    const inserted = document.execCommand("insertText", false, text);
    element.dispatchEvent(new Event("input", { bubbles: true }));
    return inserted;
}
"""

READ_TEXT_JS = """
(element) => {
    if (element instanceof HTMLInputElement || element instanceof HTMLTextAreaElement) {
        return element.value || "";
    }
    return element.innerText || "";
}
"""

WATCH_FIELD_JS = """
(element, opts) => {
    const send = (kind, value) => window[opts.binding](opts.token, { kind, value });
    const onInput = () => send("input", element.value ?? element.innerText ?? "");
    const onKeydown = (event) => send("keydown", event.key);
    element.addEventListener("input", onInput);
    element.addEventListener("keydown", onKeydown);
    window.__stateOutreachWatchers = window.__stateOutreachWatchers || {};
    window.__stateOutreachWatchers[opts.token] = () => {
        element.removeEventListener("input", onInput);
        element.removeEventListener("keydown", onKeydown);
    };
}
"""

UNWATCH_FIELD_JS = """
(token) => {
    const watchers = window.__stateOutreachWatchers || {};
    if (watchers[token]) {
        watchers[token]();
        delete watchers[token];
    }
}
"""

COPY_TO_CLIPBOARD_JS = """
async (text) => {
    try {
        await navigator.clipboard.writeText(text);
        return true;
    } catch (error) {
        return false;
    }
}
"""


def search_phrase(target: str) -> str:
    """Exact text typed (or pasted) into the search box for ``target``."""
    return f"lives in {target}"


def lives_in_pattern(target: str) -> re.Pattern:
    return re.compile(rf"Lives in [^·]*,\s*{re.escape(target)}\b", re.IGNORECASE)


def lives_in_target(text: Optional[str], target: str) -> bool:
    """True when a search result's text says the person lives in ``target``."""
    if not text:
        return False
    return bool(lives_in_pattern(target).search(text))


def _slugify(value: str) -> str:
    tokens = re.findall(r"[a-z0-9]+", value.lower())
    return "_".join(tokens)[:60] or "capture"


class PlaywrightSurface:
    def __init__(
        self,
        page,
        selectors: Selectors,
        bridge: PageBridge,
        capture_dir: Optional[Path] = None,
    ):
        self.page = page
        self.selectors = selectors
        self._bridge = bridge
        self._capture_dir = Path(capture_dir) if capture_dir else None
        self._watch_ids = count(1)
        self._screenshot_ids = count(1)

    # --- lookups -------------------------------------------------------

    def find_one(self, selector: str):
        try:
            locator = self.page.locator(selector)
            if locator.count() == 0:
                return None
            return locator.first
        except PlaywrightError as exc:
            print(f"  • Lookup for {selector} failed: {exc}")
            return None

    def find_within(self, handle, selector: str):
        try:
            locator = handle.locator(selector)
            if locator.count() == 0:
                return None
            return locator.first
        except PlaywrightError as exc:
            print(f"  • Scoped lookup for {selector} failed: {exc}")
            return None

    def query_all_results(self, container) -> List[Any]:
        try:
            return container.locator(":scope > *").all()
        except PlaywrightError as exc:
            print(f"  • Could not enumerate search results: {exc}")
            return []

    def matches_target(self, result, target: str) -> bool:
        try:
            text = result.inner_text(timeout=2000)
        except PlaywrightError as exc:
            print(f"  • Could not read result text: {exc}")
            return False
        return lives_in_target(text, target)

    def count_open_overlays(self) -> int:
        try:
            return self.page.locator(self.selectors.chat_overlay).count()
        except PlaywrightError as exc:
            print(f"  • Could not count open chats: {exc}")
            return 0

    def read_text(self, handle) -> str:
        try:
            return handle.evaluate(READ_TEXT_JS) or ""
        except PlaywrightError as exc:
            print(f"  • Could not read field text: {exc}")
            return ""

    # --- actions -------------------------------------------------------

    def click(self, handle) -> bool:
        try:
            handle.click(timeout=5000)
            return True
        except PlaywrightError as exc:
            print(f"  • Click failed: {exc}")
            return False

    def set_focus(self, handle) -> bool:
        try:
            handle.focus(timeout=5000)
            return True
        except PlaywrightError as exc:
            print(f"  • Focus failed: {exc}")
            return False

    def insert_text(self, handle, text: str) -> bool:
        try:
            return bool(handle.evaluate(INSERT_TEXT_JS, text))
        except PlaywrightError as exc:
            print(f"  • Text insertion failed: {exc}")
            return False

    def press_enter(self, handle) -> bool:
        try:
            handle.press("Enter", timeout=2000)
            return True
        except PlaywrightError as exc:
            print(f"  • Enter key failed: {exc}")
            return False

    def copy_to_clipboard(self, text: str) -> bool:
        try:
            copied = bool(self.page.evaluate(COPY_TO_CLIPBOARD_JS, text))
        except PlaywrightError as exc:
            print(f"  • Failed to copy to clipboard: {exc}")
            return False
        if copied:
            print(f"  📋 Copied to clipboard: {text}")
        else:
            print("  • Clipboard write was rejected by the browser.")
        return copied

    def watch_field(self, handle, on_event: Callable[[str, Any], None]) -> Optional[Callable[[], None]]:
        """
        Forward ``input`` and ``keydown`` events from ``handle`` to ``on_event(kind, value)``.

        Returns a cleanup callable that removes the page listeners again, or
        None when the listeners could not be attached.
        """
        token = f"field-{next(self._watch_ids)}"

        def _forward(payload: Any) -> None:
            payload = payload or {}
            on_event(payload.get("kind", ""), payload.get("value"))

        unsubscribe = self._bridge.on(token, _forward)
        try:
            handle.evaluate(WATCH_FIELD_JS, {"binding": self._bridge.binding_name, "token": token})
        except PlaywrightError as exc:
            unsubscribe()
            print(f"  • Could not listen on the search box: {exc}")
            return None

        def cleanup() -> None:
            unsubscribe()
            try:
                self.page.evaluate(UNWATCH_FIELD_JS, token)
            except PlaywrightError as exc:
                print(f"  • Could not remove field listeners: {exc}")

        return cleanup

    def pause(self, ms: int) -> None:
        # lets Playwright dispatch page callbacks; raises once the page is gone
        self.page.wait_for_timeout(ms)

    def capture_screenshot(self, label: str) -> Optional[str]:
        if self._capture_dir is None:
            return None
        try:
            self._capture_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now(UTC).strftime("%Y%m%d-%H%M%S-%f")
            path = self._capture_dir / f"shot{next(self._screenshot_ids):02d}_{_slugify(label)}_{timestamp}.png"
            self.page.screenshot(path=str(path), full_page=True)
            return str(path)
        except (PlaywrightError, OSError) as exc:
            print(f"  • Screenshot failed: {exc}")
            return None
