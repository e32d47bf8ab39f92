"""Single page → Python callback channel.

Playwright only lets a binding name be exposed once per page, so the panel
button and the search field listeners share one binding and are told apart by
a channel name.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

BINDING_NAME = "__stateOutreachEvent"

Handler = Callable[[Any], None]


class PageBridge:
    def __init__(self, page):
        self._handlers: Dict[str, Handler] = {}
        page.expose_binding(BINDING_NAME, self._dispatch)

    @property
    def binding_name(self) -> str:
        return BINDING_NAME

    def on(self, channel: str, handler: Handler) -> Callable[[], None]:
        """Route events for ``channel`` to ``handler``. Returns an unsubscribe callable."""
        self._handlers[channel] = handler

        def unsubscribe() -> None:
            if self._handlers.get(channel) is handler:
                del self._handlers[channel]

        return unsubscribe

    def _dispatch(self, source, channel: str, payload: Any = None) -> None:
        handler = self._handlers.get(channel)
        if handler is None:
            # listener already torn down; late events are expected during navigation
            return
        try:
            handler(payload)
        except Exception as exc:
            print(f"  • Page event handler for '{channel}' failed: {exc}")
