"""On-page status panel: target labels, progress bar, status line, Continue button."""

from __future__ import annotations

from typing import Optional

from playwright.sync_api import Error as PlaywrightError

from bridge import PageBridge
from progress import ProgressSnapshot

CONTINUE_CHANNEL = "continue"

RENDER_PANEL_JS = """
(data) => {
    const byId = (id) => document.getElementById(id);
    let container = byId("statusContainer");
    if (!container) {
        container = document.createElement("div");
        container.id = "statusContainer";
        Object.assign(container.style, {
            position: "fixed",
            bottom: "20px",
            left: "50%",
            transform: "translateX(-50%)",
            backgroundColor: "#f4f6f9",
            border: "1px solid #bbb",
            padding: "15px 20px",
            zIndex: "1000",
            borderRadius: "10px",
            boxShadow: "0px 4px 20px rgba(0, 0, 0, 0.2)",
            display: "flex",
            flexDirection: "column",
            alignItems: "center",
            minWidth: "400px",
            maxWidth: "500px",
        });
        document.body.appendChild(container);
    }

    let labels = byId("stateLabelsContainer");
    if (!labels) {
        labels = document.createElement("div");
        labels.id = "stateLabelsContainer";
        Object.assign(labels.style, {
            display: "flex",
            justifyContent: "space-between",
            width: "100%",
            marginBottom: "10px",
        });
        data.targets.forEach((target) => {
            const label = document.createElement("span");
            label.innerText = target;
            Object.assign(label.style, { flex: "1", textAlign: "center", fontSize: "11px" });
            labels.appendChild(label);
        });
        container.appendChild(labels);
    }
    labels.querySelectorAll("span").forEach((label, index) => {
        const active = index === data.index;
        label.style.fontWeight = active ? "bold" : "normal";
        label.style.color = active ? "#007bff" : "#555";
    });

    let track = byId("progressBarContainer");
    if (!track) {
        track = document.createElement("div");
        track.id = "progressBarContainer";
        Object.assign(track.style, {
            width: "100%",
            height: "15px",
            backgroundColor: "#e0e0e0",
            borderRadius: "7px",
            marginBottom: "10px",
            overflow: "hidden",
        });
        const bar = document.createElement("div");
        bar.id = "progressBar";
        Object.assign(bar.style, { width: "0%", height: "100%", backgroundColor: "#007bff" });
        track.appendChild(bar);
        container.appendChild(track);
    }
    byId("progressBar").style.width = `${data.percent}%`;

    let headline = byId("stateLabel");
    if (!headline) {
        headline = document.createElement("p");
        headline.id = "stateLabel";
        Object.assign(headline.style, {
            margin: "0",
            marginBottom: "10px",
            fontSize: "14px",
            fontWeight: "bold",
            color: "#333",
        });
        container.appendChild(headline);
    }
    headline.innerText = data.headline;

    let status = byId("statusText");
    if (!status) {
        status = document.createElement("p");
        status.id = "statusText";
        Object.assign(status.style, { margin: "0", fontSize: "14px", color: "#555" });
        container.appendChild(status);
    }
    status.innerText = data.status;
}
"""

SHOW_CONTINUE_JS = """
(data) => {
    const container = document.getElementById("statusContainer");
    if (!container) {
        return false;
    }
    let warning = document.getElementById("chatWarning");
    if (!warning) {
        warning = document.createElement("p");
        warning.id = "chatWarning";
        Object.assign(warning.style, {
            margin: "5px 0",
            fontSize: "11px",
            fontWeight: "bold",
            color: "grey",
            display: "none",
        });
        container.appendChild(warning);
    }
    let button = document.getElementById("continueButton");
    if (!button) {
        button = document.createElement("button");
        button.id = "continueButton";
        button.innerText = "Continue";
        Object.assign(button.style, {
            marginTop: "10px",
            padding: "8px 20px",
            borderRadius: "5px",
            border: "none",
            color: "white",
        });
        button.onclick = () => {
            if (!button.disabled) {
                window[data.binding](data.channel, null);
            }
        };
        container.appendChild(button);
    }
    button.disabled = !data.enabled;
    button.style.backgroundColor = data.enabled ? "#007bff" : "#d3d3d3";
    button.style.cursor = data.enabled ? "pointer" : "not-allowed";
    warning.innerText = data.reason || "";
    warning.style.display = data.enabled ? "none" : "block";
    return true;
}
"""

HIDE_CONTINUE_JS = """
() => {
    for (const id of ["continueButton", "chatWarning"]) {
        const element = document.getElementById(id);
        if (element) {
            element.remove();
        }
    }
}
"""


class StatusPanel:
    """
    Draws engine state into the page and relays Continue clicks back to Python.

    Rendering is best effort: a navigation can wipe the panel at any time, so
    each call rebuilds whatever is missing and failures are only printed.
    """

    def __init__(self, page, bridge: PageBridge):
        self.page = page
        self._bridge = bridge
        self._continue_requested = False
        self._last_snapshot: Optional[ProgressSnapshot] = None
        bridge.on(CONTINUE_CHANNEL, self._on_continue)

    def render(self, snapshot: ProgressSnapshot) -> None:
        self._last_snapshot = snapshot
        payload = {
            "targets": list(snapshot.targets),
            "index": snapshot.current_index,
            "percent": snapshot.percent,
            "headline": snapshot.headline,
            "status": snapshot.status,
        }
        try:
            self.page.evaluate(RENDER_PANEL_JS, payload)
        except PlaywrightError as exc:
            print(f"  • Could not draw status panel: {exc}")

    def show_continue(self, enabled: bool, reason: Optional[str] = None) -> None:
        payload = {
            "enabled": enabled,
            "reason": reason,
            "binding": self._bridge.binding_name,
            "channel": CONTINUE_CHANNEL,
        }
        try:
            drawn = self.page.evaluate(SHOW_CONTINUE_JS, payload)
            if not drawn and self._last_snapshot is not None:
                # page navigated and took the panel with it
                self.render(self._last_snapshot)
                self.page.evaluate(SHOW_CONTINUE_JS, payload)
        except PlaywrightError as exc:
            print(f"  • Could not draw Continue button: {exc}")

    def hide_continue(self) -> None:
        try:
            self.page.evaluate(HIDE_CONTINUE_JS)
        except PlaywrightError as exc:
            print(f"  • Could not remove Continue button: {exc}")

    def take_continue_request(self) -> bool:
        requested = self._continue_requested
        self._continue_requested = False
        return requested

    def _on_continue(self, _payload) -> None:
        self._continue_requested = True
