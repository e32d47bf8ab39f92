# main.py
import threading

from playwright.sync_api import Error as PlaywrightError, TimeoutError as PWTimeoutError

from bots._profile_launch import launch_persistent, shutdown
from bridge import PageBridge
from checkpoint import CheckpointGate
from config import load_config
from engine import Phase, WorkflowEngine
from panel import StatusPanel
from pipeline import StepPipeline
from progress import ProgressReporter
from run_log import RunLog
from surface import PlaywrightSurface


def _ask_to_retry(target: str) -> bool:
    try:
        answer = input(f"🔁 Fix things up on the page, then press Enter to retry {target} (or type q to quit): ")
    except EOFError:
        return False
    return answer.strip().lower() not in {"q", "quit", "exit"}


def main() -> None:
    try:
        config = load_config()
    except ValueError as exc:
        print(f"❌ {exc}")
        return

    print(f"🎯 Targets: {', '.join(config.targets)}")
    print("ℹ️ This script only prefills messages. You send (or close) every chat yourself.")

    playwright = None
    context = None
    try:
        try:
            playwright, context, page = launch_persistent(
                config.home_url, config.profile_dir, headless=config.headless
            )
        except PlaywrightError as exc:
            print(f"❌ Could not launch the browser: {exc}")
            return

        try:
            page.wait_for_load_state("networkidle", timeout=10000)
        except PWTimeoutError:
            pass

        stop_event = threading.Event()
        bridge = PageBridge(page)
        panel = StatusPanel(page, bridge)
        surface = PlaywrightSurface(page, config.selectors, bridge, capture_dir=config.capture_dir)
        reporter = ProgressReporter(config.targets, render=panel.render)
        gate = CheckpointGate(
            surface,
            panel,
            reporter,
            poll_ms=config.gate_poll_ms,
            max_polls=config.gate_max_polls,
            search_poll_ms=config.search_poll_ms,
            search_max_polls=config.search_max_polls,
            cancelled=stop_event.is_set,
        )
        pipeline = StepPipeline(surface, gate, reporter, config, cancelled=stop_event.is_set)
        engine = WorkflowEngine(
            config.targets,
            pipeline,
            gate,
            reporter,
            run_log=RunLog(config.capture_dir),
            stop_event=stop_event,
            surface=surface,
        )
        # closing the tab is how the operator bails out mid-run
        page.on("close", lambda _page: engine.stop())

        state = engine.start()
        while state.phase is Phase.TARGET_FAILED:
            if not _ask_to_retry(state.target):
                engine.stop()
                break
            state = engine.start()

        print(f"🏁 {engine.state.last_status}")
        if not stop_event.is_set():
            try:
                input("✅ Done. Press Enter to close the browser…")
            except EOFError:
                pass
    finally:
        shutdown(playwright, context)


if __name__ == "__main__":
    main()
