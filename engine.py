"""Workflow engine: walks the target list one state at a time.

Idle -> Running(i) -> Running(i + 1) | TargetFailed(i) | Terminal

TargetFailed stops the run and leaves the decision to the operator; calling
``start`` again retries the same state. Terminal is final.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from pipeline import PipelineResult, StepPipeline, TargetOutcome
from progress import ProgressReporter
from run_log import RunLog


class Phase(Enum):
    IDLE = "idle"
    RUNNING = "running"
    TARGET_FAILED = "target_failed"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class EngineState:
    current_index: int
    phase: Phase
    last_status: str
    target: str


ALL_DONE = "All states processed. Close the browser to exit."


class WorkflowEngine:
    def __init__(
        self,
        targets: Sequence[str],
        pipeline: StepPipeline,
        gate,
        reporter: ProgressReporter,
        *,
        run_log: Optional[RunLog] = None,
        stop_event: Optional[threading.Event] = None,
        surface=None,
    ):
        self._targets = tuple(targets)
        if not self._targets:
            raise ValueError("At least one target state is required.")
        self._pipeline = pipeline
        self._gate = gate
        self._reporter = reporter
        self._run_log = run_log
        self._stop_event = stop_event or threading.Event()
        self._surface = surface
        self._index = 0
        self._phase = Phase.IDLE
        self.outcomes: List[PipelineResult] = []

    @property
    def state(self) -> EngineState:
        return EngineState(
            current_index=self._index,
            phase=self._phase,
            last_status=self._reporter.snapshot().status,
            target=self._targets[self._index],
        )

    @property
    def phase(self) -> Phase:
        return self._phase

    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request the run to end; takes effect at the next suspension point."""
        self._stop_event.set()
        if self._phase in (Phase.IDLE, Phase.TARGET_FAILED):
            self._finish("Workflow stopped.")

    def start(self) -> EngineState:
        if self._phase is Phase.TERMINAL:
            print("  • Workflow already finished; start ignored.")
            return self.state
        if self._phase is Phase.RUNNING:
            print("  • Workflow is already running; start ignored.")
            return self.state
        if self.stopped():
            self._finish("Workflow stopped.")
            return self.state
        if self._phase is Phase.IDLE and self._run_log is not None:
            self._run_log.start(self._targets)

        self._phase = Phase.RUNNING
        self._run()
        return self.state

    def _run(self) -> None:
        while True:
            target = self._targets[self._index]
            self._reporter.set_current_index(self._index)
            has_next = self._index < len(self._targets) - 1
            print(f"🧭 State {self._index + 1}/{len(self._targets)}: {target}")

            result = self._process(target, has_next)

            if self.stopped() or result.outcome is TargetOutcome.CANCELLED:
                self._finish("Workflow stopped.")
                return

            self.outcomes.append(result)
            if not result.advances:
                self._fail(result)
                return

            self._record(result)
            if not has_next:
                self._finish(ALL_DONE)
                return
            self._index += 1

    def _process(self, target: str, has_next: bool) -> PipelineResult:
        try:
            if not self._gate.present(target):
                if self.stopped():
                    return PipelineResult(target, TargetOutcome.CANCELLED, "Workflow stopped.")
                return PipelineResult(
                    target, TargetOutcome.FAILED, f"Stopped waiting for approval to search {target}."
                )
            return self._pipeline.run(target, has_next=has_next)
        except Exception as exc:
            if self.stopped():
                return PipelineResult(target, TargetOutcome.CANCELLED, "Workflow stopped.")
            status = f"Unexpected error while processing {target}: {exc}"
            print(f"❌ {status}")
            self._reporter.set_status(status)
            return PipelineResult(target, TargetOutcome.FAILED, status)

    def _fail(self, result: PipelineResult) -> None:
        self._phase = Phase.TARGET_FAILED
        screenshot = None
        if self._surface is not None:
            screenshot = self._surface.capture_screenshot(f"failed_{result.target}")
        self._record(result, screenshot)
        print(f"⚠️ {result.target} needs attention: {result.status}")

    def _finish(self, status: str) -> None:
        self._phase = Phase.TERMINAL
        self._reporter.set_status(status)
        if self._run_log is not None:
            self._run_log.finalize()

    def _record(self, result: PipelineResult, screenshot: Optional[str] = None) -> None:
        if self._run_log is None:
            return
        self._run_log.record(
            result.target,
            result.outcome.value,
            result.status,
            messaged=result.messaged,
            screenshot_path=screenshot,
        )
