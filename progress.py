from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple


@dataclass(frozen=True)
class ProgressSnapshot:
    targets: Tuple[str, ...]
    current_index: int
    status: str

    @property
    def fraction(self) -> float:
        return (self.current_index + 1) / len(self.targets)

    @property
    def percent(self) -> float:
        return round(self.fraction * 100, 2)

    @property
    def active_label(self) -> str:
        return self.targets[self.current_index]

    @property
    def headline(self) -> str:
        return f"{self.active_label} ({self.current_index + 1} of {len(self.targets)})"


class ProgressReporter:
    """
    Holds the position in the target list and the latest status line.

    Purely presentational: the engine writes to it, the panel reads snapshots
    from it, and nothing ever branches on what it holds.
    """

    def __init__(
        self,
        targets: Sequence[str],
        render: Optional[Callable[[ProgressSnapshot], None]] = None,
    ):
        self._targets = tuple(targets)
        if not self._targets:
            raise ValueError("ProgressReporter needs at least one target.")
        self._index = 0
        self._status = ""
        self._render = render

    def set_status(self, text: str) -> None:
        self._status = text
        print(f"📣 {text}")
        self._refresh()

    def set_current_index(self, index: int) -> None:
        if not 0 <= index < len(self._targets):
            raise IndexError(f"Target index {index} out of range.")
        self._index = index
        self._refresh()

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(targets=self._targets, current_index=self._index, status=self._status)

    def _refresh(self) -> None:
        if self._render is None:
            return
        try:
            self._render(self.snapshot())
        except Exception as exc:
            print(f"  • Status panel render failed: {exc}")
