from __future__ import annotations

import shutil
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import List, Optional, Sequence


@dataclass
class RunLogEntry:
    target: str
    outcome: str
    status: str
    messaged: int
    timestamp: datetime
    screenshot_path: Optional[Path] = None


class RunLog:
    """Keeps a per-run record of how each state went, written to ``summary.txt``."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self._entries: List[RunLogEntry] = []
        self._targets: tuple = ()
        self._run_dir: Optional[Path] = None
        self._start_time: Optional[datetime] = None

    @property
    def run_dir(self) -> Optional[Path]:
        return self._run_dir

    @property
    def entries(self) -> List[RunLogEntry]:
        return list(self._entries)

    def start(self, targets: Sequence[str]) -> None:
        self._entries.clear()
        self._targets = tuple(targets)
        self._start_time = datetime.now(UTC)
        self._run_dir = self.output_dir / f"run_{self._start_time.strftime('%Y%m%d-%H%M%S')}"
        self._run_dir.mkdir(parents=True, exist_ok=True)

    def record(
        self,
        target: str,
        outcome: str,
        status: str,
        *,
        messaged: int = 0,
        screenshot_path: Optional[str] = None,
    ) -> None:
        if self._run_dir is None:
            return
        copied: Optional[Path] = None
        if screenshot_path:
            source = Path(screenshot_path)
            if source.exists():
                copied = self._run_dir / f"{len(self._entries) + 1:02d}_{source.name}"
                try:
                    shutil.copy2(source, copied)
                except OSError as exc:
                    print(f"  • Failed to copy screenshot into run log: {exc}")
                    copied = None
        self._entries.append(
            RunLogEntry(
                target=target,
                outcome=outcome,
                status=status.strip() or "No status recorded.",
                messaged=messaged,
                timestamp=datetime.now(UTC),
                screenshot_path=copied,
            )
        )

    def finalize(self) -> Optional[Path]:
        if self._run_dir is None:
            return None
        run_dir = self._run_dir
        try:
            (run_dir / "summary.txt").write_text(self._compose(), encoding="utf-8")
            print(f"🗂️ Run summary saved in {run_dir}")
        except OSError as exc:
            print(f"  • Failed to write run summary: {exc}")
        finally:
            self._run_dir = None
        return run_dir

    def _compose(self) -> str:
        lines: List[str] = [f"Targets: {', '.join(self._targets) or 'none'}"]
        if self._start_time:
            lines.append(f"Started: {self._start_time.isoformat()}")
        total = sum(entry.messaged for entry in self._entries)
        lines.append(f"Message templates prefilled: {total}")
        lines.append("")
        lines.append("Outcomes:")
        if not self._entries:
            lines.append("  No target finished during this run.")
        for entry in self._entries:
            lines.append(f"  {entry.target}: {entry.outcome} ({entry.messaged} prefilled)")
            lines.append(f"    {entry.status}")
            if entry.screenshot_path:
                lines.append(f"    Screenshot: {entry.screenshot_path.name}")
            lines.append(f"    At: {entry.timestamp.isoformat()}")
        return "\n".join(lines).rstrip() + "\n"
