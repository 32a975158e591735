"""In-memory record of bootstrap step outcomes."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from rich.table import Table


class StepJournal:
    """Tracks which steps ran, how long they took and where the run stopped."""

    def __init__(self, logger):
        self.logger = logger
        self.steps: List[Dict[str, Any]] = []

    def step_started(self, step_name: str):
        self.steps.append(
            {
                "name": step_name,
                "status": "running",
                "started_at": self._now(),
                "duration_seconds": None,
                "detail": None,
            }
        )
        self.logger.debug("Step started: %s", step_name)

    def step_finished(self, step_name: str, status: str, detail: Optional[str] = None):
        for step in reversed(self.steps):
            if step["name"] == step_name and step["status"] == "running":
                step["status"] = status
                step["detail"] = detail
                step["duration_seconds"] = (self._now() - step["started_at"]).total_seconds()
                break
        self.logger.debug("Step %s: %s", step_name, status)

    def failed_step(self) -> Optional[str]:
        for step in self.steps:
            if step["status"] in ("failed", "running"):
                return step["name"]
        return None

    def completed_steps(self) -> List[str]:
        return [step["name"] for step in self.steps if step["status"] == "success"]

    def render(self) -> Table:
        table = Table(title="Bootstrap steps")
        table.add_column("Step")
        table.add_column("Status")
        table.add_column("Seconds", justify="right")
        table.add_column("Detail", overflow="fold")

        colours = {"success": "green", "skipped": "yellow", "failed": "red", "running": "red"}
        for step in self.steps:
            colour = colours.get(step["status"], "white")
            duration = step["duration_seconds"]
            table.add_row(
                step["name"],
                f"[{colour}]{step['status']}[/{colour}]",
                f"{duration:.1f}" if duration is not None else "-",
                step["detail"] or "",
            )
        return table

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)
