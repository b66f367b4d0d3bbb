"""
In-process metrics for execution cycles
"""

from typing import Any

from invtx.core.types import CycleReport


class ExecutionMetrics:
    """Collect and expose transaction group metrics"""

    def __init__(self):
        self.metrics = {
            "cycles": 0,
            "total_processed": 0,
            "total_succeeded": 0,
            "total_retried": 0,
            "total_failed": 0,
            "average_cycle_time": 0.0,
            "by_actor": {},
        }

    def record_cycle(self, actor: str, report: CycleReport) -> None:
        """Record one execute() cycle"""
        self.metrics["cycles"] += 1
        self.metrics["total_processed"] += report.processed
        self.metrics["total_succeeded"] += report.succeeded
        self.metrics["total_retried"] += report.retried
        self.metrics["total_failed"] += report.failed
        self._update_average_time(report.duration)
        self._update_actor_stats(actor, report)

    def _update_average_time(self, duration: float) -> None:
        total_time = self.metrics["average_cycle_time"] * (self.metrics["cycles"] - 1)
        self.metrics["average_cycle_time"] = (total_time + duration) / self.metrics["cycles"]

    def _update_actor_stats(self, actor: str, report: CycleReport) -> None:
        if actor not in self.metrics["by_actor"]:
            self.metrics["by_actor"][actor] = {
                "cycles": 0,
                "succeeded": 0,
                "failed": 0,
            }

        stats = self.metrics["by_actor"][actor]
        stats["cycles"] += 1
        stats["succeeded"] += report.succeeded
        stats["failed"] += report.failed

    def get_metrics(self) -> dict[str, Any]:
        """Get all metrics"""
        finished = self.metrics["total_succeeded"] + self.metrics["total_failed"]
        success_rate = self.metrics["total_succeeded"] / finished * 100 if finished > 0 else 0

        return {
            **self.metrics,
            "success_rate": f"{success_rate:.2f}%",
        }
