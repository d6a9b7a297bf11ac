"""
Shared data structures for benchmark sessions.

The session configuration is the immutable AppConfig; everything that
changes while a session runs lives in SessionState.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..metrics.collector import MetricsCollector
from ..models.results import MonitoringReport
from ..models.runtime import LoadStatistics


@dataclass
class SessionState:
    """
    Runtime state of one benchmark session.
    """
    run_name: str
    collector: MetricsCollector
    load_statistics: Optional[LoadStatistics] = None
    monitoring_reports: Dict[str, MonitoringReport] = field(default_factory=dict)
    saved_paths: List[Path] = field(default_factory=list)
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def failed_monitors(self) -> List[str]:
        """Source groups whose monitoring report carries an error."""
        return [name for name, report in self.monitoring_reports.items() if report.error]
