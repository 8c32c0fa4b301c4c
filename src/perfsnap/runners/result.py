"""Session result dataclasses."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from perfsnap.collectors.executor import TaskResult
from perfsnap.collectors.inventory import InventoryItem
from perfsnap.collectors.system_info import SystemSnapshot
from perfsnap.host.context import RunContext


@dataclass
class SessionResult:
    """Everything a collection run produced."""

    context: RunContext
    started_at: str = field(default_factory=lambda: datetime.now().isoformat())
    completed_at: str = ""
    status: str = "running"  # "completed", "aborted", "interrupted", "error"
    error: str = ""
    categories: List[str] = field(default_factory=list)
    target_pids: List[int] = field(default_factory=list)
    tasks: List[TaskResult] = field(default_factory=list)
    inventory: List[InventoryItem] = field(default_factory=list)
    system_info: Optional[SystemSnapshot] = None
    archive_path: Optional[str] = None
    archive_error: str = ""

    @property
    def failed(self) -> int:
        return sum(1 for t in self.tasks if t.status == "failed")

    @property
    def succeeded(self) -> int:
        return sum(1 for t in self.tasks if t.status == "success")

    @property
    def archived(self) -> bool:
        return self.archive_path is not None
