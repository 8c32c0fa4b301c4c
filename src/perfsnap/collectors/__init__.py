"""Capability probing, task planning and execution, inventory snapshots."""

from .capabilities import CapabilityProber, CapabilitySet, find_target_pids
from .executor import CollectionAborted, CollectionExecutor, TaskResult
from .inventory import InventoryCollector, InventoryItem
from .planner import EVENT_GROUPS, CollectionPlanner, CollectionTask, TaskKind
from .symbols import SymbolMirror, snapshot_kallsyms

__all__ = [
    "CapabilityProber",
    "CapabilitySet",
    "CollectionAborted",
    "CollectionExecutor",
    "CollectionPlanner",
    "CollectionTask",
    "EVENT_GROUPS",
    "InventoryCollector",
    "InventoryItem",
    "SymbolMirror",
    "TaskKind",
    "TaskResult",
    "find_target_pids",
    "snapshot_kallsyms",
]
