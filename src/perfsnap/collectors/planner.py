"""Build the ordered list of collection tasks from probed capabilities."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from perfsnap.host.context import RunContext

from .capabilities import CapabilitySet

logger = logging.getLogger(__name__)

# (tag looked up in the perf listing, event selector passed to perf stat).
# Order here is the order events appear in the counter task.
EVENT_GROUPS: tuple[tuple[str, str], ...] = (
    ("sched", "sched:*"),
    ("block", "block:*"),
    ("kmem", "kmem:*"),
    ("major-faults", "major-faults"),
    ("minor-faults", "minor-faults"),
    ("context-switches", "context-switches"),
    ("filelock", "filelock:*"),
    ("filemap:", "filemap:*"),
    ("exceptions", "exceptions:*"),
    ("module", "module:*"),
    ("net", "net:*"),
    ("power", "power:*"),
    ("printk", "printk:*"),
    ("rcu", "rcu:*"),
    ("syscalls", "syscalls:*"),
)

EXEC_TRACE_EVENT = "sched:sched_process_exec"
EXEC_TRACE_TAG = "sched_process_exec"
PROC_MAP_TIMEOUT_OPTION = "proc-map-timeout"


class TaskKind(str, Enum):
    COUNTERS = "counters"
    EXEC_TRACE = "exec_trace"
    SYSTEM_CALLGRAPH = "system_callgraph"
    TARGET_CALLGRAPH = "target_callgraph"


@dataclass(frozen=True)
class CollectionTask:
    """One time-bounded unit of collection with a fixed output artifact.

    ``command`` excludes the ``-- sleep N`` timer, see ``argv``. A task with
    a ``placeholder`` has no command; the note is written to ``output``.
    """

    kind: TaskKind
    command: tuple[str, ...]
    output: Path
    duration_s: int
    events: tuple[str, ...] = ()
    report_command: tuple[str, ...] = ()
    report_output: Optional[Path] = None
    placeholder: Optional[str] = None

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def argv(self) -> tuple[str, ...]:
        return (*self.command, "--", "sleep", str(self.duration_s))


class CollectionPlanner:
    """Derive collection tasks deterministically from a CapabilitySet."""

    def __init__(
        self,
        perf_binary: str = "perf",
        sample_frequency_hz: int = 999,
        proc_map_timeout_ms: int = 5000,
        target_process: str = "falcon-sensor",
    ) -> None:
        self.perf_binary = perf_binary
        self.sample_frequency_hz = sample_frequency_hz
        self.proc_map_timeout_ms = proc_map_timeout_ms
        self.target_process = target_process

    @staticmethod
    def select_events(capabilities: CapabilitySet) -> tuple[str, ...]:
        """Event selectors whose tag appears in the perf listing."""
        return tuple(
            event for tag, event in EVENT_GROUPS if capabilities.supports(tag)
        )

    def plan(
        self,
        capabilities: CapabilitySet,
        context: RunContext,
        target_pids: tuple[int, ...] = (),
    ) -> tuple[CollectionTask, ...]:
        """Return the ordered task list for this run.

        Order: aggregate counters, exec trace (only if the host exposes
        process-exec tracepoints), whole-system call graph, target-process
        call graph (a placeholder task when the target is not running).
        """
        tasks = [self._counters_task(capabilities, context)]
        if capabilities.supports(EXEC_TRACE_TAG):
            tasks.append(self._exec_trace_task(context))
        tasks.append(self._system_callgraph_task(capabilities, context))
        tasks.append(self._target_callgraph_task(capabilities, context, target_pids))

        logger.debug(f"Planned tasks: {', '.join(t.name for t in tasks)}")
        return tuple(tasks)

    def _report_command(self, data: Path, folded: bool = False) -> tuple[str, ...]:
        cmd = [self.perf_binary, "report", "-nf"]
        if folded:
            cmd += ["-g", "folded"]
        cmd += ["--stdio", "-i", str(data)]
        return tuple(cmd)

    def _sampling_options(self, capabilities: CapabilitySet) -> list[str]:
        options = ["-F", str(self.sample_frequency_hz), "-g"]
        if capabilities.supports_option(PROC_MAP_TIMEOUT_OPTION):
            options.append(f"--{PROC_MAP_TIMEOUT_OPTION}={self.proc_map_timeout_ms}")
        return options

    def _counters_task(
        self, capabilities: CapabilitySet, context: RunContext
    ) -> CollectionTask:
        events = self.select_events(capabilities)
        output = context.artifact("perf_stats.txt")
        return CollectionTask(
            kind=TaskKind.COUNTERS,
            command=(
                self.perf_binary, "stat",
                "-e", ",".join(events),
                "-a",
                "-o", str(output),
            ),
            output=output,
            duration_s=context.duration_s,
            events=events,
        )

    def _exec_trace_task(self, context: RunContext) -> CollectionTask:
        data = context.artifact("perf_sched.data")
        return CollectionTask(
            kind=TaskKind.EXEC_TRACE,
            command=(
                self.perf_binary, "record",
                "-e", EXEC_TRACE_EVENT,
                "-a",
                "-o", str(data),
            ),
            output=data,
            duration_s=context.duration_s,
            events=(EXEC_TRACE_EVENT,),
            report_command=self._report_command(data),
            report_output=context.artifact("perf_sched_report.txt"),
        )

    def _system_callgraph_task(
        self, capabilities: CapabilitySet, context: RunContext
    ) -> CollectionTask:
        data = context.artifact("whole_system.data")
        return CollectionTask(
            kind=TaskKind.SYSTEM_CALLGRAPH,
            command=(
                self.perf_binary, "record",
                "-a",
                *self._sampling_options(capabilities),
                "-o", str(data),
            ),
            output=data,
            duration_s=context.duration_s,
            report_command=self._report_command(data),
            report_output=context.artifact("perf_whole_system_report.txt"),
        )

    def _target_callgraph_task(
        self,
        capabilities: CapabilitySet,
        context: RunContext,
        target_pids: tuple[int, ...],
    ) -> CollectionTask:
        report = context.artifact("perf_target_report.txt")
        if not target_pids:
            return CollectionTask(
                kind=TaskKind.TARGET_CALLGRAPH,
                command=(),
                output=report,
                duration_s=context.duration_s,
                placeholder=f"{self.target_process} NOT running!",
            )

        data = context.artifact("target_process.data")
        return CollectionTask(
            kind=TaskKind.TARGET_CALLGRAPH,
            command=(
                self.perf_binary, "record",
                "-p", ",".join(str(pid) for pid in target_pids),
                *self._sampling_options(capabilities),
                "-o", str(data),
            ),
            output=data,
            duration_s=context.duration_s,
            report_command=self._report_command(data, folded=True),
            report_output=report,
        )
