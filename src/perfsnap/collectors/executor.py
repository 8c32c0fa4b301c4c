"""Sequential execution of planned collection tasks.

Each recording task owns the perf sampling buffers for its whole window,
so tasks never overlap. Failures are recorded per task and, under the
default ``continue`` policy, collection moves on to the next task.
"""

import logging
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from perfsnap.storage.workdir import write_note

from .planner import CollectionTask, TaskKind
from .symbols import SymbolMirror

logger = logging.getLogger(__name__)

SUCCESS = "success"
FAILED = "failed"
SKIPPED = "skipped"
PLACEHOLDER = "placeholder"
CANCELLED = "cancelled"

EMPTY_COUNTERS_NOTE = (
    "No counter event groups are available on this host; "
    "aggregate counters were not collected."
)


@dataclass
class TaskResult:
    """Outcome of a single collection task."""

    name: str
    status: str  # "success", "failed", "skipped", "placeholder", "cancelled"
    artifact: str
    duration_s: float = 0.0
    returncode: Optional[int] = None
    error: str = ""
    report: str = ""
    mirrored_files: int = 0


class CollectionAborted(Exception):
    """Raised under the ``abort`` policy after the first failed task."""

    def __init__(self, result: TaskResult, results: List[TaskResult]) -> None:
        super().__init__(f"Task {result.name} failed: {result.error}")
        self.result = result
        self.results = results


class CollectionExecutor:
    """Run collection tasks one at a time for their configured duration."""

    def __init__(
        self,
        failure_policy: str = "continue",
        empty_counters: str = "skip",
        cancel_event: Optional[threading.Event] = None,
        symbol_mirror: Optional[SymbolMirror] = None,
        timeout_s: int = 300,
        poll_interval_s: float = 0.5,
    ) -> None:
        self.failure_policy = failure_policy
        self.empty_counters = empty_counters
        self.cancel_event = cancel_event or threading.Event()
        self.symbol_mirror = symbol_mirror
        self.timeout_s = timeout_s
        self.poll_interval_s = poll_interval_s

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def execute(self, tasks: Iterable[CollectionTask]) -> List[TaskResult]:
        """Run ``tasks`` in order and return one result per task.

        Raises:
            CollectionAborted: If a task fails and the policy is ``abort``.
        """
        results: List[TaskResult] = []
        for task in tasks:
            if self.cancelled:
                results.append(TaskResult(
                    name=task.name,
                    status=CANCELLED,
                    artifact=str(task.output),
                    error="run interrupted before task started",
                ))
                continue

            result = self.run_task(task)
            results.append(result)

            if result.status == FAILED:
                self._write_failure_note(task, result)
                if self.failure_policy == "abort":
                    raise CollectionAborted(result, results)
        return results

    def run_task(self, task: CollectionTask) -> TaskResult:
        """Run a single task, including report rendering and mirroring."""
        if task.placeholder is not None:
            logger.warning(task.placeholder)
            write_note(task.output.parent, task.output.name, task.placeholder)
            return TaskResult(
                name=task.name, status=PLACEHOLDER, artifact=str(task.output)
            )

        if (
            task.kind == TaskKind.COUNTERS
            and not task.events
            and self.empty_counters == "skip"
        ):
            logger.warning(EMPTY_COUNTERS_NOTE)
            write_note(task.output.parent, task.output.name, EMPTY_COUNTERS_NOTE)
            return TaskResult(
                name=task.name,
                status=SKIPPED,
                artifact=str(task.output),
                error=EMPTY_COUNTERS_NOTE,
            )

        logger.info(f"Collecting {task.name} for {task.duration_s}s")
        start = time.time()
        result = TaskResult(name=task.name, status=SUCCESS, artifact=str(task.output))

        try:
            result.returncode, interrupted = self._record(task)
        except OSError as e:
            result.status = FAILED
            result.error = f"could not start {task.command[0]}: {e}"
            result.duration_s = time.time() - start
            logger.error(f"Task {task.name} failed: {result.error}")
            return result

        if interrupted:
            result.status = CANCELLED
            result.error = "sampling window shortened by interrupt"
        elif result.returncode != 0:
            result.status = FAILED
            result.error = (
                f"{task.command[0]} exited with code {result.returncode}; "
                f"see {self._log_path(task).name}"
            )
            logger.error(f"Task {task.name} failed: {result.error}")

        if result.status != FAILED and task.report_command and task.output.exists():
            report_error = self._render_report(task)
            if report_error:
                result.status = FAILED
                result.error = report_error
            else:
                result.report = str(task.report_output)

        if (
            result.status == SUCCESS
            and task.kind == TaskKind.TARGET_CALLGRAPH
            and self.symbol_mirror is not None
        ):
            copied = self.symbol_mirror.mirror(task.output, task.output.parent)
            result.mirrored_files = len(copied)

        result.duration_s = time.time() - start
        return result

    def _log_path(self, task: CollectionTask) -> Path:
        return task.output.parent / f"{task.name}.log"

    def _record(self, task: CollectionTask) -> tuple[int, bool]:
        """Run the timed command, honouring the cancel event.

        Returns the exit code and whether the recorder was interrupted.

        On cancel the recorder receives SIGINT so perf flushes what it
        has sampled so far. A recorder still running ``timeout_s`` past its
        window is killed.
        """
        deadline = time.monotonic() + task.duration_s + self.timeout_s
        with open(self._log_path(task), "w") as log:
            proc = subprocess.Popen(task.argv, stdout=log, stderr=subprocess.STDOUT)
            interrupted = False
            while True:
                try:
                    return proc.wait(timeout=self.poll_interval_s), interrupted
                except subprocess.TimeoutExpired:
                    pass

                if self.cancelled and not interrupted:
                    logger.info(f"Interrupting {task.name}")
                    proc.send_signal(signal.SIGINT)
                    interrupted = True
                    deadline = min(deadline, time.monotonic() + 30)
                elif time.monotonic() > deadline:
                    logger.error(f"Task {task.name} overran its window, killing it")
                    proc.kill()
                    return proc.wait(), interrupted

    def _render_report(self, task: CollectionTask) -> str:
        """Write the human-readable report; return an error string or ""."""
        cmd = list(task.report_command)
        logger.info(f"Rendering {task.report_output.name}")
        try:
            with open(task.report_output, "w") as out:
                result = subprocess.run(
                    cmd,
                    stdout=out,
                    stderr=subprocess.PIPE,
                    text=True,
                    errors="replace",
                    timeout=self.timeout_s,
                )
        except (OSError, subprocess.TimeoutExpired) as e:
            return f"report rendering failed: {e}"
        if result.returncode != 0:
            return (
                f"report rendering exited with code {result.returncode}: "
                f"{result.stderr.strip()[:200]}"
            )
        return ""

    def _write_failure_note(self, task: CollectionTask, result: TaskResult) -> None:
        lines = [
            f"task: {task.name}",
            f"command: {' '.join(task.argv)}",
            f"returncode: {result.returncode}",
            f"error: {result.error}",
        ]
        log = self._log_path(task)
        if log.exists():
            tail = log.read_text(errors="replace").splitlines()[-20:]
            if tail:
                lines += ["", "output (tail):", *tail]
        write_note(task.output.parent, f"{task.name}.error.txt", "\n".join(lines))
