"""Collection session - top-level orchestration of one diagnostic run."""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from perfsnap.collectors.capabilities import CapabilityProber, find_target_pids
from perfsnap.collectors.executor import CollectionAborted, CollectionExecutor
from perfsnap.collectors.inventory import InventoryCollector
from perfsnap.collectors.planner import CollectionPlanner
from perfsnap.collectors.symbols import SymbolMirror, snapshot_kallsyms
from perfsnap.collectors.system_info import collect_system_info
from perfsnap.config.models import CollectionConfig
from perfsnap.host.context import RunContext
from perfsnap.host.identity import HostIdentity, resolve_identity
from perfsnap.reporters.json_reporter import save_json_report
from perfsnap.storage.archive import ArchiveError, ArtifactArchiver
from perfsnap.storage.workdir import prepare_work_dir, write_note

from .result import SessionResult

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


class CollectionSession:
    """Run one collection and always leave an archive behind.

    Main flow:
    1. Prepare a fresh working directory
    2. Probe perf capabilities and snapshot host inventory
    3. Plan and execute collection tasks sequentially
    4. Snapshot kernel symbols
    5. On every exit path: write the run summary and archive the directory
    """

    def __init__(
        self,
        config: CollectionConfig,
        identity: Optional[HostIdentity] = None,
        cancel_event: Optional[threading.Event] = None,
        prober: Optional[CapabilityProber] = None,
        planner: Optional[CollectionPlanner] = None,
        executor: Optional[CollectionExecutor] = None,
        inventory: Optional[InventoryCollector] = None,
        archiver: Optional[ArtifactArchiver] = None,
    ) -> None:
        self.config = config
        self.identity = identity
        self.cancel_event = cancel_event or threading.Event()
        self.prober = prober or CapabilityProber(
            config.perf_binary, timeout_s=config.command_timeout_s
        )
        self.planner = planner or CollectionPlanner(
            perf_binary=config.perf_binary,
            sample_frequency_hz=config.sample_frequency_hz,
            proc_map_timeout_ms=config.proc_map_timeout_ms,
            target_process=config.target_process,
        )
        self.executor = executor or CollectionExecutor(
            failure_policy=config.failure_policy,
            empty_counters=config.empty_counters,
            cancel_event=self.cancel_event,
            symbol_mirror=SymbolMirror(
                config.perf_binary, timeout_s=config.command_timeout_s
            ),
            timeout_s=config.command_timeout_s,
        )
        self.inventory = inventory or InventoryCollector(
            tools=config.inventory_tools,
            agent_package=config.agent_package,
            agent_dir=config.agent_dir,
            timeout_s=config.command_timeout_s,
        )
        self.archiver = archiver or ArtifactArchiver(Path(config.output_dir))
        self.result: Optional[SessionResult] = None

    def run(self) -> SessionResult:
        """Execute the run.

        The archive step is armed before anything touches the working
        directory, so exceptions propagate only after the archive exists
        (or its failure has been recorded on ``self.result``).
        """
        identity = self.identity or resolve_identity(self.config.identity_tool)
        context = RunContext(
            identity=identity,
            duration_s=self.config.duration_s,
            work_dir=Path(self.config.work_dir),
        )
        result = SessionResult(context=context)
        self.result = result
        log_handler: Optional[logging.Handler] = None

        try:
            prepare_work_dir(context.work_dir)
            log_handler = self._attach_log(context.work_dir)
            self._collect(context, result)
        except BaseException as e:
            result.status = "error"
            result.error = str(e) or type(e).__name__
            logger.error(f"Collection stopped by {type(e).__name__}: {result.error}")
            raise
        finally:
            self._finalize(result, log_handler)

        return result

    def _collect(self, context: RunContext, result: SessionResult) -> None:
        work_dir = context.work_dir
        result.system_info = collect_system_info()

        capabilities = self.prober.probe()
        write_note(work_dir, "perf_list.txt", capabilities.listing)
        result.categories = sorted(capabilities.categories)

        result.inventory = self.inventory.collect(work_dir)

        pids = find_target_pids(self.config.target_process)
        result.target_pids = list(pids)
        tasks = self.planner.plan(capabilities, context, pids)

        try:
            result.tasks = self.executor.execute(tasks)
        except CollectionAborted as e:
            result.tasks = e.results
            result.status = "aborted"
            result.error = str(e)
            logger.error(f"Collection aborted: {e}")
            return

        try:
            snapshot_kallsyms(work_dir)
        except OSError as e:
            logger.warning(f"Kernel symbol snapshot failed: {e}")
            write_note(work_dir, "kallsyms.error.txt", str(e))

        if self.cancel_event.is_set():
            result.status = "interrupted"
        else:
            result.status = "completed"
        logger.info(
            f"Collection {result.status}: {result.succeeded} succeeded, "
            f"{result.failed} failed"
        )

    def _attach_log(self, work_dir: Path) -> logging.Handler:
        """Mirror log records into the working directory for the run."""
        handler = logging.FileHandler(work_dir / "collection.log")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.setLevel(logging.DEBUG)
        logging.getLogger().addHandler(handler)
        return handler

    def _finalize(
        self, result: SessionResult, log_handler: Optional[logging.Handler]
    ) -> None:
        result.completed_at = datetime.now().isoformat()
        work_dir = result.context.work_dir

        try:
            work_dir.mkdir(parents=True, exist_ok=True)
            save_json_report(result, work_dir / "run_summary.json")
        except OSError as e:
            logger.error(f"Could not write run summary: {e}")

        if log_handler is not None:
            logging.getLogger().removeHandler(log_handler)
            log_handler.close()

        try:
            archive = self.archiver.archive(work_dir, result.context.identity)
        except ArchiveError as e:
            result.archive_error = str(e)
            logger.error(str(e))
            return
        result.archive_path = str(archive)
        logger.info(f"Archive created: {archive}")
