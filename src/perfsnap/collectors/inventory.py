"""Static host and agent inventory snapshots."""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class InventoryItem:
    """One listing command and the artifact it is written to."""

    name: str
    command: list[str]
    output: Path
    returncode: Optional[int] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class InventoryCollector:
    """Run each available listing tool, redirecting stdout to a file.

    Tools that are not installed are skipped without error.
    """

    def __init__(
        self,
        tools: list[str],
        agent_package: str = "",
        agent_dir: str = "",
        timeout_s: int = 300,
    ) -> None:
        self.tools = tools
        self.agent_package = agent_package
        self.agent_dir = agent_dir
        self.timeout_s = timeout_s

    def plan(self, work_dir: Path) -> list[InventoryItem]:
        """Listing commands available on this host."""
        items: list[InventoryItem] = []

        if self.agent_package and shutil.which("rpm"):
            items.append(InventoryItem(
                name="rpm",
                command=["rpm", "-qi", self.agent_package],
                output=work_dir / "rpm_agent.txt",
            ))

        for tool in self.tools:
            if shutil.which(tool):
                items.append(InventoryItem(
                    name=tool,
                    command=[tool],
                    output=work_dir / f"{tool}.txt",
                ))
            else:
                logger.debug(f"{tool} not found, skipping")

        if self.agent_dir and Path(self.agent_dir).is_dir():
            items.append(InventoryItem(
                name="ls_agent",
                command=["ls", "-al", self.agent_dir],
                output=work_dir / "ls_agent.txt",
            ))
            if shutil.which("dir"):
                items.append(InventoryItem(
                    name="dir_agent",
                    command=["dir", self.agent_dir],
                    output=work_dir / "dir_agent.txt",
                ))

        return items

    def _run(self, item: InventoryItem) -> None:
        try:
            with open(item.output, "w") as out:
                result = subprocess.run(
                    item.command,
                    stdout=out,
                    stderr=subprocess.PIPE,
                    text=True,
                    errors="replace",
                    timeout=self.timeout_s,
                )
        except (OSError, subprocess.TimeoutExpired) as e:
            item.error = str(e)
            logger.warning(f"Inventory `{' '.join(item.command)}` failed: {e}")
            return

        item.returncode = result.returncode
        if result.returncode != 0:
            item.error = result.stderr.strip()[:200]
            logger.warning(
                f"Inventory `{' '.join(item.command)}` exited with code "
                f"{result.returncode}"
            )

    def collect(self, work_dir: Path) -> list[InventoryItem]:
        """Write every snapshot into ``work_dir`` and return the items run."""
        items = self.plan(work_dir)
        for item in items:
            logger.debug(f"Collecting {item.name} -> {item.output.name}")
            self._run(item)
        logger.info(f"Collected {sum(i.ok for i in items)}/{len(items)} inventory snapshots")
        return items
