"""Pydantic models for perfsnap configuration."""

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_INVENTORY_TOOLS = [
    "lsblk",
    "lscpu",
    "lsipc",
    "lslocks",
    "lsmod",
    "lsns",
    "lsof",
]


class CollectionConfig(BaseModel):
    """Configuration for a single collection run."""

    duration_s: int = Field(default=60, ge=1)
    work_dir: str = "perf_measurement"
    output_dir: str = "."  # Where the archive is written
    perf_binary: str = "perf"
    sample_frequency_hz: int = Field(default=999, ge=1)
    proc_map_timeout_ms: int = Field(default=5000, ge=1)
    target_process: str = "falcon-sensor"
    agent_package: str = "falcon-sensor"
    agent_dir: str = "/opt/CrowdStrike"
    identity_tool: str = "/opt/CrowdStrike/falconctl"
    failure_policy: Literal["continue", "abort"] = "continue"
    empty_counters: Literal["skip", "pass"] = "skip"
    install_package: str = "perf"
    auto_install: bool = True
    inventory_tools: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INVENTORY_TOOLS)
    )
    command_timeout_s: int = Field(default=300, ge=1)
