"""Host snapshot recorded in the run summary."""

import os
import platform
import socket
from dataclasses import dataclass
from datetime import datetime

import psutil


@dataclass
class SystemSnapshot:
    """Host state at the time of collection."""

    hostname: str
    os_name: str
    kernel_release: str
    kernel_version: str
    architecture: str
    cpu_count_physical: int
    cpu_count_logical: int
    total_ram_gb: float
    available_ram_gb: float
    load_average: tuple[float, float, float]
    boot_time: str


def collect_system_info() -> SystemSnapshot:
    """Collect current host information."""
    mem = psutil.virtual_memory()

    return SystemSnapshot(
        hostname=socket.gethostname(),
        os_name=platform.system(),
        kernel_release=platform.release(),
        kernel_version=platform.version(),
        architecture=platform.machine(),
        cpu_count_physical=psutil.cpu_count(logical=False) or 0,
        cpu_count_logical=psutil.cpu_count(logical=True) or 0,
        total_ram_gb=round(mem.total / (1024**3), 1),
        available_ram_gb=round(mem.available / (1024**3), 1),
        load_average=tuple(round(x, 2) for x in os.getloadavg()),
        boot_time=datetime.fromtimestamp(psutil.boot_time()).isoformat(),
    )
