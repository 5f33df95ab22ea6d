import logging
import os
import platform
from enum import Enum
from pathlib import Path
from typing import Dict, Union

import psutil

logger = logging.getLogger(__name__)

CPU_FREQ_PATH = "/sys/devices/system/cpu/cpufreq/policy3/scaling_governor"


class CpuFreq(Enum):
    POWERSAVE = "powersave"
    PERFORMANCE = "performance"


def set_cpu_freq(freq: CpuFreq, path: Union[str, Path] = CPU_FREQ_PATH) -> None:
    """Switch the scaling governor. Requires write access to sysfs."""
    logger.info("Setting CPU frequency governor to: %s", freq.value)
    Path(path).write_text(freq.value)


def get_system_info() -> Dict:
    return {
        "hostname": platform.node() or os.environ.get('HOSTNAME', 'unknown'),
        "os": platform.system(),
        "arch": platform.machine(),
        "kernel": platform.release(),
        "processor": platform.processor(),
        "cpu_count_logical": psutil.cpu_count(logical=True),
        "cpu_count_physical": psutil.cpu_count(logical=False),
        "memory_total_gb": round(psutil.virtual_memory().total / (1024**3), 2),
        "python_version": platform.python_version(),
    }
