"""
Running likwid-perfctr and extracting per-region metrics from its report.

likwid-perfctr with ``-O`` prints CSV-like tables. The derived metrics of a
marked region look like::

    TABLE,Region compute,Group 1 Metric,FLOPS_DP,...
    Metric,Core 3
    Runtime (RDTSC) [s],0.0213
    DP MFLOP/s,1843.2
    STRUCT,...
"""

import logging
import re
import subprocess
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

logger = logging.getLogger(__name__)

LIKWID_PERFCTR = "likwid-perfctr"

# A block ends at the next STRUCT/TABLE/Region line or at the end of input.
MATCHER = re.compile(
    r"TABLE,Region ([^\n]*?),[^\n]*?\nMetric,.*?\n(.*?)(?=^STRUCT|^TABLE|^Region|\Z)",
    re.MULTILINE | re.DOTALL,
)

# Plain decimal, exponent, inf or nan. No whitespace, no digit separators.
NUMBER = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


class LikwidError(RuntimeError):
    """The profiler could not be run or its output could not be read."""


@dataclass
class Metric:
    key: str
    value: float


@dataclass
class RegionMetrics:
    title: str
    metrics: List[Metric] = field(default_factory=list)


Report = Dict[str, RegionMetrics]


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only, dropping one trailing ``\\r`` per line."""
    lines = text.split('\n')
    if lines[-1] == '':
        lines.pop()
    return [line[:-1] if line.endswith('\r') else line for line in lines]


def parse_report(raw: str) -> Report:
    """
    Parse one likwid-perfctr report into ``{region title: RegionMetrics}``.

    Malformed and non-numeric lines are logged and skipped. When a region
    shows up more than once the last block wins.
    """
    regions: Report = {}

    for match in MATCHER.finditer(raw):
        title = match.group(1)
        metrics = []

        for line in split_lines(match.group(2)):
            tokens = line.split(',')
            if len(tokens) < 2:
                logger.warning("Invalid data line in region '%s': '%s'", title, line)
                continue
            if not NUMBER.fullmatch(tokens[1]):
                logger.warning("Non-numeric value in region '%s' for '%s': %s",
                               title, tokens[0], tokens[1])
                continue
            metrics.append(Metric(key=tokens[0], value=float(tokens[1])))

        regions[title] = RegionMetrics(title=title, metrics=metrics)

    return regions


def run_command(cmd: Sequence[str]) -> Tuple[int, str, str]:
    """
    Run ``cmd`` to completion and return ``(returncode, stdout, stderr)``.

    Every stderr line is logged as an error. A non-zero exit status is only a
    warning: whatever the program printed is still returned.
    """
    label = cmd[0]
    try:
        result = subprocess.run(list(cmd), capture_output=True)
    except OSError as e:
        raise LikwidError(f"[{label}] Failed to execute: {e}") from e

    try:
        stdout = result.stdout.decode('utf-8')
    except UnicodeDecodeError as e:
        raise LikwidError(f"[{label}] Output is not UTF-8") from e
    stderr = result.stderr.decode('utf-8', errors='replace')

    for line in stderr.splitlines():
        logger.error("[%s] %s", label, line)

    if result.returncode == 0:
        logger.info("[%s] Finished: exit status %d", label, result.returncode)
    else:
        logger.warning("[%s] Finished: exit status %d", label, result.returncode)

    return result.returncode, stdout, stderr


def perfctr(group: str, core: int, program: Sequence[str]) -> Report:
    """Run ``program`` pinned to ``core`` under counter ``group`` in marker mode."""
    cmd = [LIKWID_PERFCTR, '-O', '-C', str(core), '-g', group, '-m', *program]
    logger.debug("Running: %s", ' '.join(cmd))

    _, stdout, _ = run_command(cmd)
    regions = parse_report(stdout)

    logger.info("[%s] Extracted regions: %s", LIKWID_PERFCTR, ', '.join(
        f"{title} ({len(region.metrics)})" for title, region in regions.items()
    ))
    return regions
