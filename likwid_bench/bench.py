#!/usr/bin/env python3
"""
Sweep benchmark executables across likwid counter groups and test cases,
then export one CSV and one PNG per (table, region set) pair.

Usage:
  likwid-bench -c bench.json
"""

import argparse
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from likwid_bench.config import Config, ConfigError, load_config
from likwid_bench.cpu import CpuFreq, get_system_info, set_cpu_freq
from likwid_bench.likwid import LikwidError, Report, perfctr
from likwid_bench.table import RegionSet, create_table, export_csv, export_png, update_regset

logger = logging.getLogger(__name__)

Profiler = Callable[[str, int, Sequence[str]], Report]


class LikwidBenchRunner:
    def __init__(self, config: Config, profiler: Optional[Profiler] = None):
        self.config = config
        self.profiler = profiler or perfctr
        self.output_dir = Path(config.output_path)
        self.regset: RegionSet = {}
        self.exported: List[Path] = []
        self.runs = 0

    def run_sweep(self) -> RegionSet:
        """Run every target for every test under every group, in that nesting order."""
        for target in self.config.target_paths:
            logger.info("Testing executable %s", target)

        start = time.time()
        for group in self.config.groups:
            print(f"\n📋 Group '{group}'")
            for test in self.config.tests:
                logger.info("Test: '%s'", test.label)
                for target in self.config.target_paths:
                    regions = self.profiler(group, self.config.core, [target, *test.params])
                    update_regset(self.regset, regions)
                    self.runs += 1

        print(f"\n🎉 Tests finished in {time.time() - start:.3f}s ({self.runs} runs)")
        return self.regset

    def export_tables(self) -> List[Path]:
        x_axis = self.config.x_axis()
        for tconfig in self.config.tables:
            print(f"\n📊 Exporting tables for '{tconfig.title}'")
            for rconfig in self.config.regions:
                logger.info("Regions: %s (%s)", rconfig.regions, rconfig.label)
                table = create_table(
                    rconfig.label,
                    tconfig.title,
                    self.regset,
                    rconfig.regions,
                    tconfig.metrics,
                    x_axis,
                )
                self.exported.append(export_csv(table, self.output_dir))
                self.exported.append(export_png(table, self.output_dir))
        return self.exported

    def save_aggregate(self) -> Path:
        """Dump every raw sample collected so far, keyed by region and metric."""
        path = self.output_dir / 'aggregate.json'
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.regset, f, indent=2)
        logger.info("Raw samples saved to %s", path)
        return path

    def save_system_info(self) -> Path:
        data = {
            "sweep_info": {
                "targets": self.config.target_paths,
                "groups": self.config.groups,
                "tests": [test.label for test in self.config.tests],
                "core": self.config.core,
                "total_runs": self.runs,
                "timestamp": datetime.now().isoformat(),
            },
            "system_info": get_system_info(),
        }
        path = self.output_dir / 'system_info.json'
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        logger.info("System info saved to %s", path)
        return path


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run benchmarks under likwid-perfctr and export per-region metric tables",
    )
    parser.add_argument("-c", "--config-path", required=True,
                        help="Path to the JSON configuration file")
    parser.add_argument("--no-cpufreq", action="store_true",
                        help="Leave the CPU frequency governor untouched")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = load_config(args.config_path)
        runner = LikwidBenchRunner(config)

        print("🔬 likwid benchmark sweep")
        print("=" * 60)
        print(f"Targets: {', '.join(config.target_paths)}")
        print(f"Groups: {', '.join(config.groups)}")
        print(f"Tests: {', '.join(test.label for test in config.tests)}")
        print(f"Core: {config.core}")
        print(f"Output: {config.output_path}")
        print("=" * 60)

        if not args.no_cpufreq:
            set_cpu_freq(CpuFreq.PERFORMANCE)
        try:
            runner.run_sweep()
        finally:
            if not args.no_cpufreq:
                set_cpu_freq(CpuFreq.POWERSAVE)

        runner.save_aggregate()
        runner.save_system_info()
        runner.export_tables()
    except KeyboardInterrupt:
        print("\n🛑 Sweep interrupted by user")
        return 130
    except (ConfigError, LikwidError, OSError) as e:
        print(f"❌ Sweep failed: {e}", file=sys.stderr)
        return 1

    print("\n" + "=" * 60)
    print("✅ SWEEP COMPLETE!")
    print(f"📁 All results saved to: {config.output_path}/")
    return 0


if __name__ == '__main__':
    sys.exit(main())
