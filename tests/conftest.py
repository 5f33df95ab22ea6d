import json

import pytest


def likwid_block(region, metrics, group="FLOPS_DP"):
    """One region's metric table as likwid-perfctr -O prints it."""
    lines = [f"TABLE,Region {region},Group 1 Metric,{group},{len(metrics)}", "Metric,Core 3"]
    lines += [f"{key},{value}" for key, value in metrics]
    return "\n".join(lines) + "\n"


@pytest.fixture
def sample_report():
    return (
        "STRUCT,Info,3\n"
        "CPU name:,Intel(R) Core(TM) i5-8250U CPU @ 1.60GHz\n"
        "TABLE,Region naive,Group 1 Raw,FLOPS_DP,3\n"
        "Event,Counter,Core 3\n"
        "INSTR_RETIRED_ANY,FIXC0,123456\n"
        + likwid_block("naive", [("Runtime (RDTSC) [s]", 0.5), ("DP MFLOP/s", 1200.25)])
        + "STRUCT,Region blocked,2\n"
        + likwid_block("blocked", [("Runtime (RDTSC) [s]", 0.125), ("DP MFLOP/s", 4800)])
    )


@pytest.fixture
def bench_dir(tmp_path):
    """A config file next to a fake executable."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    target = bin_dir / "matmul"
    target.write_text("#!/bin/sh\n")

    config = {
        "target_paths": ["bin/matmul"],
        "output_path": "out",
        "core": 3,
        "tests": [
            {"label": "64", "params": ["64"]},
            {"label": "128", "params": ["128"]},
            {"label": "big", "params": ["256"], "n": 256},
        ],
        "groups": ["FLOPS_DP", "L3"],
        "regions": [{"label": "kernels", "regions": ["naive", "blocked"]}],
        "tables": [{"title": "DP_MFLOPs", "metrics": ["DP MFLOP/s"]}],
    }
    (tmp_path / "bench.json").write_text(json.dumps(config))
    return tmp_path
