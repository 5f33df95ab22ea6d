import json

from likwid_bench import bench
from likwid_bench.config import load_config
from likwid_bench.likwid import Metric, RegionMetrics


class FakeProfiler:
    """Returns a report per call; the 'blocked' region has no DP metrics in group L3."""

    def __init__(self):
        self.calls = []

    def __call__(self, group, core, program):
        self.calls.append((group, core, list(program)))
        size = float(program[-1])
        metrics = [Metric("Runtime (RDTSC) [s]", size / 1000)]
        if group == "FLOPS_DP":
            metrics.append(Metric("DP MFLOP/s", size * 10))
        return {
            "naive": RegionMetrics("naive", list(metrics)),
            "blocked": RegionMetrics("blocked", metrics[:1]),
        }


def test_sweep_iterates_groups_then_tests(bench_dir):
    config = load_config(bench_dir / "bench.json")
    profiler = FakeProfiler()
    runner = bench.LikwidBenchRunner(config, profiler)

    regset = runner.run_sweep()

    target = config.target_paths[0]
    assert profiler.calls == [
        ("FLOPS_DP", 3, [target, "64"]),
        ("FLOPS_DP", 3, [target, "128"]),
        ("FLOPS_DP", 3, [target, "256"]),
        ("L3", 3, [target, "64"]),
        ("L3", 3, [target, "128"]),
        ("L3", 3, [target, "256"]),
    ]
    assert runner.runs == 6
    assert regset["naive"]["DP MFLOP/s"] == [640.0, 1280.0, 2560.0]
    assert len(regset["naive"]["Runtime (RDTSC) [s]"]) == 6
    assert "DP MFLOP/s" not in regset["blocked"]


def test_export_tables_writes_csv_and_png(bench_dir):
    config = load_config(bench_dir / "bench.json")
    runner = bench.LikwidBenchRunner(config, FakeProfiler())
    runner.run_sweep()

    exported = runner.export_tables()

    out = bench_dir / "out"
    csv_path = out / "csv" / "kernels" / "DP_MFLOPs.csv"
    assert exported == [csv_path.resolve(), (out / "png" / "kernels" / "DP_MFLOPs.png").resolve()]
    assert csv_path.read_text() == "n,naive (DP MFLOP/s)\n64,640\n128,1280\n256,2560\n"


def test_save_aggregate_and_system_info(bench_dir):
    config = load_config(bench_dir / "bench.json")
    runner = bench.LikwidBenchRunner(config, FakeProfiler())
    runner.run_sweep()

    aggregate = json.loads(runner.save_aggregate().read_text())
    info = json.loads(runner.save_system_info().read_text())

    assert aggregate["naive"]["DP MFLOP/s"] == [640.0, 1280.0, 2560.0]
    assert info["sweep_info"]["total_runs"] == 6
    assert info["sweep_info"]["groups"] == ["FLOPS_DP", "L3"]


def test_main_restores_governor_and_exports(bench_dir, monkeypatch):
    governors = []
    monkeypatch.setattr(bench, "set_cpu_freq", lambda freq: governors.append(freq))
    monkeypatch.setattr(bench, "perfctr", FakeProfiler())

    assert bench.main(["-c", str(bench_dir / "bench.json")]) == 0

    assert governors == [bench.CpuFreq.PERFORMANCE, bench.CpuFreq.POWERSAVE]
    assert (bench_dir / "out" / "csv" / "kernels" / "DP_MFLOPs.csv").exists()
    assert (bench_dir / "out" / "aggregate.json").exists()


def test_main_restores_governor_when_profiler_fails(bench_dir, monkeypatch):
    governors = []

    def broken(group, core, program):
        raise bench.LikwidError("[likwid-perfctr] Failed to execute")

    monkeypatch.setattr(bench, "set_cpu_freq", lambda freq: governors.append(freq))
    monkeypatch.setattr(bench, "perfctr", broken)

    assert bench.main(["-c", str(bench_dir / "bench.json")]) == 1
    assert governors == [bench.CpuFreq.PERFORMANCE, bench.CpuFreq.POWERSAVE]


def test_main_reports_config_errors(tmp_path, capsys):
    assert bench.main(["-c", str(tmp_path / "missing.json"), "--no-cpufreq"]) == 1
    assert "Sweep failed" in capsys.readouterr().err
