"""Benchmark sweeps under likwid-perfctr with per-region metric tables."""

__version__ = "0.1.0"
