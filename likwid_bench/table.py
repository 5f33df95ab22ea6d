"""
Accumulating region metrics across runs and turning them into tables.

Samples are appended only when a metric shows up in a run's report, so two
series of the same region can differ in length and their indices do not
necessarily refer to the same run.
"""

import io
import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, TextIO, Union

from likwid_bench.likwid import Report
from likwid_bench.plot import render_png

logger = logging.getLogger(__name__)

MetricSet = Dict[str, List[float]]
RegionSet = Dict[str, MetricSet]


@dataclass
class TableColumn:
    title: str
    values: List[float] = field(default_factory=list)


@dataclass
class Table:
    label: str
    title: str
    columns: List[TableColumn] = field(default_factory=list)


def update_regset(regset: RegionSet, regions: Report) -> None:
    """Append every metric of one run's report to the aggregate."""
    for name, region in regions.items():
        series = regset.setdefault(name, {})
        for metric in region.metrics:
            series.setdefault(metric.key, []).append(metric.value)


def create_table(label: str, title: str, regset: RegionSet,
                 regions: Sequence[str], metrics: Sequence[str],
                 x_axis: Iterable[Union[int, float, str]]) -> Table:
    """
    Build a table with ``n`` (the x axis) followed by one column per
    region/metric pair, in the requested order.

    A metric missing from one region is dropped for every region after it
    in this table, even where the later region has it.
    """
    table = Table(label=label, title=title)
    table.columns.append(TableColumn(title="n", values=[float(x) for x in x_axis]))
    missing_metrics = set()

    for region in regions:
        series = regset.get(region)
        if series is None:
            logger.warning("Region '%s' not found", region)
            continue
        for metric in metrics:
            if metric in missing_metrics:
                continue
            values = series.get(metric)
            if values is None:
                logger.warning("Metric '%s' not found in region '%s'", metric, region)
                missing_metrics.add(metric)
                continue
            table.columns.append(TableColumn(title=f"{region} ({metric})", values=list(values)))

    logger.info("Table created with %d columns", len(table.columns))
    return table


def format_value(value: float) -> str:
    """Shortest round-tripping digits in positional notation, never an exponent."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return format(Decimal(repr(value)).normalize(), "f")


def write_csv(table: Table, fp: TextIO) -> None:
    """
    Write ``table`` as CSV. Row ``i`` holds each column's ``i``-th value, or
    an empty field when the column is shorter than the x axis.
    """
    fp.write(",".join(column.title.replace("_", " ") for column in table.columns) + "\n")
    for i in range(len(table.columns[0].values)):
        fp.write(",".join(
            format_value(column.values[i]) if i < len(column.values) else ''
            for column in table.columns
        ) + "\n")


def table_to_csv(table: Table) -> str:
    buffer = io.StringIO()
    write_csv(table, buffer)
    return buffer.getvalue()


def prepare_export_path(table: Table, output_path: Union[str, Path], file_type: str) -> Path:
    directory = Path(output_path) / file_type / table.label
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"{table.title}.{file_type}"


def export_csv(table: Table, output_path: Union[str, Path]) -> Path:
    csv_path = prepare_export_path(table, output_path, 'csv')
    logger.info("Exporting CSV: %s", csv_path.name)
    with open(csv_path, 'w', newline='', encoding='utf-8') as f:
        write_csv(table, f)
    return csv_path


def export_png(table: Table, output_path: Union[str, Path]) -> Path:
    png_path = prepare_export_path(table, output_path, 'png')
    logger.info("Exporting PNG: %s", png_path.name)
    render_png(table_to_csv(table), png_path)
    return png_path
