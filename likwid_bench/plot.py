"""Rendering exported tables to PNG line charts."""

import io
import logging
from pathlib import Path
from typing import Union

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

logger = logging.getLogger(__name__)

sns.set_style("whitegrid")


def render_png(csv_text: str, png_path: Union[str, Path]) -> bool:
    """
    Plot a serialized table: the first column is x, every other column is a
    line labelled with its header. Blank fields become gaps.

    Returns False without writing anything when there is nothing to plot.
    """
    data = pd.read_csv(io.StringIO(csv_text))

    if len(data.columns) < 2:
        logger.warning("No columns to plot into %s", Path(png_path).name)
        return False

    x = data.columns[0]
    fig, ax = plt.subplots(figsize=(12, 8))
    try:
        for column in data.columns[1:]:
            ax.plot(data[x], data[column], linewidth=2, label=column)

        ax.set_xlabel(x)
        ax.set_title(Path(png_path).stem)
        ax.legend()
        ax.grid(True, alpha=0.3)

        fig.tight_layout()
        fig.savefig(png_path, dpi=150)
    finally:
        plt.close(fig)

    return True
