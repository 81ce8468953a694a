"""
Plotting
========
Scatterplot matrices for eyeballing relationships and oddities between
numeric columns, drawn with seaborn's ``pairplot`` on the
non-interactive Agg backend.
"""

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

from messydata.config import (  # noqa: E402
    GAPMINDER_HUE,
    GAPMINDER_LOG_VARIABLES,
    GAPMINDER_VARIABLES,
    GAPMINDER_YEAR,
    PLOT_DPI,
    PLOT_STYLE,
)
from messydata.sample_data import load_gapminder  # noqa: E402

logger = logging.getLogger(__name__)


def scatter_matrix(df: pd.DataFrame, variables=None, hue: str | None = None,
                   log_scale=None) -> sns.PairGrid:
    """
    Draw a scatterplot matrix of ``variables`` (default: all numeric columns).

    Columns named in ``log_scale`` are plotted as ``log10(<name>)``.
    """
    if variables is None:
        variables = [c for c in df.select_dtypes(include="number").columns if c != hue]
    variables = list(variables)
    missing = [v for v in variables if v not in df.columns]
    if missing:
        raise KeyError(f"Unknown column(s): {missing}")
    if hue is not None and hue not in df.columns:
        raise KeyError(f"Unknown hue column: {hue}")
    if len(variables) < 2:
        raise ValueError("A scatterplot matrix needs at least two numeric variables")
    not_numeric = [v for v in variables if not pd.api.types.is_numeric_dtype(df[v])]
    if not_numeric:
        raise ValueError(f"Non-numeric column(s): {not_numeric}")

    data = df[variables + ([hue] if hue else [])].copy()
    plot_vars = []
    for var in variables:
        if log_scale and var in log_scale:
            label = f"log10({var})"
            data[label] = np.log10(data[var].where(data[var] > 0))
            plot_vars.append(label)
        else:
            plot_vars.append(var)

    sns.set_style(PLOT_STYLE)
    grid = sns.pairplot(data, vars=plot_vars, hue=hue, diag_kind="hist", corner=False)
    logger.info("Drew scatterplot matrix of %s (%d rows)", plot_vars, len(data))
    return grid


def gapminder_matrix(year: int = GAPMINDER_YEAR) -> sns.PairGrid:
    """Scatterplot matrix of life expectancy, population and GDP per capita."""
    df = load_gapminder(year=year)
    if df.empty:
        raise ValueError(f"No gapminder rows for year {year}")
    return scatter_matrix(
        df,
        variables=GAPMINDER_VARIABLES,
        hue=GAPMINDER_HUE,
        log_scale=GAPMINDER_LOG_VARIABLES,
    )


def save_figure(grid: sns.PairGrid, path) -> Path:
    """Save ``grid`` as a PNG, close its figure, and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    grid.savefig(path, dpi=PLOT_DPI)
    plt.close(grid.figure)
    logger.info("Figure saved to %s", path)
    return path
