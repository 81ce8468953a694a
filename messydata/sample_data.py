"""
Sample Data
===========
The two tables the walkthrough works on:

- a five-row character table built by hand with every kind of mess the
  later sections fix (untidy column names, an all-empty column, a
  duplicated row, and an age typed with an extra digit);
- the gapminder country-year indicators, loaded read-only from the
  ``gapminder`` package.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd
from gapminder import gapminder as _GAPMINDER

logger = logging.getLogger(__name__)


def make_characters() -> pd.DataFrame:
    """Return a fresh copy of the messy character table."""
    return pd.DataFrame({
        "Name": ["Anne", "Gilbert", "Diana", "Diana", "Ruby"],
        "AGE": [11, 130, 11, 11, 12],
        "Age in Dog Years": [77, 91, 77, 77, 84],
        "Personality Trait": ["imaginative", "competitive", "loyal", "loyal", "romantic"],
        "Empty Column": [np.nan] * 5,
    })


def load_gapminder(year: int | None = None, continents=None) -> pd.DataFrame:
    """
    Return a copy of the gapminder table, optionally filtered.

    ``year`` keeps a single survey year; ``continents`` keeps the listed
    continents. A year that is not in the data gives an empty frame.
    """
    df = _GAPMINDER.copy()
    if year is not None:
        df = df[df["year"] == year]
    if continents is not None:
        if isinstance(continents, str):
            continents = [continents]
        df = df[df["continent"].isin(list(continents))]
    df = df.reset_index(drop=True)
    logger.debug("Loaded gapminder: %d rows (year=%s, continents=%s)", len(df), year, continents)
    return df


def load_csv(path) -> pd.DataFrame:
    """Read a user-supplied CSV to run the cleaning steps on."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    df = pd.read_csv(path)
    logger.info("Loaded %s: %d rows, %d columns", path.name, len(df), len(df.columns))
    return df
