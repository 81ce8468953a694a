"""
Data Cleaner Module
===================
Removes empty rows and columns, flags and drops duplicate rows,
tidies column names, and applies corrections for rule violations.

Each step is a thin call into pyjanitor or pandas; ``DataCleaner``
keeps a log of what each step changed and writes it as a cleaning log.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import janitor  # noqa: F401  (registers remove_empty / get_dupes)
import pandas as pd

from messydata.config import CLEANING_LOG, OUTPUT_DIR
from messydata.names import clean_names

logger = logging.getLogger(__name__)

EMPTY_AXES = ("rows", "cols", "both")


def remove_empty(df: pd.DataFrame, which: str = "both") -> pd.DataFrame:
    """
    Drop rows and/or columns in which every value is missing.

    Empty strings count as present; only NaN/None are missing.
    """
    if which not in EMPTY_AXES:
        raise ValueError(f"which must be one of {EMPTY_AXES}, got {which!r}")
    if which == "both":
        return df.remove_empty().reset_index(drop=True)
    if which == "rows":
        return df.dropna(axis=0, how="all").reset_index(drop=True)
    return df.dropna(axis=1, how="all")


def get_dupes(df: pd.DataFrame, columns=None) -> pd.DataFrame:
    """
    Return every row that shares its values with another row.

    Comparison is restricted to ``columns`` when given. A ``dupe_count``
    column holds the size of each duplicate group; groups are kept
    together in order of first appearance.
    """
    if isinstance(columns, str):
        columns = [columns]
    key = list(columns) if columns is not None else list(df.columns)
    unknown = [c for c in key if c not in df.columns]
    if unknown:
        raise KeyError(f"Unknown column(s): {unknown}")
    dupes = df.get_dupes(column_names=columns) if columns is not None else df.get_dupes()
    if dupes.empty:
        return dupes.assign(dupe_count=pd.Series(dtype="int64"))

    # row hashes treat NaN == NaN, so all-missing cells still group
    hashes = pd.util.hash_pandas_object(dupes[key], index=False)
    group_ids = pd.Series(pd.factorize(hashes)[0], index=dupes.index)
    dupes = dupes.assign(
        dupe_count=hashes.map(hashes.value_counts()).astype("int64"),
        _group=group_ids,
    )
    return dupes.sort_values("_group", kind="stable").drop(columns="_group")


def drop_duplicates(df: pd.DataFrame, columns=None, keep: str = "first") -> pd.DataFrame:
    """Drop repeated rows, keeping one representative of each group."""
    return df.drop_duplicates(subset=columns, keep=keep).reset_index(drop=True)


def remove_constant(df: pd.DataFrame) -> pd.DataFrame:
    """Drop columns holding a single distinct value (missing included)."""
    keep = df.nunique(dropna=False) > 1
    return df.loc[:, keep]


class DataCleaner:
    """Applies the cleaning steps to a copy of a DataFrame and logs them."""

    def __init__(self, df: pd.DataFrame) -> None:
        self.df = df.copy()
        self.original_df = df.copy()
        self.actions: list[dict[str, Any]] = []

    # ------------------------------------------------------------------
    # Column names
    # ------------------------------------------------------------------
    def clean_names(self) -> pd.DataFrame:
        """Rename every column to a tidy snake_case name."""
        logger.info("Cleaning column names...")
        before = [str(c) for c in self.df.columns]
        self.df = clean_names(self.df)
        renamed = [f"'{old}' -> '{new}'" for old, new in zip(before, self.df.columns) if old != new]
        if renamed:
            self.actions.append({
                "category": "Column Names",
                "action": f"Renamed {len(renamed)} column(s): " + ", ".join(renamed),
                "rows": [],
            })
        return self.df

    # ------------------------------------------------------------------
    # Empty rows / columns
    # ------------------------------------------------------------------
    def remove_empty(self, which: str = "both") -> pd.DataFrame:
        """Drop all-empty rows and/or columns."""
        logger.info("Removing empty %s...", which)
        cols_before = list(self.df.columns)
        empty_rows = self.df.isna().all(axis=1)
        self.df = remove_empty(self.df, which)

        dropped_cols = [c for c in cols_before if c not in self.df.columns]
        if dropped_cols:
            self.actions.append({
                "category": "Empty Data",
                "action": f"Dropped {len(dropped_cols)} empty column(s): {dropped_cols}",
                "rows": [],
            })
        if which in ("rows", "both") and empty_rows.any():
            rows = [int(i) + 1 for i in range(len(empty_rows)) if empty_rows.iloc[i]]
            self.actions.append({
                "category": "Empty Data",
                "action": f"Dropped {len(rows)} empty row(s)",
                "rows": rows,
            })
        return self.df

    # ------------------------------------------------------------------
    # Duplicates
    # ------------------------------------------------------------------
    def remove_duplicates(self, columns=None) -> pd.DataFrame:
        """Drop repeated rows, keeping the first of each group."""
        logger.info("Removing duplicate rows...")
        repeated = self.df.duplicated(subset=columns, keep="first")
        rows = [i + 1 for i, flag in enumerate(repeated) if flag]
        self.df = drop_duplicates(self.df, columns)
        if rows:
            self.actions.append({
                "category": "Duplicates",
                "action": f"Dropped {len(rows)} duplicate row(s)",
                "rows": rows,
            })
        return self.df

    # ------------------------------------------------------------------
    # Rule-violation corrections
    # ------------------------------------------------------------------
    def correct(self, rule_name: str, mask: pd.Series, column: str, value: Any) -> pd.DataFrame:
        """
        Overwrite ``column`` in the rows selected by ``mask``.

        ``value`` may be a scalar or a Series aligned on the index.
        """
        if column not in self.df.columns:
            raise KeyError(column)
        mask = mask.reindex(self.df.index, fill_value=False).astype(bool)
        rows = [i + 1 for i, flag in enumerate(mask) if flag]
        if not rows:
            return self.df

        if isinstance(value, pd.Series):
            self.df.loc[mask, column] = value[mask]
        else:
            self.df.loc[mask, column] = value
        logger.info("Corrected %d row(s) of %s for rule %s", len(rows), column, rule_name)
        self.actions.append({
            "category": "Corrections",
            "action": f"{column}: fixed {len(rows)} row(s) violating '{rule_name}'",
            "rows": rows,
        })
        return self.df

    # ------------------------------------------------------------------
    # Run full cleaning
    # ------------------------------------------------------------------
    def run_full_cleaning(self) -> pd.DataFrame:
        """Tidy names, drop empty rows/columns, then drop duplicates."""
        logger.info("Running full data cleaning...")
        self.clean_names()
        self.remove_empty("both")
        self.remove_duplicates()
        return self.df

    # ------------------------------------------------------------------
    # Report generation
    # ------------------------------------------------------------------
    def generate_report(self, filepath=None) -> str:
        """Write a cleaning log grouped by category and return its text."""
        filepath = Path(filepath or OUTPUT_DIR / CLEANING_LOG)
        lines: list[str] = []

        lines.append("DATA CLEANING LOG")
        lines.append("=" * 60)
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Input: {len(self.original_df)} rows, {len(self.original_df.columns)} columns")
        lines.append("")

        lines.append("ACTIONS TAKEN:")
        lines.append("-" * 40)

        categories: dict[str, list] = {}
        for action in self.actions:
            categories.setdefault(action["category"], []).append(action)

        if not categories:
            lines.append("  (none)")
        for cat, cat_actions in categories.items():
            lines.append(f"\n  {cat}:")
            for act in cat_actions:
                lines.append(f"    - {act['action']}")
                if act.get("rows"):
                    lines.append(f"      Affected rows: {act['rows']}")

        lines.append("")
        lines.append("OUTPUT:")
        lines.append("-" * 40)
        lines.append(f"  - Rows: {len(self.df)}")
        lines.append(f"  - Columns: {len(self.df.columns)}")
        lines.append(f"  - Names: {list(self.df.columns)}")
        lines.append("")

        report_text = "\n".join(lines)

        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(report_text)

        logger.info("Cleaning log saved to %s", filepath)
        return report_text
