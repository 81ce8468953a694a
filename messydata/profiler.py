"""
Data Profiler
=============
Quick exploratory summaries of a table: a per-column statistical
summary, one-way frequency tables, and a profile of the kinds of mess
the cleaning steps address (missing values, empty columns, duplicated
rows, untidy names).
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from messydata.config import OUTPUT_DIR, PROFILE_REPORT
from messydata.names import is_tidy_name, make_clean_names

logger = logging.getLogger(__name__)

NUMERIC_STATS = ["mean", "sd", "min", "p25", "median", "p75", "max"]
SUMMARY_COLUMNS = ["column", "dtype", "n_missing", "complete_rate", "n_unique",
                   *NUMERIC_STATS, "top", "top_freq"]


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    """One row per column with missingness, uniqueness and basic statistics."""
    rows = []
    n = len(df)
    for col in df.columns:
        series = df[col]
        n_missing = int(series.isna().sum())
        row: dict[str, Any] = {
            "column": str(col),
            "dtype": str(series.dtype),
            "n_missing": n_missing,
            "complete_rate": (n - n_missing) / n if n else np.nan,
            "n_unique": int(series.nunique(dropna=True)),
        }
        values = series.dropna()
        if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
            if len(values):
                row.update({
                    "mean": values.mean(),
                    "sd": values.std(),
                    "min": values.min(),
                    "p25": values.quantile(0.25),
                    "median": values.median(),
                    "p75": values.quantile(0.75),
                    "max": values.max(),
                })
        elif len(values):
            counts = values.value_counts()
            row["top"] = counts.index[0]
            row["top_freq"] = int(counts.iloc[0])
        rows.append(row)
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def tabyl(df: pd.DataFrame, column: str) -> pd.DataFrame:
    """Frequency table of ``column`` with counts and percentages, NA kept."""
    if column not in df.columns:
        raise KeyError(column)
    counts = df[column].value_counts(dropna=False)
    total = counts.sum()
    table = pd.DataFrame({
        column: counts.index,
        "n": counts.to_numpy(),
        "percent": counts.to_numpy() / total if total else np.array([], dtype=float),
    })
    return table.sort_values("n", ascending=False, kind="stable").reset_index(drop=True)


class DataProfiler:
    """Profiles a DataFrame for the issues the walkthrough cleans up."""

    def __init__(self, df: pd.DataFrame) -> None:
        self.df = df.copy()
        self.total_rows = len(df)
        self.issues: list[dict[str, Any]] = []
        self.completeness: dict[str, dict] = {}

    # ------------------------------------------------------------------
    # Completeness analysis
    # ------------------------------------------------------------------
    def analyze_completeness(self) -> dict[str, dict]:
        """Count present and missing values per column."""
        logger.info("Analyzing completeness...")
        for col in self.df.columns:
            missing = int(self.df[col].isna().sum())
            present = self.total_rows - missing
            pct = round((present / self.total_rows) * 100, 1) if self.total_rows else 0.0
            self.completeness[str(col)] = {
                "present": present,
                "missing": missing,
                "percentage": pct,
            }
        return self.completeness

    def find_empty(self) -> dict[str, list]:
        """Columns and 1-based rows in which every value is missing."""
        empty_cols = [str(c) for c in self.df.columns if self.df[c].isna().all()]
        empty_rows = self.df.isna().all(axis=1) if len(self.df.columns) else pd.Series(dtype=bool)
        rows = [i + 1 for i, flag in enumerate(empty_rows) if flag]
        if empty_cols:
            self.issues.append({
                "type": "Empty Columns",
                "description": f"{len(empty_cols)} column(s) hold no values: {empty_cols}",
                "rows": [],
            })
        if rows:
            self.issues.append({
                "type": "Empty Rows",
                "description": f"{len(rows)} row(s) hold no values",
                "rows": rows,
            })
        return {"columns": empty_cols, "rows": rows}

    def find_duplicates(self) -> list[int]:
        """1-based rows that repeat an earlier row."""
        repeated = self.df.duplicated(keep="first")
        rows = [i + 1 for i, flag in enumerate(repeated) if flag]
        if rows:
            self.issues.append({
                "type": "Duplicate Rows",
                "description": f"{len(rows)} row(s) repeat an earlier row",
                "rows": rows,
            })
        return rows

    def find_untidy_names(self) -> dict[str, str]:
        """Map of untidy column names to their cleaned form."""
        cleaned = make_clean_names(self.df.columns)
        originals = [str(c) for c in self.df.columns]
        duplicated = {n for n in originals if originals.count(n) > 1}
        untidy = {
            old: new for old, new in zip(originals, cleaned)
            if not is_tidy_name(old) or old in duplicated
        }
        if untidy:
            self.issues.append({
                "type": "Untidy Column Names",
                "description": ", ".join(f"'{o}' -> '{n}'" for o, n in untidy.items()),
                "rows": [],
            })
        return untidy

    # ------------------------------------------------------------------
    # Run full profile
    # ------------------------------------------------------------------
    def run_full_profile(self) -> dict:
        """Execute every analysis and return the combined results."""
        logger.info("Running full data profile...")
        self.issues.clear()
        self.completeness.clear()
        return {
            "completeness": self.analyze_completeness(),
            "empty": self.find_empty(),
            "duplicate_rows": self.find_duplicates(),
            "untidy_names": self.find_untidy_names(),
            "summary": summarize(self.df),
            "issues": self.issues,
        }

    # ------------------------------------------------------------------
    # Report generation
    # ------------------------------------------------------------------
    def generate_report(self, filepath=None) -> str:
        """Write a profile report and return its text."""
        filepath = Path(filepath or OUTPUT_DIR / PROFILE_REPORT)
        results = self.run_full_profile()
        lines: list[str] = []

        lines.append("DATA PROFILE REPORT")
        lines.append("=" * 60)
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Total Rows: {self.total_rows}")
        lines.append(f"Total Columns: {len(self.df.columns)}")
        lines.append("")

        lines.append("COMPLETENESS:")
        lines.append("-" * 40)
        for col, info in results["completeness"].items():
            missing_str = f" ({info['missing']} missing)" if info["missing"] else ""
            lines.append(f"  - {col}: {info['percentage']}%{missing_str}")
        lines.append("")

        lines.append("ISSUES:")
        lines.append("-" * 40)
        if not results["issues"]:
            lines.append("  (none)")
        for i, issue in enumerate(results["issues"], 1):
            rows_str = f", Rows: {issue['rows']}" if issue["rows"] else ""
            lines.append(f"  {i}. {issue['type']}: {issue['description']}{rows_str}")
        lines.append("")

        lines.append("SUMMARY:")
        lines.append("-" * 40)
        lines.append(results["summary"].to_string(index=False))
        lines.append("")

        report_text = "\n".join(lines)

        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(report_text)

        logger.info("Profile report saved to %s", filepath)
        return report_text
