"""
Schema Expectations Module
==========================
Declarative, column-level expectations (exists, not null, unique,
between, in set, lengths, regex) checked with pandera.

Each expectation is compiled into its own single-column pandera
``DataFrameSchema`` and validated lazily, so every expectation gets a
pass/fail verdict and every failing value is collected.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
import pandera.pandas as pa
from pandera.errors import SchemaErrors
from pandera.pandas import Check, Column

from messydata.config import OUTPUT_DIR, SCHEMA_REPORT

logger = logging.getLogger(__name__)


class ExpectationSuite:
    """A named list of ``{"type": ..., "kwargs": {...}}`` expectations."""

    def __init__(self, name: str, expectations: list[dict[str, Any]]) -> None:
        self.name = name
        self.expectations = list(expectations)

    def __len__(self) -> int:
        return len(self.expectations)

    def __iter__(self):
        return iter(self.expectations)


# ---------------------------------------------------------------------------
# Expectation suite for the cleaned character table
# ---------------------------------------------------------------------------
CHARACTER_EXPECTATIONS = ExpectationSuite("character_suite", [
    # name
    {"type": "expect_column_to_exist", "kwargs": {"column": "name"}},
    {"type": "expect_column_values_to_not_be_null", "kwargs": {"column": "name"}},
    {"type": "expect_column_values_to_be_unique", "kwargs": {"column": "name"}},
    {"type": "expect_column_value_lengths_to_be_between", "kwargs": {"column": "name", "min_value": 1, "max_value": 50}},
    # age
    {"type": "expect_column_to_exist", "kwargs": {"column": "age"}},
    {"type": "expect_column_values_to_not_be_null", "kwargs": {"column": "age"}},
    {"type": "expect_column_values_to_be_between", "kwargs": {"column": "age", "min_value": 0, "max_value": 120}},
    # age_in_dog_years
    {"type": "expect_column_to_exist", "kwargs": {"column": "age_in_dog_years"}},
    {"type": "expect_column_values_to_be_between", "kwargs": {"column": "age_in_dog_years", "min_value": 0, "max_value": 840}},
    # personality_trait
    {"type": "expect_column_to_exist", "kwargs": {"column": "personality_trait"}},
    {"type": "expect_column_values_to_match_regex", "kwargs": {"column": "personality_trait", "regex": r"^[a-z ]+$"}},
])


def _build_column(exp_type: str, kwargs: dict[str, Any]) -> Column:
    """Translate one expectation into a pandera Column."""
    if exp_type == "expect_column_to_exist":
        return Column(None, nullable=True)
    if exp_type == "expect_column_values_to_not_be_null":
        return Column(None, nullable=False)
    if exp_type == "expect_column_values_to_be_unique":
        return Column(None, nullable=True, unique=True)
    if exp_type == "expect_column_values_to_be_between":
        check = Check.in_range(
            kwargs.get("min_value", float("-inf")),
            kwargs.get("max_value", float("inf")),
        )
        return Column(None, check, nullable=True)
    if exp_type == "expect_column_values_to_be_in_set":
        return Column(None, Check.isin(list(kwargs["value_set"])), nullable=True)
    if exp_type == "expect_column_value_lengths_to_be_between":
        check = Check.str_length(kwargs.get("min_value"), kwargs.get("max_value"))
        return Column(None, check, nullable=True)
    if exp_type == "expect_column_values_to_match_regex":
        return Column(None, Check.str_matches(kwargs["regex"]), nullable=True)
    raise ValueError(f"Unknown expectation type: {exp_type}")


class SchemaValidator:
    """Validates a DataFrame against an ExpectationSuite using pandera."""

    def __init__(self, df: pd.DataFrame, suite: ExpectationSuite = CHARACTER_EXPECTATIONS) -> None:
        self.df = df.copy()
        self.suite = suite
        self.results: dict[str, Any] = {}

    def _check(self, exp_type: str, kwargs: dict[str, Any]) -> pd.DataFrame | None:
        """Return pandera's failure cases, or None when the expectation holds."""
        column = kwargs["column"]
        schema = pa.DataFrameSchema({column: _build_column(exp_type, kwargs)}, strict=False)
        try:
            schema.validate(self.df, lazy=True)
        except SchemaErrors as exc:
            return exc.failure_cases
        return None

    def run_validation(self) -> dict:
        """Run every expectation and return the combined results."""
        logger.info("Running schema expectations (%s)...", self.suite.name)
        results = []
        failure_frames = []
        passed = 0
        failed = 0

        for exp in self.suite:
            exp_type = exp["type"]
            kwargs = exp.get("kwargs", {})
            cases = self._check(exp_type, kwargs)
            success = cases is None

            results.append({
                "expectation": exp_type,
                "kwargs": kwargs,
                "success": success,
            })

            if success:
                passed += 1
            else:
                failed += 1
                failure_frames.append(cases.assign(expectation=exp_type))
                logger.debug("Expectation %s failed on %s", exp_type, kwargs.get("column"))

        failure_cases = (
            pd.concat(failure_frames, ignore_index=True) if failure_frames else pd.DataFrame()
        )
        self.results = {
            "suite": self.suite.name,
            "total": passed + failed,
            "passed": passed,
            "failed": failed,
            "pass_rate_pct": round(passed / (passed + failed) * 100, 2) if (passed + failed) > 0 else 0,
            "results": results,
            "failure_cases": failure_cases,
        }
        logger.info("Schema expectations: %d passed, %d failed", passed, failed)
        return self.results

    # ------------------------------------------------------------------
    # Report generation
    # ------------------------------------------------------------------
    def generate_report(self, filepath=None) -> str:
        """Write a schema expectation report and return its text."""
        filepath = Path(filepath or OUTPUT_DIR / SCHEMA_REPORT)

        if not self.results:
            self.run_validation()

        lines: list[str] = []
        lines.append("SCHEMA EXPECTATIONS REPORT")
        lines.append("=" * 60)
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Suite: {self.results.get('suite', 'unknown')}")
        lines.append("")

        lines.append("SUMMARY:")
        lines.append("-" * 40)
        lines.append(f"  Total Expectations: {self.results.get('total', 0)}")
        lines.append(f"  Passed: {self.results.get('passed', 0)}")
        lines.append(f"  Failed: {self.results.get('failed', 0)}")
        lines.append(f"  Pass Rate: {self.results.get('pass_rate_pct', 0):.1f}%")
        lines.append("")

        lines.append("DETAILED RESULTS:")
        lines.append("-" * 40)
        for r in self.results.get("results", []):
            status = "[OK]" if r["success"] else "[XX]"
            col = r["kwargs"].get("column", "")
            lines.append(f"  {status} {r['expectation']}")
            if col:
                lines.append(f"      Column: {col}")
            for k, v in r["kwargs"].items():
                if k != "column":
                    lines.append(f"      {k}: {v}")
        lines.append("")

        cases = self.results.get("failure_cases")
        if cases is not None and not cases.empty:
            lines.append("FAILURE CASES:")
            lines.append("-" * 40)
            for _, case in cases.iterrows():
                lines.append(
                    f"  - {case.get('column')}: {case.get('check')} "
                    f"[value: {case.get('failure_case')}, index: {case.get('index')}]"
                )
            lines.append("")

        report_text = "\n".join(lines)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(report_text)

        logger.info("Schema report saved to %s", filepath)
        return report_text
