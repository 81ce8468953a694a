"""
Validation Rules Module
=======================
Declares validation rules as boolean expressions over column names
and confronts a DataFrame with them.

Rules are diagnostic: a confrontation counts, for every rule, how many
items passed, failed, or could not be decided because a referenced
value is missing. Expressions are evaluated by ``DataFrame.eval``; a
rule that cannot be evaluated is recorded as an error rather than
raised, so one bad rule never hides the results of the others.
"""

import ast
import logging
import re
import warnings
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

import numpy as np
import pandas as pd

from messydata.config import OUTPUT_DIR, VALIDATION_RESULTS

logger = logging.getLogger(__name__)

_BACKTICK_NAME = re.compile(r"`([^`]+)`")
_LOCAL_REF = re.compile(r"@(?=[A-Za-z_])")
_NAMED_LINE = re.compile(r"^([A-Za-z_][\w.]*)\s*:\s*(.+)$")


class RuleError(ValueError):
    """Raised for a rule that cannot be declared (empty, unparsable, duplicate)."""
    pass


class Rule:
    """A named boolean expression a table is expected to satisfy."""

    def __init__(self, name: str, expression: str, description: str = "") -> None:
        expression = (expression or "").strip()
        if not expression:
            raise RuleError(f"Rule '{name}' has an empty expression")
        self.name = name
        self.expression = expression
        self.description = description
        self._variables = self._parse_variables(expression)

    @staticmethod
    def _parse_variables(expression: str) -> frozenset[str]:
        quoted = _BACKTICK_NAME.findall(expression)
        plain = _BACKTICK_NAME.sub(lambda m: f"_q{quoted.index(m.group(1))}", expression)
        plain = _LOCAL_REF.sub("", plain)
        try:
            tree = ast.parse(plain, mode="eval")
        except SyntaxError as exc:
            raise RuleError(f"Cannot parse rule expression {expression!r}: {exc.msg}") from exc

        names = {node.id for node in ast.walk(tree) if isinstance(node, ast.Name)}
        names -= {f"_q{i}" for i in range(len(quoted))}
        return frozenset(names | set(quoted))

    @property
    def variables(self) -> frozenset[str]:
        """Names referenced by the expression (columns or locals)."""
        return self._variables

    def __repr__(self) -> str:
        return f"Rule({self.name!r}, {self.expression!r})"


class RuleSet:
    """Ordered collection of uniquely named rules."""

    def __init__(self, *expressions: str, **named_expressions: str) -> None:
        self._rules: dict[str, Rule] = {}
        for expression in expressions:
            self.add(expression)
        for name, expression in named_expressions.items():
            self.add(expression, name=name)

    def add(self, expression: str, name: str | None = None, description: str = "") -> Rule:
        """Add a rule; unnamed rules are called V1, V2, ... by position."""
        if name is None:
            position = len(self._rules) + 1
            name = f"V{position}"
            while name in self._rules:
                position += 1
                name = f"V{position}"
        elif name in self._rules:
            raise RuleError(f"Duplicate rule name: {name}")
        rule = Rule(name, expression, description)
        self._rules[name] = rule
        return rule

    @classmethod
    def from_dict(cls, rules: dict[str, str], descriptions: dict[str, str] | None = None) -> "RuleSet":
        descriptions = descriptions or {}
        ruleset = cls()
        for name, expression in rules.items():
            ruleset.add(expression, name=name, description=descriptions.get(name, ""))
        return ruleset

    @classmethod
    def from_file(cls, path) -> "RuleSet":
        """
        Read rules from a text file, one per line.

        A line is either a bare expression or ``name: expression``.
        Blank lines and lines starting with ``#`` are skipped.
        """
        path = Path(path)
        ruleset = cls()
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                match = _NAMED_LINE.match(line)
                if match:
                    ruleset.add(match.group(2), name=match.group(1))
                else:
                    ruleset.add(line)
        logger.info("Loaded %d rule(s) from %s", len(ruleset), path)
        return ruleset

    @property
    def names(self) -> list[str]:
        return list(self._rules)

    def variables(self) -> list[str]:
        """Sorted names referenced by any rule."""
        found: set[str] = set()
        for rule in self:
            found |= rule.variables
        return sorted(found)

    def __getitem__(self, name: str) -> Rule:
        return self._rules[name]

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({len(self)} rules: {self.names})"


class RuleResult:
    """Outcome of evaluating one rule."""

    def __init__(self, rule: Rule) -> None:
        self.rule = rule
        self.items = 0
        self.passes = 0
        self.fails = 0
        self.n_na = 0
        self.error = False
        self.warning = False
        self.message = ""
        self.values: pd.Series | None = None

    @property
    def row_wise(self) -> bool:
        return self.values is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.rule.name,
            "items": self.items,
            "passes": self.passes,
            "fails": self.fails,
            "nNA": self.n_na,
            "error": self.error,
            "warning": self.warning,
            "expression": self.rule.expression,
        }


class Confrontation:
    """Per-rule results of confronting a DataFrame with a RuleSet."""

    SUMMARY_COLUMNS = ["name", "items", "passes", "fails", "nNA", "error", "warning", "expression"]

    def __init__(self, index: pd.Index, results: list[RuleResult]) -> None:
        self.index = index
        self.results = {r.rule.name: r for r in results}

    def summary(self) -> pd.DataFrame:
        """One row per rule: items, passes, fails, nNA, error, warning."""
        rows = [r.to_dict() for r in self.results.values()]
        return pd.DataFrame(rows, columns=self.SUMMARY_COLUMNS)

    def values(self) -> pd.DataFrame:
        """Row-by-rule matrix of True/False/NA for row-wise rules."""
        columns = {name: r.values for name, r in self.results.items() if r.row_wise}
        if not columns:
            return pd.DataFrame(index=self.index)
        return pd.DataFrame(columns, index=self.index)

    def _result(self, name: str) -> RuleResult:
        if name not in self.results:
            raise KeyError(f"Unknown rule: {name}")
        return self.results[name]

    def violation_mask(self, name: str) -> pd.Series:
        """Boolean mask of rows that fail rule ``name`` (NA counts as not failing)."""
        result = self._result(name)
        if not result.row_wise:
            raise ValueError(f"Rule '{name}' is not evaluated per row")
        return (~result.values).fillna(False).astype(bool)

    def violating(self, df: pd.DataFrame, name: str) -> pd.DataFrame:
        """Rows of ``df`` that fail rule ``name``."""
        return df[self.violation_mask(name).reindex(df.index, fill_value=False)]

    @property
    def errors(self) -> dict[str, str]:
        return {name: r.message for name, r in self.results.items() if r.error}

    @property
    def failed_rows(self) -> list[int]:
        """1-based positions of rows failing at least one row-wise rule."""
        matrix = self.values()
        if matrix.empty:
            return []
        failing = (~matrix.astype("boolean")).fillna(False).any(axis=1)
        return [i + 1 for i, flag in enumerate(failing) if flag]

    @property
    def all_passed(self) -> bool:
        return all(r.fails == 0 and not r.error for r in self.results.values())

    # ------------------------------------------------------------------
    # Report generation
    # ------------------------------------------------------------------
    def generate_report(self, filepath=None) -> str:
        """Write a validation results report and return its text."""
        filepath = Path(filepath or OUTPUT_DIR / VALIDATION_RESULTS)
        lines: list[str] = []

        lines.append("VALIDATION RESULTS")
        lines.append("=" * 60)
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Rows: {len(self.index)}")
        lines.append(f"Rules: {len(self.results)}")
        lines.append(f"Overall: {'PASS' if self.all_passed else 'FAIL'}")
        lines.append("")

        lines.append("RULES:")
        lines.append("-" * 40)
        for r in self.results.values():
            status = "[XX]" if r.error else "[OK]" if r.fails == 0 else "[!!]"
            lines.append(f"  {status} {r.rule.name}: {r.rule.expression}")
            if r.rule.description:
                lines.append(f"      {r.rule.description}")
            if r.error:
                lines.append(f"      error: {r.message}")
                continue
            lines.append(
                f"      items={r.items} passes={r.passes} fails={r.fails} nNA={r.n_na}"
            )
            if r.warning:
                lines.append(f"      warning: {r.message}")
            if r.row_wise and r.fails:
                rows = [i + 1 for i, bad in enumerate(self.violation_mask(r.rule.name)) if bad]
                lines.append(f"      failing rows: {rows}")
        lines.append("")

        report_text = "\n".join(lines)

        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(report_text)

        logger.info("Validation results saved to %s", filepath)
        return report_text


def _evaluate(df: pd.DataFrame, rule: Rule) -> RuleResult:
    result = RuleResult(rule)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            value = df.eval(rule.expression, engine="python")
        except Exception as exc:
            result.error = True
            result.message = f"{type(exc).__name__}: {exc}"
            logger.warning("Rule %s could not be evaluated: %s", rule.name, result.message)
            return result
    if caught:
        result.warning = True
        result.message = "; ".join(str(w.message) for w in caught)

    if isinstance(value, pd.Series) and value.index.equals(df.index):
        if not pd.api.types.is_bool_dtype(value):
            result.error = True
            result.message = f"Expression gives {value.dtype} values, not True/False"
            logger.warning("Rule %s is not boolean: %s", rule.name, result.message)
            return result
        values = value.astype("boolean")
        referenced = [c for c in rule.variables if c in df.columns]
        if referenced:
            values[df[referenced].isna().any(axis=1)] = pd.NA
        result.values = values
        result.items = len(values)
        result.n_na = int(values.isna().sum())
        result.passes = int(values.fillna(False).sum())
        result.fails = result.items - result.passes - result.n_na
        return result

    if isinstance(value, (bool, np.bool_)):
        result.items = 1
        result.passes = int(bool(value))
        result.fails = 1 - result.passes
        return result

    result.error = True
    result.message = f"Expression gives {type(value).__name__}, not True/False"
    logger.warning("Rule %s is not boolean: %s", rule.name, result.message)
    return result


def confront(df: pd.DataFrame, rules: RuleSet) -> Confrontation:
    """Evaluate every rule in ``rules`` against ``df``."""
    logger.info("Confronting %d rows with %d rule(s)...", len(df), len(rules))
    results = [_evaluate(df, rule) for rule in rules]
    confrontation = Confrontation(df.index, results)
    failing = sum(1 for r in results if r.fails)
    errors = sum(1 for r in results if r.error)
    logger.info("Confrontation done: %d rule(s) with fails, %d error(s)", failing, errors)
    return confrontation
