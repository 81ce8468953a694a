"""
Walkthrough Orchestrator
========================
Runs the messy-data walkthrough section by section:
  1. SPOTTING MESS  — build the character table and profile it
  2. CLEAN NAMES    — tidy snake_case column names
  3. REMOVE EMPTY   — drop all-empty rows and columns
  4. DUPLICATES     — flag duplicated rows, then drop them
  5. VALIDATE       — confront the table with validation rules
  6. CORRECT        — fix the violations and confront again
  7. EXPLORE        — statistical summary and frequency table
  8. PLOT           — scatterplot matrix of the gapminder indicators
  9. REFLECTION     — closing notes and the rendered HTML page

Every stage is logged and contributes one section to the page.
"""

import logging
from datetime import datetime
from pathlib import Path

import pandas as pd

from messydata.cleaner import DataCleaner, get_dupes
from messydata.config import (
    CHARACTER_FIGURE,
    CLEANING_LOG,
    CHARACTER_RULE_DESCRIPTIONS,
    CHARACTER_RULES,
    DOG_YEARS_PER_YEAR,
    GAPMINDER_FIGURE,
    GAPMINDER_YEAR,
    OUTPUT_DIR,
    PLOTS_ENABLED,
    PROFILE_REPORT,
    SCHEMA_REPORT,
    VALIDATION_RESULTS,
    WALKTHROUGH_HTML,
)
from messydata.expectations import SchemaValidator
from messydata.names import name_report
from messydata.profiler import DataProfiler, summarize, tabyl
from messydata.report import Section, write_report
from messydata.rules import Confrontation, RuleSet, confront
from messydata.sample_data import load_gapminder, make_characters

logger = logging.getLogger(__name__)

REPORT_TITLE = "Spotting and fixing messy data"


class WalkthroughError(Exception):
    """Raised when a walkthrough stage fails unexpectedly."""
    pass


class Walkthrough:
    """Runs the walkthrough end to end and renders it to HTML."""

    def __init__(self, output_dir=OUTPUT_DIR, make_plots: bool = PLOTS_ENABLED,
                 rules: RuleSet | None = None, data: pd.DataFrame | None = None,
                 gapminder_year: int = GAPMINDER_YEAR) -> None:
        self.output_dir = Path(output_dir)
        self.figures_dir = self.output_dir / "figures"
        self.make_plots = make_plots
        self.user_data = data is not None
        self.rules = rules
        self.gapminder_year = gapminder_year
        self.df_raw: pd.DataFrame | None = data.copy() if data is not None else None
        self.cleaner: DataCleaner | None = None
        self.confrontation: Confrontation | None = None
        self.stages: list[dict] = []
        self.sections: list[Section] = []

    @property
    def df(self) -> pd.DataFrame | None:
        """The table as cleaned so far."""
        return self.cleaner.df if self.cleaner is not None else self.df_raw

    # ------------------------------------------------------------------
    # Stage helpers
    # ------------------------------------------------------------------
    def _log_stage(self, stage: str, status: str, details: list[str]) -> None:
        """Record a stage result."""
        entry = {
            "stage": stage,
            "status": status,
            "details": details,
            "timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        }
        self.stages.append(entry)
        symbol = "[OK]" if status == "SUCCESS" else "[!!]" if status == "WARNING" else "[--]" if status == "SKIPPED" else "[XX]"
        logger.info("%s Stage: %s - %s", symbol, stage, status)
        for d in details:
            logger.info("  %s", d)

    def _banner(self, number: int, stage: str) -> None:
        logger.info("=" * 60)
        logger.info("STAGE %d: %s", number, stage)
        logger.info("=" * 60)

    # ------------------------------------------------------------------
    # Stage 1: SPOTTING MESS
    # ------------------------------------------------------------------
    def spot(self) -> dict:
        """Load the table and point out what is wrong with it."""
        self._banner(1, "SPOTTING MESS")
        if self.df_raw is None:
            self.df_raw = make_characters()
        self.cleaner = DataCleaner(self.df_raw)

        profiler = DataProfiler(self.df_raw)
        results = profiler.run_full_profile()
        profiler.generate_report(self.output_dir / PROFILE_REPORT)

        section = Section("spotting-mess", "Spotting messy data")
        section.add_paragraph(
            "Messy data rarely announces itself. Column names carry spaces and "
            "mixed case, spreadsheet exports leave behind columns with nothing "
            "in them, and rows get copied twice. Looking at the raw table before "
            "doing anything else is the cheapest check there is."
        )
        section.add_table("The raw table", self.df_raw)
        if results["untidy_names"]:
            section.add_table("Column names before and after cleaning", name_report(self.df_raw))
        for issue in results["issues"]:
            section.add_paragraph(f"{issue['type']}: {issue['description']}.")
        self.sections.append(section)

        details = [f"{len(self.df_raw)} rows, {len(self.df_raw.columns)} columns",
                   f"Issues spotted: {len(results['issues'])}"]
        self._log_stage("SPOTTING MESS", "WARNING" if results["issues"] else "SUCCESS", details)
        return results

    # ------------------------------------------------------------------
    # Stage 2: CLEAN NAMES
    # ------------------------------------------------------------------
    def clean_names(self) -> pd.DataFrame:
        """Give every column a tidy snake_case name."""
        self._banner(2, "CLEAN NAMES")
        before = [str(c) for c in self.df.columns]
        df = self.cleaner.clean_names()

        section = Section("clean-names", "Cleaning column names")
        section.add_paragraph(
            "Consistent names make every later step easier to type and to read. "
            "Each name is lowercased, spaces and punctuation become underscores, "
            "and repeated names get a numeric suffix."
        )
        section.add_table("Renamed columns", pd.DataFrame({
            "original": before, "cleaned": list(df.columns),
        }))
        self.sections.append(section)

        renamed = sum(1 for old, new in zip(before, df.columns) if old != new)
        self._log_stage("CLEAN NAMES", "SUCCESS", [f"{renamed} column(s) renamed", f"Names: {list(df.columns)}"])
        return df

    # ------------------------------------------------------------------
    # Stage 3: REMOVE EMPTY
    # ------------------------------------------------------------------
    def remove_empty(self) -> pd.DataFrame:
        """Drop rows and columns that hold no values at all."""
        self._banner(3, "REMOVE EMPTY")
        rows_before, cols_before = self.df.shape
        df = self.cleaner.remove_empty("both")
        dropped_rows = rows_before - len(df)
        dropped_cols = cols_before - len(df.columns)

        section = Section("remove-empty", "Removing empty rows and columns")
        section.add_paragraph(
            "A row or column in which every value is missing carries no "
            "information; it is usually an artifact of how the file was saved. "
            f"Here {dropped_rows} row(s) and {dropped_cols} column(s) were dropped."
        )
        section.add_table("Table without empty rows or columns", df)
        self.sections.append(section)

        self._log_stage("REMOVE EMPTY", "SUCCESS", [
            f"Dropped {dropped_rows} row(s), {dropped_cols} column(s)",
        ])
        return df

    # ------------------------------------------------------------------
    # Stage 4: DUPLICATES
    # ------------------------------------------------------------------
    def duplicates(self) -> pd.DataFrame:
        """Show duplicated rows with their counts, then keep one of each."""
        self._banner(4, "DUPLICATES")
        dupes = get_dupes(self.df)
        df = self.cleaner.remove_duplicates()

        section = Section("duplicates", "Finding duplicates")
        section.add_paragraph(
            "Duplicated rows inflate counts and skew averages. Listing every "
            "copy together with how many times it occurs makes it easy to "
            "decide whether the repetition is real or a mistake."
        )
        if dupes.empty:
            section.add_paragraph("No duplicated rows were found.")
        else:
            section.add_table("Duplicated rows", dupes)
            section.add_paragraph(f"After dropping the extra copies, {len(df)} rows remain.")
        self.sections.append(section)

        self._log_stage("DUPLICATES", "WARNING" if not dupes.empty else "SUCCESS", [
            f"Duplicated rows found: {len(dupes)}",
            f"Rows after de-duplication: {len(df)}",
        ])
        return df

    # ------------------------------------------------------------------
    # Stage 5: VALIDATE
    # ------------------------------------------------------------------
    def validate(self) -> Confrontation | None:
        """Confront the table with its validation rules."""
        self._banner(5, "VALIDATE")
        if self.rules is None and self.user_data:
            self._log_stage("VALIDATE", "SKIPPED", ["No rules given for user data"])
            return None
        if self.rules is None:
            self.rules = RuleSet.from_dict(CHARACTER_RULES, CHARACTER_RULE_DESCRIPTIONS)

        self.confrontation = confront(self.df, self.rules)
        self.confrontation.generate_report(self.output_dir / VALIDATION_RESULTS)
        summary = self.confrontation.summary()

        section = Section("validate", "Validating with rules")
        section.add_paragraph(
            "Some mistakes only show up against what we know about the data. "
            "Writing that knowledge down as rules, such as an upper bound on "
            "age, lets us count how many rows break each one."
        )
        section.add_table("Rule summary", summary)
        for name, result in self.confrontation.results.items():
            if result.row_wise and result.fails:
                section.add_table(f"Rows violating {name}", self.confrontation.violating(self.df, name))

        if not self.user_data:
            schema = SchemaValidator(self.df)
            schema_results = schema.run_validation()
            schema.generate_report(self.output_dir / SCHEMA_REPORT)
            section.add_paragraph(
                f"Column expectations: {schema_results['passed']} of "
                f"{schema_results['total']} hold."
            )
        self.sections.append(section)

        status = "SUCCESS" if self.confrontation.all_passed else "WARNING"
        details = [f"{row['name']}: passes={row['passes']} fails={row['fails']} nNA={row['nNA']}"
                   + (" ERROR" if row["error"] else "")
                   for row in summary.to_dict("records")]
        self._log_stage("VALIDATE", status, details)
        return self.confrontation

    # ------------------------------------------------------------------
    # Stage 6: CORRECT
    # ------------------------------------------------------------------
    def correct(self) -> pd.DataFrame:
        """Fix the character whose age was typed with an extra digit."""
        self._banner(6, "CORRECT")
        if self.user_data or self.confrontation is None:
            self._log_stage("CORRECT", "SKIPPED", ["Corrections only apply to the character table"])
            return self.df

        df = self.df
        names = self.confrontation.results
        if "age_below_20" not in names or "dog_years_consistent" not in names:
            self._log_stage("CORRECT", "SKIPPED", ["Custom rules given; nothing to correct"])
            return df
        unusable = [n for n in ("age_below_20", "dog_years_consistent")
                    if names[n].error or not names[n].row_wise]
        if unusable:
            self._log_stage("CORRECT", "SKIPPED",
                            [f"Rule {n} could not be evaluated per row" for n in unusable])
            return df

        # dog years were recorded correctly, so they recover the intended age
        mask = (self.confrontation.violation_mask("age_below_20")
                & self.confrontation.violation_mask("dog_years_consistent"))
        fixed_rows = df[mask]
        df = self.cleaner.correct("age_below_20", mask, "age",
                                  df["age_in_dog_years"] // DOG_YEARS_PER_YEAR)
        self.confrontation = confront(df, self.rules)

        section = Section("correct", "Correcting violations")
        section.add_paragraph(
            "A failed rule is a question, not an answer. Here the dog years agree "
            "with an age one tenth of the recorded one, so the recorded age is a "
            "typo and is replaced by dog years divided by seven."
        )
        if not fixed_rows.empty:
            section.add_table("Rows before correction", fixed_rows)
        section.add_table("Rule summary after correction", self.confrontation.summary())
        self.sections.append(section)

        status = "SUCCESS" if self.confrontation.all_passed else "WARNING"
        self._log_stage("CORRECT", status, [
            f"Corrected {int(mask.sum())} row(s)",
            f"All rules pass: {self.confrontation.all_passed}",
        ])
        return df

    # ------------------------------------------------------------------
    # Stage 7: EXPLORE
    # ------------------------------------------------------------------
    def explore(self) -> pd.DataFrame:
        """Summarize the cleaned table and the gapminder data."""
        self._banner(7, "EXPLORE")
        summary = summarize(self.df)
        gapminder_summary = summarize(load_gapminder())

        section = Section("explore", "Exploring the data")
        section.add_paragraph(
            "Summary statistics catch what rules do not anticipate: a minimum "
            "that is negative, a column with a single value, a maximum far "
            "from the median."
        )
        section.add_table("Summary of the cleaned table", summary)
        categorical = [c for c in self.df.columns if not pd.api.types.is_numeric_dtype(self.df[c])]
        if categorical:
            column = "personality_trait" if "personality_trait" in categorical else categorical[-1]
            section.add_table(f"Frequency of {column}", tabyl(self.df, column))
        section.add_table("Summary of the gapminder data", gapminder_summary)
        self.sections.append(section)

        self._log_stage("EXPLORE", "SUCCESS", [
            f"Summarized {len(summary)} column(s)",
            f"Gapminder columns summarized: {len(gapminder_summary)}",
        ])
        return summary

    # ------------------------------------------------------------------
    # Stage 8: PLOT
    # ------------------------------------------------------------------
    def plot(self) -> list[Path]:
        """Draw scatterplot matrices."""
        self._banner(8, "PLOT")
        if not self.make_plots:
            self._log_stage("PLOT", "SKIPPED", ["Plots disabled"])
            return []

        from messydata.plotting import gapminder_matrix, save_figure, scatter_matrix

        section = Section("plot", "Plotting")
        section.add_paragraph(
            "A scatterplot matrix shows every pair of numeric columns at once. "
            "Odd clusters, impossible values and suspicious straight lines stand "
            "out long before a summary table would reveal them."
        )
        paths = []
        path = save_figure(gapminder_matrix(self.gapminder_year),
                           self.figures_dir / GAPMINDER_FIGURE)
        section.add_figure(
            f"Life expectancy, population and GDP per capita in {self.gapminder_year}", path
        )
        paths.append(path)

        numeric = list(self.df.select_dtypes(include="number").columns)
        if self.user_data and len(numeric) >= 2:
            path = save_figure(scatter_matrix(self.df, numeric),
                               self.figures_dir / CHARACTER_FIGURE)
            section.add_figure("Numeric columns of the cleaned table", path)
            paths.append(path)
        self.sections.append(section)

        self._log_stage("PLOT", "SUCCESS", [f"Saved {p.name}" for p in paths])
        return paths

    # ------------------------------------------------------------------
    # Stage 9: REFLECTION
    # ------------------------------------------------------------------
    def reflect(self) -> Path:
        """Write the closing notes, the cleaning log and the HTML page."""
        self._banner(9, "REFLECTION")
        self.cleaner.generate_report(self.output_dir / CLEANING_LOG)

        section = Section("reflection", "Reflection")
        section.add_paragraph(
            "None of these checks is sophisticated, and none needs to be. Tidy "
            "names, no empty rows or columns, no accidental copies, a handful of "
            "written-down rules and a look at the numbers catch most of the mess "
            "before it reaches an analysis."
        )
        section.add_table("Cleaned table", self.df)
        self.sections.append(section)

        path = write_report(self.sections, self.output_dir / WALKTHROUGH_HTML, REPORT_TITLE)
        self._log_stage("REFLECTION", "SUCCESS", [f"Report: {path}"])
        return path

    # ------------------------------------------------------------------
    # Run all
    # ------------------------------------------------------------------
    def run(self) -> dict:
        """Run every stage in order and return the results."""
        logger.info("Starting messy-data walkthrough -> %s", self.output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        steps = [
            ("SPOTTING MESS", self.spot),
            ("CLEAN NAMES", self.clean_names),
            ("REMOVE EMPTY", self.remove_empty),
            ("DUPLICATES", self.duplicates),
            ("VALIDATE", self.validate),
            ("CORRECT", self.correct),
            ("EXPLORE", self.explore),
            ("PLOT", self.plot),
        ]
        for name, step in steps:
            try:
                step()
            except Exception as exc:
                self._log_stage(name, "FAILURE", [str(exc)])
                raise WalkthroughError(f"Stage {name} failed: {exc}") from exc

        try:
            report = self.reflect()
        except Exception as exc:
            self._log_stage("REFLECTION", "FAILURE", [str(exc)])
            raise WalkthroughError(f"Stage REFLECTION failed: {exc}") from exc

        return {
            "stages": self.stages,
            "report": report,
            "confrontation": self.confrontation,
            "cleaned": self.df,
        }
