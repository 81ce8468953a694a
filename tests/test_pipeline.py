"""
Unit Tests for the Messy Data Walkthrough
=========================================
Tests each module independently to verify correctness of:
  - Sample tables
  - Column-name cleaning
  - Empty rows/columns and duplicates
  - Validation rules and confrontations
  - Schema expectations
  - Profiling and summaries
  - Scatterplot matrices
  - HTML rendering
  - Walkthrough orchestrator and CLI
"""

import numpy as np
import pandas as pd
import pytest
from unittest.mock import patch

from messydata.cleaner import (
    DataCleaner,
    drop_duplicates,
    get_dupes,
    remove_constant,
    remove_empty,
)
from messydata.expectations import CHARACTER_EXPECTATIONS, ExpectationSuite, SchemaValidator
from messydata.names import clean_names, is_tidy_name, make_clean_names, name_report
from messydata.profiler import DataProfiler, summarize, tabyl
from messydata.report import Section, render_html, write_report
from messydata.rules import Confrontation, Rule, RuleError, RuleSet, confront
from messydata.sample_data import load_csv, load_gapminder, make_characters


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def characters() -> pd.DataFrame:
    """The raw, messy character table."""
    return make_characters()


@pytest.fixture
def tidy_characters() -> pd.DataFrame:
    """Character table after names, empty columns and duplicates are cleaned."""
    return pd.DataFrame({
        "name": ["Anne", "Gilbert", "Diana", "Ruby"],
        "age": [11, 130, 11, 12],
        "age_in_dog_years": [77, 91, 77, 84],
        "personality_trait": ["imaginative", "competitive", "loyal", "romantic"],
    })


@pytest.fixture
def character_rules() -> RuleSet:
    return RuleSet(
        age_below_20="age < 20",
        age_positive="age > 0",
        dog_years_consistent="age_in_dog_years == age * 7",
    )


# ---------------------------------------------------------------------------
# Sample Data Tests
# ---------------------------------------------------------------------------
class TestSampleData:
    """Tests for the illustrative tables."""

    def test_characters_shape(self, characters):
        assert characters.shape == (5, 5)
        assert characters["Empty Column"].isna().all()

    def test_characters_has_duplicate_row(self, characters):
        assert characters.duplicated().sum() == 1

    def test_characters_fresh_copy(self):
        first = make_characters()
        first.loc[0, "AGE"] = 99
        assert make_characters().loc[0, "AGE"] == 11

    def test_gapminder_columns(self):
        df = load_gapminder()
        for col in ("country", "continent", "year", "lifeExp", "pop", "gdpPercap"):
            assert col in df.columns

    def test_gapminder_year_filter(self):
        df = load_gapminder(year=2007)
        assert len(df) > 0
        assert set(df["year"]) == {2007}

    def test_gapminder_continent_filter(self):
        df = load_gapminder(year=2007, continents="Oceania")
        assert set(df["continent"]) == {"Oceania"}

    def test_gapminder_unknown_year_is_empty(self):
        assert load_gapminder(year=1900).empty

    def test_gapminder_not_mutated(self):
        df = load_gapminder()
        df["pop"] = 0
        assert (load_gapminder()["pop"] > 0).all()

    def test_load_csv(self, characters, tmp_path):
        path = tmp_path / "chars.csv"
        characters.to_csv(path, index=False)
        df = load_csv(path)
        assert list(df.columns) == list(characters.columns)
        assert len(df) == 5

    def test_load_csv_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_csv(tmp_path / "nope.csv")


# ---------------------------------------------------------------------------
# Column Name Tests
# ---------------------------------------------------------------------------
class TestNames:
    """Tests for column-name cleaning."""

    def test_character_names(self, characters):
        assert make_clean_names(characters.columns) == [
            "name", "age", "age_in_dog_years", "personality_trait", "empty_column",
        ]

    def test_duplicates_get_suffixes(self):
        assert make_clean_names(["a", "A", "a"]) == ["a", "a_2", "a_3"]

    def test_symbols_spelled_out(self):
        assert make_clean_names(["% Done", "# of items"]) == ["percent_done", "number_of_items"]

    def test_camel_case(self):
        assert make_clean_names(["firstName"]) == ["first_name"]

    def test_leading_digit_and_empty(self):
        assert make_clean_names(["2019 sales", ""]) == ["x2019_sales", "x"]

    def test_tidy_names_unchanged(self):
        assert make_clean_names(["id", "value_1"]) == ["id", "value_1"]

    def test_empty_input(self):
        assert make_clean_names([]) == []

    def test_clean_names_returns_copy(self, characters):
        cleaned = clean_names(characters)
        assert list(characters.columns)[0] == "Name"
        assert list(cleaned.columns)[0] == "name"
        assert cleaned["age"].tolist() == characters["AGE"].tolist()

    def test_is_tidy_name(self):
        assert is_tidy_name("age_in_dog_years")
        assert not is_tidy_name("Age")
        assert not is_tidy_name("age__years")
        assert not is_tidy_name("age_")
        assert not is_tidy_name("1age")
        assert not is_tidy_name(3)

    def test_name_report(self, characters):
        report = name_report(characters)
        assert list(report.columns) == ["original", "cleaned", "changed"]
        assert report["changed"].all()
        assert all(is_tidy_name(n) for n in report["cleaned"])


# ---------------------------------------------------------------------------
# Cleaner Tests
# ---------------------------------------------------------------------------
class TestCleaner:
    """Tests for empty/duplicate handling and DataCleaner."""

    def test_remove_empty_both(self, characters):
        result = remove_empty(characters)
        assert "Empty Column" not in result.columns
        assert len(result) == 5

    def test_remove_empty_rows_resets_index(self):
        df = pd.DataFrame({"a": [1, np.nan, 3], "b": ["x", None, "z"]})
        result = remove_empty(df, "rows")
        assert len(result) == 2
        assert list(result.index) == [0, 1]

    def test_remove_empty_cols_only(self):
        df = pd.DataFrame({"a": [np.nan, np.nan], "b": [1, np.nan]})
        result = remove_empty(df, "cols")
        assert list(result.columns) == ["b"]
        assert len(result) == 2

    def test_empty_strings_are_present(self):
        df = pd.DataFrame({"a": ["", None], "b": [None, None]})
        result = remove_empty(df, "cols")
        assert list(result.columns) == ["a"]

    def test_remove_empty_invalid_axis(self, characters):
        with pytest.raises(ValueError):
            remove_empty(characters, "diagonal")

    def test_remove_empty_both_drops_rows(self):
        df = pd.DataFrame({
            "a": [1, np.nan, 3],
            "b": ["x", None, "z"],
            "c": [np.nan, np.nan, np.nan],
        })
        result = remove_empty(df)
        assert list(result.columns) == ["a", "b"]
        assert result["a"].tolist() == [1, 3]
        assert list(result.index) == [0, 1]

    def test_get_dupes_counts(self, characters):
        dupes = get_dupes(clean_names(characters))
        assert len(dupes) == 2
        assert dupes["name"].tolist() == ["Diana", "Diana"]
        assert dupes["dupe_count"].tolist() == [2, 2]

    def test_get_dupes_subset(self, characters):
        dupes = get_dupes(clean_names(characters), columns="age")
        assert sorted(dupes["name"]) == ["Anne", "Diana", "Diana"]
        assert set(dupes["dupe_count"]) == {3}

    def test_get_dupes_none(self, tidy_characters):
        dupes = get_dupes(tidy_characters)
        assert dupes.empty
        assert "dupe_count" in dupes.columns

    def test_get_dupes_unknown_column(self, tidy_characters):
        with pytest.raises(KeyError):
            get_dupes(tidy_characters, columns=["height"])

    def test_drop_duplicates(self, characters):
        result = drop_duplicates(characters)
        assert len(result) == 4
        assert list(result.index) == [0, 1, 2, 3]

    def test_remove_constant(self):
        df = pd.DataFrame({"a": [1, 1, 1], "b": [1, 2, 3], "c": [np.nan, np.nan, np.nan]})
        assert list(remove_constant(df).columns) == ["b"]

    def test_full_cleaning(self, characters):
        cleaner = DataCleaner(characters)
        result = cleaner.run_full_cleaning()
        assert result.shape == (4, 4)
        assert list(result.columns) == ["name", "age", "age_in_dog_years", "personality_trait"]
        categories = {a["category"] for a in cleaner.actions}
        assert categories == {"Column Names", "Empty Data", "Duplicates"}

    def test_original_untouched(self, characters):
        DataCleaner(characters).run_full_cleaning()
        assert characters.shape == (5, 5)

    def test_duplicate_rows_logged(self, characters):
        cleaner = DataCleaner(characters)
        cleaner.remove_duplicates()
        assert cleaner.actions[-1]["rows"] == [4]

    def test_correct_with_series(self, tidy_characters):
        cleaner = DataCleaner(tidy_characters)
        mask = tidy_characters["age"] > 100
        cleaner.correct("age_below_20", mask, "age", tidy_characters["age_in_dog_years"] // 7)
        assert cleaner.df["age"].tolist() == [11, 13, 11, 12]
        assert cleaner.actions[-1]["rows"] == [2]

    def test_correct_unknown_column(self, tidy_characters):
        cleaner = DataCleaner(tidy_characters)
        with pytest.raises(KeyError):
            cleaner.correct("r", tidy_characters["age"] > 0, "height", 1)

    def test_report_generation(self, characters, tmp_path):
        cleaner = DataCleaner(characters)
        cleaner.run_full_cleaning()
        out_file = tmp_path / "cleaning.txt"
        report = cleaner.generate_report(filepath=out_file)
        assert "DATA CLEANING LOG" in report
        assert "Duplicates" in report
        assert out_file.exists()


# ---------------------------------------------------------------------------
# Rules Tests
# ---------------------------------------------------------------------------
class TestRules:
    """Tests for rule declaration and confrontation."""

    def test_unnamed_rules_numbered(self):
        rules = RuleSet("age < 20", "age > 0")
        assert rules.names == ["V1", "V2"]

    def test_duplicate_name_rejected(self):
        rules = RuleSet(a="age < 20")
        with pytest.raises(RuleError):
            rules.add("age > 0", name="a")

    def test_empty_expression_rejected(self):
        with pytest.raises(RuleError):
            Rule("r", "   ")

    def test_unparsable_expression_rejected(self):
        with pytest.raises(RuleError):
            Rule("r", "age <")

    def test_variables(self):
        rules = RuleSet(a="x > y", b="`Age in Dog Years` > 0")
        assert rules.variables() == ["Age in Dog Years", "x", "y"]

    def test_from_file(self, tmp_path):
        path = tmp_path / "rules.txt"
        path.write_text("# character rules\n\nage_ok: age < 20\nage > 0\n")
        rules = RuleSet.from_file(path)
        assert rules.names == ["age_ok", "V2"]
        assert rules["age_ok"].expression == "age < 20"

    def test_confront_counts(self, tidy_characters, character_rules):
        summary = confront(tidy_characters, character_rules).summary().set_index("name")
        assert summary.loc["age_below_20", "items"] == 4
        assert summary.loc["age_below_20", "passes"] == 3
        assert summary.loc["age_below_20", "fails"] == 1
        assert summary.loc["age_positive", "fails"] == 0
        assert summary.loc["dog_years_consistent", "fails"] == 1

    def test_summary_columns(self, tidy_characters, character_rules):
        summary = confront(tidy_characters, character_rules).summary()
        assert list(summary.columns) == Confrontation.SUMMARY_COLUMNS

    def test_missing_values_counted_as_na(self):
        df = pd.DataFrame({"age": [10, np.nan, 30]})
        row = confront(df, RuleSet("age < 20")).summary().iloc[0]
        assert row["items"] == 3
        assert row["passes"] == 1
        assert row["fails"] == 1
        assert row["nNA"] == 1

    def test_error_recorded_not_raised(self, tidy_characters):
        result = confront(tidy_characters, RuleSet(tall="height > 150"))
        row = result.summary().iloc[0]
        assert bool(row["error"]) is True
        assert row["items"] == 0
        assert "tall" in result.errors
        assert not result.all_passed

    def test_non_boolean_is_error(self, tidy_characters):
        result = confront(tidy_characters, RuleSet(plus="age + 1"))
        assert bool(result.summary().iloc[0]["error"]) is True

    def test_empty_table(self):
        df = pd.DataFrame({"age": pd.Series(dtype="int64")})
        row = confront(df, RuleSet("age < 20")).summary().iloc[0]
        assert row["items"] == 0
        assert bool(row["error"]) is False

    def test_string_comparison(self, tidy_characters):
        row = confront(tidy_characters, RuleSet("personality_trait != 'grumpy'")).summary().iloc[0]
        assert row["passes"] == 4

    def test_violating(self, tidy_characters, character_rules):
        result = confront(tidy_characters, character_rules)
        bad = result.violating(tidy_characters, "age_below_20")
        assert bad["name"].tolist() == ["Gilbert"]

    def test_violating_unknown_rule(self, tidy_characters, character_rules):
        result = confront(tidy_characters, character_rules)
        with pytest.raises(KeyError):
            result.violating(tidy_characters, "nope")

    def test_values_matrix(self, tidy_characters, character_rules):
        values = confront(tidy_characters, character_rules).values()
        assert values.shape == (4, 3)
        assert values["age_below_20"].tolist() == [True, False, True, True]

    def test_failed_rows(self, tidy_characters, character_rules):
        assert confront(tidy_characters, character_rules).failed_rows == [2]

    def test_all_passed_after_fix(self, tidy_characters, character_rules):
        tidy_characters.loc[1, "age"] = 13
        assert confront(tidy_characters, character_rules).all_passed

    def test_scalar_rule_is_one_item(self, tidy_characters):
        result = confront(tidy_characters, RuleSet(young_on_average="age.mean() < 50"))
        row = result.summary().iloc[0]
        assert row["items"] == 1
        assert row["passes"] == 1
        assert bool(row["error"]) is False
        assert "young_on_average" not in result.values().columns
        with pytest.raises(ValueError):
            result.violating(tidy_characters, "young_on_average")

    def test_report_generation(self, tidy_characters, character_rules, tmp_path):
        out_file = tmp_path / "validation.txt"
        report = confront(tidy_characters, character_rules).generate_report(out_file)
        assert "VALIDATION RESULTS" in report
        assert "failing rows: [2]" in report
        assert out_file.exists()


# ---------------------------------------------------------------------------
# Schema Expectation Tests
# ---------------------------------------------------------------------------
class TestSchemaValidator:
    """Tests for the pandera-backed expectations."""

    def test_run_validation(self, tidy_characters):
        results = SchemaValidator(tidy_characters).run_validation()
        assert results["total"] == len(CHARACTER_EXPECTATIONS)
        assert results["failed"] == 1
        failing = [r for r in results["results"] if not r["success"]]
        assert failing[0]["kwargs"]["column"] == "age"
        assert not results["failure_cases"].empty

    def test_clean_table_passes(self, tidy_characters):
        tidy_characters.loc[1, "age"] = 13
        results = SchemaValidator(tidy_characters).run_validation()
        assert results["failed"] == 0
        assert results["pass_rate_pct"] == 100.0

    def test_missing_column(self, tidy_characters):
        results = SchemaValidator(tidy_characters.drop(columns="personality_trait")).run_validation()
        failing = {r["expectation"] for r in results["results"] if not r["success"]}
        assert "expect_column_to_exist" in failing

    def test_not_null_and_unique(self):
        suite = ExpectationSuite("s", [
            {"type": "expect_column_values_to_not_be_null", "kwargs": {"column": "a"}},
            {"type": "expect_column_values_to_be_unique", "kwargs": {"column": "a"}},
            {"type": "expect_column_values_to_be_in_set", "kwargs": {"column": "a", "value_set": [1, 2]}},
        ])
        results = SchemaValidator(pd.DataFrame({"a": [1, 1, np.nan]}), suite).run_validation()
        assert [r["success"] for r in results["results"]] == [False, False, True]

    def test_unknown_expectation(self, tidy_characters):
        suite = ExpectationSuite("s", [{"type": "expect_magic", "kwargs": {"column": "age"}}])
        with pytest.raises(ValueError):
            SchemaValidator(tidy_characters, suite).run_validation()

    def test_generate_report(self, tidy_characters, tmp_path):
        validator = SchemaValidator(tidy_characters)
        out = tmp_path / "schema.txt"
        report = validator.generate_report(filepath=out)
        assert "SCHEMA EXPECTATIONS REPORT" in report
        assert "FAILURE CASES" in report
        assert out.exists()


# ---------------------------------------------------------------------------
# Profiler Tests
# ---------------------------------------------------------------------------
class TestProfiler:
    """Tests for summaries and DataProfiler."""

    def test_summarize_numeric(self, tidy_characters):
        summary = summarize(tidy_characters).set_index("column")
        assert summary.loc["age", "min"] == 11
        assert summary.loc["age", "max"] == 130
        assert summary.loc["age", "n_missing"] == 0
        assert summary.loc["age", "complete_rate"] == 1.0
        assert summary.loc["age", "n_unique"] == 3

    def test_summarize_missing(self, characters):
        summary = summarize(characters).set_index("column")
        assert summary.loc["Empty Column", "n_missing"] == 5
        assert summary.loc["Empty Column", "complete_rate"] == 0.0
        assert summary.loc["Personality Trait", "top"] == "loyal"
        assert summary.loc["Personality Trait", "top_freq"] == 2

    def test_summarize_empty_table(self):
        summary = summarize(pd.DataFrame({"a": pd.Series(dtype=float)}))
        assert summary.loc[0, "n_missing"] == 0
        assert np.isnan(summary.loc[0, "complete_rate"])

    def test_tabyl(self, characters):
        table = tabyl(characters, "Personality Trait")
        assert table.loc[0, "Personality Trait"] == "loyal"
        assert table.loc[0, "n"] == 2
        assert table.loc[0, "percent"] == pytest.approx(0.4)
        assert table["n"].sum() == 5

    def test_tabyl_keeps_missing(self):
        table = tabyl(pd.DataFrame({"x": ["a", None, "a"]}), "x")
        assert table["n"].tolist() == [2, 1]
        assert table["x"].isna().iloc[1]

    def test_tabyl_unknown_column(self, characters):
        with pytest.raises(KeyError):
            tabyl(characters, "height")

    def test_full_profile(self, characters):
        results = DataProfiler(characters).run_full_profile()
        assert results["duplicate_rows"] == [4]
        assert results["empty"]["columns"] == ["Empty Column"]
        assert results["untidy_names"]["Age in Dog Years"] == "age_in_dog_years"
        assert results["completeness"]["Empty Column"]["percentage"] == 0.0

    def test_profile_clean_table(self, tidy_characters):
        results = DataProfiler(tidy_characters).run_full_profile()
        assert results["issues"] == []

    def test_report_generation(self, characters, tmp_path):
        out_file = tmp_path / "profile.txt"
        report = DataProfiler(characters).generate_report(filepath=out_file)
        assert "DATA PROFILE REPORT" in report
        assert "Duplicate Rows" in report
        assert out_file.exists()


# ---------------------------------------------------------------------------
# Plotting Tests
# ---------------------------------------------------------------------------
class TestPlotting:
    """Tests for scatterplot matrices."""

    def test_scatter_matrix(self, tidy_characters):
        from messydata.plotting import scatter_matrix
        grid = scatter_matrix(tidy_characters)
        assert list(grid.x_vars) == ["age", "age_in_dog_years"]

    def test_log_scale_variables(self):
        from messydata.plotting import scatter_matrix
        df = load_gapminder(year=2007)
        grid = scatter_matrix(df, ["lifeExp", "gdpPercap"], log_scale=["gdpPercap"])
        assert list(grid.x_vars) == ["lifeExp", "log10(gdpPercap)"]

    def test_unknown_variable(self, tidy_characters):
        from messydata.plotting import scatter_matrix
        with pytest.raises(KeyError):
            scatter_matrix(tidy_characters, ["age", "height"])

    def test_needs_two_variables(self, tidy_characters):
        from messydata.plotting import scatter_matrix
        with pytest.raises(ValueError):
            scatter_matrix(tidy_characters, ["age"])

    def test_non_numeric_variable(self, tidy_characters):
        from messydata.plotting import scatter_matrix
        with pytest.raises(ValueError):
            scatter_matrix(tidy_characters, ["age", "name"])

    def test_gapminder_matrix_saved(self, tmp_path):
        from messydata.plotting import gapminder_matrix, save_figure
        path = save_figure(gapminder_matrix(2007), tmp_path / "figs" / "gapminder.png")
        assert path.exists()
        assert path.stat().st_size > 0

    def test_gapminder_unknown_year(self):
        from messydata.plotting import gapminder_matrix
        with pytest.raises(ValueError):
            gapminder_matrix(1900)


# ---------------------------------------------------------------------------
# Report Tests
# ---------------------------------------------------------------------------
class TestReport:
    """Tests for HTML rendering."""

    def test_table_of_contents(self, tidy_characters):
        sections = [
            Section("one", "First", ["Hello"]),
            Section("two", "Second", tables=[("Table", tidy_characters)]),
        ]
        page = render_html(sections, "Title")
        assert '<a href="#one">First</a>' in page
        assert '<a href="#two">Second</a>' in page
        assert '<section id="two">' in page
        assert "Gilbert" in page

    def test_text_is_escaped(self):
        page = render_html([Section("s", "A <b> title", ["x < y & z"])], "T")
        assert "A &lt;b&gt; title" in page
        assert "x &lt; y &amp; z" in page

    def test_tables_are_snapshots(self, tidy_characters):
        section = Section("s", "S")
        section.add_table("before", tidy_characters)
        tidy_characters.loc[1, "age"] = 13
        assert section.tables[0][1].loc[1, "age"] == 130

    def test_figure_paths_relative(self, tmp_path):
        section = Section("p", "Plots")
        section.add_figure("Matrix", tmp_path / "figures" / "m.png")
        path = write_report([section], tmp_path / "page.html", "T")
        assert 'src="figures/m.png"' in path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Walkthrough Integration Tests
# ---------------------------------------------------------------------------
class TestWalkthrough:
    """Integration tests for the walkthrough orchestrator."""

    def test_run_without_plots(self, tmp_path):
        from messydata.pipeline import Walkthrough
        results = Walkthrough(output_dir=tmp_path, make_plots=False).run()

        cleaned = results["cleaned"]
        assert cleaned.shape == (4, 4)
        assert cleaned.loc[cleaned["name"] == "Gilbert", "age"].item() == 13
        assert results["confrontation"].all_passed
        assert results["report"].exists()

        statuses = {s["stage"]: s["status"] for s in results["stages"]}
        assert statuses["PLOT"] == "SKIPPED"
        assert statuses["CORRECT"] == "SUCCESS"
        assert statuses["REFLECTION"] == "SUCCESS"

        for name in ("profile_report.txt", "cleaning_log.txt",
                     "validation_results.txt", "schema_report.txt"):
            assert (tmp_path / name).exists()

    def test_report_has_all_sections(self, tmp_path):
        from messydata.pipeline import Walkthrough
        results = Walkthrough(output_dir=tmp_path, make_plots=False).run()
        page = results["report"].read_text(encoding="utf-8")
        for anchor in ("spotting-mess", "clean-names", "remove-empty", "duplicates",
                       "validate", "correct", "explore", "reflection"):
            assert f'href="#{anchor}"' in page

    def test_run_with_plots(self, tmp_path):
        from messydata.pipeline import Walkthrough
        results = Walkthrough(output_dir=tmp_path, make_plots=True).run()
        assert (tmp_path / "figures" / "gapminder_matrix.png").exists()
        assert "figures/gapminder_matrix.png" in results["report"].read_text(encoding="utf-8")

    def test_user_data_without_rules(self, tmp_path):
        from messydata.pipeline import Walkthrough
        data = pd.DataFrame({"Score A": [1, 2, 2], "Score B": [3, 4, 4], "Blank": [None] * 3})
        results = Walkthrough(output_dir=tmp_path, make_plots=False, data=data).run()
        statuses = {s["stage"]: s["status"] for s in results["stages"]}
        assert statuses["VALIDATE"] == "SKIPPED"
        assert statuses["CORRECT"] == "SKIPPED"
        assert list(results["cleaned"].columns) == ["score_a", "score_b"]
        assert len(results["cleaned"]) == 2

    def test_user_data_with_rules(self, tmp_path):
        from messydata.pipeline import Walkthrough
        data = pd.DataFrame({"Score": [1, 5, 9]})
        results = Walkthrough(output_dir=tmp_path, make_plots=False, data=data,
                              rules=RuleSet(small="score < 8")).run()
        summary = results["confrontation"].summary().set_index("name")
        assert summary.loc["small", "fails"] == 1

    def test_custom_rules_skip_correction(self, tmp_path):
        from messydata.pipeline import Walkthrough
        results = Walkthrough(output_dir=tmp_path, make_plots=False,
                              rules=RuleSet(named="name != ''")).run()
        statuses = {s["stage"]: s["status"] for s in results["stages"]}
        assert statuses["CORRECT"] == "SKIPPED"

    def test_unevaluable_rule_skips_correction(self, tmp_path):
        from messydata.pipeline import Walkthrough
        rules = RuleSet(age_below_20="height < 20",
                        dog_years_consistent="age_in_dog_years == age * 7")
        results = Walkthrough(output_dir=tmp_path, make_plots=False, rules=rules).run()
        statuses = {s["stage"]: s["status"] for s in results["stages"]}
        assert statuses["VALIDATE"] == "WARNING"
        assert statuses["CORRECT"] == "SKIPPED"
        assert "age_below_20" in results["confrontation"].errors
        assert results["report"].exists()

    def test_stage_failure_wrapped(self, tmp_path):
        from messydata.pipeline import Walkthrough, WalkthroughError
        walkthrough = Walkthrough(output_dir=tmp_path, make_plots=False)
        with patch("messydata.pipeline.summarize", side_effect=RuntimeError("boom")):
            with pytest.raises(WalkthroughError):
                walkthrough.run()
        assert walkthrough.stages[-1]["stage"] == "EXPLORE"
        assert walkthrough.stages[-1]["status"] == "FAILURE"


# ---------------------------------------------------------------------------
# CLI Tests
# ---------------------------------------------------------------------------
class TestMain:
    """Tests for the command-line entry point."""

    def test_runs_walkthrough(self, tmp_path):
        from main import main
        main(["--output-dir", str(tmp_path), "--no-plots"])
        assert (tmp_path / "walkthrough.html").exists()

    def test_missing_input(self, tmp_path):
        from main import main
        with pytest.raises(SystemExit) as exc:
            main(["--input", str(tmp_path / "missing.csv"), "--output-dir", str(tmp_path)])
        assert exc.value.code == 1

    def test_empty_input(self, tmp_path):
        from main import main
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(SystemExit) as exc:
            main(["--input", str(path), "--output-dir", str(tmp_path)])
        assert exc.value.code == 1

    def test_malformed_input(self, tmp_path):
        from main import main
        path = tmp_path / "bad.csv"
        path.write_text('a,b\n1,"unterminated\n')
        with pytest.raises(SystemExit) as exc:
            main(["--input", str(path), "--output-dir", str(tmp_path)])
        assert exc.value.code == 1

    def test_missing_rules_file(self, tmp_path):
        from main import main
        with pytest.raises(SystemExit) as exc:
            main(["--rules", str(tmp_path / "missing.txt"), "--output-dir", str(tmp_path)])
        assert exc.value.code == 1

    def test_summary_only(self, tmp_path, capsys):
        from main import main
        main(["--summary-only", "--output-dir", str(tmp_path)])
        out = capsys.readouterr().out
        assert "Personality Trait" in out
        assert not (tmp_path / "walkthrough.html").exists()

    def test_rules_file(self, tmp_path):
        from main import main
        rules = tmp_path / "rules.txt"
        rules.write_text("age_below_20: age < 20\ndog_years_consistent: age_in_dog_years == age * 7\n")
        main(["--rules", str(rules), "--output-dir", str(tmp_path), "--no-plots"])
        report = (tmp_path / "validation_results.txt").read_text(encoding="utf-8")
        assert "age_below_20" in report
