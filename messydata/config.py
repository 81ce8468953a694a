"""
Configuration Module
====================
Defines file paths, the default validation rules for the character table,
name-cleaning options, and plotting settings used throughout the
messy-data walkthrough.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Load .env file into os.environ (before any os.environ.get calls)
# ---------------------------------------------------------------------------
_project_root = Path(__file__).resolve().parent.parent
_env_file = _project_root / ".env"
_env_example = _project_root / ".env.example"

# Prefer .env; fall back to .env.example
if _env_file.exists():
    load_dotenv(dotenv_path=_env_file, override=False)
elif _env_example.exists():
    load_dotenv(dotenv_path=_env_example, override=False)

# ---------------------------------------------------------------------------
# Directory paths
# ---------------------------------------------------------------------------
BASE_DIR = _project_root
OUTPUT_DIR = Path(os.environ.get("MESSYDATA_OUTPUT_DIR", str(BASE_DIR / "output")))
FIGURES_DIR = OUTPUT_DIR / "figures"

# Report file names (relative to the output directory)
WALKTHROUGH_HTML = "walkthrough.html"
PROFILE_REPORT = "profile_report.txt"
CLEANING_LOG = "cleaning_log.txt"
VALIDATION_RESULTS = "validation_results.txt"
SCHEMA_REPORT = "schema_report.txt"
GAPMINDER_FIGURE = "gapminder_matrix.png"
CHARACTER_FIGURE = "characters_matrix.png"

# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------
LOG_LEVEL = os.environ.get("MESSYDATA_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

PLOTS_ENABLED = os.environ.get("MESSYDATA_PLOTS", "true").lower() == "true"
GAPMINDER_YEAR = int(os.environ.get("MESSYDATA_GAPMINDER_YEAR", "2007"))

# ---------------------------------------------------------------------------
# Column-name cleaning
# ---------------------------------------------------------------------------
# Symbols spelled out before pyjanitor strips special characters
NAME_SYMBOL_WORDS = {
    "%": " percent ",
    "#": " number ",
    "&": " and ",
    "@": " at ",
}

CLEAN_NAMES_OPTIONS = {
    "case_type": "snake",
    "remove_special": True,
    "strip_accents": True,
    "strip_underscores": True,
}

EMPTY_NAME_PLACEHOLDER = "x"

# ---------------------------------------------------------------------------
# Validation rules for the (cleaned) character table
# ---------------------------------------------------------------------------
DOG_YEARS_PER_YEAR = 7

CHARACTER_RULES = {
    "age_below_20": "age < 20",
    "age_positive": "age > 0",
    "dog_years_consistent": f"age_in_dog_years == age * {DOG_YEARS_PER_YEAR}",
}

CHARACTER_RULE_DESCRIPTIONS = {
    "age_below_20": "Every character should be a teenager or younger",
    "age_positive": "Ages are counted in whole years from birth",
    "dog_years_consistent": "Dog years are human years times seven",
}

# ---------------------------------------------------------------------------
# Plotting
# ---------------------------------------------------------------------------
GAPMINDER_VARIABLES = ["lifeExp", "pop", "gdpPercap"]
GAPMINDER_LOG_VARIABLES = ["pop", "gdpPercap"]
GAPMINDER_HUE = "continent"

PLOT_STYLE = "whitegrid"
PLOT_DPI = 100
