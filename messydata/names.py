"""
Column Name Cleaning
====================
Turns whatever headers a spreadsheet export produced into tidy,
unique snake_case names. The heavy lifting is pyjanitor's
``clean_names``; this module only spells out a few symbols first and
makes the result unique afterwards.
"""

import logging
import re
from typing import Iterable

import janitor  # noqa: F401  (registers DataFrame.clean_names)
import pandas as pd

from messydata.config import (
    CLEAN_NAMES_OPTIONS,
    EMPTY_NAME_PLACEHOLDER,
    NAME_SYMBOL_WORDS,
)

logger = logging.getLogger(__name__)

TIDY_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9]*(_[a-z0-9]+)*$")


def _spell_symbols(name) -> str:
    text = "" if pd.isna(name) else str(name)
    for symbol, word in NAME_SYMBOL_WORDS.items():
        text = text.replace(symbol, word)
    return text


def _finish(name: str) -> str:
    name = re.sub(r"_+", "_", name).strip("_")
    if not name:
        return EMPTY_NAME_PLACEHOLDER
    if name[0].isdigit():
        return f"{EMPTY_NAME_PLACEHOLDER}{name}"
    return name


def _make_unique(names: list[str]) -> list[str]:
    seen: set[str] = set()
    counts: dict[str, int] = {}
    unique = []
    for name in names:
        candidate = name
        while candidate in seen:
            counts[name] = counts.get(name, 1) + 1
            candidate = f"{name}_{counts[name]}"
        seen.add(candidate)
        unique.append(candidate)
    return unique


def make_clean_names(names: Iterable) -> list[str]:
    """Return tidy, unique snake_case versions of ``names`` in order."""
    spelled = [_spell_symbols(n) for n in names]
    if not spelled:
        return []
    cleaned = (
        pd.DataFrame(columns=spelled)
        .clean_names(preserve_original_labels=False, **CLEAN_NAMES_OPTIONS)
        .columns
    )
    return _make_unique([_finish(str(n)) for n in cleaned])


def clean_names(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of ``df`` with tidy column names."""
    out = df.copy()
    new_names = make_clean_names(df.columns)
    renamed = sum(1 for old, new in zip(df.columns, new_names) if str(old) != new)
    out.columns = new_names
    logger.info("Cleaned column names: %d of %d renamed", renamed, len(new_names))
    return out


def is_tidy_name(name) -> bool:
    """True when ``name`` is lowercase snake_case starting with a letter."""
    return isinstance(name, str) and bool(TIDY_NAME_PATTERN.match(name))


def name_report(df: pd.DataFrame) -> pd.DataFrame:
    """Side-by-side table of original and cleaned column names."""
    cleaned = make_clean_names(df.columns)
    return pd.DataFrame({
        "original": [str(c) for c in df.columns],
        "cleaned": cleaned,
        "changed": [str(o) != c for o, c in zip(df.columns, cleaned)],
    })
