"""
Messy Data Walkthrough
======================
Informal techniques for spotting and fixing messy tabular data:
tidy column names, empty rows/columns, duplicates, rule-based
validation, and exploratory summaries and plots.
"""

__version__ = "1.0.0"
