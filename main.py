"""
Main Entry Point
=================
Runs the messy-data walkthrough and writes the rendered HTML page,
the text reports and the figures to the output directory.

Usage:
    python main.py
    python main.py --output-dir out/
    python main.py --input data/survey.csv --rules rules.txt
    python main.py --input data/survey.csv --summary-only
    python main.py --no-plots                     # Skip scatterplot matrices
"""

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from messydata.config import LOG_DATE_FORMAT, LOG_FORMAT, LOG_LEVEL, OUTPUT_DIR, PLOTS_ENABLED
from messydata.pipeline import Walkthrough, WalkthroughError
from messydata.rules import RuleError, RuleSet


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the walkthrough."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else LOG_LEVEL,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Spot and fix messy tabular data",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=str(OUTPUT_DIR),
        help=f"Directory for the HTML page, reports and figures (default: {OUTPUT_DIR})",
    )
    parser.add_argument(
        "--input",
        type=str,
        default=None,
        help="CSV file to clean instead of the built-in character table",
    )
    parser.add_argument(
        "--rules",
        type=str,
        default=None,
        help="Text file with one validation rule per line ('name: expression')",
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Skip drawing scatterplot matrices",
    )
    parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Print a column summary of the input and exit",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    """Entry point for the walkthrough."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    logger = logging.getLogger(__name__)
    logger.info("Starting messy-data walkthrough")

    from messydata.sample_data import load_csv, make_characters

    data = None
    if args.input:
        try:
            data = load_csv(args.input)
        except FileNotFoundError as exc:
            logger.error("%s", exc)
            sys.exit(1)
        except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
            logger.error("Could not read %s: %s", args.input, exc)
            sys.exit(1)

    if args.summary_only:
        from messydata.profiler import summarize
        table = data if data is not None else make_characters()
        print(summarize(table).to_string(index=False))
        return

    rules = None
    if args.rules:
        rules_path = Path(args.rules)
        if not rules_path.exists():
            logger.error("Rules file not found: %s", rules_path)
            sys.exit(1)
        try:
            rules = RuleSet.from_file(rules_path)
        except RuleError as exc:
            logger.error("Invalid rules file: %s", exc)
            sys.exit(1)

    try:
        walkthrough = Walkthrough(
            output_dir=Path(args.output_dir),
            make_plots=PLOTS_ENABLED and not args.no_plots,
            rules=rules,
            data=data,
        )
        results = walkthrough.run()
        logger.info("Walkthrough complete. Page saved to %s", results["report"])
    except WalkthroughError as exc:
        logger.error("Walkthrough failed: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
