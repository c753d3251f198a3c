"""
STORMIE Command Line Interface (CLI)
====================================

Runs the whole analysis once and prints the four rankings:

    python -m stormie.cli --csv "path/to/StormData.csv.bz2"

Optional outputs:
    --charts DIR         write one horizontal bar chart per ranking
    --docx OUT.docx      write a DOCX report (tables + charts)
    --export-csv PATH    write the per-category aggregates
    --export-json PATH

Nothing is written unless all four rankings were computed. Load errors and
invalid exponent codes end the run with exit status 1.
"""

from __future__ import annotations
import argparse
import logging
import os
import shutil
import sys
import tempfile
from typing import List, Optional

import structlog

from .engine import StormAnalysis, run_analysis
from .errors import StormieError
from .models import ColumnMap
from .report import (
    RANKING_TITLES,
    DatasetCitation,
    ReportConfig,
    format_table,
    generate_docx_report,
    write_charts,
)


def configure_logging(verbose: bool = False) -> None:
    """Send structlog output to stderr so stdout only carries the tables."""
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="stormie", description="Rank storm event types by health and economic impact.")
    ap.add_argument("--csv", required=True, help="Path to the storm data file (csv, csv.bz2, csv.gz, ...)")
    ap.add_argument("--top", type=int, default=10, help="How many categories per ranking (default 10)")
    ap.add_argument("--raw", action="store_true", help="Group by the raw event type instead of the normalized one")
    ap.add_argument("--skip-invalid", action="store_true",
                    help="Drop records with an unrecognized exponent code instead of aborting")
    ap.add_argument("--charts", metavar="DIR", help="Write bar charts (PNG) to this directory")
    ap.add_argument("--log-scale", action="store_true", help="Log-scale the value axis of the charts")
    ap.add_argument("--docx", metavar="OUT", help="Write a DOCX report")
    ap.add_argument("--export-csv", metavar="PATH", help="Export per-category aggregates as CSV")
    ap.add_argument("--export-json", metavar="PATH", help="Export per-category aggregates as JSON")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")

    cols = ap.add_argument_group("column names")
    defaults = ColumnMap()
    for name, default in defaults.as_dict().items():
        ap_name = "--col-" + name.replace("_", "-")
        cols.add_argument(ap_name, dest=f"col_{name}", default=default, help=f"(default {default})")
    return ap


def _columns(args: argparse.Namespace) -> ColumnMap:
    return ColumnMap(**{name: getattr(args, f"col_{name}") for name in ColumnMap().as_dict()})


def print_rankings(analysis: StormAnalysis, rankings) -> None:
    print(f"Events: {len(analysis.events):,} | categories: {len(analysis.aggregates):,} "
          f"| raw event types: {analysis.cardinality['raw']:,} "
          f"| normalized: {analysis.cardinality['normalized']:,}")
    if analysis.skipped:
        print(f"Skipped {len(analysis.skipped):,} records with invalid exponent codes.")
    for metric, ranked in rankings.items():
        print("")
        print(RANKING_TITLES[metric])
        print(format_table(ranked, metric))


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the STORMIE CLI.

    1) Load dataset and build the analysis
    2) Compute the four rankings
    3) Print them, then write any requested files
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    if args.top < 0:
        print("Error: --top must be >= 0", file=sys.stderr)
        return 2

    try:
        analysis = run_analysis(
            args.csv,
            columns=_columns(args),
            on_invalid="skip" if args.skip_invalid else "raise",
            group_by="raw" if args.raw else "normalized",
        )
    except StormieError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    rankings = analysis.all_rankings(args.top)
    print_rankings(analysis, rankings)

    try:
        messages = write_outputs(args, analysis, rankings)
    except OSError as e:
        print(f"Error: cannot write output files: {e}", file=sys.stderr)
        return 1
    for line in messages:
        print(line)
    return 0


def write_outputs(args: argparse.Namespace, analysis: StormAnalysis, rankings) -> List[str]:
    """Render every requested file in a scratch directory, then copy them into place.

    A rendering failure leaves no output behind. Destinations are checked
    before the first file is copied.
    """
    messages: List[str] = []
    staged = []
    with tempfile.TemporaryDirectory(prefix="stormie_") as tmp:
        chart_paths = None
        if args.charts or args.docx:
            chart_paths = write_charts(rankings, os.path.join(tmp, "charts"), log_scale=args.log_scale)
        if args.charts:
            for path in chart_paths.values():
                staged.append((path, os.path.join(args.charts, os.path.basename(path))))
            messages.append(f"Charts written to {args.charts}")

        if args.docx:
            cfg = ReportConfig(
                top_n=args.top,
                log_scale=args.log_scale,
                citation=DatasetCitation(file_name=os.path.basename(args.csv)),
            )
            out = generate_docx_report(analysis, os.path.join(tmp, "report.docx"), config=cfg,
                                       rankings=rankings, chart_paths=chart_paths)
            staged.append((out, args.docx))
            messages.append(f"Report written to {args.docx}")

        if args.export_csv:
            out = os.path.join(tmp, "aggregates.csv")
            analysis.export_csv(out)
            staged.append((out, args.export_csv))
            messages.append(f"Exported CSV to {args.export_csv}")
        if args.export_json:
            out = os.path.join(tmp, "aggregates.json")
            analysis.export_json(out)
            staged.append((out, args.export_json))
            messages.append(f"Exported JSON to {args.export_json}")

        for _, dst in staged:
            if os.path.isdir(dst):
                raise IsADirectoryError(f"{dst} is a directory")
        for _, dst in staged:
            os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
        for src, dst in staged:
            shutil.copyfile(src, dst)
    return messages


if __name__ == "__main__":
    sys.exit(main())
