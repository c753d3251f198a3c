from __future__ import annotations

"""
STORMIE report generator
------------------------
Renders ranked category lists as:
- plain text tables (for the terminal),
- horizontal bar charts (PNG, matplotlib),
- a DOCX report bundling the four rankings with their charts.

Design goals:
- Keep the analysis importable even if report dependencies are missing
  (matplotlib / python-docx are imported lazily).
- Never modify the aggregates passed in; rendering is read-only.
- Bar charts keep the ranked order: rank 1 is the top bar.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import os
import tempfile

import structlog

from .models import METRIC_LABELS, CategoryAggregate

logger = structlog.get_logger(__name__)


# -----------------------------
# Configuration / citation types
# -----------------------------

@dataclass
class DatasetCitation:
    """Minimal dataset citation metadata for the DOCX report."""
    database_name: str = "Storm Events Database"
    institutional_author: str = "NOAA National Centers for Environmental Information"
    website: str = "https://www.ncdc.noaa.gov/stormevents/"
    access_date_iso: Optional[str] = None
    file_name: Optional[str] = None


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Storm Impact Report"
    subtitle: str = "Most harmful storm event categories in the United States"
    dataset_name: str = "NOAA storm data export"
    citation: DatasetCitation = field(default_factory=DatasetCitation)

    # How many categories to show in bar charts / tables
    top_n: int = 10

    # Log-scale the metric axis of the bar charts
    log_scale: bool = False

    dpi: int = 150


# Section titles and axis labels for the four standard rankings.
RANKING_TITLES = {
    "fatalities": "Event categories causing the most fatalities",
    "injuries": "Event categories causing the most injuries",
    "property_damage": "Event categories causing the most property damage",
    "crop_damage": "Event categories causing the most crop damage",
}


def _fmt(metric: str, value) -> str:
    if metric in ("property_damage", "crop_damage"):
        return f"{value:,.0f}"
    return f"{int(value):,}"


# -----------------------------
# Text tables
# -----------------------------

def format_table(ranked: Sequence[CategoryAggregate], metric: str, label: Optional[str] = None) -> str:
    """Render a ranked list as an aligned text table."""
    label = label or METRIC_LABELS.get(metric, metric)
    cells = [(str(i), a.category, _fmt(metric, getattr(a, metric))) for i, a in enumerate(ranked, start=1)]
    w_rank = max([len("#")] + [len(c[0]) for c in cells])
    w_cat = max([len("Category")] + [len(c[1]) for c in cells])
    w_val = max([len(label)] + [len(c[2]) for c in cells])

    lines = [
        f"{'#':>{w_rank}}  {'Category':<{w_cat}}  {label:>{w_val}}",
        f"{'-' * w_rank}  {'-' * w_cat}  {'-' * w_val}",
    ]
    for r, cat, val in cells:
        lines.append(f"{r:>{w_rank}}  {cat:<{w_cat}}  {val:>{w_val}}")
    return "\n".join(lines)


# -----------------------------
# Charts
# -----------------------------

def _pyplot():
    # Lazy import: only required when charts are drawn.
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib.\n"
            "Install it with: python -m pip install matplotlib"
        ) from e
    return plt


def plot_ranking(
    ranked: Sequence[CategoryAggregate],
    metric: str,
    out_path: str,
    *,
    xlabel: Optional[str] = None,
    title: Optional[str] = None,
    log_scale: bool = False,
    dpi: int = 150,
) -> str:
    """Draw a horizontal bar chart of a ranked list and save it as PNG."""
    import numpy as np
    plt = _pyplot()

    labels = [a.category for a in ranked]
    values = [float(getattr(a, metric)) for a in ranked]
    y = np.arange(len(labels))

    fig, ax = plt.subplots(figsize=(8, 0.45 * max(len(labels), 1) + 1.5))
    ax.barh(y, values, color="steelblue", edgecolor="black", linewidth=0.6)
    ax.set_yticks(y)
    ax.set_yticklabels(labels)
    # rank 1 at the top
    ax.invert_yaxis()
    if log_scale:
        ax.set_xscale("log")
    ax.set_xlabel(xlabel or METRIC_LABELS.get(metric, metric))
    ax.set_ylabel("Event category")
    ax.set_title(title or RANKING_TITLES.get(metric, metric))
    ax.grid(True, axis="x", alpha=0.3)

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)
    return out_path


def write_charts(
    rankings: Dict[str, List[CategoryAggregate]],
    out_dir: str,
    *,
    log_scale: bool = False,
    dpi: int = 150,
) -> Dict[str, str]:
    """One chart per ranking, named `top_<metric>.png`. Returns metric -> path."""
    paths: Dict[str, str] = {}
    for metric, ranked in rankings.items():
        paths[metric] = plot_ranking(
            ranked, metric, os.path.join(out_dir, f"top_{metric}.png"),
            log_scale=log_scale, dpi=dpi,
        )
    logger.info("Wrote charts", out_dir=out_dir, charts=len(paths))
    return paths


# -----------------------------
# DOCX report
# -----------------------------

def generate_docx_report(
    analysis,
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
    rankings: Optional[Dict[str, List[CategoryAggregate]]] = None,
    chart_paths: Optional[Dict[str, str]] = None,
) -> str:
    """
    Generate a DOCX report with one table + chart per ranking.

    `analysis` is a StormAnalysis. Rankings and charts are computed here
    unless the caller already has them.
    """
    config = config or ReportConfig()
    if rankings is None:
        rankings = analysis.all_rankings(config.top_n)
    if chart_paths is not None:
        return _write_docx(analysis, out_path, config, rankings, chart_paths)
    # charts are embedded in the document, the PNGs can go once it is saved
    with tempfile.TemporaryDirectory(prefix="stormie_report_") as tmpdir:
        chart_paths = write_charts(rankings, tmpdir, log_scale=config.log_scale, dpi=config.dpi)
        return _write_docx(analysis, out_path, config, rankings, chart_paths)


def _write_docx(analysis, out_path: str, config: ReportConfig, rankings, chart_paths: Dict[str, str]) -> str:
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv("Dataset", config.dataset_name)
    _kv("Events analysed", f"{len(analysis.events):,}")
    _kv("Categories", f"{len(analysis.aggregates):,} ({analysis.group_by} event types)")
    if analysis.cardinality:
        _kv("Distinct event types", f"{analysis.cardinality['raw']:,} raw, "
                                    f"{analysis.cardinality['normalized']:,} after normalization")
    if analysis.skipped:
        codes = ", ".join(sorted({repr(s.code) for s in analysis.skipped}))
        _kv("Records skipped (invalid exponent code)", f"{len(analysis.skipped):,} [{codes}]")

    doc.add_heading("Dataset citation", level=1)
    cit = config.citation
    if cit.file_name:
        doc.add_paragraph(f"Data file used: {cit.file_name}")
    accessed = f" (accessed {cit.access_date_iso})" if cit.access_date_iso else ""
    doc.add_paragraph(f"{cit.institutional_author}{accessed}. {cit.database_name}. {cit.website}.")

    doc.add_heading("Data processing", level=1)
    for note in [
        "Event types are lowercased and every run of punctuation or blanks is replaced by one space.",
        "Damage in US$ = mantissa x 10^exponent; exponent codes h/k/m/b mean 2/3/6/9, "
        "numeric codes are used as-is, and blank, '-', '?', '+' mean 0.",
        "Casualties and damages are summed per event type.",
        "Economic rankings leave out event types with no property and no crop damage.",
    ]:
        doc.add_paragraph(note, style="List Bullet")

    totals = analysis.totals()
    doc.add_heading("Totals", level=1)
    t = doc.add_table(rows=1, cols=2)
    t.rows[0].cells[0].text = "Metric"
    t.rows[0].cells[1].text = "Total"
    for metric in ("fatalities", "injuries", "property_damage", "crop_damage"):
        row = t.add_row().cells
        row[0].text = METRIC_LABELS[metric]
        row[1].text = _fmt(metric, totals[metric])

    doc.add_heading("Results", level=1)
    for metric, ranked in rankings.items():
        doc.add_heading(RANKING_TITLES.get(metric, metric), level=2)
        tbl = doc.add_table(rows=1, cols=3)
        h = tbl.rows[0].cells
        h[0].text = "Rank"
        h[1].text = "Event type"
        h[2].text = METRIC_LABELS.get(metric, metric)
        for i, a in enumerate(ranked, start=1):
            r = tbl.add_row().cells
            r[0].text = str(i)
            r[1].text = a.category
            r[2].text = _fmt(metric, getattr(a, metric))
        path = chart_paths.get(metric)
        if path:
            doc.add_paragraph("")
            doc.add_picture(path, width=Inches(6.0))

    doc.add_heading("Notes", level=1)
    doc.add_paragraph(
        "Normalization only removes differences in case and punctuation. "
        "Event types that differ in wording (for example 'flood' and 'flash flood') "
        "are still counted separately."
    )

    doc.add_heading("Reproducibility footer", level=1)
    from . import __version__ as stormie_version
    from datetime import datetime as _dt
    doc.add_paragraph(f"STORMIE version: {stormie_version}")
    doc.add_paragraph(f"Report generated at: {_dt.now().isoformat(timespec='seconds')}")
    if analysis.dataset_path:
        doc.add_paragraph(f"Dataset file: {os.path.basename(analysis.dataset_path)}")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    logger.info("Wrote DOCX report", path=out_path)
    return out_path
