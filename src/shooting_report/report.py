"""
report.py
End-to-end NYPD Shooting Incident Report.

Runs the whole pipeline once, synchronously: fetch → prune → normalize →
aggregate → plot → regress, and writes a single HTML document with its
chart images beside it.
"""

import argparse
import html
import logging
import sys
from datetime import datetime
from pathlib import Path

import pandas as pd

from shooting_report.data_cleaning import PARSE_ERROR_POLICIES, run_pipeline
from shooting_report.data_collection import DATA_URL, DEFAULT_TIMEOUT, load_data
from shooting_report.eda import run_eda, save_figure
from shooting_report.errors import ReportError
from shooting_report.regression import fit_time_regression, incidents_per_time, plot_regression

# ── Logging Setup ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("report")
REPORT_NAME = "report.html"
FIGURE_SUBDIR = "figures"

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ font-family: sans-serif; max-width: 960px; margin: 2em auto; color: #222; }}
pre {{ background: #F7F7F7; padding: 1em; overflow-x: auto; }}
img {{ max-width: 100%; }}
table {{ border-collapse: collapse; font-size: 0.85em; }}
td, th {{ border: 1px solid #ccc; padding: 0.3em 0.6em; }}
.meta {{ color: gray; font-size: 0.85em; }}
</style>
</head>
<body>
<h1>{title}</h1>
<p class="meta">Source: {source}<br>Rendered: {rendered}<br>Incidents: {rows:,}</p>
{body}
</body>
</html>
"""


# ── Document sections ─────────────────────────────────────────────────────────

def text_section(heading: str, text: str) -> str:
    return f"<h2>{html.escape(heading)}</h2>\n<pre>{html.escape(text)}</pre>"


def counts_section(heading: str, counts: pd.Series) -> str:
    text = counts.to_string() + f"\n\nTotal: {counts.sum():,}"
    return text_section(heading, text)


def figure_section(heading: str, path: Path, output_dir: Path) -> str:
    src = Path(path).relative_to(output_dir).as_posix()
    alt = html.escape(heading)
    return f'<h2>{alt}</h2>\n<img src="{html.escape(src)}" alt="{alt}">'


def table_section(heading: str, frame: pd.DataFrame) -> str:
    return f"<h2>{html.escape(heading)}</h2>\n" + frame.to_html(index=False, border=0)


def build_html(sections: list, title: str, source: str, rows: int) -> str:
    return _PAGE.format(
        title=html.escape(title),
        source=html.escape(str(source)),
        rendered=datetime.now().strftime("%Y-%m-%d %H:%M"),
        rows=rows,
        body="\n\n".join(sections),
    )


# ── Pipeline Orchestrator ─────────────────────────────────────────────────────

def run_report(
    source=DATA_URL,
    output_dir=DEFAULT_OUTPUT_DIR,
    on_parse_error: str = "raise",
    timeout=DEFAULT_TIMEOUT,
) -> Path:
    """
    Render the full report in one call.

    Parameters
    ----------
    source         : dataset URL or local CSV path
    output_dir     : directory for report.html and figures/
    on_parse_error : "raise" aborts on malformed OCCUR_DATE / OCCUR_TIME, "coerce" nulls them
    timeout        : HTTP timeout in seconds, None to wait indefinitely

    Returns
    -------
    Path of the written HTML document
    """
    output_dir = Path(output_dir)
    fig_dir = output_dir / FIGURE_SUBDIR

    raw = load_data(source, timeout=timeout)
    df, audit = run_pipeline(raw, on_parse_error=on_parse_error)
    audit.summary()

    eda = run_eda(df, fig_dir=fig_dir)
    counts, figures = eda["counts"], eda["figures"]

    per_time = incidents_per_time(df)
    result = fit_time_regression(per_time)
    print("\n" + result.summary())
    figures["regression"] = save_figure(plot_regression(per_time, result),
                                        "05_time_of_day_regression", fig_dir)

    sections = [
        counts_section("Incidents by Borough", counts["borough"]),
        figure_section("Incidents by Borough (chart)", figures["borough"], output_dir),
        figure_section("Incidents by Time of Day", figures["time_bucket"], output_dir),
        counts_section("Statistical Murder Flag", counts["murder_flag"]),
        figure_section("Perpetrator Race", figures["perp_race"], output_dir),
        figure_section("Victim Race", figures["vic_race"], output_dir),
        text_section("Regression: Incident Count vs. Time of Day", result.summary()),
        figure_section("Regression Fit", figures["regression"], output_dir),
        table_section("Cleaning Audit", audit.to_frame()),
    ]

    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / REPORT_NAME
    path.write_text(
        build_html(sections, "NYPD Shooting Incident Report", source, len(df)),
        encoding="utf-8",
    )
    log.info(f"Report saved → {path}")
    return path


# ── Entry Point ───────────────────────────────────────────────────────────────

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Render the NYPD Shooting Incident Report.")
    parser.add_argument("--source", default=DATA_URL, help="Dataset URL or local CSV path.")
    parser.add_argument("--output-dir", default=str(DEFAULT_OUTPUT_DIR),
                        help="Directory for report.html and its figures.")
    parser.add_argument("--on-parse-error", choices=PARSE_ERROR_POLICIES, default="raise",
                        help="Abort on malformed dates/times, or coerce them to missing.")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                        help="HTTP timeout in seconds (0 waits indefinitely).")
    args = parser.parse_args(argv)

    try:
        run_report(
            source=args.source,
            output_dir=args.output_dir,
            on_parse_error=args.on_parse_error,
            timeout=args.timeout or None,
        )
    except (ReportError, FileNotFoundError) as exc:
        log.error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
