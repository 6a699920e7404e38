"""
eda.py
Grouped counts and charts for the NYPD Shooting Incident Report

Design principles:
- Every aggregation is a plain function: table in, sorted counts out
- Aggregators read the cleaned table, they never write to it
- Visuals are publication-ready (labeled, titled, sourced)
- All outputs are reproducible and saved with descriptive names
"""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import pandas as pd
import seaborn as sns

from shooting_report.data_cleaning import MISSING_RACE_TOKENS, RACE_COLUMNS, RACE_NOT_RECORDED

# ── Style ─────────────────────────────────────────────────────────────────────
PALETTE  = "husl"      # one distinct hue per key, for any number of keys
ACCENT   = "#D62728"   # red — draws attention to key findings
NEUTRAL  = "#4C72B0"   # blue — standard marks
BG_GRAY  = "#F7F7F7"
FIG_DIR  = Path("report/figures")

plt.rcParams.update({
    "figure.facecolor": BG_GRAY,
    "axes.facecolor":   BG_GRAY,
    "axes.spines.top":  False,
    "axes.spines.right": False,
    "axes.labelsize":   11,
    "axes.titlesize":   13,
    "axes.titleweight": "bold",
    "xtick.labelsize":  9,
    "ytick.labelsize":  9,
    "font.family":      "sans-serif",
})

# Half-open [lo, hi) hour ranges; the top edge 24 is inclusive
TIME_BUCKET_EDGES  = [0, 6, 12, 18, 24]
TIME_BUCKET_LABELS = ["Night", "Morning", "Afternoon", "Evening"]


# ── Helpers ───────────────────────────────────────────────────────────────────

def save_figure(fig: plt.Figure, name: str, fig_dir=FIG_DIR) -> Path:
    fig_dir = Path(fig_dir)
    fig_dir.mkdir(parents=True, exist_ok=True)
    path = fig_dir / f"{name}.png"
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"  ✓ Saved → {path}")
    return path


def _source_note(ax, note="Source: NYPD Shooting Incident Data (Historic) / NYC Open Data"):
    ax.annotate(note, xy=(0, -0.12), xycoords="axes fraction",
                fontsize=7, color="gray")


def fmt_thousands(ax, axis="y"):
    fmt = mticker.FuncFormatter(lambda x, _: f"{x:,.0f}")
    if axis == "y":
        ax.yaxis.set_major_formatter(fmt)
    else:
        ax.xaxis.set_major_formatter(fmt)


def _no_data(ax, title: str):
    ax.text(0.5, 0.5, "No data", ha="center", va="center", fontsize=12, color="gray",
            transform=ax.transAxes)
    ax.set_title(title)
    ax.set_axis_off()


def _count_by(series: pd.Series) -> pd.Series:
    """Count rows per distinct value, most frequent first. Ties keep first-seen order."""
    counts = series.groupby(series, sort=False, observed=True).size()
    counts = counts[counts > 0].sort_values(ascending=False, kind="stable").astype(int)
    counts.name = "count"
    counts.index.name = series.name
    return counts


# ── Aggregators ───────────────────────────────────────────────────────────────

def count_by_borough(df: pd.DataFrame) -> pd.Series:
    return _count_by(df["BORO"])


def time_bucket(hour) -> str:
    """
    Map an hour of day onto one of four fixed buckets.
    [0,6) Night, [6,12) Morning, [12,18) Afternoon, [18,24] Evening.
    """
    if not TIME_BUCKET_EDGES[0] <= hour <= TIME_BUCKET_EDGES[-1]:
        raise ValueError(f"hour must be within [0, 24], got {hour!r}")
    for upper, label in zip(TIME_BUCKET_EDGES[1:], TIME_BUCKET_LABELS):
        if hour < upper:
            return label
    return TIME_BUCKET_LABELS[-1]


def occurrence_hour(df: pd.DataFrame) -> pd.Series:
    hours = df["OCCUR_TIME"].dt.total_seconds() // 3600
    return hours.astype("Int64").rename("Hour")


def count_by_time_bucket(df: pd.DataFrame) -> pd.Series:
    hours = occurrence_hour(df).dropna()
    buckets = hours.map(time_bucket).rename("Time_Bucket")
    return _count_by(buckets)


def count_by_murder_flag(df: pd.DataFrame) -> pd.Series:
    return _count_by(df["Is_Murder"])


def count_by_race(df: pd.DataFrame, column: str) -> pd.Series:
    """Counts for PERP_RACE or VIC_RACE. Not-recorded rows are left out entirely."""
    if column not in RACE_COLUMNS:
        raise ValueError(f"column must be one of {RACE_COLUMNS}, got {column!r}")
    race = df[column]
    recorded = ~race.isin((RACE_NOT_RECORDED, *MISSING_RACE_TOKENS))
    return _count_by(race[recorded])


# ── Presenters ────────────────────────────────────────────────────────────────

def plot_bar(counts: pd.Series, title: str, xlabel: str = None) -> plt.Figure:
    fig, ax = plt.subplots(figsize=(10, 6))
    if counts.empty:
        _no_data(ax, title)
        return fig

    colors = sns.color_palette(PALETTE, len(counts))
    positions = range(len(counts))
    ax.bar(positions, counts.values, color=colors, edgecolor="white")
    ax.set_xticks(list(positions))
    ax.set_xticklabels([str(k) for k in counts.index], rotation=20, ha="right")
    for i, v in enumerate(counts.values):
        ax.text(i, v, f"{v:,}", ha="center", va="bottom", fontsize=8)

    ax.set_title(title)
    ax.set_xlabel(xlabel or str(counts.index.name))
    ax.set_ylabel("Number of Incidents")
    fmt_thousands(ax)
    _source_note(ax)
    plt.tight_layout()
    return fig


def plot_pie(counts: pd.Series, title: str) -> plt.Figure:
    fig, ax = plt.subplots(figsize=(9, 9))
    if counts.empty:
        _no_data(ax, title)
        return fig

    ax.pie(counts.values, labels=[str(k) for k in counts.index],
           autopct="%1.1f%%", colors=sns.color_palette(PALETTE, len(counts)),
           startangle=90, wedgeprops={"edgecolor": "white"}, textprops={"fontsize": 8})
    ax.set_title(title)
    ax.axis("equal")
    return fig


# ── Console tables ────────────────────────────────────────────────────────────

def _print_counts(heading: str, counts: pd.Series):
    print("\n" + "=" * 60)
    print(heading)
    print("=" * 60)
    print(counts.to_string())
    print(f"  Total: {counts.sum():,}")


# ── Pipeline Orchestrator ─────────────────────────────────────────────────────

def summarize_counts(df: pd.DataFrame) -> dict:
    """All grouped counts of the report, keyed by a short name."""
    return {
        "borough":     count_by_borough(df),
        "time_bucket": count_by_time_bucket(df),
        "murder_flag": count_by_murder_flag(df),
        "perp_race":   count_by_race(df, "PERP_RACE"),
        "vic_race":    count_by_race(df, "VIC_RACE"),
    }


def run_eda(df: pd.DataFrame, fig_dir=FIG_DIR) -> dict:
    """
    Compute every grouped count, print them and save the four charts.

    Returns
    -------
    {"counts": {name: Series}, "figures": {name: Path}}
    """
    counts = summarize_counts(df)

    _print_counts("EDA 1 | INCIDENTS BY BOROUGH", counts["borough"])
    _print_counts("EDA 2 | INCIDENTS BY TIME OF DAY", counts["time_bucket"])
    _print_counts("EDA 3 | MURDER FLAG", counts["murder_flag"])
    _print_counts("EDA 4 | PERPETRATOR RACE (recorded only)", counts["perp_race"])
    _print_counts("EDA 5 | VICTIM RACE (recorded only)", counts["vic_race"])

    figures = {
        "borough": save_figure(
            plot_bar(counts["borough"], "Shooting Incidents by Borough", "Borough"),
            "01_incidents_by_borough", fig_dir),
        "time_bucket": save_figure(
            plot_bar(counts["time_bucket"], "Shooting Incidents by Time of Day", "Time of Day"),
            "02_incidents_by_time_of_day", fig_dir),
        "perp_race": save_figure(
            plot_pie(counts["perp_race"], "Perpetrator Race\n(not-recorded excluded)"),
            "03_perpetrator_race", fig_dir),
        "vic_race": save_figure(
            plot_pie(counts["vic_race"], "Victim Race\n(not-recorded excluded)"),
            "04_victim_race", fig_dir),
    }
    return {"counts": counts, "figures": figures}
