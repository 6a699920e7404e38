"""
regression.py
Incident count vs. time of day, ordinary least squares.

The predictor is the raw OCCUR_TIME (seconds since midnight), not the four
time-of-day buckets. Times are recorded to the minute or second, so most
distinct times carry only a handful of incidents and the fit is expected to
be weak. That is a finding of the report, not something to correct here.
"""

import math
from dataclasses import dataclass

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from scipy import stats

from shooting_report.eda import ACCENT, NEUTRAL, _source_note

SIGNIFICANCE_LEVEL = 0.05


@dataclass
class RegressionResult:
    n: int
    slope: float = math.nan
    intercept: float = math.nan
    slope_stderr: float = math.nan
    intercept_stderr: float = math.nan
    rvalue: float = math.nan
    pvalue: float = math.nan

    @property
    def is_defined(self) -> bool:
        return not math.isnan(self.slope)

    @property
    def rsquared(self) -> float:
        return self.rvalue ** 2

    @property
    def is_significant(self) -> bool:
        return self.is_defined and self.pvalue < SIGNIFICANCE_LEVEL

    def predict(self, seconds) -> np.ndarray:
        return self.intercept + self.slope * np.asarray(seconds, dtype=float)

    def summary(self) -> str:
        lines = [
            "OLS: incident count ~ time of day (seconds since midnight)",
            "-" * 60,
            f"Observations (distinct times): {self.n:,}",
            f"{'':<12} {'Estimate':>14} {'Std. Error':>14}",
            f"{'Intercept':<12} {self.intercept:>14.6g} {self.intercept_stderr:>14.6g}",
            f"{'OCCUR_TIME':<12} {self.slope:>14.6g} {self.slope_stderr:>14.6g}",
            f"r = {self.rvalue:.4f}   R² = {self.rsquared:.4f}   p-value = {self.pvalue:.4g}",
            "-" * 60,
        ]
        if not self.is_defined:
            lines.append("Coefficients undefined: fewer than 2 distinct time values.")
        elif self.is_significant:
            lines.append(f"Slope is significant at α = {SIGNIFICANCE_LEVEL}.")
        else:
            lines.append(f"Slope is NOT significant at α = {SIGNIFICANCE_LEVEL}: "
                         "time of day alone does not predict incident count.")
        return "\n".join(lines)


def incidents_per_time(df: pd.DataFrame) -> pd.DataFrame:
    """One row per distinct OCCUR_TIME with its incident count."""
    seconds = df["OCCUR_TIME"].dropna().dt.total_seconds()
    per_time = (
        seconds.groupby(seconds)
        .size()
        .rename("count")
        .rename_axis("seconds")
        .reset_index()
    )
    per_time.insert(0, "OCCUR_TIME", pd.to_timedelta(per_time["seconds"], unit="s"))
    return per_time


def fit_time_regression(per_time: pd.DataFrame) -> RegressionResult:
    x = per_time["seconds"].to_numpy(dtype=float)
    y = per_time["count"].to_numpy(dtype=float)

    # linregress cannot fit a line through a single x value
    if len(np.unique(x)) < 2:
        return RegressionResult(n=len(x))

    fit = stats.linregress(x, y)
    return RegressionResult(
        n=len(x),
        slope=float(fit.slope),
        intercept=float(fit.intercept),
        slope_stderr=float(fit.stderr),
        intercept_stderr=float(fit.intercept_stderr),
        rvalue=float(fit.rvalue),
        pvalue=float(fit.pvalue),
    )


def plot_regression(per_time: pd.DataFrame, result: RegressionResult) -> plt.Figure:
    fig, ax = plt.subplots(figsize=(12, 6))
    hours = per_time["seconds"] / 3600
    sns.scatterplot(x=hours, y=per_time["count"], ax=ax, color=NEUTRAL,
                    s=12, alpha=0.5, edgecolor=None, label="Incidents at that time")

    if result.is_defined:
        grid = np.linspace(per_time["seconds"].min(), per_time["seconds"].max(), 200)
        ax.plot(grid / 3600, result.predict(grid), color=ACCENT, linewidth=2,
                label=f"OLS fit (R² = {result.rsquared:.3f}, p = {result.pvalue:.3g})")

    ax.set_xlim(0, 24)
    ax.set_xticks(range(0, 25, 3))
    ax.set_title("Incident Count by Time of Day\n(one point per distinct recorded time)")
    ax.set_xlabel("Hour of Day")
    ax.set_ylabel("Number of Incidents")
    ax.legend(fontsize=8)
    _source_note(ax)
    plt.tight_layout()
    return fig
