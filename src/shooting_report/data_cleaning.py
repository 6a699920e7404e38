"""
data_cleaning.py
Cleaning Pipeline for the NYPD Shooting Incident Report

Design principles:
- Every transformation is logged with before/after counts
- Row count is conserved: columns and encodings change, rows never do
- Out-of-set values are mapped explicitly, never dropped silently
- A single `run_pipeline()` call reproduces the cleaned table end-to-end
"""

import logging

import pandas as pd

from shooting_report.errors import FieldParseError, ReportError, SchemaMismatchError

log = logging.getLogger(__name__)


# ── Constants ─────────────────────────────────────────────────────────────────

# Projected + geodetic coordinates; nothing downstream uses location geometry
GEOGRAPHIC_COLUMNS = ["X_COORD_CD", "Y_COORD_CD", "Latitude", "Longitude", "Lon_Lat"]

REQUIRED_COLUMNS = [
    "OCCUR_DATE", "OCCUR_TIME", "BORO", "LOC_OF_OCCUR_DESC",
    "STATISTICAL_MURDER_FLAG", "PERP_RACE", "VIC_RACE",
]

COLUMN_RENAMES = {
    "LOC_OF_OCCUR_DESC": "Location_Description",
    "STATISTICAL_MURDER_FLAG": "Is_Murder",
}

DATE_FORMAT = "%m/%d/%Y"
TIME_FORMAT = "%H:%M:%S"

# Compared after strip + lower-case, so "TRUE" and boolean True both match
MURDER_FLAG_CATEGORIES = ["true", "false"]

# Empty race cells mean "not recorded", which is distinct from the literal UNKNOWN
RACE_NOT_RECORDED = "(not recorded)"
MISSING_RACE_TOKENS = ("", "(null)")
RACE_COLUMNS = ["PERP_RACE", "VIC_RACE"]

# "raise": first malformed date/time aborts the run; "coerce": becomes NaT, row kept
PARSE_ERROR_POLICIES = ("raise", "coerce")


# ── Audit Trail ───────────────────────────────────────────────────────────────

class AuditTrail:
    """Tracks every cleaning decision and guards the row-count invariant."""

    def __init__(self, total_rows: int):
        self.total_rows = total_rows
        self.steps: list[dict] = []

    def record(self, step: str, description: str, changed: int, detail: str = ""):
        pct = changed / self.total_rows * 100 if self.total_rows else 0.0
        self.steps.append({
            "step": step,
            "description": description,
            "rows_affected": int(changed),
            "pct_affected": round(pct, 2),
            "detail": detail,
        })
        log.info(f"[{step}] {description} → {changed:,} rows affected ({pct:.1f}%) {detail}")

    def check_rows(self, step: str, df: pd.DataFrame):
        if len(df) != self.total_rows:
            raise ReportError(
                f"[{step}] row count changed from {self.total_rows:,} to {len(df):,}"
            )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            self.steps,
            columns=["step", "description", "rows_affected", "pct_affected", "detail"],
        )

    def summary(self):
        print("\n" + "=" * 65)
        print("CLEANING AUDIT SUMMARY")
        print("=" * 65)
        print(f"{'Step':<22} {'Affected':>10} {'%':>7}  Description")
        print("-" * 65)
        for s in self.steps:
            print(f"{s['step']:<22} {s['rows_affected']:>10,} {s['pct_affected']:>6.1f}%  {s['description']}")
        print("=" * 65)


def require_columns(df: pd.DataFrame, columns, stage: str = ""):
    missing = set(columns) - set(df.columns)
    if missing:
        raise SchemaMismatchError(missing, stage=stage)


# ── Field parsers ─────────────────────────────────────────────────────────────

def _parse_with_format(series: pd.Series, fmt: str, errors: str) -> pd.Series:
    parsed = pd.to_datetime(series, format=fmt, errors="coerce")
    # Cells that were already empty stay NaT under either policy
    bad = parsed.isna() & series.notna()
    if bad.any() and errors == "raise":
        raise FieldParseError(
            column=str(series.name),
            expected_format=fmt,
            examples=series[bad].head(3).tolist(),
            count=int(bad.sum()),
        )
    return parsed


def parse_occurrence_date(series: pd.Series, errors: str = "raise") -> pd.Series:
    return _parse_with_format(series, DATE_FORMAT, errors).dt.normalize()


def parse_occurrence_time(series: pd.Series, errors: str = "raise") -> pd.Series:
    """Parse HH:MM:SS strings into a timedelta since midnight."""
    stamps = _parse_with_format(series, TIME_FORMAT, errors)
    return stamps - stamps.dt.normalize()


def normalize_murder_flag(series: pd.Series) -> pd.Series:
    """
    Restrict the flag to exactly {"true", "false"}.
    Anything else (e.g. "unknown") becomes a missing value, not a third category.
    """
    text = series.astype("string").str.strip().str.lower()
    return text.astype(pd.CategoricalDtype(MURDER_FLAG_CATEGORIES))


def normalize_race(series: pd.Series) -> pd.Series:
    text = series.astype("string").str.strip()
    not_recorded = text.isna() | text.isin(MISSING_RACE_TOKENS)
    return text.mask(not_recorded, RACE_NOT_RECORDED).astype(str)


# ── Step 1: Drop geographic columns ───────────────────────────────────────────

def drop_geographic_columns(df: pd.DataFrame, audit: AuditTrail = None) -> pd.DataFrame:
    require_columns(df, GEOGRAPHIC_COLUMNS, stage="column pruning")
    df = df.drop(columns=GEOGRAPHIC_COLUMNS)

    if audit is not None:
        audit.check_rows("Drop geographic", df)
        audit.record("Drop geographic", "Coordinate columns removed", 0,
                     f"({', '.join(GEOGRAPHIC_COLUMNS)})")
    return df


# ── Step 2: Normalize types ───────────────────────────────────────────────────

def normalize_types(
    df: pd.DataFrame,
    audit: AuditTrail = None,
    on_parse_error: str = "raise",
) -> pd.DataFrame:
    if on_parse_error not in PARSE_ERROR_POLICIES:
        raise ValueError(
            f"on_parse_error must be one of {PARSE_ERROR_POLICIES}, got {on_parse_error!r}"
        )
    require_columns(df, REQUIRED_COLUMNS, stage="type normalization")
    df = df.copy()

    for col, parser in [("OCCUR_DATE", parse_occurrence_date), ("OCCUR_TIME", parse_occurrence_time)]:
        before_nulls = df[col].isna().sum()
        df[col] = parser(df[col], errors=on_parse_error)
        new_nulls = df[col].isna().sum() - before_nulls
        if new_nulls:
            log.warning(f"{new_nulls:,} malformed values in {col} coerced to NaT")
        if audit is not None:
            audit.record(f"Parse: {col}", "Unparseable values → NaT", new_nulls)

    df = df.rename(columns=COLUMN_RENAMES)
    df["Location_Description"] = df["Location_Description"].astype("category")

    raw_flag = df["Is_Murder"]
    df["Is_Murder"] = normalize_murder_flag(raw_flag)
    unmapped = int((df["Is_Murder"].isna() & raw_flag.notna()).sum())
    if unmapped:
        log.warning(f"{unmapped:,} Is_Murder values outside {MURDER_FLAG_CATEGORIES} → missing")

    not_recorded = 0
    for col in RACE_COLUMNS:
        df[col] = normalize_race(df[col])
        not_recorded += int((df[col] == RACE_NOT_RECORDED).sum())

    if audit is not None:
        audit.record("Murder flag", f"Restricted to {MURDER_FLAG_CATEGORIES}", unmapped,
                     "(out-of-set values → missing)")
        audit.record("Race sentinel", f"Empty race cells → {RACE_NOT_RECORDED!r}", not_recorded,
                     f"(across {', '.join(RACE_COLUMNS)})")
        audit.check_rows("Normalize types", df)
    return df


# ── Pipeline Orchestrator ─────────────────────────────────────────────────────

def run_pipeline(raw: pd.DataFrame, on_parse_error: str = "raise"):
    """
    Prune and normalize the raw incident table.

    Parameters
    ----------
    raw            : table as returned by the loader
    on_parse_error : "raise" or "coerce" for malformed OCCUR_DATE / OCCUR_TIME

    Returns
    -------
    (cleaned DataFrame, AuditTrail)
    """
    log.info("=" * 60)
    log.info("NYPD SHOOTING DATA — CLEANING PIPELINE START")
    log.info("=" * 60)

    audit = AuditTrail(total_rows=len(raw))

    df = drop_geographic_columns(raw, audit)
    df = normalize_types(df, audit, on_parse_error=on_parse_error)

    log.info(f"Final shape: {df.shape[0]:,} rows × {df.shape[1]} columns")
    return df, audit
