"""
data_collection.py
Loads the NYPD Shooting Incident (Historic) dataset into a DataFrame.

The dataset is fetched wholesale with a single blocking GET. There is no
retry and no local cache: any failure here aborts the report.
"""

import io
import logging
from pathlib import Path

import pandas as pd
import requests

from shooting_report.errors import FetchError

log = logging.getLogger(__name__)


# ── Constants ─────────────────────────────────────────────────────────────────

# NYC Open Data — NYPD Shooting Incident Data (Historic)
DATA_URL = "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD"

# Seconds; None waits for the full body indefinitely
DEFAULT_TIMEOUT = 60

# Read as text so pandas never guesses booleans or numbers for these
TEXT_COLUMNS = {
    "OCCUR_DATE": str,
    "OCCUR_TIME": str,
    "BORO": str,
    "LOC_OF_OCCUR_DESC": str,
    "STATISTICAL_MURDER_FLAG": str,
    "PERP_RACE": str,
    "VIC_RACE": str,
}


def _read_csv(buffer, origin: str) -> pd.DataFrame:
    try:
        df = pd.read_csv(buffer, dtype=TEXT_COLUMNS, low_memory=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise FetchError(f"Content from {origin} is not well-formed CSV: {exc}") from exc
    log.info(f"Loaded {len(df):,} rows × {len(df.columns)} columns from {origin}")
    return df


def fetch_csv(url: str = DATA_URL, timeout=DEFAULT_TIMEOUT) -> pd.DataFrame:
    log.info(f"Fetching: {url}")
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as exc:
        raise FetchError(f"Could not fetch {url}: {exc}") from exc

    return _read_csv(io.StringIO(response.text), url)


def load_csv(filepath) -> pd.DataFrame:
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {filepath}")

    log.info(f"Loading: {filepath}")
    return _read_csv(path, str(path))


def load_data(source=DATA_URL, timeout=DEFAULT_TIMEOUT) -> pd.DataFrame:
    """Fetch `source` over HTTP(S) when it is a URL, otherwise read it from disk."""
    if str(source).lower().startswith(("http://", "https://")):
        return fetch_csv(str(source), timeout=timeout)
    return load_csv(source)
