"""
Step 1: Ingest the EIA monthly production table

Single CSV download, failing loud:
- Uses requests.Session with bounded retries and a timeout
- Reads Value/Description as text so "Not Available" survives parsing
- Rejects CSVs that are missing the columns the cleaner consumes
"""

from __future__ import annotations

import io
import logging
from typing import Optional

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import Settings
from .errors import FetchError, SchemaError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("Description", "YYYYMM", "Value")


def create_session(max_retries: int = 3, backoff_factor: float = 0.5) -> requests.Session:
    """Create session with retry logic"""
    session = requests.Session()
    retries = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=frozenset(["GET"]),
    )
    session.mount("https://", HTTPAdapter(max_retries=retries))
    session.mount("http://", HTTPAdapter(max_retries=retries))
    return session


def parse_raw_csv(text: str) -> pd.DataFrame:
    """
    Parse the raw CSV body into a RawRecord frame.

    Args:
        text: CSV content with at least Description, YYYYMM, Value columns

    Returns:
        DataFrame with every column of the CSV; Description and Value as str

    Raises:
        FetchError: body is empty or not parseable as CSV
        SchemaError: a required column is missing
    """
    if not text or not text.strip():
        raise FetchError("[ingest] CSV body is empty")

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype={"Description": str, "Value": str},
            keep_default_na=False,
        )
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise FetchError(f"[ingest] malformed CSV: {e}") from e

    # EIA occasionally pads header names
    df.columns = [str(c).strip() for c in df.columns]

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise SchemaError(
            f"[ingest] CSV missing required columns {missing}; got {df.columns.tolist()}"
        )

    return df


def load(
    url: str,
    timeout: float = 60.0,
    session: Optional[requests.Session] = None,
) -> pd.DataFrame:
    """
    Download the monthly production CSV.

    Args:
        url: Remote CSV resource
        timeout: Request timeout in seconds
        session: Optional pre-built session (defaults to create_session())

    Returns:
        DataFrame of raw records

    Raises:
        FetchError: network failure, HTTP error or malformed CSV
        SchemaError: missing Description/YYYYMM/Value columns
    """
    session = session or create_session()

    logger.info(f"[ingest] GET {url}")
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(f"[ingest] download failed for {url}: {e}") from e

    df = parse_raw_csv(response.text)
    logger.info(f"[ingest] {len(df)} raw rows, columns={df.columns.tolist()}")

    return df


def load_from_settings(settings: Settings) -> pd.DataFrame:
    """Load using the URL, timeout and retry policy in Settings"""
    session = create_session(settings.max_retries, settings.backoff_factor)
    return load(settings.url, timeout=settings.timeout, session=session)
