import numpy as np
import pandas as pd
import pytest

from energy_forecast.prepare import QBTU_TO_GWH


def synthetic_series(n=96, start="2010-01-01", seed=42, name="Solar"):
    """Exponential growth with a yearly cycle and small multiplicative noise (GWh)"""
    rng = np.random.default_rng(seed)
    t = np.arange(n)
    log_y = 8 + 0.02 * t + 0.3 * np.sin(2 * np.pi * t / 12) + rng.normal(0, 0.02, n)
    index = pd.date_range(start, periods=n, freq="MS", name="ds")
    return pd.Series(np.exp(log_y), index=index, name=name)


def raw_rows(description, series, msn="XXTCPUS"):
    """RawRecord rows (as the EIA CSV has them) for a GWh series"""
    return pd.DataFrame({
        "MSN": msn,
        "YYYYMM": [int(ts.strftime("%Y%m")) for ts in series.index],
        "Value": [f"{v / QBTU_TO_GWH:.12f}" for v in series.values],
        "Column_Order": 1,
        "Description": description,
        "Unit": "Quadrillion Btu",
    })


@pytest.fixture
def solar_series():
    return synthetic_series()


@pytest.fixture
def log_solar_series(solar_series):
    return np.log(solar_series)


@pytest.fixture
def raw_frame():
    """
    Small EIA-shaped table: solar with a "Not Available" year, wind,
    the total, and annual-total rows (month 13) that must be dropped.
    """
    solar = synthetic_series(n=96, start="2010-01-01", name="Solar")
    wind = synthetic_series(n=96, start="2010-01-01", seed=7, name="Wind")
    total = solar + wind

    not_available = pd.DataFrame({
        "MSN": "SOTCPUS",
        "YYYYMM": [200900 + m for m in range(1, 13)],
        "Value": "Not Available",
        "Column_Order": 1,
        "Description": "Solar Energy Production",
        "Unit": "Quadrillion Btu",
    })
    annual = pd.DataFrame({
        "MSN": "SOTCPUS",
        "YYYYMM": [201013, 201113],
        "Value": ["1.0", "1.1"],
        "Column_Order": 1,
        "Description": "Solar Energy Production",
        "Unit": "Quadrillion Btu",
    })

    return pd.concat([
        not_available,
        raw_rows("Solar Energy Production", solar, "SOTCPUS"),
        annual,
        raw_rows("Wind Energy Production", wind, "WYTCPUS"),
        raw_rows("Total Primary Energy Production", total, "TETCPUS"),
    ], ignore_index=True)


@pytest.fixture
def make_cleaned():
    """Factory for cleaned [source, ds, gwh, twh] tables"""

    def _make(source="Solar", start="2010-01-01", end="2017-06-01", drop=(), value=1000.0):
        ds = pd.date_range(start, end, freq="MS")
        ds = ds[~ds.isin(pd.to_datetime(list(drop)))]
        gwh = np.full(len(ds), value, dtype=float) + np.arange(len(ds))
        return pd.DataFrame({
            "source": source,
            "ds": ds,
            "gwh": gwh,
            "twh": gwh / 1000,
        })

    return _make


@pytest.fixture
def make_raw_frame():
    """Factory for an EIA-shaped table holding `n` months of solar only"""

    def _make(n=96, start="2010-01-01"):
        return raw_rows("Solar Energy Production", synthetic_series(n=n, start=start), "SOTCPUS")

    return _make
