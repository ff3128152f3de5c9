"""
Pytest configuration and fixtures for join diagnostics tests.
"""

import sys
from pathlib import Path

import polars as pl
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture(scope="session")
def project_root():
    """Return project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def orders_df():
    """Orders with one duplicated customer and one customer missing from customers_df."""
    return pl.DataFrame(
        {
            "order_id": [1, 2, 3, 4],
            "customer_id": ["C1", "C2", "C2", "C4"],
            "amount": [10.0, 20.0, 30.0, 40.0],
        }
    )


@pytest.fixture
def customers_df():
    """Customers with unique ids."""
    return pl.DataFrame(
        {
            "customer_id": ["C1", "C2", "C3"],
            "name": ["Alice", "Bob", "Carol"],
        }
    )


@pytest.fixture
def clean_pair():
    """Two tables with a clean 1:1 key relationship."""
    x = pl.DataFrame({"id": [1, 2, 3], "value": ["a", "b", "c"]})
    y = pl.DataFrame({"id": [1, 2, 3], "name": ["A", "B", "C"]})
    return x, y


@pytest.fixture
def messy_strings_pair():
    """Text keys with whitespace, case and near-match problems."""
    x = pl.DataFrame({"key": ["Alpha ", "BRAVO", "charlie", "delta"], "v": [1, 2, 3, 4]})
    y = pl.DataFrame({"key": ["Alpha", "bravo", "charlie", "delte"], "w": [5, 6, 7, 8]})
    return x, y


@pytest.fixture
def composite_pair():
    """Composite (id, year) keys where the year column causes the mismatch."""
    x = pl.DataFrame({"id": [1, 2, 3], "year": [2020, 2021, 2022], "v": [1, 2, 3]})
    y = pl.DataFrame({"id": [1, 2, 3], "year": [2020, 2020, 2020], "w": [4, 5, 6]})
    return x, y
