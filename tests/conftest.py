"""
Shared pytest fixtures for table store tests.
"""

import random

import pytest

from tablestore.config import StoreConfig
from tablestore.engine import TableEngine
from tablestore.store import Store
from tablestore.types import Column, DataType


@pytest.fixture
def people_columns():
    return [Column("id", DataType.INT), Column("name", DataType.TEXT)]


@pytest.fixture
def people(people_columns):
    """Store with columns (id, name) and rows (1,'a'), (5,'b'), (3,'c')."""
    store = Store(people_columns)
    store.append([1, "a"])
    store.append([5, "b"])
    store.append([3, "c"])
    return store


@pytest.fixture
def scores():
    """Store with one score column and rows 10, 10, 5."""
    store = Store([Column("score", DataType.INT)])
    for score in (10, 10, 5):
        store.append([score])
    return store


@pytest.fixture
def empty_store(people_columns):
    return Store(people_columns)


@pytest.fixture
def random_store():
    """200 rows with duplicate-prone ints and short random names."""
    rng = random.Random(1234)
    store = Store([
        Column("id", DataType.INT),
        Column("score", DataType.INT),
        Column("name", DataType.TEXT),
    ])
    for i in range(200):
        name = "".join(rng.choice("abcde") for _ in range(rng.randint(1, 4)))
        store.append([i, rng.randint(-50, 50), name])
    return store


@pytest.fixture
def engine(tmp_path):
    """Provide a session whose saved tables live in a temporary directory."""
    return TableEngine(StoreConfig(data_dir=str(tmp_path / "data"), auto_display=False))
