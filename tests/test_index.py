"""
Tests for the AVL index.
"""

import random

import pytest

from tablestore.errors import StaleReferenceError
from tablestore.index import AVLIndex, balance_factor, height
from tablestore.store import Store
from tablestore.types import Cell, Column, DataType, Row


def make_index(keys):
    """Build a detached index; returns it with the rows so they stay alive."""
    index = AVLIndex()
    rows = []
    for key in keys:
        row = Row([Cell.of(key)])
        rows.append(row)
        index.insert(key, row)
    return index, rows


def all_nodes(node):
    if node is None:
        return []
    return all_nodes(node.left) + [node] + all_nodes(node.right)


class TestRotations:

    @pytest.mark.parametrize("keys", [
        [3, 2, 1],  # left-left
        [1, 2, 3],  # right-right
        [3, 1, 2],  # left-right
        [1, 3, 2],  # right-left
    ])
    def test_three_keys_rebalance_to_middle_root(self, keys):
        index, _ = make_index(keys)
        assert index.root.key == 2
        assert index.root.left.key == 1
        assert index.root.right.key == 3
        assert index.height == 2
        assert index.root.left.height == 1

    def test_heights(self):
        index, _ = make_index([])
        assert index.height == 0
        assert height(None) == 0
        assert balance_factor(None) == 0

        index, _ = make_index([5])
        assert index.height == 1


class TestInvariants:

    @pytest.mark.parametrize("seed", range(10))
    def test_random_keys_stay_balanced_and_ordered(self, seed):
        rng = random.Random(seed)
        keys = rng.sample(range(-10000, 10000), 500)
        index, _ = make_index(keys)

        assert len(index) == 500
        assert index.is_balanced()
        assert index.is_ordered()
        assert index.keys() == sorted(keys)
        for node in all_nodes(index.root):
            assert balance_factor(node) in (-1, 0, 1)

    @pytest.mark.parametrize("keys", [
        list(range(1000)),
        list(range(1000, 0, -1)),
        [i if i % 2 else -i for i in range(1000)],
    ])
    def test_monotonic_inputs_stay_logarithmic(self, keys):
        index, _ = make_index(keys)
        assert index.is_balanced()
        # an AVL tree with n nodes is at most ~1.44 log2(n) high
        assert index.height <= 15

    def test_text_keys(self):
        words = ["pear", "apple", "fig", "banana", "cherry", "date", "Apple"]
        index, _ = make_index(words)
        assert index.is_balanced()
        assert index.keys() == sorted(words)

    def test_duplicate_is_noop(self):
        index, rows = make_index([2, 1])
        duplicate = Row([Cell.integer(2)])
        assert index.insert(2, duplicate) is False
        assert len(index) == 2
        assert index.find_exact(2) is rows[0]


class TestQueries:

    def test_find_exact_min_max(self):
        index, rows = make_index([50, 20, 80, 10, 30])
        assert index.find_exact(30) is rows[4]
        assert index.find_exact(31) is None
        assert index.find_min() is rows[3]
        assert index.find_max() is rows[2]

    def test_empty_index(self):
        index, _ = make_index([])
        assert index.find_min() is None
        assert index.find_max() is None
        assert index.find_exact(1) is None
        assert len(index.range_ge(0)) == 0
        assert len(index.top_n(3)) == 0

    def test_ranges_are_ascending(self):
        keys = [15, 3, 9, 27, 1, 12, 21]
        index, _ = make_index(keys)

        assert [row[0].value for row in index.range_ge(10).rows()] == [12, 15, 21, 27]
        assert [row[0].value for row in index.range_le(10).rows()] == [1, 3, 9]
        assert [row[0].value for row in index.range_ge(27).rows()] == [27]
        assert len(index.range_ge(28)) == 0
        assert len(index.range_le(0)) == 0

    def test_ranges_carry_unknown_row_numbers(self):
        index, _ = make_index([1, 2, 3])
        assert index.range_ge(0).row_numbers() == [0, 0, 0]

    def test_top_and_bottom(self):
        keys = list(range(0, 100, 7))
        index, _ = make_index(keys)

        assert [row[0].value for row in index.top_n(3).rows()] == [98, 91, 84]
        assert [row[0].value for row in index.bottom_n(3).rows()] == [0, 7, 14]
        assert len(index.top_n(100)) == len(keys)
        assert len(index.top_n(0)) == 0
        assert len(index.bottom_n(-2)) == 0


class TestBuild:

    def test_build_from_store(self, people):
        index = AVLIndex.build(people, "id")
        assert index.keys() == [1, 3, 5]
        assert index.column_index == 0
        assert index.find_exact(5) is people.fetch_at(2)

    def test_first_duplicate_wins(self, scores):
        index = AVLIndex.build(scores, "score")
        assert len(index) == 2
        assert index.find_exact(10) is scores.fetch_at(1)

    def test_text_column(self, people):
        index = AVLIndex.build(people, "name")
        assert index.keys() == ["a", "b", "c"]

    def test_index_is_stale_after_mutation(self, people):
        index = AVLIndex.build(people, "id")
        people.delete_at(1)
        with pytest.raises(StaleReferenceError):
            index.find_exact(5)
        with pytest.raises(StaleReferenceError):
            index.range_ge(0)

    def test_index_does_not_own_rows(self):
        store = Store([Column("n", DataType.INT)])
        store.append([1])
        index = AVLIndex.build(store, 0)
        store.delete_at(1)
        assert index.root.row is None
