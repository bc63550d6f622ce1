"""
Shared fixtures for tree index tests.
"""

import numpy as np
import pytest

from vectree.vector.tree import VectorTree


@pytest.fixture
def scenario_tree():
    """Tree built from a=[1,0], b=[0,1], c=[0.9,0.1] in that order."""
    tree = VectorTree()
    tree.insert([1.0, 0.0], "a")
    tree.insert([0.0, 1.0], "b")
    tree.insert([0.9, 0.1], "c")
    return tree


@pytest.fixture
def random_items():
    """Forty labeled 16-dimensional vectors from a fixed seed."""
    rng = np.random.default_rng(1234)
    return [(rng.normal(size=16), f"doc_{i}") for i in range(40)]


@pytest.fixture
def random_tree(random_items):
    """Tree holding random_items, inserted in order."""
    tree = VectorTree()
    tree.insert_many(random_items)
    return tree
