"""
Result and snapshot types produced by the tree index.
"""

from dataclasses import dataclass
from typing import List, NamedTuple, Optional

import numpy as np


class SearchResult(NamedTuple):
    """A match found during traversal."""

    score: float
    """Cosine similarity between the query and the node embedding"""

    label: str
    """Label of the matching node"""

    visit_count: int
    """Traversal counter value when the node was visited"""


@dataclass
class SearchReport:
    """Search results together with the traversal cost."""

    results: List[SearchResult]
    visited: int


@dataclass
class NodeSnapshot:
    """Copy of a node's fields taken under its lock."""

    index: int
    depth: int
    embedding: np.ndarray
    label: str
    child_a: Optional[int] = None
    child_a_distance: float = 0.0
    child_b: Optional[int] = None
    child_b_distance: float = 0.0
