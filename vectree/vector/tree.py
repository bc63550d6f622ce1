"""
Greedy binary tree over embedding vectors.

Insertion fills a node's two child slots in order and, once both are taken,
descends into whichever child is more similar to the new vector. There is
no rebalancing, so the shape depends only on insertion order.

Search is a depth-first, pre-order walk that collects every node scoring
above a threshold and stops descending once max_results matches are held.
Results are not a point-in-time snapshot: concurrent inserts may or may not
be observed.
"""

import math
from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np

from ..util.logging import logger
from .arena import NodeArena, SharedNode, as_embedding, create_node
from .metric import cosine_similarity, is_comparable
from .types import NodeSnapshot, SearchReport, SearchResult


def _rank(score: float) -> float:
    # NaN never wins a comparison
    return score if is_comparable(score) else -math.inf


class VectorTree:
    """Embedding index rooted at a single shared node."""

    def __init__(self, root: Optional[SharedNode] = None, lock_timeout: Optional[float] = None):
        if root is None:
            root = create_node(NodeArena(lock_timeout), 0, None, "")
        self.root = root

    @classmethod
    def create(cls, embedding=None, label: str = "", lock_timeout: Optional[float] = None) -> 'VectorTree':
        """Create a tree whose root holds the given vector (or is empty)."""
        return cls(create_node(NodeArena(lock_timeout), 0, embedding, label))

    @property
    def arena(self) -> NodeArena:
        return self.root.arena

    def insert(self, embedding, label: str) -> SharedNode:
        """Place a vector into the tree and return the node now holding it.

        Args:
            embedding: vector with the tree's dimensionality
            label: identifier stored with the vector

        Raises:
            ValueError: if the vector is empty or its length differs from
                the vectors it is compared against
        """
        vector = as_embedding(embedding)
        if vector.size == 0:
            raise ValueError("Cannot insert an empty embedding")

        current = self.root
        while True:
            with current.locked() as node:
                if node.is_empty():
                    node.embedding = vector
                    node.label = label
                    return current

                if node.child_a is None:
                    node.child_a_distance = cosine_similarity(node.embedding, vector)
                    child = create_node(self.arena, node.depth + 1, vector, label)
                    node.child_a = child.index
                    return child

                if node.child_b is None:
                    node.child_b_distance = cosine_similarity(node.embedding, vector)
                    child = create_node(self.arena, node.depth + 1, vector, label)
                    node.child_b = child.index
                    return child

                child_a = self.arena.handle(node.child_a)
                child_b = self.arena.handle(node.child_b)

            # Live comparison against the candidate, not the cached distances
            a_sim = self._similarity_to(child_a, vector)
            b_sim = self._similarity_to(child_b, vector)
            current = child_b if _rank(b_sim) > _rank(a_sim) else child_a

    def insert_many(self, items: Iterable[Tuple[object, str]]) -> int:
        """Insert (embedding, label) pairs in order. Returns the count inserted."""
        count = 0
        for embedding, label in items:
            self.insert(embedding, label)
            count += 1
        return count

    def search(self, query_vector, threshold: float, max_results: int) -> List[SearchResult]:
        """Find nodes more similar to the query than threshold.

        Results are ordered by ascending score. max_results only decides
        whether traversal descends below a node; the returned list can be
        longer than max_results.
        """
        return self.search_with_stats(query_vector, threshold, max_results).results

    def search_with_stats(self, query_vector, threshold: float, max_results: int) -> SearchReport:
        """Like search(), also reporting how many nodes were visited."""
        query = as_embedding(query_vector)
        results: List[SearchResult] = []
        tally = 0

        # Explicit stack; child_a's subtree is finished before child_b is popped
        pending = [self.root]
        while pending:
            handle = pending.pop()
            with handle.locked() as node:
                embedding = node.embedding
                label = node.label
                child_a = node.child_a
                child_b = node.child_b

            tally += 1
            score = self._score(embedding, query)
            if is_comparable(score) and score > threshold:
                results.append(SearchResult(score, label, tally))

            if len(results) < max_results:
                if child_b is not None:
                    pending.append(self.arena.handle(child_b))
                if child_a is not None:
                    pending.append(self.arena.handle(child_a))

        # Stable sort: equal scores stay in visit order
        results.sort(key=lambda result: result.score)
        logger.debug(f"search visited {tally} nodes, {len(results)} matches")
        return SearchReport(results=results, visited=tally)

    def walk(self) -> Iterator[NodeSnapshot]:
        """Yield a snapshot of every node in pre-order (child_a before child_b)."""
        pending = [self.root]
        while pending:
            snapshot = pending.pop().snapshot()
            yield snapshot
            if snapshot.child_b is not None:
                pending.append(self.arena.handle(snapshot.child_b))
            if snapshot.child_a is not None:
                pending.append(self.arena.handle(snapshot.child_a))

    def render(self) -> str:
        """Outline of labels, one line per node in pre-order.

        Each line is indented two spaces per depth. Children carry a
        ``node_a: `` or ``node_b: `` prefix naming their slot.
        """
        lines = []
        pending = [(self.root, "")]
        while pending:
            handle, slot_name = pending.pop()
            snapshot = handle.snapshot()
            lines.append(f"{'  ' * snapshot.depth}{slot_name}{snapshot.label}")
            if snapshot.child_b is not None:
                pending.append((self.arena.handle(snapshot.child_b), "node_b: "))
            if snapshot.child_a is not None:
                pending.append((self.arena.handle(snapshot.child_a), "node_a: "))
        return "\n".join(lines)

    def is_empty(self) -> bool:
        with self.root.locked() as node:
            return node.is_empty()

    def dimension(self) -> int:
        """Dimensionality of the root vector, 0 for an empty tree."""
        with self.root.locked() as node:
            return int(node.embedding.size)

    def __len__(self) -> int:
        # Only the root can be an empty slot
        return len(self.arena) - (1 if self.is_empty() else 0)

    @staticmethod
    def _similarity_to(handle: SharedNode, vector: np.ndarray) -> float:
        with handle.locked() as node:
            embedding = node.embedding
        return cosine_similarity(embedding, vector)

    @staticmethod
    def _score(embedding: np.ndarray, query: np.ndarray) -> float:
        if embedding.size == 0:
            return math.nan
        return cosine_similarity(embedding, query)
