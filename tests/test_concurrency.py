"""
Tests for concurrent insert and search on a shared tree.
"""

import threading

import numpy as np
import pytest

from vectree.core.errors import NodeLockTimeout, TreeError
from vectree.vector.arena import NodeArena, SharedNode, create_node
from vectree.vector.metric import cosine_similarity
from vectree.vector.tree import VectorTree


def test_handles_share_one_node():
    """Two handles to the same slot see the same mutations."""
    arena = NodeArena()
    handle = create_node(arena, 0, [1.0, 0.0], "a")
    alias = arena.handle(handle.index)

    assert alias == handle
    assert hash(alias) == hash(handle)

    with handle.locked() as node:
        node.label = "renamed"
    assert alias.snapshot().label == "renamed"


def test_handles_from_different_arenas_differ():
    first = create_node(NodeArena(), 0, [1.0], "a")
    second = create_node(NodeArena(), 0, [1.0], "a")
    assert first != second


def test_unknown_index_rejected():
    with pytest.raises(IndexError):
        NodeArena().handle(0)


def test_concurrent_inserts_keep_every_vector():
    """Parallel writers lose no vectors and keep the tree well formed."""
    rng = np.random.default_rng(42)
    batches = [[(rng.normal(size=8), f"t{t}_{i}") for i in range(50)] for t in range(8)]

    tree = VectorTree()
    tree.insert(np.ones(8), "seed")

    threads = [threading.Thread(target=tree.insert_many, args=(batch,)) for batch in batches]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    snapshots = {s.index: s for s in tree.walk()}
    labels = {s.label for s in snapshots.values()}
    expected = {label for batch in batches for _, label in batch} | {"seed"}

    assert labels == expected
    assert len(tree) == len(expected)

    for snapshot in snapshots.values():
        if snapshot.child_b is not None:
            assert snapshot.child_a is not None
        if snapshot.child_a is not None:
            child = snapshots[snapshot.child_a]
            assert child.depth == snapshot.depth + 1
            assert snapshot.child_a_distance == pytest.approx(
                cosine_similarity(snapshot.embedding, child.embedding))


def test_search_during_inserts():
    """Searches running alongside writers complete and stay sorted."""
    rng = np.random.default_rng(3)
    items = [(rng.normal(size=8), f"doc_{i}") for i in range(300)]
    tree = VectorTree()
    tree.insert(items[0][0], items[0][1])

    errors = []
    done = threading.Event()

    def reader():
        query = items[0][0]
        while not done.is_set():
            try:
                results = tree.search(query, -1.0, 1000)
                scores = [r.score for r in results]
                assert scores == sorted(scores)
                assert any(r.label == "doc_0" for r in results)
            except Exception as e:
                errors.append(e)
                return

    readers = [threading.Thread(target=reader) for _ in range(3)]
    for thread in readers:
        thread.start()
    tree.insert_many(items[1:])
    done.set()
    for thread in readers:
        thread.join()

    assert errors == []
    assert len(tree.search(items[0][0], -1.0, 1000)) == len(items)


def test_contended_node_raises_instead_of_skipping():
    """A lock that cannot be acquired surfaces as an error, not a silent gap."""
    tree = VectorTree(lock_timeout=0.05)
    tree.insert([1.0, 0.0], "a")
    tree.insert([0.0, 1.0], "b")

    child = tree.arena.handle(tree.root.snapshot().child_a)
    with child.locked():
        with pytest.raises(NodeLockTimeout) as exc_info:
            tree.search([1.0, 0.0], -1.0, 5)

    assert isinstance(exc_info.value, TreeError)
    assert exc_info.value.index == child.index
    # Released lock: search sees the whole tree again
    assert len(tree.search([1.0, 0.0], -1.0, 5)) == 2


def test_node_locks_are_independent():
    """With the root held elsewhere, a child can still be locked."""
    tree = VectorTree(lock_timeout=0.05)
    tree.insert([1.0, 0.0], "a")
    tree.insert([0.0, 1.0], "b")
    child = tree.arena.handle(tree.root.snapshot().child_a)

    acquired = []

    def lock_child():
        with child.locked() as node:
            acquired.append(node.label)

    with tree.root.locked():
        thread = threading.Thread(target=lock_child)
        thread.start()
        thread.join()

    assert acquired == ["b"]


def test_handle_is_lightweight():
    handle = SharedNode(NodeArena(), 0)
    assert repr(handle) == "SharedNode(index=0)"
