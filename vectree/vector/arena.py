"""
Tree nodes and the lock-guarded handles used to share them.

Nodes live in a NodeArena and are addressed by a stable integer index.
Each arena slot carries its own lock; there is no tree-wide lock. A node's
lock is only held while its own fields are read or written, never while
another node's lock is being acquired.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

import numpy as np

from ..core.errors import NodeLockTimeout
from .types import NodeSnapshot


def as_embedding(values) -> np.ndarray:
    """Convert a sequence of numbers to the float64 vector stored in nodes."""
    if values is None:
        return np.empty(0, dtype=np.float64)
    # Copy so later changes to the caller's array never reach a node
    return np.array(values, dtype=np.float64).reshape(-1)


@dataclass
class TreeNode:
    """A vector, its label and up to two children with cached similarities."""

    depth: int
    embedding: np.ndarray
    label: str
    child_a: Optional[int] = None
    child_a_distance: float = 0.0
    child_b: Optional[int] = None
    child_b_distance: float = 0.0

    def is_empty(self) -> bool:
        """True for a root that has not received its first vector."""
        return self.embedding.size == 0


class _Slot:
    def __init__(self, node: TreeNode):
        self.node = node
        self.lock = threading.Lock()


class NodeArena:
    """Owns every node of one tree.

    Slots are append-only, so an index stays valid for the arena's lifetime.
    """

    def __init__(self, lock_timeout: Optional[float] = None):
        self._slots: List[_Slot] = []
        self._alloc_lock = threading.Lock()
        self.lock_timeout = lock_timeout

    def allocate(self, node: TreeNode) -> 'SharedNode':
        """Store a node in a new slot and return its handle."""
        with self._alloc_lock:
            self._slots.append(_Slot(node))
            index = len(self._slots) - 1
        return SharedNode(self, index)

    def handle(self, index: int) -> 'SharedNode':
        """Get the handle for an existing slot."""
        if not 0 <= index < len(self._slots):
            raise IndexError(f"No node at index {index}")
        return SharedNode(self, index)

    def _slot(self, index: int) -> _Slot:
        return self._slots[index]

    def __len__(self) -> int:
        return len(self._slots)


class SharedNode:
    """Handle to one arena slot. Copies refer to the same node."""

    __slots__ = ('arena', 'index')

    def __init__(self, arena: NodeArena, index: int):
        self.arena = arena
        self.index = index

    @contextmanager
    def locked(self) -> Iterator[TreeNode]:
        """Acquire the node's lock and yield the node.

        Raises:
            NodeLockTimeout: if the arena has a lock timeout and it expires
        """
        slot = self.arena._slot(self.index)
        timeout = self.arena.lock_timeout
        if timeout is None:
            slot.lock.acquire()
        elif not slot.lock.acquire(timeout=timeout):
            raise NodeLockTimeout(self.index, timeout)
        try:
            yield slot.node
        finally:
            slot.lock.release()

    def snapshot(self) -> NodeSnapshot:
        """Copy the node's fields under its lock."""
        with self.locked() as node:
            return NodeSnapshot(
                index=self.index,
                depth=node.depth,
                embedding=node.embedding,
                label=node.label,
                child_a=node.child_a,
                child_a_distance=node.child_a_distance,
                child_b=node.child_b,
                child_b_distance=node.child_b_distance
            )

    def __eq__(self, other):
        if not isinstance(other, SharedNode):
            return NotImplemented
        return self.arena is other.arena and self.index == other.index

    def __hash__(self):
        return hash((id(self.arena), self.index))

    def __repr__(self):
        return f"SharedNode(index={self.index})"


def create_node(arena: NodeArena, depth: int, embedding, label: str) -> SharedNode:
    """Allocate a node with no children and zeroed child distances."""
    return arena.allocate(TreeNode(depth=depth, embedding=as_embedding(embedding), label=label))
