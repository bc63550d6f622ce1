"""
Error types raised by the tree index and its collaborators.
Degenerate numeric input is never an error; it yields a NaN score.
"""


class TreeError(Exception):
    """Base exception for tree index operations."""

    def __init__(self, msg: str):
        super().__init__(msg)
        self.msg = msg


class TreePersistenceError(TreeError):
    """Reading or writing a persisted tree failed."""
    pass


class TreeCodecError(TreeError):
    """A persisted tree document could not be encoded or decoded."""
    pass


class EmbeddingError(TreeError):
    """The embedding source produced no vector or failed upstream."""
    pass


class NodeLockTimeout(TreeError):
    """A node lock was not acquired within the configured timeout."""

    def __init__(self, index: int, timeout: float):
        super().__init__(f"Timed out after {timeout}s acquiring lock for node {index}")
        self.index = index
        self.timeout = timeout
