"""
JSON persistence for VectorTree.

The document's top-level object is the root node. Children are nested by
value under node_a / node_b, so loading always builds fresh handles and
only structure and field values survive a round trip. A NaN child distance
is written as null and read back as NaN, keeping the file strict JSON.
"""

import json
import math
import os
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.config import get_lock_timeout, get_model_path
from ..core.errors import TreeCodecError, TreePersistenceError
from ..util.logging import logger
from .arena import NodeArena, SharedNode, create_node
from .tree import VectorTree


class NodeDocument(BaseModel):
    """Serialized form of one node. Children stay raw until they are visited."""

    model_config = ConfigDict(populate_by_name=True)

    depth: int = Field(ge=0)
    # Older documents name this field "embeddings"
    embedding: List[float] = Field(validation_alias=AliasChoices('embedding', 'embeddings'))
    url: str
    node_a: Optional[Dict[str, Any]] = None
    node_a_dist: float
    node_b: Optional[Dict[str, Any]] = None
    node_b_dist: float

    @field_validator('node_a_dist', 'node_b_dist', mode='before')
    @classmethod
    def null_distance_is_nan(cls, v):
        if v is None:
            return math.nan
        return v


def _distance_value(distance: float) -> Optional[float]:
    return None if math.isnan(distance) else distance


def to_document(tree: VectorTree) -> Dict[str, object]:
    """Convert the tree to nested dicts in the persisted shape."""
    snapshots = list(tree.walk())
    documents: Dict[int, Dict[str, object]] = {}

    # Reverse pre-order visits every child before its parent
    for snapshot in reversed(snapshots):
        documents[snapshot.index] = {
            'depth': snapshot.depth,
            'embedding': snapshot.embedding.tolist(),
            'url': snapshot.label,
            'node_a': documents.pop(snapshot.child_a) if snapshot.child_a is not None else None,
            'node_a_dist': _distance_value(snapshot.child_a_distance),
            'node_b': documents.pop(snapshot.child_b) if snapshot.child_b is not None else None,
            'node_b_dist': _distance_value(snapshot.child_b_distance),
        }

    return documents[tree.root.index]


def from_document(raw: Dict[str, Any], lock_timeout: Optional[float] = None) -> VectorTree:
    """Validate a nested document node by node and rebuild the tree.

    Raises:
        pydantic.ValidationError: if any node is malformed
    """
    arena = NodeArena(lock_timeout)
    document = NodeDocument.model_validate(raw)
    root = _create_from(arena, document)

    # Explicit stack; chain-shaped trees nest far deeper than recursive validation allows
    pending = [(root, document)]
    while pending:
        handle, doc = pending.pop()
        child_a = _create_child(arena, doc.node_a)
        child_b = _create_child(arena, doc.node_b)
        with handle.locked() as node:
            node.child_a_distance = doc.node_a_dist
            node.child_b_distance = doc.node_b_dist
            if child_a is not None:
                node.child_a = child_a[0].index
                pending.append(child_a)
            if child_b is not None:
                node.child_b = child_b[0].index
                pending.append(child_b)

    return VectorTree(root)


def _create_child(arena: NodeArena, raw: Optional[Dict[str, Any]]):
    if raw is None:
        return None
    doc = NodeDocument.model_validate(raw)
    return _create_from(arena, doc), doc


def _create_from(arena: NodeArena, doc: NodeDocument) -> SharedNode:
    return create_node(arena, doc.depth, doc.embedding, doc.url)


def dumps(tree: VectorTree) -> bytes:
    """Serialize the tree to a JSON byte blob.

    Raises:
        TreeCodecError: if the tree cannot be encoded
    """
    try:
        return json.dumps(to_document(tree), allow_nan=False).encode('utf-8')
    except (TypeError, ValueError, RecursionError) as e:
        raise TreeCodecError(f"Failed to encode tree: {e}") from e


def loads(blob, lock_timeout: Optional[float] = None) -> VectorTree:
    """Deserialize a tree from a JSON byte blob or string.

    Raises:
        TreeCodecError: if the blob is not a valid tree document
    """
    try:
        raw = json.loads(blob)
        return from_document(raw, lock_timeout)
    except ValidationError as e:
        raise TreeCodecError(f"Invalid tree document: {e}") from e
    except (ValueError, RecursionError) as e:
        # JSONDecodeError and UnicodeDecodeError are ValueErrors
        raise TreeCodecError(f"Failed to decode tree: {e}") from e


def save(tree: VectorTree, path) -> None:
    """Write the tree to path.

    Raises:
        TreePersistenceError: if the file cannot be written
        TreeCodecError: if the tree cannot be encoded
    """
    content = dumps(tree)
    try:
        with open(path, 'wb') as f:
            f.write(content)
    except OSError as e:
        logger.log_persistence("save", path, status="failed", details={"error": str(e)})
        raise TreePersistenceError(f"Failed to write {path}: {e}") from e

    logger.log_persistence("save", path, details={"bytes": len(content)})


def load(path=None, lock_timeout: Optional[float] = None) -> VectorTree:
    """Read a tree from path, or from the configured model path.

    Raises:
        TreePersistenceError: if the file cannot be read
        TreeCodecError: if the file is not a valid tree document
    """
    path = os.fspath(path) if path is not None else get_model_path()
    if lock_timeout is None:
        lock_timeout = get_lock_timeout()

    try:
        with open(path, 'rb') as f:
            content = f.read()
    except OSError as e:
        logger.log_persistence("load", path, status="failed", details={"error": str(e)})
        raise TreePersistenceError(f"Failed to read {path}: {e}") from e

    tree = loads(content, lock_timeout)
    logger.log_persistence("load", path, details={"nodes": len(tree)})
    return tree
