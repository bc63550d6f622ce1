"""
Embedding tree index: metric, nodes, search and persistence.
"""

from .metric import cosine_similarity, is_comparable
from .types import SearchResult, SearchReport, NodeSnapshot
from .arena import TreeNode, NodeArena, SharedNode, create_node
from .tree import VectorTree
from .embeddings import (
    IEmbeddingProvider,
    DeterministicHashEmbedding,
    SentenceTransformerEmbedding,
    IQueryRewriter,
    PassthroughRewriter,
    OllamaQueryRewriter,
    get_search_embedding
)

__all__ = [
    'cosine_similarity',
    'is_comparable',
    'SearchResult',
    'SearchReport',
    'NodeSnapshot',
    'TreeNode',
    'NodeArena',
    'SharedNode',
    'create_node',
    'VectorTree',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'IQueryRewriter',
    'PassthroughRewriter',
    'OllamaQueryRewriter',
    'get_search_embedding'
]
