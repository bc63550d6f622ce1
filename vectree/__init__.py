"""
vectree - in-memory embedding tree index.
Greedy binary tree over embedding vectors with cosine-similarity search.
"""

from .vector import VectorTree, SharedNode, SearchResult, cosine_similarity

__version__ = "0.1.0"

__all__ = [
    'VectorTree',
    'SharedNode',
    'SearchResult',
    'cosine_similarity',
]
