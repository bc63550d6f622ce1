"""
Text-level search service over a VectorTree.
Embeds text through the configured provider and logs every operation.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from ..core import config
from ..util.logging import logger
from . import codec
from .embeddings import IEmbeddingProvider, IQueryRewriter, get_search_embedding
from .tree import VectorTree
from .types import SearchResult


class TreeSearchService:
    """
    High-level service for indexing text and querying the tree.
    Query text may be rewritten before embedding; indexed text never is.
    """

    def __init__(self, tree: Optional[VectorTree] = None,
                 embedding_provider: Optional[IEmbeddingProvider] = None,
                 rewriter: Optional[IQueryRewriter] = None):
        self.tree = tree if tree is not None else VectorTree(lock_timeout=config.get_lock_timeout())
        self.embedding_provider = embedding_provider if embedding_provider is not None else config.get_embedding_provider()
        self.rewriter = rewriter if rewriter is not None else config.get_query_rewriter()

    def index_text(self, text: str, label: str) -> None:
        """Embed text and insert it under label."""
        embedding = get_search_embedding(text, self.embedding_provider)
        node = self.tree.insert(embedding, label)
        logger.log_tree_operation("insert", label, {"node": node.index, "dimension": len(embedding)})

    def index_vector(self, embedding, label: str) -> None:
        """Insert an already computed vector."""
        node = self.tree.insert(embedding, label)
        logger.log_tree_operation("insert", label, {"node": node.index})

    def query(self, text: str, threshold: Optional[float] = None,
              max_results: Optional[int] = None) -> List[SearchResult]:
        """
        Search the tree for text.

        Args:
            text: Query text
            threshold: Minimum similarity, defaults to config
            max_results: Result cap gating descent, defaults to config

        Returns:
            Matches ordered by ascending similarity
        """
        if threshold is None:
            threshold = config.get_search_threshold()
        if max_results is None:
            max_results = config.get_search_max_results()

        embedding = get_search_embedding(text, self.embedding_provider, self.rewriter)
        report = self.tree.search_with_stats(embedding, threshold, max_results)
        logger.log_search(len(report.results), report.visited, threshold, max_results)
        return report.results

    def save(self, path=None) -> None:
        """Persist the tree to path, or the configured model path."""
        path = path if path is not None else config.get_model_path()
        config.ensure_model_directory(path)
        codec.save(self.tree, path)

    @classmethod
    def load(cls, path=None, embedding_provider: Optional[IEmbeddingProvider] = None,
             rewriter: Optional[IQueryRewriter] = None) -> 'TreeSearchService':
        """Create a service over a tree read from disk."""
        return cls(codec.load(path), embedding_provider, rewriter)

    def health(self) -> Dict[str, Any]:
        """
        Return index health information.

        Returns:
            Health status dict with size, dimensions and model path
        """
        try:
            tree_dimension = self.tree.dimension()
            provider_dimension = self.embedding_provider.get_dimension()
            return {
                'status': 'healthy',
                'size': len(self.tree),
                'dimension': tree_dimension,
                'embedding_dimension': provider_dimension,
                'dimension_mismatch': tree_dimension not in (0, provider_dimension),
                'model_path': config.get_model_path(),
                'last_checked': datetime.now().isoformat()
            }
        except Exception as e:
            return {
                'status': 'unhealthy',
                'error': str(e),
                'size': 0,
                'model_path': config.get_model_path(),
                'last_checked': datetime.now().isoformat()
            }
