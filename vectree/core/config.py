"""
Environment configuration for the tree index.
Values are read once at import; getter functions re-read the environment
so tests and long-running services can change them dynamically.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Persistence
MODEL_PATH = os.getenv("VECTREE_MODEL_PATH", "./search_model.json")

# Search defaults
SEARCH_THRESHOLD = float(os.getenv("VECTREE_SEARCH_THRESHOLD", "0.0"))
SEARCH_MAX_RESULTS = int(os.getenv("VECTREE_SEARCH_MAX_RESULTS", "10"))

# Node locking (-1 blocks until acquired)
LOCK_TIMEOUT_SEC = float(os.getenv("VECTREE_LOCK_TIMEOUT_SEC", "-1"))

# Embedding source
EMBED_PROVIDER = os.getenv("VECTREE_EMBED_PROVIDER", "hash")  # hash|sentence
EMBED_MODEL_NAME = os.getenv("VECTREE_EMBED_MODEL_NAME", "all-mpnet-base-v2")
EMBED_DIM = int(os.getenv("VECTREE_EMBED_DIM", "384"))

# Query rewriting before embedding
QUERY_REWRITE = os.getenv("VECTREE_QUERY_REWRITE", "off")  # off|ollama
OLLAMA_MODEL = os.getenv("VECTREE_OLLAMA_MODEL", "llama3")

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

VERSION = "0.1.0"


def get_model_path() -> str:
    """Get the default path of the persisted tree."""
    return os.getenv("VECTREE_MODEL_PATH", MODEL_PATH)


def get_search_threshold() -> float:
    """Get the default minimum similarity for search results."""
    return float(os.getenv("VECTREE_SEARCH_THRESHOLD", str(SEARCH_THRESHOLD)))


def get_search_max_results() -> int:
    """Get the default result cap that gates descent during search."""
    return int(os.getenv("VECTREE_SEARCH_MAX_RESULTS", str(SEARCH_MAX_RESULTS)))


def get_lock_timeout():
    """Get node lock timeout in seconds, or None to block."""
    timeout = float(os.getenv("VECTREE_LOCK_TIMEOUT_SEC", str(LOCK_TIMEOUT_SEC)))
    if timeout < 0:
        return None
    return timeout


def get_embedding_provider():
    """Get configured embedding provider implementation."""
    provider = os.getenv("VECTREE_EMBED_PROVIDER", EMBED_PROVIDER)

    if provider == "sentence":
        from vectree.vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(os.getenv("VECTREE_EMBED_MODEL_NAME", EMBED_MODEL_NAME))
    else:
        from vectree.vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding(int(os.getenv("VECTREE_EMBED_DIM", str(EMBED_DIM))))


def get_query_rewriter():
    """Get configured query rewriter. Returns None if rewriting is off."""
    mode = os.getenv("VECTREE_QUERY_REWRITE", QUERY_REWRITE)

    if mode == "ollama":
        from vectree.vector.embeddings import OllamaQueryRewriter
        return OllamaQueryRewriter(os.getenv("VECTREE_OLLAMA_MODEL", OLLAMA_MODEL))
    return None


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def ensure_model_directory(path: str = None):
    """Ensure the directory holding the persisted tree exists."""
    Path(path or get_model_path()).parent.mkdir(parents=True, exist_ok=True)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if os.getenv("VECTREE_EMBED_PROVIDER", EMBED_PROVIDER) not in ["hash", "sentence"]:
        issues.append(f"Invalid VECTREE_EMBED_PROVIDER: {os.getenv('VECTREE_EMBED_PROVIDER', EMBED_PROVIDER)}")

    if os.getenv("VECTREE_QUERY_REWRITE", QUERY_REWRITE) not in ["off", "ollama"]:
        issues.append(f"Invalid VECTREE_QUERY_REWRITE: {os.getenv('VECTREE_QUERY_REWRITE', QUERY_REWRITE)}")

    if get_search_max_results() < 0:
        issues.append("VECTREE_SEARCH_MAX_RESULTS must be >= 0")

    if not -1.0 <= get_search_threshold() <= 1.0:
        issues.append("VECTREE_SEARCH_THRESHOLD must be within [-1, 1]")

    if int(os.getenv("VECTREE_EMBED_DIM", str(EMBED_DIM))) < 1:
        issues.append("VECTREE_EMBED_DIM must be >= 1")

    return issues
