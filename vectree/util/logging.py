"""
Structured operation logging for the tree index.
"""

import logging
from typing import Any, Dict


class StructuredLogger:
    """Structured logger for tree, search and persistence operations."""

    def __init__(self, name: str = "vectree"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.info(message)

    def log_tree_operation(self, operation: str, label: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log an insertion or other mutation of the tree."""
        log_details = {"label": label[:50] + "..." if len(label) > 50 else label}
        if details:
            log_details.update(details)

        self.log_operation(f"tree.{operation}", status, log_details)

    def log_search(self, result_count: int, visited: int, threshold: float, max_results: int, status: str = "success"):
        """Log a completed search with its traversal cost."""
        log_details = {
            "result_count": result_count,
            "visited": visited,
            "threshold": threshold,
            "max_results": max_results
        }
        self.log_operation("tree.search", status, log_details)

    def log_persistence(self, operation: str, path: str, status: str = "success", details: Dict[str, Any] = None):
        """Log saving or loading a persisted tree."""
        log_details = {"path": str(path)}
        if details:
            log_details.update(details)

        self.log_operation(f"persistence.{operation}", status, log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()
